# dashboard_state.py
"""
dashboard_state.py - The one owner of mutable dashboard state

Holds the employee list, the active AI risk filter, the committed search query
and the demographic filters. Scoring, parsing and resolution stay pure; this
controller only decides which result is current.

Concurrency model:
- Search input is debounced: only the last value inside a quiet period commits.
- Employee fetches and AI requests are last-write-wins. Each begin_*() call
  returns a token; a completion whose token is no longer the newest, or was
  issued before logout(), is ignored.
- Debounce timers fire on their own threads, so every state change happens
  under one lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from ai_risk_resolver import apply_ai_risk_filter
from config import SEARCH_DEBOUNCE_MS
from member_models import AIRiskFilterData, EmployeeRecord
from wellness_constants import RISK_LEVELS

logger = logging.getLogger(__name__)

_UNSET = object()


class Debouncer:
    """Call `callback(value)` once `delay_ms` passes with no newer submit()."""

    def __init__(self, callback: Callable[[Any], None], delay_ms: int = SEARCH_DEBOUNCE_MS):
        self.callback = callback
        self.delay_s = max(delay_ms, 0) / 1000.0
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Any = _UNSET
        self._generation = 0

    def submit(self, value: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = value
            self._timer = threading.Timer(self.delay_s, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is _UNSET:
                return
            value = self._pending
            self._pending = _UNSET
            self._timer = None
        self.callback(value)

    def flush(self) -> None:
        """Commit the pending value now, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            value = self._pending
            self._pending = _UNSET
            self._generation += 1
        if value is not _UNSET:
            self.callback(value)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = _UNSET
            self._generation += 1

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not _UNSET


@dataclass(frozen=True)
class DemographicFilters:
    min_age: Optional[float] = None
    max_age: Optional[float] = None
    department: Optional[str] = None
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None
    gender: Optional[str] = None

    @property
    def active(self) -> bool:
        return any(v not in (None, "") for v in vars(self).values())

    def matches(self, member: EmployeeRecord) -> bool:
        if self.min_age is not None and member.age < self.min_age:
            return False
        if self.max_age is not None and member.age > self.max_age:
            return False
        if self.department and member.department != self.department:
            return False
        if self.min_weight is not None and member.weight < self.min_weight:
            return False
        if self.max_weight is not None and member.weight > self.max_weight:
            return False
        if self.gender and member.gender != self.gender:
            return False
        return True


def matches_search(member: EmployeeRecord, query: str) -> bool:
    """Case-insensitive containment in name, department or risk tier."""
    q = (query or "").strip().lower()
    if not q:
        return True
    return q in member.full_name.lower() or q in member.department.lower() or q in member.overall_risk.lower()


@dataclass(frozen=True)
class RequestToken:
    kind: str  # "employees" | "ai"
    session: int
    sequence: int


class DashboardController:
    def __init__(self, members: Optional[Sequence[EmployeeRecord]] = None, debounce_ms: int = SEARCH_DEBOUNCE_MS):
        self._lock = threading.RLock()
        self._members: list[EmployeeRecord] = list(members or [])
        self._ai_filter: Optional[AIRiskFilterData] = None
        self._search_query = ""
        self._filters = DemographicFilters()
        self._session = 0
        self._latest: dict[str, int] = {"employees": 0, "ai": 0}
        self._search_debouncer = Debouncer(self._commit_search, debounce_ms)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def members(self) -> list[EmployeeRecord]:
        with self._lock:
            return list(self._members)

    @property
    def ai_filter(self) -> Optional[AIRiskFilterData]:
        with self._lock:
            return self._ai_filter

    @property
    def search_query(self) -> str:
        with self._lock:
            return self._search_query

    @property
    def filters(self) -> DemographicFilters:
        with self._lock:
            return self._filters

    @property
    def has_unmatched_ai_results(self) -> bool:
        """An AI filter is active but none of its entries resolved to a known employee."""
        with self._lock:
            return self._ai_filter is not None and self._ai_filter.has_unmatched_only

    @property
    def has_any_filter(self) -> bool:
        with self._lock:
            return self._filters.active or self._ai_filter is not None or bool(self._search_query.strip())

    def departments(self) -> list[str]:
        with self._lock:
            return sorted({m.department for m in self._members if m.department})

    def risk_counts(self) -> dict[str, int]:
        with self._lock:
            counts = {level: 0 for level in RISK_LEVELS}
            for m in self._members:
                counts[m.overall_risk] = counts.get(m.overall_risk, 0) + 1
            return counts

    def filtered_members(self) -> list[EmployeeRecord]:
        with self._lock:
            query = self._search_query
            filters = self._filters
            visible = [m for m in self._members if matches_search(m, query) and filters.matches(m)]
            return apply_ai_risk_filter(visible, self._ai_filter)

    # ------------------------------------------------------------------
    # Search + filters
    # ------------------------------------------------------------------
    def set_search_query(self, text: str) -> None:
        self._search_debouncer.submit(text or "")

    def flush_search(self) -> None:
        self._search_debouncer.flush()

    def _commit_search(self, text: str) -> None:
        with self._lock:
            self._search_query = text
        logger.debug("Search query committed: %r", text)

    def set_filters(self, filters: DemographicFilters) -> None:
        with self._lock:
            self._filters = filters

    def clear_filters(self) -> None:
        with self._lock:
            self._filters = DemographicFilters()

    def clear_all_filters(self) -> None:
        self._search_debouncer.cancel()
        with self._lock:
            self._filters = DemographicFilters()
            self._ai_filter = None
            self._search_query = ""

    # ------------------------------------------------------------------
    # Last-write-wins requests
    # ------------------------------------------------------------------
    def _begin(self, kind: str) -> RequestToken:
        with self._lock:
            self._latest[kind] += 1
            return RequestToken(kind, self._session, self._latest[kind])

    def _is_current(self, token: RequestToken) -> bool:
        return token.session == self._session and token.sequence == self._latest[token.kind]

    def begin_employee_fetch(self) -> RequestToken:
        return self._begin("employees")

    def complete_employee_fetch(self, token: RequestToken, members: Sequence[EmployeeRecord]) -> bool:
        with self._lock:
            if not self._is_current(token):
                logger.info("Ignoring stale employee list (request %d, session %d)", token.sequence, token.session)
                return False
            self._members = list(members)
            self._ai_filter = None
            return True

    def begin_ai_request(self) -> RequestToken:
        return self._begin("ai")

    def complete_ai_request(self, token: RequestToken, data: Optional[AIRiskFilterData]) -> bool:
        """Install `data` as the active AI filter; None means the reply was plain chat and leaves the filter alone."""
        with self._lock:
            if not self._is_current(token):
                logger.info("Ignoring stale AI result (request %d, session %d)", token.sequence, token.session)
                return False
            if data is not None:
                self._ai_filter = data
            return True

    def set_ai_filter(self, data: Optional[AIRiskFilterData]) -> None:
        with self._lock:
            self._ai_filter = data

    def clear_ai_filter(self) -> None:
        self.set_ai_filter(None)

    def replace_members(self, members: Sequence[EmployeeRecord]) -> None:
        """Swap in a locally built roster (seed or spreadsheet import)."""
        with self._lock:
            self._members = list(members)
            self._ai_filter = None

    def logout(self) -> None:
        """Drop all state; any request begun before this point becomes stale."""
        self._search_debouncer.cancel()
        with self._lock:
            self._session += 1
            self._members = []
            self._ai_filter = None
            self._search_query = ""
            self._filters = DemographicFilters()
        logger.info("Session ended; in-flight requests invalidated")
