# ai_risk_resolver.py
"""
ai_risk_resolver.py - Normalized AI reply -> ranked AIRiskFilterData

Pipeline:
    normalize (ai_response_parser) -> disease label -> entries -> threshold
    -> resolve names/ids to known employees -> stable sort desc -> top N

Key decisions:
- One unmatched-entry policy (KEEP_UNMATCHED_AI_ENTRIES) for both reply
  contracts. Kept entries carry member_id=None and the reported identifier as
  display name; they never survive the merge into the employee table. A
  free-text report in which no name resolves is chat, not a filter.
- Structured ids resolve by exact case-insensitive employee id, then by exact
  case-insensitive full name. Free-text names go through a NameMatcher.
- Returns None when nothing survives; callers then treat the reply as chat.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Optional, Sequence, Union

from pydantic import ValidationError

from ai_response_parser import (
    FreeTextReport,
    NormalizedResponse,
    PlainText,
    ResponseContract,
    ScoredEmployee,
    StructuredResponse,
    normalize_ai_response,
    normalize_for_contract,
)
from config import AI_MAX_ENTRIES, KEEP_UNMATCHED_AI_ENTRIES, RISK_SCORE_THRESHOLD
from member_models import AIRiskEntry, AIRiskFilterData, EmployeeRecord
from name_matching import NameMatcher, TieredNameMatcher, normalize_name
from risk_engine import round_half_up
from wellness_constants import FALLBACK_DISEASE_LABEL, HEADER_LIKE_TOKENS, KNOWN_DISEASE_PATTERNS

logger = logging.getLogger(__name__)

_KNOWN_DISEASES = [(re.compile(p, re.IGNORECASE), label) for p, label in KNOWN_DISEASE_PATTERNS]
_RISK_PHRASE_RE = re.compile(
    r"(?:risk\s+(?:of|for)|likely\s+to\s+(?:have|get|develop))\s+(.+?)(?:\?|$|\.)",
    re.IGNORECASE,
)

# -----------------------------------------------------------------------------
# Free-text line patterns (first match per line wins)
# -----------------------------------------------------------------------------
_NAME = r"(?P<name>[A-Za-z][A-Za-z.']*(?:[ \-][A-Za-z][A-Za-z.']*)*)"
_SCORE = r"(?P<score>\d{1,3}(?:\.\d+)?)\s*%"
_PREFIX = r"^\s*(?:\d+[.)]\s*)?(?:[-*•]\s+)?"

FREE_TEXT_LINE_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("dash", re.compile(_PREFIX + _NAME + r"\s*[-–—:]\s*" + _SCORE)),
    ("table", re.compile(r"^\s*\|?\s*(?:\d+[.)]?\s*\|\s*)?" + _NAME + r"\s*\|(?:[^|\n]*\|)*?[^|\n\d]*" + _SCORE)),
    ("parenthetical", re.compile(_PREFIX + _NAME + r"\s*\(\s*[^)\d]*?" + _SCORE + r"[^)]*\)")),
    (
        "score",
        re.compile(
            _PREFIX
            + _NAME
            + r"\s*(?:[-–—:,|]|\.{2,}|…)\s*.*?\b(?:risk\s+)?score\b\s*(?:of|is)?\s*[:=]?\s*"
            + _SCORE,
            re.IGNORECASE,
        ),
    ),
]
_EMPHASIS_RE = re.compile(r"\*\*|__|`")


def extract_disease_name(condition: str) -> str:
    """Known label by keyword, else the object of "risk of X" phrasing, else a generic label."""
    text = condition or ""
    for pattern, label in _KNOWN_DISEASES:
        if pattern.search(text):
            return label

    match = _RISK_PHRASE_RE.search(text)
    if match:
        captured = re.sub(r"\b\w", lambda m: m.group(0).upper(), match.group(1)).strip()
        if captured:
            return captured

    return FALLBACK_DISEASE_LABEL


def probability_to_percent(probability: float) -> float:
    """0-1 probability -> percentage with one decimal, rounded half-up."""
    return round_half_up(probability * 100 * 10) / 10


def _rank(entries: Iterable[AIRiskEntry]) -> tuple[AIRiskEntry, ...]:
    ordered = sorted(entries, key=lambda e: e.risk_score, reverse=True)
    return tuple(ordered[:AI_MAX_ENTRIES])


def _build_member_lookup(members: Sequence[EmployeeRecord]) -> tuple[dict, dict]:
    by_id: dict[str, EmployeeRecord] = {}
    by_name: dict[str, EmployeeRecord] = {}
    for member in members:
        by_id.setdefault(str(member.id).strip().lower(), member)
        by_name.setdefault(normalize_name(member.full_name), member)
    return by_id, by_name


# -----------------------------------------------------------------------------
# Structured contract
# -----------------------------------------------------------------------------
def extract_structured_entries(
    response: StructuredResponse,
    members: Sequence[EmployeeRecord],
    keep_unmatched: bool = KEEP_UNMATCHED_AI_ENTRIES,
) -> list[AIRiskEntry]:
    by_id, by_name = _build_member_lookup(members)
    entries: list[AIRiskEntry] = []

    for i, item in enumerate(response.scored_employees):
        try:
            scored = ScoredEmployee.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping malformed scored employee #%d: %s", i, str(e)[:300])
            continue

        risk_score = probability_to_percent(scored.risk_probability)
        if risk_score > 100 or risk_score < 0:
            logger.warning("Skipping %s: probability %.4f is outside 0-1", scored.employee_id, scored.risk_probability)
            continue
        if risk_score < RISK_SCORE_THRESHOLD:
            continue

        key = scored.employee_id.strip().lower()
        member = by_id.get(key) or by_name.get(normalize_name(scored.employee_id))
        if member is None:
            logger.warning("No employee matches AI identifier %r (%d known)", scored.employee_id, len(members))
            if not keep_unmatched:
                continue

        entries.append(
            AIRiskEntry(
                employee_id=scored.employee_id,
                employee_name=member.full_name if member else scored.employee_id,
                member_id=member.id if member else None,
                risk_score=risk_score,
                confidence=scored.confidence,
                evidence=tuple(scored.evidence),
                match_tier="exact" if member else None,
            )
        )
    return entries


# -----------------------------------------------------------------------------
# Free-text contract
# -----------------------------------------------------------------------------
def _is_header_like(name: str) -> bool:
    lowered = name.strip().lower()
    if lowered in HEADER_LIKE_TOKENS:
        return True
    tokens = [t.strip(".'") for t in re.split(r"[ \-]+", lowered) if t.strip(".'")]
    return bool(tokens) and all(t in HEADER_LIKE_TOKENS for t in tokens)


def parse_free_text_line(line: str) -> Optional[tuple[str, float]]:
    """
    (name, score) for one report line, or None.

    The first pattern that matches decides; a rejected candidate does not fall
    through to later patterns.
    """
    cleaned = _EMPHASIS_RE.sub("", line)
    for label, pattern in FREE_TEXT_LINE_PATTERNS:
        match = pattern.search(cleaned)
        if not match:
            continue
        name = match.group("name").strip().rstrip(".")
        score = float(match.group("score"))
        if len(name) < 2 or _is_header_like(name):
            logger.debug("Rejected %s-pattern candidate %r (header-like)", label, name)
            return None
        if not 0 <= score <= 100:
            logger.debug("Rejected %s-pattern candidate %r: score %s out of range", label, name, score)
            return None
        return name, round_half_up(score * 10) / 10
    return None


def extract_free_text_entries(
    report: FreeTextReport,
    members: Sequence[EmployeeRecord],
    matcher: Optional[NameMatcher] = None,
    keep_unmatched: bool = KEEP_UNMATCHED_AI_ENTRIES,
) -> list[AIRiskEntry]:
    matcher = matcher or TieredNameMatcher()
    entries: list[AIRiskEntry] = []

    for line in report.text.splitlines():
        candidate = parse_free_text_line(line)
        if candidate is None:
            continue
        name, risk_score = candidate
        if risk_score < RISK_SCORE_THRESHOLD:
            continue

        result = matcher.match(name, members)
        if result is None:
            logger.warning("No employee matches reported name %r", name)
            if not keep_unmatched:
                continue

        entries.append(
            AIRiskEntry(
                employee_id=name,
                employee_name=result.member.full_name if result else name,
                member_id=result.member.id if result else None,
                risk_score=risk_score,
                match_tier=result.tier if result else None,
            )
        )
    return entries


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------
def resolve(
    normalized: NormalizedResponse,
    user_prompt: str,
    members: Sequence[EmployeeRecord],
    matcher: Optional[NameMatcher] = None,
    keep_unmatched: bool = KEEP_UNMATCHED_AI_ENTRIES,
) -> Optional[AIRiskFilterData]:
    if isinstance(normalized, PlainText):
        return None

    if isinstance(normalized, StructuredResponse):
        if not normalized.scored_employees:
            return None
        disease = extract_disease_name(normalized.condition or user_prompt)
        entries = extract_structured_entries(normalized, members, keep_unmatched)
        raw_response = json.dumps(normalized.payload, indent=2)
    else:
        disease = extract_disease_name(user_prompt or normalized.text)
        entries = extract_free_text_entries(normalized, members, matcher, keep_unmatched)
        raw_response = normalized.text
        # Summary rows ("Team average - 45%") parse like names; with no known
        # employee among them the report is treated as chat.
        if not any(e.member_id for e in entries):
            if entries:
                logger.info("Free-text reply named no known employee (%d line(s)); treating as chat", len(entries))
            return None

    top = _rank(entries)
    if not top:
        logger.info("AI reply had no entries at or above %.0f%%", RISK_SCORE_THRESHOLD)
        return None

    logger.info("AI risk filter: %s, %d entr%s", disease, len(top), "y" if len(top) == 1 else "ies")
    return AIRiskFilterData(disease=disease, entries=top, raw_response=raw_response)


def parse_ai_risk_response(
    raw: Any,
    user_prompt: str,
    members: Sequence[EmployeeRecord],
    contract: Union[ResponseContract, str] = ResponseContract.STRUCTURED,
    matcher: Optional[NameMatcher] = None,
) -> Optional[AIRiskFilterData]:
    logger.debug("Raw AI reply (%s): %.200s", type(raw).__name__, raw if isinstance(raw, str) else repr(raw))
    return resolve(normalize_for_contract(raw, contract), user_prompt, members, matcher)


def apply_ai_risk_filter(
    members: Sequence[EmployeeRecord],
    data: Optional[AIRiskFilterData],
) -> list[EmployeeRecord]:
    """
    Restrict `members` (already text/demographic filtered) to those with a
    resolved entry, highest AI score first. No active filter leaves them as-is.
    """
    if data is None:
        return list(members)
    scores = data.matched_scores
    kept = [m for m in members if m.id in scores]
    return sorted(kept, key=lambda m: scores[m.id], reverse=True)


# -----------------------------------------------------------------------------
# Chat rendering
# -----------------------------------------------------------------------------
NO_SIGNIFICANT_RISK_MESSAGE = "I analysed your query but found no employees with significant risk scores."


def format_ai_response_for_chat(raw: Any, members: Sequence[EmployeeRecord]) -> str:
    """Readable chat reply for a structured-contract response; plain text passes through."""
    response = normalize_ai_response(raw)
    if isinstance(response, PlainText):
        return response.text

    scored = response.scored_employees
    if not scored:
        return NO_SIGNIFICANT_RISK_MESSAGE

    by_id, _ = _build_member_lookup(members)
    lines = ["Here are the employees identified with significant risk:", ""]
    rank = 0
    for i, item in enumerate(scored):
        try:
            emp = ScoredEmployee.model_validate(item)
        except ValidationError:
            logger.debug("Skipping malformed scored employee #%d in chat text", i)
            continue
        rank += 1
        member = by_id.get(emp.employee_id.strip().lower())
        name = member.full_name if member else emp.employee_id
        lines.append(f"{rank}. {name} — {round_half_up(emp.risk_probability * 100)}% risk")
        for ev in emp.evidence[:2]:
            lines.append(f"   • {ev}")

    return "\n".join(lines).strip()


def describe_filter_for_chat(data: AIRiskFilterData) -> str:
    return (
        f"I've updated the employee table to show the top {len(data.entries)} employees at risk for "
        f"{data.disease} (above {RISK_SCORE_THRESHOLD:g}% risk score). You can clear this filter anytime."
    )
