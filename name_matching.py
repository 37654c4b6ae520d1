# name_matching.py
"""
Resolve a free-text employee name (as written by the AI service) to a known
EmployeeRecord.

Two strategies share the NameMatcher protocol so the resolver never cares
which one is active:

- TieredNameMatcher: exact -> substring containment -> token overlap.
- RapidFuzzNameMatcher: edit-distance ranking via rapidfuzz, for reports with
  typos the tiered matcher would miss.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from rapidfuzz import fuzz, process

from config import FUZZY_MATCH_CUTOFF, TOKEN_OVERLAP_MIN_SCORE
from member_models import EmployeeRecord, MatchTier

logger = logging.getLogger(__name__)

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9']+")


@dataclass(frozen=True)
class MatchResult:
    member: EmployeeRecord
    tier: MatchTier
    score: float  # 1.0 for exact/substring; overlap fraction or fuzzy ratio / 100 otherwise


class NameMatcher(Protocol):
    def match(self, name: str, members: Sequence[EmployeeRecord]) -> Optional[MatchResult]:
        ...


def normalize_name(name: str) -> str:
    return " ".join(str(name or "").lower().split())


def name_tokens(name: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(normalize_name(name)) if t]


def token_overlap(a: str, b: str) -> tuple[float, int]:
    """(matched / max(len(a), len(b)), matched) over distinct name tokens."""
    left = set(name_tokens(a))
    right = set(name_tokens(b))
    if not left or not right:
        return 0.0, 0
    matched = len(left & right)
    return matched / max(len(left), len(right)), matched


class TieredNameMatcher:
    """
    Three tiers, first hit wins:

    1. exact: case/whitespace-insensitive equality with the full name
    2. substring: either name contains the other (first member in list order)
    3. token: best token-overlap score, accepted at >= min_score with at least
       one shared token; ties keep the earlier member
    """

    def __init__(self, min_score: float = TOKEN_OVERLAP_MIN_SCORE):
        self.min_score = min_score

    def match(self, name: str, members: Sequence[EmployeeRecord]) -> Optional[MatchResult]:
        target = normalize_name(name)
        if not target:
            return None

        for member in members:
            if normalize_name(member.full_name) == target:
                return MatchResult(member, "exact", 1.0)

        for member in members:
            candidate = normalize_name(member.full_name)
            if candidate and (target in candidate or candidate in target):
                return MatchResult(member, "substring", 1.0)

        best: Optional[MatchResult] = None
        for member in members:
            overlap, matched = token_overlap(target, member.full_name)
            if matched < 1 or overlap < self.min_score:
                continue
            if best is None or overlap > best.score:
                best = MatchResult(member, "token", overlap)
        return best


class RapidFuzzNameMatcher:
    """Exact match first, then rapidfuzz token_sort_ratio above `cutoff` (0-100)."""

    def __init__(self, cutoff: float = FUZZY_MATCH_CUTOFF):
        self.cutoff = cutoff

    def match(self, name: str, members: Sequence[EmployeeRecord]) -> Optional[MatchResult]:
        target = normalize_name(name)
        if not target or not members:
            return None

        for member in members:
            if normalize_name(member.full_name) == target:
                return MatchResult(member, "exact", 1.0)

        choices = [normalize_name(m.full_name) for m in members]
        hit = process.extractOne(target, choices, scorer=fuzz.token_sort_ratio, score_cutoff=self.cutoff)
        if hit is None:
            return None
        _, ratio, index = hit
        logger.debug("Fuzzy matched %r -> %r (%.1f)", name, members[index].full_name, ratio)
        return MatchResult(members[index], "fuzzy", ratio / 100.0)
