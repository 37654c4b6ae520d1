# input_normalization.py

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from wellness_constants import (
    ENUM_ALIASES,
    HEADER_ALIASES,
    NO_PAST_DISEASE,
    PAST_DISEASE_KEYWORDS,
)

logger = logging.getLogger(__name__)

BLOOD_PRESSURE_RE = re.compile(r"^(\d{2,3})\s*/?\s*(\d{2,3})$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize(text: Any) -> str:
    """
    Normalize any incoming cell value to a safe lowercase string.

    - Avoid `text or ""` because pandas.NA raises on boolean evaluation.
    - Treat None and NaN as empty.
    """
    if text is None:
        return ""
    if isinstance(text, float) and math.isnan(text):
        return ""
    s = str(text)
    if s.strip().lower() in {"nan", "<na>"}:
        return ""
    return s.strip().lower()


def alnum_key(text: Any) -> str:
    """Lowercase and drop everything that is not a-z0-9 ("Blood Pressure" -> "bloodpressure")."""
    return _NON_ALNUM_RE.sub("", normalize(text))


def clean_text(value: Any) -> str:
    """Trimmed original-case text; empty for None/NaN."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


# Second-chance lookup tables keyed by the alphanumeric-only form.
_ENUM_FALLBACK: dict[str, dict[str, str]] = {
    field_name: {alnum_key(k): v for k, v in table.items() if alnum_key(k)}
    for field_name, table in ENUM_ALIASES.items()
}


def normalize_header(key: Any) -> str:
    return alnum_key(key)


def map_row_headers(row: dict[str, Any]) -> dict[str, Any]:
    """
    Resolve free-text spreadsheet headers to logical field names.

    The first column that resolves to a field wins; unknown columns are dropped.
    """
    mapped: dict[str, Any] = {}
    for raw_key, value in row.items():
        logical = HEADER_ALIASES.get(normalize_header(raw_key))
        if logical is None:
            continue
        if logical in mapped and clean_text(mapped[logical]):
            continue
        mapped[logical] = value
    return mapped


def parse_enum(field_name: str, raw: Any) -> Optional[str]:
    """
    Map raw text onto the closed label set for `field_name`.

    Lookup order: trimmed lowercase text, then the alphanumeric-only key.
    Returns None when nothing matches.
    """
    table = ENUM_ALIASES.get(field_name)
    if table is None:
        raise KeyError(f"Unknown enumerated field: {field_name}")

    key = normalize(raw)
    if not key:
        return None
    if key in table:
        return table[key]
    return _ENUM_FALLBACK[field_name].get(alnum_key(key))


def parse_number(raw: Any) -> Optional[float]:
    """Finite float or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        s = clean_text(raw)
        if not s:
            return None
        try:
            value = float(s)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return value


def as_int_if_integral(value: float) -> float:
    return int(value) if float(value).is_integer() else value


def parse_blood_pressure(raw: Any) -> Optional[tuple[int, int]]:
    """(systolic, diastolic) or None. A lone number is never split into a reading."""
    match = BLOOD_PRESSURE_RE.match(clean_text(raw))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def map_condition_to_past_disease(condition: Any) -> Optional[str]:
    text = normalize(condition)
    if not text:
        return None
    for keywords, label in PAST_DISEASE_KEYWORDS:
        if any(k in text for k in keywords):
            return label
    return None


def parse_past_diseases(raw: Any) -> tuple[str, ...]:
    """
    Parse a comma-separated string or a list of condition labels.

    "none" (any case), empty values or absence mean no prior conditions.
    Unrecognised conditions are dropped.
    """
    if raw is None:
        items: list[Any] = []
    elif isinstance(raw, (list, tuple, set)):
        items = list(raw)
    else:
        items = clean_text(raw).split(",")

    labels: list[str] = []
    for item in items:
        text = normalize(item)
        if not text or text == "none":
            continue
        label = map_condition_to_past_disease(text)
        if label is None:
            logger.debug("Ignoring unrecognised past disease %r", item)
            continue
        if label not in labels:
            labels.append(label)

    return tuple(labels) if labels else (NO_PAST_DISEASE,)


def slugify(value: Any) -> str:
    return re.sub(r"[^a-z0-9]+", "-", normalize(value)).strip("-")
