# ai_response_parser.py
"""
ai_response_parser.py - Classify a raw AI-service reply

The analysis backend has shipped two reply contracts:

1. structured: an object with a `scored_employees` list and a `condition`
   string. It may arrive already decoded, as a JSON string, as a JSON string
   holding another JSON string, or wrapped in a ```json fence.
2. free_text: a prose/table report; it carries risk data only when it holds at
   least two percentage tokens.

Exactly one pipeline runs per reply, chosen by the configured contract.
Nothing here raises: anything undecodable degrades to PlainText.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

EMPTY_AI_RESPONSE_MESSAGE = "No response received from the AI service."
UNREADABLE_AI_RESPONSE_MESSAGE = "The AI service returned an unreadable response."

PERCENT_TOKEN_RE = re.compile(r"\d{1,3}(?:\.\d+)?%")
MIN_PERCENT_TOKENS = 2


class ResponseContract(str, Enum):
    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class StructuredResponse:
    payload: dict = field(default_factory=dict)

    @property
    def condition(self) -> str:
        value = self.payload.get("condition")
        return value if isinstance(value, str) else ""

    @property
    def scored_employees(self) -> list:
        return list(self.payload.get("scored_employees") or [])


@dataclass(frozen=True)
class FreeTextReport:
    text: str


@dataclass(frozen=True)
class PlainText:
    text: str


NormalizedResponse = Union[StructuredResponse, FreeTextReport, PlainText]


class ScoredEmployee(BaseModel):
    """One `scored_employees` item. Extra keys from newer backends are ignored."""

    model_config = ConfigDict(extra="ignore")

    employee_id: str
    risk_probability: float = Field(allow_inf_nan=False)
    confidence: str = "unknown"
    evidence: List[str] = Field(default_factory=list)

    @field_validator("employee_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("employee_id is blank")
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, v: Any) -> Any:
        return "unknown" if v is None or v == "" else v

    @field_validator("evidence", mode="before")
    @classmethod
    def _clean_evidence(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(x).strip() for x in v if x is not None and str(x).strip()]


def is_structured_shape(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("scored_employees"), list)


def _unwrap_code_fence(text: str) -> str:
    """Return the body of the first ``` fence, or the text unchanged."""
    if "```json" in text:
        body = text.split("```json", 1)[1]
    elif "```" in text:
        body = text.split("```", 1)[1]
    else:
        return text
    if "```" in body:
        body = body.split("```", 1)[0]
    return body.strip()


def _serialize(raw: Any) -> str:
    try:
        return json.dumps(raw)
    except (TypeError, ValueError):
        return UNREADABLE_AI_RESPONSE_MESSAGE


def normalize_ai_response(raw: Any) -> NormalizedResponse:
    """Structured-contract normalizer: StructuredResponse or PlainText."""
    if raw is None:
        return PlainText(EMPTY_AI_RESPONSE_MESSAGE)

    if not isinstance(raw, str):
        if is_structured_shape(raw):
            return StructuredResponse(raw)
        return PlainText(_serialize(raw))

    candidate = _unwrap_code_fence(raw.strip())
    if not candidate.startswith(("{", "[", '"')):
        return PlainText(raw)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return PlainText(raw)

    if isinstance(parsed, str):
        # double-encoded: a JSON string whose content is the JSON object
        try:
            inner = json.loads(parsed)
        except json.JSONDecodeError:
            return PlainText(parsed)
        if is_structured_shape(inner):
            return StructuredResponse(inner)
        return PlainText(parsed)

    if is_structured_shape(parsed):
        return StructuredResponse(parsed)
    return PlainText(raw)


def contains_risk_data(text: str) -> bool:
    return len(PERCENT_TOKEN_RE.findall(text or "")) >= MIN_PERCENT_TOKENS


def normalize_free_text_response(raw: Any) -> NormalizedResponse:
    """Free-text-contract normalizer: FreeTextReport or PlainText."""
    if raw is None:
        return PlainText(EMPTY_AI_RESPONSE_MESSAGE)
    text = raw if isinstance(raw, str) else _serialize(raw)
    if contains_risk_data(text):
        return FreeTextReport(text)
    return PlainText(text)


def normalize_for_contract(raw: Any, contract: Union[ResponseContract, str] = ResponseContract.STRUCTURED) -> NormalizedResponse:
    contract = ResponseContract(contract)
    if contract is ResponseContract.FREE_TEXT:
        result = normalize_free_text_response(raw)
    else:
        result = normalize_ai_response(raw)
    logger.debug("Normalized AI reply (%s contract) -> %s", contract.value, type(result).__name__)
    return result


def response_text(normalized: NormalizedResponse) -> str:
    """Text to show in the chat pane for a normalized reply."""
    if isinstance(normalized, StructuredResponse):
        return json.dumps(normalized.payload, indent=2)
    return normalized.text
