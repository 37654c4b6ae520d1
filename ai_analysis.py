# ai_analysis.py
"""
AI analysis adapter: sends an HR admin's question plus the employee roster to a
local Ollama chat model and returns the raw reply text.

The reply is NOT interpreted here; ai_response_parser / ai_risk_resolver do that.
Failures surface as AIServiceError, or UnauthorizedError when the backend
rejected our credentials (HTTP 401/403), so the caller can decide between
ending the session and retrying.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama

from ai_response_parser import ResponseContract
from config import AI_BASE_URL, AI_MODEL_NAME, AI_MODEL_OPTIONS, AI_RESPONSE_CONTRACT, OFFLINE_MODE
from member_models import EmployeeRecord

logger = logging.getLogger(__name__)

UNAUTHORIZED_STATUS_CODES = {401, 403}

_BASE_INSTRUCTIONS = """
You are a corporate wellness analyst. You receive an HR admin's question and a
JSON roster of employees with screening metrics and rule-based risk percentages.
Only answer health and wellness questions about these employees; for anything
else reply with one short plain-text sentence saying you can only answer
health-related questions.
"""

STRUCTURED_INSTRUCTIONS = """
Reply with ONE JSON object and nothing else:
{"condition": "<condition analysed>",
 "scored_employees": [
   {"employee_id": "<id from the roster>", "risk_probability": <0.0-1.0>,
    "confidence": "low|medium|high", "evidence": ["<short reason>", ...]}
 ]}
Use employee ids exactly as given. Order by risk_probability, highest first.
"""

FREE_TEXT_INSTRUCTIONS = """
Reply with a short ranked list, one employee per line, formatted as
"1. Full Name - NN%" where NN is the estimated risk percentage.
Use full names exactly as given in the roster.
"""


class AIServiceError(Exception):
    """The AI analysis call failed (network, model, offline mode...)."""


class UnauthorizedError(AIServiceError):
    """The AI backend rejected the request's credentials (HTTP 401/403)."""


def _make_llm(model: str, options: Optional[dict] = None, prefer_json: bool = False, base_url: Optional[str] = None) -> ChatOllama:
    kwargs: dict[str, Any] = {"model": model, **(options or {})}
    if prefer_json:
        kwargs["format"] = "json"
    if base_url:
        kwargs["base_url"] = base_url
    return ChatOllama(**kwargs)


def system_prompt_for(contract: ResponseContract) -> str:
    body = STRUCTURED_INSTRUCTIONS if contract is ResponseContract.STRUCTURED else FREE_TEXT_INSTRUCTIONS
    return (_BASE_INSTRUCTIONS.strip() + "\n\n" + body.strip()).strip()


def build_roster_context(members: Sequence[EmployeeRecord]) -> str:
    roster = [
        {
            "employee_id": m.id,
            "name": m.full_name,
            "department": m.department,
            "gender": m.gender,
            "age": m.age,
            "bmi": m.bmi,
            "blood_pressure": m.blood_pressure,
            "fasting_glucose_mg_dl": m.fasting_glucose,
            "cholesterol_mg_dl": m.cholesterol,
            "smoking_status": m.smoking_status,
            "exercise_frequency": m.exercise_frequency,
            "family_history": m.family_history,
            "stress_level": m.stress_level,
            "past_diseases": list(m.past_diseases),
            "hypertension_risk_pct": m.hypertension_risk_pct,
            "diabetes_risk_pct": m.diabetes_risk_pct,
            "cardiovascular_risk_pct": m.cardiovascular_risk_pct,
        }
        for m in members
    ]
    return json.dumps(roster, ensure_ascii=True)


class AIAnalysisClient:
    def __init__(
        self,
        model: str = AI_MODEL_NAME,
        options: Optional[dict] = None,
        contract: ResponseContract | str = AI_RESPONSE_CONTRACT,
        base_url: Optional[str] = AI_BASE_URL,
        offline: bool = OFFLINE_MODE,
    ):
        self.model = model
        self.options = dict(AI_MODEL_OPTIONS if options is None else options)
        self.contract = ResponseContract(contract)
        self.base_url = base_url
        self.offline = offline
        self._llm: Optional[ChatOllama] = None

    @property
    def llm(self) -> ChatOllama:
        if self._llm is None:
            self._llm = _make_llm(
                self.model,
                self.options,
                prefer_json=self.contract is ResponseContract.STRUCTURED,
                base_url=self.base_url,
            )
        return self._llm

    def analyse(self, prompt: str, members: Sequence[EmployeeRecord]) -> str:
        """Raw model reply for `prompt` over `members`."""
        if self.offline:
            raise AIServiceError("AI analysis is unavailable in offline mode (WELLNESS_OFFLINE_MODE=true)")
        if not str(prompt or "").strip():
            raise ValueError("prompt must not be empty")

        messages = [
            SystemMessage(content=system_prompt_for(self.contract)),
            HumanMessage(content=f"Question: {prompt.strip()}\n\nEmployees:\n{build_roster_context(members)}"),
        ]
        logger.info("[AI] Analysing %d employee(s) with %s (%s contract)", len(members), self.model, self.contract.value)

        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            status = getattr(e, "status_code", None)
            if status in UNAUTHORIZED_STATUS_CODES:
                logger.warning("[AI] Backend refused credentials (HTTP %s)", status)
                raise UnauthorizedError(f"AI service rejected the request (HTTP {status})") from e
            logger.warning("[AI] Analysis call failed: %s", e)
            raise AIServiceError(f"AI analysis failed: {e}") from e

        content = response.content
        if not isinstance(content, str):
            content = json.dumps(content)
        return content.strip()
