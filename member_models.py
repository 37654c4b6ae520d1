# member_models.py
"""
Data model shared by the scoring engine, the importers and the AI resolver.

EmployeeRecord is frozen: a record is built once by the risk engine and never
mutated afterwards. `to_dict()` emits the camelCase keys the dashboard reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Gender = Literal["Male", "Female"]
SmokingStatus = Literal["Non-smoker", "Former smoker", "Current smoker"]
ExerciseFrequency = Literal["Rarely", "1-2x/week", "3-4x/week", "5+x/week"]
StressLevel = Literal["Low", "Moderate", "High"]
RiskLevel = Literal["Low", "Moderate", "High"]
YesNo = Literal["Yes", "No"]
MatchTier = Literal["exact", "substring", "token", "fuzzy"]


@dataclass(frozen=True)
class EmployeeInput:
    """Validated, pre-score screening fields for one employee."""

    full_name: str
    email: str
    department: str
    gender: Gender
    age: float
    bmi: float
    blood_pressure: str  # "systolic/diastolic"
    fasting_glucose: float  # mg/dL
    cholesterol: float  # mg/dL
    smoking_status: SmokingStatus
    exercise_frequency: ExerciseFrequency
    family_history: YesNo
    stress_level: StressLevel
    past_diseases: tuple[str, ...] = ("None",)
    weight: Optional[float] = None  # kg

    @property
    def systolic(self) -> int:
        return int(self.blood_pressure.split("/", 1)[0])

    @property
    def diastolic(self) -> int:
        return int(self.blood_pressure.split("/", 1)[1])

    @property
    def has_past_disease(self) -> bool:
        return any(d != "None" for d in self.past_diseases)


@dataclass(frozen=True)
class EmployeeRecord:
    """A scored employee. Built by risk_engine.build_record()."""

    id: str
    full_name: str
    email: str
    department: str
    gender: Gender
    age: float
    weight: float
    bmi: float
    blood_pressure: str
    fasting_glucose: float
    cholesterol: float
    smoking_status: SmokingStatus
    exercise_frequency: ExerciseFrequency
    family_history: YesNo
    stress_level: StressLevel
    past_diseases: tuple[str, ...]
    hypertension_risk_pct: int
    diabetes_risk_pct: int
    cardiovascular_risk_pct: int
    overall_risk: RiskLevel
    recommendation: str

    @property
    def peak_risk_pct(self) -> int:
        return max(self.hypertension_risk_pct, self.diabetes_risk_pct, self.cardiovascular_risk_pct)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "department": self.department,
            "gender": self.gender,
            "age": self.age,
            "weight": self.weight,
            "bmi": self.bmi,
            "bloodPressure": self.blood_pressure,
            "fastingBloodGlucoseMgDl": self.fasting_glucose,
            "cholesterolMgDl": self.cholesterol,
            "smokingStatus": self.smoking_status,
            "exerciseFrequency": self.exercise_frequency,
            "familyHistory": self.family_history,
            "stressLevel": self.stress_level,
            "pastDiseases": list(self.past_diseases),
            "hypertensionRiskPct": self.hypertension_risk_pct,
            "diabetesRiskPct": self.diabetes_risk_pct,
            "cardiovascularRiskPct": self.cardiovascular_risk_pct,
            "overallRisk": self.overall_risk,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class AIRiskEntry:
    employee_id: str  # identifier or name exactly as reported by the AI
    employee_name: str  # resolved full name, or the reported identifier
    member_id: Optional[str]  # None when no confident match was found
    risk_score: float  # 0-100, one decimal
    confidence: str = "unknown"
    evidence: tuple[str, ...] = ()
    match_tier: Optional[MatchTier] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "memberId": self.member_id,
            "riskScore": self.risk_score,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
            "matchTier": self.match_tier,
        }


@dataclass(frozen=True)
class AIRiskFilterData:
    disease: str
    entries: tuple[AIRiskEntry, ...]
    raw_response: str = ""

    @property
    def matched_scores(self) -> dict[str, float]:
        """member_id -> risk score for entries that resolved to a known employee."""
        scores: dict[str, float] = {}
        for entry in self.entries:
            if entry.member_id and entry.member_id not in scores:
                scores[entry.member_id] = entry.risk_score
        return scores

    @property
    def has_unmatched_only(self) -> bool:
        return bool(self.entries) and not self.matched_scores

    def to_dict(self) -> dict[str, Any]:
        return {
            "disease": self.disease,
            "entries": [e.to_dict() for e in self.entries],
            "rawResponse": self.raw_response,
        }


@dataclass
class ImportResult:
    """Outcome of a spreadsheet/row import. Errors never abort the batch."""

    members: list[EmployeeRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
