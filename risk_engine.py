# risk_engine.py
"""
Deterministic Risk Scoring Engine for employee health screenings.

Maps one validated EmployeeInput to three disease-risk percentages
(hypertension, type 2 diabetes, cardiovascular), an overall tier and an
intervention recommendation.

Key decisions:
- Coefficients, offsets and clamp bounds are tuning constants kept verbatim for
  parity with the dashboard; they are an illustrative heuristic, not a
  validated clinical score.
- Rounding is half-up (floor(x + 0.5)) before clamping, and terms are summed in
  the documented order so float results match the dashboard exactly.
- The engine is total: odd-but-finite inputs (negative BMI, age 0) are clamped,
  never rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from config import DEFAULT_WEIGHT_KG, HIGH_RISK_CUTOFF, MODERATE_RISK_CUTOFF
from member_models import EmployeeInput, EmployeeRecord
from wellness_constants import (
    CURRENT_SMOKER,
    EXERCISE_1_2,
    EXERCISE_3_4,
    EXERCISE_RARELY,
    FORMER_SMOKER,
    HEART_DISEASE,
    HIGH_CHOLESTEROL,
    HYPERTENSION,
    OBESITY,
    RISK_HIGH,
    RISK_LOW,
    RISK_MODERATE,
    STRESS_HIGH,
    STRESS_MODERATE,
    STROKE,
    TYPE_2_DIABETES,
)

# (floor, ceiling) per component
HYPERTENSION_BOUNDS = (5, 95)
DIABETES_BOUNDS = (4, 94)
CARDIOVASCULAR_BOUNDS = (6, 93)

RECOMMENDATIONS: dict[tuple[str, bool], str] = {
    (RISK_HIGH, True): (
        "URGENT: Schedule immediate clinic referral. Enroll in intensive wellness monitoring "
        "program with weekly check-ins. Prior conditions require specialized attention."
    ),
    (RISK_HIGH, False): (
        "Refer to partner clinic and enroll in tracked wellness intervention with bi-weekly monitoring."
    ),
    (RISK_MODERATE, True): (
        "Assign personalized fitness and diet plan with bi-weekly check-ins. Monitor prior conditions closely."
    ),
    (RISK_MODERATE, False): "Assign a personalized fitness and diet plan with monthly check-ins.",
    # Low tier reads the same with or without prior conditions
    (RISK_LOW, True): "Maintain current lifestyle and send quarterly prevention tips.",
    (RISK_LOW, False): "Maintain current lifestyle and send quarterly prevention tips.",
}


@dataclass(frozen=True)
class RiskScores:
    hypertension_risk_pct: int
    diabetes_risk_pct: int
    cardiovascular_risk_pct: int
    overall_risk: str
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "hypertensionRiskPct": self.hypertension_risk_pct,
            "diabetesRiskPct": self.diabetes_risk_pct,
            "cardiovascularRiskPct": self.cardiovascular_risk_pct,
            "overallRisk": self.overall_risk,
            "recommendation": self.recommendation,
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _stress_term(stress_level: str, high: float, moderate: float, low: float) -> float:
    if stress_level == STRESS_HIGH:
        return high
    if stress_level == STRESS_MODERATE:
        return moderate
    return low


def _smoking_term(smoking_status: str, current: float, former: float) -> float:
    if smoking_status == CURRENT_SMOKER:
        return current
    if smoking_status == FORMER_SMOKER:
        return former
    return 0


def _exercise_term(exercise_frequency: str) -> float:
    if exercise_frequency == EXERCISE_RARELY:
        return 10
    if exercise_frequency == EXERCISE_1_2:
        return 5
    if exercise_frequency == EXERCISE_3_4:
        return 2
    return 0


def hypertension_risk(data: EmployeeInput) -> int:
    family = 8 if data.family_history == "Yes" else 0
    past = 15 if HYPERTENSION in data.past_diseases else 0
    raw = (
        (data.age - 20) * 1.2
        + (data.bmi - 20) * 2
        + (data.systolic - 110) * 0.8
        + _stress_term(data.stress_level, 12, 6, 2)
        + _smoking_term(data.smoking_status, 10, 4)
        + family
        + past
    )
    return int(clamp(round_half_up(raw), *HYPERTENSION_BOUNDS))


def diabetes_risk(data: EmployeeInput) -> int:
    family = 9 if data.family_history == "Yes" else 0
    past_diabetes = 20 if TYPE_2_DIABETES in data.past_diseases else 0
    past_obesity = 10 if OBESITY in data.past_diseases else 0
    raw = (
        (data.fasting_glucose - 80) * 1.05
        + (data.bmi - 21) * 1.8
        + (data.age - 22) * 0.55
        + _exercise_term(data.exercise_frequency)
        + family
        + past_diabetes
        + past_obesity
    )
    return int(clamp(round_half_up(raw), *DIABETES_BOUNDS))


def cardiovascular_risk(data: EmployeeInput) -> int:
    past_heart = 25 if HEART_DISEASE in data.past_diseases else 0
    past_stroke = 20 if STROKE in data.past_diseases else 0
    past_cholesterol = 12 if HIGH_CHOLESTEROL in data.past_diseases else 0
    raw = (
        (data.cholesterol - 150) * 0.55
        + (data.systolic - 110) * 0.7
        + (data.age - 22) * 0.65
        + _smoking_term(data.smoking_status, 12, 5)
        + _stress_term(data.stress_level, 8, 4, 0)
        + past_heart
        + past_stroke
        + past_cholesterol
    )
    return int(clamp(round_half_up(raw), *CARDIOVASCULAR_BOUNDS))


def overall_risk_for(hypertension_pct: float, diabetes_pct: float, cardiovascular_pct: float) -> str:
    """Tier from the peak of the three percentages; lower bounds are inclusive."""
    peak = max(hypertension_pct, diabetes_pct, cardiovascular_pct)
    if peak >= HIGH_RISK_CUTOFF:
        return RISK_HIGH
    if peak >= MODERATE_RISK_CUTOFF:
        return RISK_MODERATE
    return RISK_LOW


def recommendation_for(overall_risk: str, past_diseases: tuple[str, ...] | list[str]) -> str:
    has_past = any(d != "None" for d in past_diseases)
    return RECOMMENDATIONS[(overall_risk, has_past)]


def score(data: EmployeeInput) -> RiskScores:
    h = hypertension_risk(data)
    d = diabetes_risk(data)
    c = cardiovascular_risk(data)
    tier = overall_risk_for(h, d, c)
    return RiskScores(
        hypertension_risk_pct=h,
        diabetes_risk_pct=d,
        cardiovascular_risk_pct=c,
        overall_risk=tier,
        recommendation=recommendation_for(tier, data.past_diseases),
    )


def default_weight(bmi: float) -> float:
    """Weight estimate for a 1.7 m adult when the source omits it."""
    return round_half_up(bmi * 1.7 * 1.7)


def build_record(member_id: str, data: EmployeeInput) -> EmployeeRecord:
    """Score `data` and freeze it into an EmployeeRecord with the caller's id."""
    scores = score(data)
    weight = data.weight if data.weight is not None else default_weight(data.bmi)
    if weight <= 0:
        weight = DEFAULT_WEIGHT_KG

    return EmployeeRecord(
        id=str(member_id),
        full_name=data.full_name,
        email=data.email,
        department=data.department,
        gender=data.gender,
        age=data.age,
        weight=weight,
        bmi=data.bmi,
        blood_pressure=data.blood_pressure,
        fasting_glucose=data.fasting_glucose,
        cholesterol=data.cholesterol,
        smoking_status=data.smoking_status,
        exercise_frequency=data.exercise_frequency,
        family_history=data.family_history,
        stress_level=data.stress_level,
        past_diseases=tuple(data.past_diseases),
        hypertension_risk_pct=scores.hypertension_risk_pct,
        diabetes_risk_pct=scores.diabetes_risk_pct,
        cardiovascular_risk_pct=scores.cardiovascular_risk_pct,
        overall_risk=scores.overall_risk,
        recommendation=scores.recommendation,
    )


def rederive(record: EmployeeRecord) -> tuple[str, str]:
    """Recompute (overall_risk, recommendation) from a record's stored percentages."""
    tier = overall_risk_for(
        record.hypertension_risk_pct,
        record.diabetes_risk_pct,
        record.cardiovascular_risk_pct,
    )
    return tier, recommendation_for(tier, record.past_diseases)
