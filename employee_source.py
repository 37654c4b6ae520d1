# employee_source.py
"""
Map the employee-directory API payload onto scored EmployeeRecords.

Payload shape: {"count": n, "employees": [{employee_id, name, dob, gender,
department, health: {...}}, ...]}. Every health field is optional; gaps fall
back to the defaults in config rather than failing the record.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import pandas as pd

from config import (
    DEFAULT_AGE,
    DEFAULT_BLOOD_PRESSURE_DIASTOLIC,
    DEFAULT_BLOOD_PRESSURE_SYSTOLIC,
    DEFAULT_BMI,
    DEFAULT_DEPARTMENT,
    DEFAULT_FASTING_GLUCOSE,
    DEFAULT_STRESS_SCORE,
    DEFAULT_TOTAL_CHOLESTEROL,
    EMAIL_DOMAIN,
    MAX_EMPLOYEE_AGE,
    MIN_EMPLOYEE_AGE,
)
from input_normalization import clean_text, parse_blood_pressure, parse_number, parse_past_diseases, slugify
from member_models import EmployeeInput, EmployeeRecord
from risk_engine import build_record, clamp, round_half_up
from wellness_constants import (
    CURRENT_SMOKER,
    EXERCISE_1_2,
    EXERCISE_3_4,
    EXERCISE_5_PLUS,
    EXERCISE_RARELY,
    NON_SMOKER,
    STRESS_HIGH,
    STRESS_LOW,
    STRESS_MODERATE,
)

logger = logging.getLogger(__name__)


def calculate_age(dob: Any, today: Optional[date] = None) -> int:
    """Whole years since `dob`, clamped to the working-age range; default when unparseable."""
    if not clean_text(dob):
        return DEFAULT_AGE
    parsed = pd.to_datetime(dob, errors="coerce")
    if pd.isna(parsed):
        return DEFAULT_AGE

    today = today or date.today()
    age = today.year - parsed.year
    if (today.month, today.day) < (parsed.month, parsed.day):
        age -= 1
    return int(clamp(age, MIN_EMPLOYEE_AGE, MAX_EMPLOYEE_AGE))


def map_gender(raw: Any) -> str:
    return "Female" if clean_text(raw).lower().startswith("f") else "Male"


def map_smoking_status(health: dict) -> str:
    cigarettes = parse_number(health.get("cigarettes_per_day")) or 0
    if health.get("smokes") or cigarettes > 0:
        return CURRENT_SMOKER
    return NON_SMOKER


def map_exercise_frequency(days_per_week: float) -> str:
    if days_per_week <= 0:
        return EXERCISE_RARELY
    if days_per_week <= 2:
        return EXERCISE_1_2
    if days_per_week <= 4:
        return EXERCISE_3_4
    return EXERCISE_5_PLUS


def map_stress_level(score: float) -> str:
    """1-10 self-reported stress score -> label."""
    if score >= 7:
        return STRESS_HIGH
    if score >= 4:
        return STRESS_MODERATE
    return STRESS_LOW


def has_family_history(health: dict) -> bool:
    flags = health.get("family_history")
    if not isinstance(flags, dict):
        return False
    return any(v is True for v in flags.values())


def map_past_diseases(health: dict) -> tuple[str, ...]:
    conditions: list[Any] = []
    for key in ("past_conditions", "current_conditions", "risk_flags"):
        values = health.get(key)
        if isinstance(values, (list, tuple)):
            conditions.extend(values)
    return parse_past_diseases(conditions)


def _number_or(value: Any, default: float) -> float:
    parsed = parse_number(value)
    return default if parsed is None else parsed


def map_blood_pressure(systolic: float, diastolic: float, member_id: str = "") -> str:
    """'systolic/diastolic' from the payload readings; the default reading when they don't form a valid one."""
    reading = f"{round_half_up(systolic)}/{round_half_up(diastolic)}"
    if parse_blood_pressure(reading) is None:
        fallback = f"{DEFAULT_BLOOD_PRESSURE_SYSTOLIC}/{DEFAULT_BLOOD_PRESSURE_DIASTOLIC}"
        logger.warning("Employee %s: blood pressure %s out of range; using %s", member_id or "?", reading, fallback)
        return fallback
    return reading


def map_employee(employee: dict, index: int, today: Optional[date] = None) -> EmployeeRecord:
    health = employee.get("health")
    if not isinstance(health, dict):
        health = {}

    bmi = _number_or(health.get("bmi"), DEFAULT_BMI)
    systolic = _number_or(health.get("blood_pressure_systolic"), DEFAULT_BLOOD_PRESSURE_SYSTOLIC)
    diastolic = _number_or(health.get("blood_pressure_diastolic"), DEFAULT_BLOOD_PRESSURE_DIASTOLIC)

    fallback_id = f"employee-{index + 1}"
    member_id = clean_text(employee.get("employee_id")) or fallback_id
    email_slug = slugify(member_id) or fallback_id

    data = EmployeeInput(
        full_name=clean_text(employee.get("name")) or f"Employee {index + 1}",
        email=f"{email_slug}@{EMAIL_DOMAIN}",
        department=clean_text(employee.get("department")) or DEFAULT_DEPARTMENT,
        gender=map_gender(employee.get("gender")),
        age=calculate_age(employee.get("dob"), today),
        bmi=bmi,
        blood_pressure=map_blood_pressure(systolic, diastolic, member_id),
        fasting_glucose=_number_or(health.get("fasting_glucose_mg_dl"), DEFAULT_FASTING_GLUCOSE),
        cholesterol=_number_or(health.get("total_cholesterol_mg_dl"), DEFAULT_TOTAL_CHOLESTEROL),
        smoking_status=map_smoking_status(health),
        exercise_frequency=map_exercise_frequency(_number_or(health.get("exercise_days_per_week"), 0)),
        family_history="Yes" if has_family_history(health) else "No",
        stress_level=map_stress_level(_number_or(health.get("stress_level_1_10"), DEFAULT_STRESS_SCORE)),
        past_diseases=map_past_diseases(health),
        weight=parse_number(health.get("weight_kg")),
    )
    return build_record(member_id, data)


def map_employees_response(payload: Any, today: Optional[date] = None) -> list[EmployeeRecord]:
    """All employees in an API payload; a payload without an `employees` list maps to []."""
    if not isinstance(payload, dict) or not isinstance(payload.get("employees"), list):
        logger.warning("Employee payload has no 'employees' list; ignoring it")
        return []

    records = [
        map_employee(employee if isinstance(employee, dict) else {}, index, today)
        for index, employee in enumerate(payload["employees"])
    ]
    count = payload.get("count")
    if isinstance(count, int) and count != len(records):
        logger.info("Employee payload reports count=%d but carries %d record(s)", count, len(records))
    return records
