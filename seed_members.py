# seed_members.py
"""Deterministic demo roster used when no spreadsheet or API source is configured."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from config import EMAIL_DOMAIN, SEED_ID_PREFIX, SEED_MEMBER_COUNT
from member_models import EmployeeInput, EmployeeRecord
from risk_engine import build_record
from wellness_constants import (
    CURRENT_SMOKER,
    EXERCISE_FREQUENCIES,
    FORMER_SMOKER,
    NO_PAST_DISEASE,
    NON_SMOKER,
    STRESS_LEVELS,
)

FIRST_NAMES = [
    "Aisha",
    "Emeka",
    "Tosin",
    "Bolanle",
    "Chioma",
    "Ifeanyi",
    "Zainab",
    "Damilola",
    "Chinedu",
    "Kemi",
]

LAST_NAMES = [
    "Adeyemi",
    "Okafor",
    "Ibrahim",
    "Afolayan",
    "Balogun",
    "Umeh",
    "Nwosu",
    "Bello",
    "Lawal",
    "Ogunleye",
]

DEPARTMENTS = [
    "Operations",
    "People",
    "Finance",
    "Engineering",
    "Growth",
    "Customer Success",
    "Product",
    "Compliance",
]


def round_one_decimal(value: float) -> float:
    """Half-up on the float's exact decimal value, so 30.149999... stays 30.1."""
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def seed_input(index: int) -> EmployeeInput:
    first = FIRST_NAMES[index % len(FIRST_NAMES)]
    last = LAST_NAMES[(index // len(FIRST_NAMES)) % len(LAST_NAMES)]

    systolic = 104 + (index * 5) % 48
    diastolic = 66 + (index * 3) % 30

    if index % 8 == 0:
        smoking = CURRENT_SMOKER
    elif index % 5 == 0:
        smoking = FORMER_SMOKER
    else:
        smoking = NON_SMOKER

    return EmployeeInput(
        full_name=f"{first} {last}",
        email=f"{first.lower()}.{last.lower()}{index + 1}@{EMAIL_DOMAIN}",
        department=DEPARTMENTS[index % len(DEPARTMENTS)],
        gender="Female" if index % 2 == 0 else "Male",
        age=22 + (index * 3) % 28,
        bmi=round_one_decimal(18.6 + (index * 1.65) % 13.8),
        blood_pressure=f"{systolic}/{diastolic}",
        fasting_glucose=76 + (index * 4) % 58,
        cholesterol=145 + (index * 7) % 120,
        smoking_status=smoking,
        exercise_frequency=EXERCISE_FREQUENCIES[index % len(EXERCISE_FREQUENCIES)],
        family_history="Yes" if index % 3 == 0 else "No",
        stress_level=STRESS_LEVELS[(index + 1) % len(STRESS_LEVELS)],
        past_diseases=(NO_PAST_DISEASE,),
    )


def build_seed_members(count: int = SEED_MEMBER_COUNT) -> list[EmployeeRecord]:
    return [build_record(f"{SEED_ID_PREFIX}-{i + 1}", seed_input(i)) for i in range(max(count, 0))]
