import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from member_models import EmployeeInput
from risk_engine import build_record


def employee_input(**overrides) -> EmployeeInput:
    """A mid-risk baseline employee; override any field by keyword."""
    fields = {
        "full_name": "Jane Doe",
        "email": "jane-doe@company.com",
        "department": "Finance",
        "gender": "Female",
        "age": 40,
        "bmi": 28.0,
        "blood_pressure": "140/90",
        "fasting_glucose": 110.0,
        "cholesterol": 220.0,
        "smoking_status": "Current smoker",
        "exercise_frequency": "Rarely",
        "family_history": "Yes",
        "stress_level": "High",
        "past_diseases": ("Heart Disease",),
    }
    fields.update(overrides)
    return EmployeeInput(**fields)


@pytest.fixture
def make_input():
    return employee_input


@pytest.fixture
def make_record():
    def _make(member_id: str, full_name: str, **overrides):
        return build_record(member_id, employee_input(full_name=full_name, **overrides))

    return _make


@pytest.fixture
def roster(make_record):
    """Four known employees with distinct departments and genders."""
    return [
        make_record("E1", "Jane Doe", department="Finance", age=40),
        make_record("E2", "John Smith", department="Engineering", gender="Male", age=52, weight=95),
        make_record("E3", "Mary Jane Watson", department="People", age=29, weight=61),
        make_record(
            "E4",
            "Aisha Bello",
            department="Finance",
            age=33,
            bmi=21.0,
            blood_pressure="110/70",
            fasting_glucose=85.0,
            cholesterol=160.0,
            smoking_status="Non-smoker",
            exercise_frequency="5+x/week",
            family_history="No",
            stress_level="Low",
            past_diseases=("None",),
        ),
    ]
