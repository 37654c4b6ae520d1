from datetime import date

import pytest

from batch_runner import build_dashboard_payload, write_dashboard_data
from dashboard_state import DashboardController
from employee_source import (
    calculate_age,
    map_employees_response,
    map_exercise_frequency,
    map_stress_level,
)

TODAY = date(2025, 6, 14)


def full_employee():
    return {
        "employee_id": "EMP-001",
        "name": "Jane Doe",
        "dob": "1985-06-15",
        "gender": "female",
        "department": "Finance",
        "health": {
            "bmi": 31,
            "blood_pressure_systolic": 142,
            "blood_pressure_diastolic": 91,
            "fasting_glucose_mg_dl": 120,
            "total_cholesterol_mg_dl": 230,
            "smokes": False,
            "cigarettes_per_day": 3,
            "exercise_days_per_week": 1,
            "stress_level_1_10": 8,
            "family_history": {"diabetes": True, "heart_disease": False},
            "past_conditions": ["Type 2 diabetes"],
            "current_conditions": ["high BP"],
            "risk_flags": ["obese", "night shifts"],
        },
    }


class TestFullPayload:
    def test_fields_mapped(self):
        [record] = map_employees_response({"count": 1, "employees": [full_employee()]}, today=TODAY)
        assert record.id == "EMP-001"
        assert record.full_name == "Jane Doe"
        assert record.email == "emp-001@company.com"
        assert record.gender == "Female"
        assert record.department == "Finance"
        assert record.age == 39
        assert record.blood_pressure == "142/91"
        assert record.smoking_status == "Current smoker"
        assert record.exercise_frequency == "1-2x/week"
        assert record.stress_level == "High"
        assert record.family_history == "Yes"
        assert record.past_diseases == ("Type 2 Diabetes", "Hypertension", "Obesity")

    def test_weight_estimated_from_bmi(self):
        [record] = map_employees_response({"employees": [full_employee()]}, today=TODAY)
        assert record.weight == 90

    def test_explicit_weight_kept(self):
        emp = full_employee()
        emp["health"]["weight_kg"] = 88.4
        [record] = map_employees_response({"employees": [emp]}, today=TODAY)
        assert record.weight == 88.4

    def test_scored(self):
        [record] = map_employees_response({"employees": [full_employee()]}, today=TODAY)
        assert record.overall_risk == "High"


class TestDefaults:
    def test_empty_employee(self):
        [record] = map_employees_response({"count": 1, "employees": [{}]})
        assert record.id == "employee-1"
        assert record.full_name == "Employee 1"
        assert record.email == "employee-1@company.com"
        assert record.department == "Unassigned"
        assert record.gender == "Male"
        assert record.age == 35
        assert record.bmi == 24.0
        assert record.weight == 69
        assert record.blood_pressure == "120/80"
        assert record.fasting_glucose == 95.0
        assert record.cholesterol == 180.0
        assert record.stress_level == "Moderate"
        assert record.exercise_frequency == "Rarely"
        assert record.smoking_status == "Non-smoker"
        assert record.family_history == "No"
        assert record.past_diseases == ("None",)

    def test_numeric_strings_accepted(self):
        emp = {"name": "A", "health": {"bmi": "27.5", "stress_level_1_10": "2"}}
        [record] = map_employees_response({"employees": [emp]})
        assert record.bmi == 27.5
        assert record.stress_level == "Low"

    def test_index_based_fallbacks(self):
        records = map_employees_response({"employees": [{"name": "A"}, {"employee_id": "  "}]})
        assert [r.id for r in records] == ["employee-1", "employee-2"]
        assert records[1].full_name == "Employee 2"


class TestBloodPressure:
    @pytest.mark.parametrize(
        "systolic, diastolic",
        [(1200, 8), (-5, 80), (120, 1000), (9.4, 70)],
    )
    def test_out_of_range_reading_uses_default(self, systolic, diastolic):
        emp = {"name": "A", "health": {"blood_pressure_systolic": systolic, "blood_pressure_diastolic": diastolic}}
        [record] = map_employees_response({"employees": [emp]})
        assert record.blood_pressure == "120/80"

    def test_readings_rounded_half_up(self):
        emp = {"name": "A", "health": {"blood_pressure_systolic": 131.5, "blood_pressure_diastolic": 84.4}}
        [record] = map_employees_response({"employees": [emp]})
        assert record.blood_pressure == "132/84"

    def test_out_of_range_reading_still_exports(self, tmp_path):
        emp = {"employee_id": "A1", "health": {"blood_pressure_systolic": 1200, "blood_pressure_diastolic": 8}}
        controller = DashboardController(map_employees_response({"employees": [emp]}))
        payload = build_dashboard_payload(controller, "api", None, [])
        out = write_dashboard_data(payload, tmp_path / "dashboard_data.json")
        assert out.exists()
        assert payload["employees"][0]["bloodPressure"] == "120/80"


class TestAge:
    @pytest.mark.parametrize(
        "dob, expected",
        [
            ("1985-06-14", 40),
            ("1985-06-15", 39),
            ("2015-01-01", 18),
            ("1900-01-01", 100),
            ("garbage", 35),
            (None, 35),
            ("", 35),
        ],
    )
    def test_calculate_age(self, dob, expected):
        assert calculate_age(dob, today=TODAY) == expected


@pytest.mark.parametrize(
    "days, expected",
    [(0, "Rarely"), (-1, "Rarely"), (1, "1-2x/week"), (2, "1-2x/week"), (3, "3-4x/week"), (4, "3-4x/week"), (5, "5+x/week")],
)
def test_exercise_days(days, expected):
    assert map_exercise_frequency(days) == expected


@pytest.mark.parametrize("score, expected", [(1, "Low"), (3.9, "Low"), (4, "Moderate"), (6, "Moderate"), (7, "High"), (10, "High")])
def test_stress_scale(score, expected):
    assert map_stress_level(score) == expected


@pytest.mark.parametrize("payload", [None, [], "employees", {"count": 0}, {"employees": "x"}])
def test_non_conforming_payload_is_empty(payload):
    assert map_employees_response(payload) == []
