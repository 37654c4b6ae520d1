import math

import pytest

from input_normalization import (
    clean_text,
    map_row_headers,
    normalize,
    normalize_header,
    parse_blood_pressure,
    parse_enum,
    parse_number,
    parse_past_diseases,
    slugify,
)


def test_normalize():
    assert normalize("  TeSt  ") == "test"
    assert normalize(None) == ""
    assert normalize(float("nan")) == ""
    assert normalize(123) == "123"


def test_clean_text_keeps_case():
    assert clean_text("  Jane Doe ") == "Jane Doe"
    assert clean_text(None) == ""


class TestHeaders:
    @pytest.mark.parametrize("header", ["BP", "Blood Pressure", "bloodpressure", "blood_pressure", "Blood Pressure (mmHg)"])
    def test_blood_pressure_aliases(self, header):
        assert map_row_headers({header: "120/80"}) == {"blood_pressure": "120/80"}

    def test_normalize_header(self):
        assert normalize_header(" Fasting Blood Glucose (mg/dL) ") == "fastingbloodglucosemgdl"

    def test_unknown_columns_dropped(self):
        assert map_row_headers({"Favourite Colour": "blue", "Age": "30"}) == {"age": "30"}

    def test_first_non_empty_alias_wins(self):
        mapped = map_row_headers({"Name": "", "Full Name": "Jane Doe", "Employee Name": "Other"})
        assert mapped["full_name"] == "Jane Doe"


class TestEnums:
    @pytest.mark.parametrize(
        "field, raw, expected",
        [
            ("gender", "F", "Female"),
            ("gender", " male ", "Male"),
            ("smoking status", "Ex-Smoker", "Former smoker"),
            ("smoking status", "NON SMOKER", "Non-smoker"),
            ("smoking status", "Current", "Current smoker"),
            ("exercise frequency", "1-2x / week", "1-2x/week"),
            ("exercise frequency", "3-4 x/week", "3-4x/week"),
            ("exercise frequency", "5+x/week", "5+x/week"),
            ("family history", "Y", "Yes"),
            ("family history", "false", "No"),
            ("stress level", "Medium", "Moderate"),
        ],
    )
    def test_aliases(self, field, raw, expected):
        assert parse_enum(field, raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "other", "sometimes"])
    def test_unrecognised_is_none(self, raw):
        assert parse_enum("gender", raw) is None

    def test_unknown_table_raises(self):
        with pytest.raises(KeyError):
            parse_enum("blood type", "A+")


class TestBloodPressure:
    @pytest.mark.parametrize("raw, expected", [("120/80", (120, 80)), (" 135 / 85 ", (135, 85)), ("12080", (120, 80))])
    def test_valid(self, raw, expected):
        assert parse_blood_pressure(raw) == expected

    @pytest.mark.parametrize("raw", ["120", "abc", "1200/80", "", None, "120/8"])
    def test_invalid_never_guessed(self, raw):
        assert parse_blood_pressure(raw) is None


class TestNumbers:
    @pytest.mark.parametrize("raw, expected", [("12.5", 12.5), (7, 7.0), (" 40 ", 40.0), (3.25, 3.25)])
    def test_valid(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "abc", "nan", "inf", True, float("nan")])
    def test_invalid(self, raw):
        assert parse_number(raw) is None

    def test_result_is_finite(self):
        assert math.isfinite(parse_number("1e3"))


class TestPastDiseases:
    @pytest.mark.parametrize("raw", [None, "", "None", "NONE", [], ["none"]])
    def test_no_history(self, raw):
        assert parse_past_diseases(raw) == ("None",)

    def test_comma_string(self):
        assert parse_past_diseases("High Cholesterol, Obesity") == ("High Cholesterol", "Obesity")

    def test_list_with_keywords_and_duplicates(self):
        assert parse_past_diseases(["Diabetes mellitus", "high BP", "Diabetes"]) == ("Type 2 Diabetes", "Hypertension")

    def test_unrecognised_items_ignored(self):
        assert parse_past_diseases("gout, asthma") == ("Asthma",)
        assert parse_past_diseases("gout") == ("None",)


def test_slugify():
    assert slugify("Jane O'Doe") == "jane-o-doe"
    assert slugify("  EMP-001 ") == "emp-001"
    assert slugify("") == ""
