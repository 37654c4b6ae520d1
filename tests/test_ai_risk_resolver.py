import json

import pytest

from ai_response_parser import FreeTextReport, PlainText, StructuredResponse
from ai_risk_resolver import (
    NO_SIGNIFICANT_RISK_MESSAGE,
    apply_ai_risk_filter,
    describe_filter_for_chat,
    extract_disease_name,
    format_ai_response_for_chat,
    parse_ai_risk_response,
    parse_free_text_line,
    probability_to_percent,
    resolve,
)
from member_models import AIRiskEntry, AIRiskFilterData
from name_matching import RapidFuzzNameMatcher


def structured(*items, condition="diabetes risk"):
    return {"condition": condition, "scored_employees": list(items)}


def scored(employee_id, p, evidence=None):
    return {"employee_id": employee_id, "risk_probability": p, "confidence": "high", "evidence": evidence or []}


class TestDiseaseExtraction:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Who is at risk of hypertension?", "Hypertension"),
            ("diabetes risk", "Diabetes"),
            ("Cardiovascular disease screening", "Cardiovascular Disease"),
            ("heart disease", "Heart Disease"),
            ("Which employees might become obese?", "Obesity"),
            ("Who is likely to develop sleep apnea?", "Sleep Apnea"),
            ("Rank staff by risk for gout.", "Gout"),
            ("Show me everyone", "Health Risk"),
            ("", "Health Risk"),
        ],
    )
    def test_labels(self, text, expected):
        assert extract_disease_name(text) == expected


def test_probability_to_percent():
    assert probability_to_percent(0.82) == 82.0
    assert probability_to_percent(0.4567) == 45.7
    assert probability_to_percent(1) == 100.0


class TestStructuredMode:
    def test_scenario_single_employee_at_82(self, roster):
        raw = '{"condition":"diabetes risk","scored_employees":[{"employee_id":"E1","risk_probability":0.82,"confidence":"high","evidence":[]}]}'
        data = parse_ai_risk_response(raw, "who is at risk?", roster)
        assert data.disease == "Diabetes"
        assert len(data.entries) == 1
        entry = data.entries[0]
        assert entry.risk_score == 82.0
        assert entry.member_id == "E1"
        assert entry.employee_name == "Jane Doe"
        assert entry.match_tier == "exact"

    def test_id_lookup_is_case_insensitive(self, roster):
        data = resolve(StructuredResponse(structured(scored(" e2 ", 0.7))), "", roster)
        assert data.entries[0].member_id == "E2"

    def test_full_name_lookup(self, roster):
        data = resolve(StructuredResponse(structured(scored("mary jane watson", 0.7))), "", roster)
        assert data.entries[0].member_id == "E3"

    def test_threshold(self, roster):
        payload = structured(scored("E1", 0.29), scored("E2", 0.30), scored("E3", 0.299))
        data = resolve(StructuredResponse(payload), "", roster)
        assert [e.member_id for e in data.entries] == ["E2"]
        assert all(e.risk_score >= 30 for e in data.entries)

    def test_all_below_threshold_is_none(self, roster):
        assert resolve(StructuredResponse(structured(scored("E1", 0.1))), "", roster) is None

    def test_cap_and_order(self, roster):
        items = [scored(f"X{i}", 0.40 + i * 0.03) for i in range(15)]
        data = resolve(StructuredResponse(structured(*items)), "", roster)
        scores = [e.risk_score for e in data.entries]
        assert len(scores) == 10
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 82.0

    def test_unmatched_kept_with_null_member(self, roster):
        data = resolve(StructuredResponse(structured(scored("E999", 0.9), scored("E1", 0.5))), "", roster)
        first = data.entries[0]
        assert (first.employee_id, first.employee_name, first.member_id) == ("E999", "E999", None)
        assert data.matched_scores == {"E1": 50.0}

    def test_unmatched_dropped_when_disabled(self, roster):
        data = resolve(StructuredResponse(structured(scored("E999", 0.9))), "", roster, keep_unmatched=False)
        assert data is None

    def test_malformed_items_skipped(self, roster):
        payload = structured({"employee_id": "E1"}, "junk", scored("E2", 0.6), scored("E3", 4.2))
        data = resolve(StructuredResponse(payload), "", roster)
        assert [e.member_id for e in data.entries] == ["E2"]

    def test_evidence_and_confidence_carried(self, roster):
        data = resolve(StructuredResponse(structured(scored("E1", 0.6, ["BMI 31", "glucose 130"]))), "", roster)
        assert data.entries[0].evidence == ("BMI 31", "glucose 130")
        assert data.entries[0].confidence == "high"

    def test_condition_falls_back_to_prompt(self, roster):
        data = resolve(StructuredResponse(structured(scored("E1", 0.6), condition="")), "risk of stroke", roster)
        assert data.disease == "Stroke"

    def test_raw_response_retained(self, roster):
        payload = structured(scored("E1", 0.6))
        data = resolve(StructuredResponse(payload), "", roster)
        assert json.loads(data.raw_response) == payload

    def test_empty_scored_list_is_none(self, roster):
        assert resolve(StructuredResponse(structured()), "", roster) is None

    def test_plain_text_is_none(self, roster):
        assert parse_ai_risk_response("I can only answer health-related questions.", "hi", roster) is None


class TestFreeTextLines:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("1. Jane Doe - 45%", ("Jane Doe", 45.0)),
            ("- John Smith: 72.5%", ("John Smith", 72.5)),
            ("2) Dr. Aisha Bello – 61%", ("Dr. Aisha Bello", 61.0)),
            ("| 1 | Mary Jane Watson | 88% |", ("Mary Jane Watson", 88.0)),
            ("| Jane Doe | Finance | 47.25% |", ("Jane Doe", 47.3)),
            ("Aisha Bello (64% risk)", ("Aisha Bello", 64.0)),
            ("Jane Doe, risk score: 51%", ("Jane Doe", 51.0)),
            ("**Jane Doe** — 45%", ("Jane Doe", 45.0)),
        ],
    )
    def test_patterns(self, line, expected):
        assert parse_free_text_line(line) == expected

    @pytest.mark.parametrize(
        "line",
        [
            "| Name | Score |",
            "Average - 45%",
            "Total risk: 50%",
            "J - 45%",
            "Jane Doe - 145%",
            "Overall, 45% of employees are at risk",
            "",
        ],
    )
    def test_rejected(self, line):
        assert parse_free_text_line(line) is None


class TestFreeTextMode:
    def test_scenario_jane_doe_45(self, roster):
        report = FreeTextReport("1. Jane Doe - 45%\n2. John Smith - 20%")
        data = resolve(report, "Who is at risk of diabetes?", roster)
        assert len(data.entries) == 1
        entry = data.entries[0]
        assert entry.risk_score == 45
        assert entry.employee_name == "Jane Doe"
        assert entry.member_id == "E1"

    def test_threshold_and_order(self, roster):
        text = "\n".join(["Jane Doe - 31%", "John Smith - 29.9%", "Mary Jane Watson - 77%", "Aisha Bello - 30%"])
        data = resolve(FreeTextReport(text), "", roster)
        assert [e.member_id for e in data.entries] == ["E3", "E1", "E4"]

    def test_fuzzy_tiers_resolve(self, roster):
        text = "Smith John - 66%\nWatson - 50%"
        data = resolve(FreeTextReport(text), "", roster)
        assert [(e.member_id, e.match_tier) for e in data.entries] == [("E2", "token"), ("E3", "substring")]

    def test_unmatched_policy_matches_structured_mode(self, roster):
        text = "Peter Parker - 70%\nJane Doe - 45%"
        kept = resolve(FreeTextReport(text), "", roster)
        assert [(e.employee_name, e.member_id) for e in kept.entries] == [("Peter Parker", None), ("Jane Doe", "E1")]
        dropped = resolve(FreeTextReport(text), "", roster, keep_unmatched=False)
        assert [e.member_id for e in dropped.entries] == ["E1"]

    def test_pluggable_matcher(self, roster):
        text = "Jane Do - 70%\nJon Smith - 55%"
        data = resolve(FreeTextReport(text), "", roster, matcher=RapidFuzzNameMatcher())
        assert [e.member_id for e in data.entries] == ["E1", "E2"]

    def test_cap_at_ten(self, roster):
        lines = [f"Person {chr(65 + i)} - {40 + i}%" for i in range(13)] + ["Jane Doe - 90%"]
        data = resolve(FreeTextReport("\n".join(lines)), "", roster)
        assert len(data.entries) == 10
        assert data.entries[0].member_id == "E1"
        assert data.entries[1].risk_score == 52

    @pytest.mark.parametrize(
        "text",
        ["Team average - 45%\nDepartment median - 50%", "Peter Parker - 70%\nBruce Wayne - 65%"],
    )
    def test_no_known_employee_is_chat(self, roster, text):
        assert resolve(FreeTextReport(text), "diabetes?", roster) is None
        assert resolve(FreeTextReport(text), "diabetes?", roster, keep_unmatched=False) is None

    def test_fewer_than_two_percentages_returns_none(self, roster):
        assert parse_ai_risk_response("Jane Doe looks fine at 45%.", "diabetes?", roster, contract="free_text") is None

    def test_plain_text_variant_is_none(self, roster):
        assert resolve(PlainText("hello"), "", roster) is None


class TestMerge:
    def test_restrict_and_sort_by_ai_score(self, roster):
        data = AIRiskFilterData(
            disease="Diabetes",
            entries=(
                AIRiskEntry("X", "X", None, 95.0),
                AIRiskEntry("E2", "John Smith", "E2", 80.0),
                AIRiskEntry("E1", "Jane Doe", "E1", 50.0),
            ),
        )
        assert [m.id for m in apply_ai_risk_filter(roster, data)] == ["E2", "E1"]

    def test_no_filter_is_identity(self, roster):
        assert apply_ai_risk_filter(roster, None) == roster

    def test_prefiltered_members_stay_filtered(self, roster):
        data = AIRiskFilterData("Diabetes", (AIRiskEntry("E2", "John Smith", "E2", 80.0),))
        assert apply_ai_risk_filter([roster[0]], data) == []


class TestChatFormatting:
    def test_structured_reply(self, roster):
        raw = json.dumps(structured(scored("E1", 0.82, ["BMI 31", "Glucose 130", "Sedentary"]), scored("Z9", 0.5)))
        text = format_ai_response_for_chat(raw, roster)
        lines = text.splitlines()
        assert lines[0] == "Here are the employees identified with significant risk:"
        assert "1. Jane Doe — 82% risk" in lines
        assert "   • BMI 31" in lines and "   • Glucose 130" in lines
        assert "   • Sedentary" not in lines
        assert "2. Z9 — 50% risk" in lines

    def test_numbering_skips_malformed_items(self, roster):
        raw = structured(scored("E1", 0.8), {"employee_id": "E2"}, scored("E3", 0.6))
        lines = format_ai_response_for_chat(raw, roster).splitlines()
        assert "1. Jane Doe — 80% risk" in lines
        assert "2. Mary Jane Watson — 60% risk" in lines
        assert not any(line.startswith("3.") for line in lines)

    def test_plain_text_passthrough(self, roster):
        assert format_ai_response_for_chat("Hello there", roster) == "Hello there"

    def test_empty_list(self, roster):
        assert format_ai_response_for_chat(structured(), roster) == NO_SIGNIFICANT_RISK_MESSAGE

    def test_filter_note(self):
        data = AIRiskFilterData("Diabetes", (AIRiskEntry("E1", "Jane Doe", "E1", 82.0),))
        assert describe_filter_for_chat(data) == (
            "I've updated the employee table to show the top 1 employees at risk for Diabetes "
            "(above 30% risk score). You can clear this filter anytime."
        )
