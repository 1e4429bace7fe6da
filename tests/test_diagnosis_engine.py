import pytest

from sympcare.diagnosis_engine import (
    average_severity, fill_defaults, generate_rule_based_diagnosis, generate_simple_fallback,
    no_symptoms_response, severity_tier,
)
from sympcare.schemas import Symptom, normalize_symptoms


def diagnose(raw):
    return generate_rule_based_diagnosis(normalize_symptoms(raw))


def test_emergency_keyword():
    d = diagnose(["severe chest pain"])
    assert d.condition == "Emergency Medical Condition"
    assert d.severity == "critical"
    assert d.seek_immediate_care is True
    assert d.confidence == 95
    assert d.ai_generated is False


def test_emergency_keyword_in_description():
    d = diagnose([{"name": "breathing", "description": "Difficulty breathing when walking"}])
    assert d.condition == "Emergency Medical Condition"


def test_cough_and_fever():
    d = diagnose([{"name": "cough"}, {"name": "fever"}])
    assert d.condition == "Upper Respiratory Infection"
    assert d.severity == "moderate"
    assert d.confidence == 82
    assert d.seek_immediate_care is False
    assert d.icd_code == "J06.9"


def test_cough_alone_is_general():
    assert diagnose(["cough"]).condition == "General Health Assessment"


def test_mild_headache():
    d = diagnose([{"name": "mild headache"}])
    assert d.condition == "General Health Assessment"
    assert d.severity == "mild"
    assert d.confidence == 70
    assert d.seek_immediate_care is False


def test_high_average_severity_is_emergency():
    d = diagnose([
        {"name": "headache", "severity": 9},
        {"name": "nausea", "severity": 9},
        {"name": "dizziness", "severity": 9},
    ])
    assert d.severity == "critical"
    assert d.seek_immediate_care is True
    assert d.confidence == 95


@pytest.mark.parametrize("severities, expected", [
    ([7, 8], "severe"),
    ([4, 5], "moderate"),
    ([1, 3], "mild"),
])
def test_average_severity_sets_general_severity(severities, expected):
    symptoms = [{"name": f"ache {i}", "severity": s} for i, s in enumerate(severities)]
    d = diagnose(symptoms)
    assert d.condition == "General Health Assessment"
    assert d.severity == expected
    assert d.seek_immediate_care is False


def test_severity_only_raises_respiratory_bucket():
    d = diagnose([{"name": "cough", "severity": 8}, {"name": "fever", "severity": 7}])
    assert d.condition == "Upper Respiratory Infection"
    assert d.severity == "severe"

    d = diagnose([{"name": "cough", "severity": 1}, {"name": "fever", "severity": 2}])
    assert d.severity == "moderate"


def test_simple_fallback_uses_same_policy():
    for raw in (["severe chest pain"], ["cough", "fever"], [{"name": "back ache", "severity": 9}]):
        symptoms = normalize_symptoms(raw)
        a = generate_simple_fallback(symptoms)
        b = generate_rule_based_diagnosis(symptoms)
        assert a.model_dump(exclude={"timestamp"}) == b.model_dump(exclude={"timestamp"})


@pytest.mark.parametrize("raw", [
    ["severe chest pain"],
    [{"name": "cough"}, {"name": "fever"}],
    [{"name": "mild headache"}],
    [{"name": "x", "severity": 9}],
])
def test_categories_are_never_empty(raw):
    d = diagnose(raw)
    assert d.recommendations
    assert d.treatment
    assert d.differential_diagnoses
    assert d.red_flags
    assert d.prevention
    assert d.prognosis


def test_average_ignores_unknown_severity():
    symptoms = [Symptom(name="a", severity=6), Symptom(name="b")]
    assert average_severity(symptoms) == 6
    assert average_severity([Symptom(name="c")]) == 0.0


@pytest.mark.parametrize("avg, tier", [(9, "critical"), (8.9, "severe"), (7, "severe"), (4, "moderate"), (3.9, "mild")])
def test_severity_tier(avg, tier):
    assert severity_tier(avg) == tier


def test_no_symptoms_response():
    d = no_symptoms_response()
    assert d.condition == "No symptoms provided"
    assert d.confidence == 0
    assert d.severity == "mild"
    assert d.ai_generated is False


def test_fill_defaults_keeps_given_values():
    recs, treatment, diffs, flags, prevention = fill_defaults(treatment=["rest"])
    assert treatment == ["rest"]
    assert recs and diffs and flags and prevention
