import pytest

from sympcare import llm
from sympcare.analysis import AnalysisState, DiagnosisRequest, analyze_symptoms

AI_ANSWER = "PRIMARY DIAGNOSIS: Tension Headache (80%)\nSEVERITY CLASSIFICATION: Mild"


def test_ai_success_is_ai_generated():
    seen = []

    def generate(prompt):
        seen.append(prompt)
        return AI_ANSWER

    req = DiagnosisRequest([{"name": "headache", "severity": 3}], generate=generate)
    assert req.state == AnalysisState.IDLE
    d = req.run()
    assert req.state == AnalysisState.COMPLETE
    assert d.ai_generated is True
    assert d.condition == "Tension Headache"
    assert "headache (severity: 3/10" in seen[0]


@pytest.mark.parametrize("error", [
    llm.AIServiceUnavailable("no key"),
    llm.AIServiceError("timeout"),
])
def test_ai_failure_falls_back_to_rules(error):
    def generate(prompt):
        raise error

    d = analyze_symptoms(["cough", "fever"], generate=generate)
    assert d.ai_generated is False
    assert d.condition == "Upper Respiratory Infection"


def test_state_is_analyzing_while_generating():
    states = []

    def generate(prompt):
        states.append(req.state)
        return AI_ANSWER

    req = DiagnosisRequest(["headache"], generate=generate)
    req.run()
    assert states == [AnalysisState.ANALYZING]


def test_empty_symptoms_skip_both_engines():
    def generate(prompt):
        raise AssertionError("should not be called")

    req = DiagnosisRequest([], generate=generate)
    d = req.run()
    assert d.condition == "No symptoms provided"
    assert d.confidence == 0
    assert req.state == AnalysisState.COMPLETE


def test_resubmitting_runs_again():
    calls = []

    def generate(prompt):
        calls.append(prompt)
        if len(calls) == 1:
            raise llm.AIServiceError("flaky")
        return AI_ANSWER

    req = DiagnosisRequest(["headache"], generate=generate)
    assert req.run().ai_generated is False
    assert req.run().ai_generated is True
    assert len(calls) == 2


def test_default_generator_without_key_uses_fallback(monkeypatch):
    monkeypatch.setattr(llm.config, "OPENAI_API_KEY", "")
    d = analyze_symptoms(["severe chest pain"])
    assert d.ai_generated is False
    assert d.condition == "Emergency Medical Condition"
