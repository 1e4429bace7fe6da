# analysis.py
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

from . import llm
from .diagnosis_engine import generate_simple_fallback, no_symptoms_response
from .schemas import Diagnosis, PatientInfo, normalize_symptoms

logger = logging.getLogger(__name__)


class AnalysisState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


class DiagnosisRequest:
    """
    One symptom analysis: AI first, rule-based engine when the AI path fails.
    `generate` maps a prompt to free text and defaults to llm.generate_text.
    """

    def __init__(self, symptoms: List[Any], patient_info: Optional[PatientInfo] = None,
                 generate: Optional[Callable[[str], str]] = None):
        self.symptoms = normalize_symptoms(symptoms)
        self.patient_info = patient_info
        self.generate = generate or llm.generate_text
        self.state = AnalysisState.IDLE
        self.result: Optional[Diagnosis] = None

    def run(self) -> Diagnosis:
        self.state = AnalysisState.IDLE
        if not self.symptoms:
            self.result = no_symptoms_response()
            self.state = AnalysisState.COMPLETE
            return self.result

        self.state = AnalysisState.ANALYZING
        try:
            text = self.generate(llm.build_prompt(self.symptoms, self.patient_info))
            self.result = llm.parse_ai_response(text)
        except llm.AIServiceUnavailable as exc:
            logger.info("AI diagnosis unavailable, using rule-based engine: %s", exc)
            self.result = generate_simple_fallback(self.symptoms)
        except llm.AIServiceError as exc:
            logger.error("AI diagnosis failed, using rule-based engine: %s", exc)
            self.result = generate_simple_fallback(self.symptoms)

        self.state = AnalysisState.COMPLETE
        return self.result


def analyze_symptoms(symptoms: List[Any], patient_info: Optional[PatientInfo] = None,
                     generate: Optional[Callable[[str], str]] = None) -> Diagnosis:
    return DiagnosisRequest(symptoms, patient_info, generate).run()
