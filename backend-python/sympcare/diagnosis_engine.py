"""
Rule-based symptom classifier.

Used whenever the AI text-generation service is unavailable or fails. One
policy for every rule-based result: an emergency keyword OR an average
severity of 9+ is an emergency; otherwise a keyword pattern picks the bucket
and the average severity can only raise its severity.
"""
from typing import List, Optional

from .schemas import Diagnosis, DifferentialDiagnosis, Symptom

EMERGENCY_KEYWORDS = ["chest pain", "difficulty breathing", "severe", "unbearable", "emergency"]

SEVERITY_ORDER = ["mild", "moderate", "severe", "critical"]

# canned categories, also used to fill gaps in parsed AI answers
DEFAULT_RECOMMENDATIONS = [
    "Monitor symptoms closely and track any changes",
    "Maintain good hydration and nutrition",
    "Get adequate rest and sleep",
    "Consult a healthcare provider if symptoms persist or worsen",
    "Keep a symptom diary to identify patterns",
]

DEFAULT_TREATMENT = [
    "Symptomatic supportive care with close monitoring",
    "Adequate rest and increased fluid intake",
    "Over-the-counter medications for symptom relief as appropriate",
    "Follow-up with a primary care physician if symptoms persist beyond 5-7 days",
]

DEFAULT_DIFFERENTIALS = [
    DifferentialDiagnosis(condition="Viral syndrome", probability=40,
                          distinguishing_features="Self-limiting, systemic symptoms"),
    DifferentialDiagnosis(condition="Stress-related symptoms", probability=30,
                          distinguishing_features="Temporal relationship to stressors"),
    DifferentialDiagnosis(condition="Minor bacterial infection", probability=20,
                          distinguishing_features="Localized symptoms, response to treatment"),
    DifferentialDiagnosis(condition="Allergic reaction", probability=10,
                          distinguishing_features="Environmental triggers, seasonal pattern"),
]

DEFAULT_RED_FLAGS = [
    "Rapidly worsening or new severe symptoms",
    "High fever over 102°F (38.9°C)",
    "Severe pain or functional impairment",
    "Difficulty breathing or swallowing",
]

DEFAULT_PREVENTION = [
    "Maintain a healthy lifestyle with regular exercise",
    "Balanced nutrition and adequate hydration",
    "Stress management and adequate sleep",
    "Regular preventive healthcare and screenings",
]

DEFAULT_PROGNOSIS = (
    "Generally good with appropriate monitoring and care. "
    "Most mild conditions resolve with supportive treatment and time."
)


def symptom_text(symptoms: List[Symptom]) -> str:
    return " ".join(f"{s.name} {s.description}" for s in symptoms).lower()


def average_severity(symptoms: List[Symptom]) -> float:
    known = [s.severity for s in symptoms if s.severity is not None]
    if not known:
        return 0.0
    return sum(known) / len(known)


def severity_tier(avg: float) -> str:
    if avg >= 9:
        return "critical"
    if avg >= 7:
        return "severe"
    if avg >= 4:
        return "moderate"
    return "mild"


def has_emergency_keyword(text: str) -> bool:
    return any(k in text for k in EMERGENCY_KEYWORDS)


def _worse(a: str, b: str) -> str:
    return a if SEVERITY_ORDER.index(a) >= SEVERITY_ORDER.index(b) else b


def _emergency(avg: float, count: int) -> Diagnosis:
    return Diagnosis(
        condition="Emergency Medical Condition",
        confidence=95,
        severity="critical",
        explanation=(
            "Your symptoms suggest a serious condition that requires immediate medical attention. "
            f"Based on {count} reported symptom{'s' if count != 1 else ''}"
            + (f" with an average severity of {avg:.1f}/10." if avg else ".")
        ),
        recommendations=[
            "Seek immediate emergency medical care",
            "Call 911 or go to the nearest emergency room",
            "Do not delay medical treatment",
            "Have someone accompany you if possible",
        ],
        treatment=[
            "Immediate professional medical evaluation and intervention",
            "Emergency department assessment and stabilization",
            "Diagnostic testing as determined by the emergency physician",
            "Continuous monitoring and specialist consultation as needed",
        ],
        differential_diagnoses=[
            DifferentialDiagnosis(condition="Acute cardiac event", probability=35,
                                  distinguishing_features="Chest symptoms, risk factors"),
            DifferentialDiagnosis(condition="Pulmonary emergency", probability=30,
                                  distinguishing_features="Respiratory symptoms"),
            DifferentialDiagnosis(condition="Vascular emergency", probability=20,
                                  distinguishing_features="Systemic symptoms"),
            DifferentialDiagnosis(condition="Neurological emergency", probability=15,
                                  distinguishing_features="Neurological signs"),
        ],
        red_flags=[
            "Worsening or new severe symptoms",
            "Loss of consciousness or altered mental status",
            "Severe difficulty breathing or chest pain",
            "Signs of shock (rapid pulse, cold skin, confusion)",
        ],
        prognosis=(
            "Prognosis depends on immediate medical intervention and the underlying cause. "
            "Early treatment significantly improves outcomes."
        ),
        prevention=[
            "Regular cardiovascular risk assessment",
            "Management of chronic conditions",
            "Recognition of warning signs",
            "Emergency action plan",
        ],
        seek_immediate_care=True,
        ai_generated=False,
    )


def _respiratory(tier: str) -> Diagnosis:
    return Diagnosis(
        condition="Upper Respiratory Infection",
        confidence=82,
        severity=_worse("moderate", tier),
        icd_code="J06.9",
        explanation="Your symptoms are consistent with a viral or bacterial upper respiratory infection.",
        recommendations=[
            "Get plenty of rest and stay hydrated",
            "Use a humidifier or breathe steam",
            "Consider over-the-counter pain relievers",
            "Consult a doctor if symptoms worsen or persist beyond 7-10 days",
            "Avoid close contact with others to prevent spread",
        ],
        treatment=[
            "Rest and increased fluid intake (2-3 liters daily unless contraindicated)",
            "Acetaminophen or ibuprofen for fever and pain as directed on the label",
            "Throat lozenges or warm salt water gargles",
            "Honey for cough relief (avoid in children under 1 year)",
            "Follow-up if no improvement in 7-10 days or symptoms worsen",
        ],
        differential_diagnoses=[
            DifferentialDiagnosis(condition="Viral upper respiratory infection", probability=65,
                                  distinguishing_features="Self-limiting, gradual onset"),
            DifferentialDiagnosis(condition="Influenza", probability=20,
                                  distinguishing_features="Abrupt onset, body aches"),
            DifferentialDiagnosis(condition="Bacterial sinusitis", probability=10,
                                  distinguishing_features="Facial pain, purulent discharge"),
            DifferentialDiagnosis(condition="Early pneumonia", probability=5,
                                  distinguishing_features="Lower respiratory symptoms"),
        ],
        red_flags=[
            "High fever over 103°F (39.4°C) or fever lasting more than 3 days",
            "Severe difficulty breathing or shortness of breath",
            "Chest pain or persistent productive cough",
            "Worsening symptoms after initial improvement",
        ],
        prognosis="Excellent prognosis with typical resolution in 7-10 days with supportive care.",
        prevention=[
            "Hand hygiene and respiratory etiquette",
            "Avoid close contact with symptomatic individuals",
            "Annual influenza vaccination",
            "Adequate sleep and stress management",
        ],
        seek_immediate_care=False,
        ai_generated=False,
    )


def _general(tier: str, avg: float, count: int) -> Diagnosis:
    return Diagnosis(
        condition="General Health Assessment",
        confidence=70,
        severity=tier,
        icd_code="Z00.00",
        explanation=(
            "Based on your symptoms, this appears to be a general health concern that should be monitored. "
            f"{count} symptom{'s' if count != 1 else ''} reported"
            + (f" with an average severity of {avg:.1f}/10." if avg else ".")
        ),
        recommendations=list(DEFAULT_RECOMMENDATIONS),
        treatment=list(DEFAULT_TREATMENT),
        differential_diagnoses=list(DEFAULT_DIFFERENTIALS),
        red_flags=list(DEFAULT_RED_FLAGS),
        prognosis=DEFAULT_PROGNOSIS,
        prevention=list(DEFAULT_PREVENTION),
        seek_immediate_care=False,
        ai_generated=False,
    )


def generate_rule_based_diagnosis(symptoms: List[Symptom]) -> Diagnosis:
    text = symptom_text(symptoms)
    avg = average_severity(symptoms)
    tier = severity_tier(avg)

    # Emergency gate, short-circuits everything else
    if has_emergency_keyword(text) or tier == "critical":
        return _emergency(avg, len(symptoms))

    if "cough" in text and "fever" in text:
        return _respiratory(tier)

    return _general(tier, avg, len(symptoms))


def generate_simple_fallback(symptoms: List[Symptom]) -> Diagnosis:
    """Fallback used when the AI call itself errors; same policy as above."""
    return generate_rule_based_diagnosis(symptoms)


def no_symptoms_response() -> Diagnosis:
    return Diagnosis(
        condition="No symptoms provided",
        confidence=0,
        severity="mild",
        explanation="Please provide symptoms for analysis",
        recommendations=["Please provide symptoms for analysis"],
        seek_immediate_care=False,
        ai_generated=False,
    )


def fill_defaults(
    recommendations: Optional[List[str]] = None,
    treatment: Optional[List[str]] = None,
    differentials: Optional[List[DifferentialDiagnosis]] = None,
    red_flags: Optional[List[str]] = None,
    prevention: Optional[List[str]] = None,
):
    return (
        recommendations or list(DEFAULT_RECOMMENDATIONS),
        treatment or list(DEFAULT_TREATMENT),
        differentials or list(DEFAULT_DIFFERENTIALS),
        red_flags or list(DEFAULT_RED_FLAGS),
        prevention or list(DEFAULT_PREVENTION),
    )
