# llm.py
import re
from typing import List, Optional

from openai import OpenAI

from . import config
from .diagnosis_engine import DEFAULT_PROGNOSIS, fill_defaults
from .schemas import Diagnosis, DifferentialDiagnosis, PatientInfo, Symptom

SYSTEM_PROMPT = (
    "You are a careful medical assistant supporting clinicians. Base assessments on "
    "evidence-based medicine, distinguish severity levels clearly, always emphasize the "
    "need for professional medical evaluation, and treat patient safety as the highest priority."
)

# any of these in the answer means the patient should seek care now
EMERGENCY_TERMS = [
    "immediate", "emergency", "urgent", "critical", "severe", "911",
    "chest pain", "difficulty breathing", "stroke", "heart attack", "anaphylaxis", "sepsis",
]

HIGH_RISK_CONDITIONS = [
    "myocardial infarction", "stroke", "pulmonary embolism", "aortic dissection",
    "meningitis", "sepsis", "anaphylaxis", "pneumothorax",
]

CONFIDENCE_MIN = 60
CONFIDENCE_MAX = 95


class AIServiceError(Exception):
    pass


class AIServiceUnavailable(AIServiceError):
    pass


def _client() -> Optional[OpenAI]:
    if not config.OPENAI_API_KEY:
        return None
    return OpenAI(api_key=config.OPENAI_API_KEY, base_url=config.OPENAI_BASE_URL, timeout=config.AI_TIMEOUT)


def _listify(value) -> str:
    if isinstance(value, list):
        return ", ".join(str(x) for x in value) or "None reported"
    return value or "None reported"


def describe_symptom(s: Symptom) -> str:
    severity = f"{s.severity}/10" if s.severity is not None else "not specified"
    return (
        f"{s.name} (severity: {severity}, duration: {s.duration or 'not specified'}, "
        f"location: {s.location or 'not specified'}, description: {s.description or 'none'})"
    )


def build_prompt(symptoms: List[Symptom], patient_info: Optional[PatientInfo] = None) -> str:
    details = "; ".join(describe_symptom(s) for s in symptoms)

    context = ""
    if patient_info is not None:
        context = (
            "PATIENT DEMOGRAPHICS & HISTORY:\n"
            f"- Age: {patient_info.age or 'Not specified'}\n"
            f"- Gender: {patient_info.gender or 'Not specified'}\n"
            f"- Medical History: {_listify(patient_info.medical_history)}\n"
            f"- Current Medications: {_listify(patient_info.medications)}\n"
            f"- Allergies: {_listify(patient_info.allergies)}\n"
            f"- Family History: {_listify(patient_info.family_history)}\n\n"
        )

    return (
        f"{context}"
        f"SYMPTOM ANALYSIS:\n{details}\n\n"
        "Provide a structured assessment with these sections:\n"
        "1. PRIMARY DIAGNOSIS: condition, confidence percentage, ICD-10 code if applicable\n"
        "2. SEVERITY CLASSIFICATION: Mild/Moderate/Severe/Critical\n"
        "3. DIFFERENTIAL DIAGNOSIS: 4-5 alternatives as '- Condition (NN%) - distinguishing features'\n"
        "4. TREATMENT PLAN: bulleted first-line interventions\n"
        "5. RED FLAG SYMPTOMS: bulleted warning signs\n"
        "6. PROGNOSIS: expected course\n"
        "7. PREVENTION STRATEGIES: bulleted\n\n"
        "This analysis is clinical decision support only and never replaces professional evaluation."
    )


def generate_text(prompt: str) -> str:
    """Calls the text-generation service. Raises AIServiceError on any failure."""
    client = _client()
    if client is None:
        raise AIServiceUnavailable("OPENAI_API_KEY is not configured")

    try:
        resp = client.chat.completions.create(
            model=config.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.2,
        )
        content = (resp.choices[0].message.content or "").strip()
    except Exception as exc:
        raise AIServiceError(str(exc)) from exc

    if not content:
        raise AIServiceError("empty response from text-generation service")
    return content


def clamp_confidence(value: int) -> int:
    return min(max(value, CONFIDENCE_MIN), CONFIDENCE_MAX)


def parse_ai_response(text: str) -> Diagnosis:
    """
    Best-effort scrape of a free-text answer into a Diagnosis.
    Never fails: anything not found falls back to canned defaults,
    and confidence is always clamped into [60, 95].
    """
    condition = "Medical Assessment"
    confidence = 75
    severity = "moderate"
    icd_code = ""
    treatment: List[str] = []
    differentials: List[DifferentialDiagnosis] = []
    red_flags: List[str] = []
    prevention: List[str] = []
    prognosis_parts: List[str] = []

    section = ""
    for line in (ln.strip() for ln in text.splitlines()):
        if not line:
            continue
        upper = line.upper()

        if "PRIMARY DIAGNOSIS" in upper or "MOST LIKELY" in upper:
            section = "diagnosis"
            m = re.search(r"(\d+)\s*%", line)
            if m:
                confidence = int(m.group(1))
            m = re.search(r"(?:diagnosis|condition|likely)\**[:\-\s]+(.+?)(?:\s*\(|\s+with\s|\s+-\s|$)", line, re.I)
            if m and m.group(1).strip(" *:"):
                condition = m.group(1).strip(" *:")
            m = re.search(r"\b([A-Z]\d{2}(?:\.\d+)?)\b", line)
            if m:
                icd_code = m.group(1)
            continue
        if "SEVERITY" in upper or "CLASSIFICATION" in upper:
            section = "severity"
            if "CRITICAL" in upper:
                severity = "critical"
            elif "SEVERE" in upper:
                severity = "severe"
            elif "MODERATE" in upper:
                severity = "moderate"
            elif "MILD" in upper:
                severity = "mild"
            continue
        if "TREATMENT" in upper or "THERAPEUTIC" in upper:
            section = "treatment"
            continue
        if "DIFFERENTIAL" in upper:
            section = "differential"
            continue
        if "RED FLAG" in upper or "WARNING SIGN" in upper:
            section = "redflags"
            continue
        if "PROGNOSIS" in upper or "EXPECTED COURSE" in upper:
            section = "prognosis"
            continue
        if "PREVENTION" in upper:
            section = "prevention"
            continue

        bullet = re.match(r"^(?:[-•*]|\d+\.)\s*(.+)$", line)
        if bullet:
            content = bullet.group(1).strip()
            if section == "treatment":
                treatment.append(content)
            elif section == "differential":
                m = re.search(r"(\d+)\s*%", content)
                name, _, features = re.sub(r"\(?\d+\s*%\)?", "", content).partition(" - ")
                if name.strip():
                    differentials.append(DifferentialDiagnosis(
                        condition=name.strip(" -"),
                        probability=int(m.group(1)) if m else 10,
                        distinguishing_features=features.strip(),
                    ))
            elif section == "redflags":
                red_flags.append(content)
            elif section == "prevention":
                prevention.append(content)
            elif section == "prognosis":
                prognosis_parts.append(content)
        elif section == "prognosis":
            prognosis_parts.append(line)

    lowered = text.lower()
    seek_immediate_care = (
        any(k in lowered for k in EMERGENCY_TERMS)
        or any(c in lowered for c in HIGH_RISK_CONDITIONS)
        or severity in ("severe", "critical")
    )

    recommendations, treatment, differentials, red_flags, prevention = fill_defaults(
        treatment=treatment,
        differentials=differentials[:5],
        red_flags=red_flags[:6],
        prevention=prevention[:6],
    )
    condition = re.sub(r"[^\w\s\-().]", "", condition).strip() or "Medical Assessment"

    return Diagnosis(
        condition=condition,
        confidence=clamp_confidence(confidence),
        severity=severity,
        icd_code=icd_code,
        explanation=text[:1500] + ("..." if len(text) > 1500 else ""),
        recommendations=recommendations,
        treatment=treatment,
        differential_diagnoses=differentials,
        red_flags=red_flags,
        prognosis=" ".join(prognosis_parts) or DEFAULT_PROGNOSIS,
        prevention=prevention,
        seek_immediate_care=seek_immediate_care,
        ai_generated=True,
    )
