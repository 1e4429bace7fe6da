# schemas.py
import json
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["mild", "moderate", "severe", "critical"]
AlertSeverity = Literal["warning", "critical"]
AlertStatus = Literal["active", "acknowledged", "resolved"]
VitalName = Literal["Heart Rate", "Blood Pressure", "Temperature", "Oxygen Saturation", "Stress Level"]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    # JSON uses camelCase (heartRate), python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Wearable readings & alerts ---


class BloodPressure(CamelModel):
    model_config = ConfigDict(frozen=True)

    systolic: int
    diastolic: int


class WearableVitals(CamelModel):
    """One reading snapshot per device sync. Channels are required, ranges are not checked."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    device_id: str = "unknown"
    timestamp: str = Field(default_factory=utc_now)
    heart_rate: int
    blood_pressure: BloodPressure
    temperature: float  # °F
    oxygen_saturation: int
    stress_level: float  # 0-100
    steps: int = 0
    calories: int = 0
    battery_level: int = 0


class VitalAlert(CamelModel):
    id: str
    patient_id: str
    patient_name: str
    vital: VitalName
    value: Union[int, float, str]  # "181/70" for blood pressure
    threshold: str
    severity: AlertSeverity
    timestamp: str
    status: AlertStatus = "active"
    message: str
    acknowledged_at: Optional[str] = None


# --- Symptoms & diagnoses ---


class Symptom(CamelModel):
    name: str
    severity: Optional[int] = Field(default=None, ge=1, le=10)  # unknown for free-text entries
    duration: str = ""
    location: str = ""
    description: str = ""
    timestamp: Optional[str] = None


# Accepted on the wire: "headache", '{"name": "cough", ...}' or {"name": "cough", ...}
SymptomInput = Union[Symptom, str]


class DifferentialDiagnosis(CamelModel):
    condition: str
    probability: int
    distinguishing_features: str = ""


class Diagnosis(CamelModel):
    condition: str
    confidence: int
    severity: Severity
    icd_code: str = ""
    explanation: str = ""
    recommendations: List[str] = []
    treatment: List[str] = []
    differential_diagnoses: List[DifferentialDiagnosis] = []
    red_flags: List[str] = []
    prognosis: str = ""
    prevention: List[str] = []
    seek_immediate_care: bool = False
    ai_generated: bool = False
    timestamp: str = Field(default_factory=utc_now)


class PatientInfo(CamelModel):
    age: Optional[int] = None
    gender: Optional[str] = None
    medical_history: Union[str, List[str], None] = None
    medications: Union[str, List[str], None] = None
    allergies: Union[str, List[str], None] = None
    family_history: Union[str, List[str], None] = None


# --- Request bodies ---


def _symptoms_field(items: List[SymptomInput]) -> List[Symptom]:
    # a bad JSON-string symptom is a field error (422), same as a bad symptom object
    try:
        return normalize_symptoms(items)
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = ".".join(str(x) for x in err["loc"]) or "symptom"
        raise ValueError(f"invalid symptom ({loc}): {err['msg']}")


class VitalsSubmission(CamelModel):
    # kept loose so a missing patientId is a 400, not a schema error
    vitals: Optional[dict] = None
    current_symptoms: List[SymptomInput] = []

    @field_validator("current_symptoms")
    @classmethod
    def normalize_current_symptoms(cls, v):
        return _symptoms_field(v)


class AlertStatusUpdate(CamelModel):
    alert_id: Optional[str] = None
    status: Optional[AlertStatus] = None


class DiagnosisRequestBody(CamelModel):
    symptoms: List[SymptomInput] = []
    patient_info: Optional[PatientInfo] = None
    patient_id: Optional[str] = None

    @field_validator("symptoms")
    @classmethod
    def normalize_symptom_inputs(cls, v):
        return _symptoms_field(v)


def normalize_symptom(raw: Any) -> Symptom:
    """
    Converts any accepted symptom variant into a canonical Symptom.
    JSON strings (sometimes encoded twice by older clients) are decoded first.
    """
    if isinstance(raw, Symptom):
        return raw
    if isinstance(raw, dict):
        return Symptom.model_validate(raw)
    text = str(raw).strip()
    for _ in range(2):
        if not (text.startswith("{") or text.startswith('"')):
            break
        try:
            decoded = json.loads(text)
        except ValueError:
            break
        if isinstance(decoded, dict):
            return Symptom.model_validate(decoded)
        text = str(decoded).strip()
    return Symptom(name=text)


def normalize_symptoms(items: List[Any]) -> List[Symptom]:
    return [normalize_symptom(s) for s in items]
