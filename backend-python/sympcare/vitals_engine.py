from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

from .schemas import VitalAlert, WearableVitals, utc_now

@dataclass(frozen=True)
class Band:
    # normal range
    min: Optional[float] = None
    max: Optional[float] = None
    # outside these lines the reading is critical
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None

    def is_critical(self, v: float) -> bool:
        return (self.critical_min is not None and v < self.critical_min) or (
            self.critical_max is not None and v > self.critical_max
        )

    def is_abnormal(self, v: float) -> bool:
        return (self.min is not None and v < self.min) or (self.max is not None and v > self.max)

# Single shared table; oxygen saturation and stress level are one-sided.
VITAL_THRESHOLDS = {
    "heart_rate": Band(min=60, max=100, critical_min=40, critical_max=130),
    "blood_pressure": {
        "systolic": Band(min=90, max=140, critical_min=70, critical_max=180),
        "diastolic": Band(min=60, max=90, critical_min=40, critical_max=110),
    },
    "temperature": Band(min=97.0, max=99.5, critical_min=95.0, critical_max=103.0),
    "oxygen_saturation": Band(min=95, critical_min=90),
    "stress_level": Band(max=70, critical_max=85),  # 0-100 scale
}

def thresholds_as_dict() -> Dict[str, Any]:
    bp = VITAL_THRESHOLDS["blood_pressure"]
    return {
        "heart_rate": asdict(VITAL_THRESHOLDS["heart_rate"]),
        "blood_pressure": {"systolic": asdict(bp["systolic"]), "diastolic": asdict(bp["diastolic"])},
        "temperature": asdict(VITAL_THRESHOLDS["temperature"]),
        "oxygen_saturation": asdict(VITAL_THRESHOLDS["oxygen_saturation"]),
        "stress_level": asdict(VITAL_THRESHOLDS["stress_level"]),
    }

def _fmt(x: float) -> str:
    # 95.0 -> "95", 99.5 -> "99.5"
    return str(int(x)) if float(x).is_integer() else str(x)

def _alert(v: WearableVitals, patient_name: str, prefix: str, vital: str, value, threshold: str,
           severity: str, message: str, ts: str) -> VitalAlert:
    return VitalAlert(
        id=f"{prefix}_{severity}_{uuid4().hex}",
        patient_id=v.patient_id,
        patient_name=patient_name,
        vital=vital,
        value=value,
        threshold=threshold,
        severity=severity,
        timestamp=ts,
        status="active",
        message=message,
    )

def check_vital_thresholds(vitals: Union[WearableVitals, Mapping[str, Any]], patient_name: str) -> List[VitalAlert]:
    """
    Evaluates one reading channel by channel.
    Returns: at most one alert per channel, in fixed channel order.
    A critical breach on a channel suppresses its warning.
    """
    v = vitals if isinstance(vitals, WearableVitals) else WearableVitals.model_validate(vitals)
    ts = utc_now()
    alerts: List[VitalAlert] = []

    # Heart rate
    hr = VITAL_THRESHOLDS["heart_rate"]
    if hr.is_critical(v.heart_rate):
        alerts.append(_alert(
            v, patient_name, "hr", "Heart Rate", v.heart_rate,
            f"{_fmt(hr.critical_min)}-{_fmt(hr.critical_max)} BPM", "critical",
            f"Critical heart rate detected: {_fmt(v.heart_rate)} BPM. Immediate medical attention required.", ts,
        ))
    elif hr.is_abnormal(v.heart_rate):
        alerts.append(_alert(
            v, patient_name, "hr", "Heart Rate", v.heart_rate,
            f"{_fmt(hr.min)}-{_fmt(hr.max)} BPM", "warning",
            f"Heart rate outside normal range: {_fmt(v.heart_rate)} BPM. Monitor closely.", ts,
        ))

    # Blood pressure: systolic and diastolic share one combined channel
    sys_b = VITAL_THRESHOLDS["blood_pressure"]["systolic"]
    dia_b = VITAL_THRESHOLDS["blood_pressure"]["diastolic"]
    s, d = v.blood_pressure.systolic, v.blood_pressure.diastolic
    bp_value = f"{s}/{d}"
    if sys_b.is_critical(s) or dia_b.is_critical(d):
        alerts.append(_alert(
            v, patient_name, "bp", "Blood Pressure", bp_value,
            f"{_fmt(sys_b.critical_min)}-{_fmt(sys_b.critical_max)}/"
            f"{_fmt(dia_b.critical_min)}-{_fmt(dia_b.critical_max)} mmHg",
            "critical",
            f"Critical blood pressure: {bp_value} mmHg. Emergency intervention needed.", ts,
        ))
    elif sys_b.is_abnormal(s) or dia_b.is_abnormal(d):
        alerts.append(_alert(
            v, patient_name, "bp", "Blood Pressure", bp_value,
            f"{_fmt(sys_b.min)}-{_fmt(sys_b.max)}/{_fmt(dia_b.min)}-{_fmt(dia_b.max)} mmHg",
            "warning",
            f"Blood pressure outside normal range: {bp_value} mmHg.", ts,
        ))

    # Temperature (°F)
    tb = VITAL_THRESHOLDS["temperature"]
    if tb.is_critical(v.temperature):
        alerts.append(_alert(
            v, patient_name, "temp", "Temperature", v.temperature,
            f"{_fmt(tb.critical_min)}-{_fmt(tb.critical_max)}°F", "critical",
            f"Critical body temperature: {_fmt(v.temperature)}°F. Immediate medical attention required.", ts,
        ))
    elif tb.is_abnormal(v.temperature):
        alerts.append(_alert(
            v, patient_name, "temp", "Temperature", v.temperature,
            f"{_fmt(tb.min)}-{_fmt(tb.max)}°F", "warning",
            f"Body temperature outside normal range: {_fmt(v.temperature)}°F.", ts,
        ))

    # Oxygen saturation (lower bounds only)
    ob = VITAL_THRESHOLDS["oxygen_saturation"]
    if ob.is_critical(v.oxygen_saturation):
        alerts.append(_alert(
            v, patient_name, "spo2", "Oxygen Saturation", v.oxygen_saturation,
            f">{_fmt(ob.critical_min)}%", "critical",
            f"Critical oxygen saturation: {_fmt(v.oxygen_saturation)}%. Respiratory emergency.", ts,
        ))
    elif ob.is_abnormal(v.oxygen_saturation):
        alerts.append(_alert(
            v, patient_name, "spo2", "Oxygen Saturation", v.oxygen_saturation,
            f">{_fmt(ob.min)}%", "warning",
            f"Low oxygen saturation: {_fmt(v.oxygen_saturation)}%. Monitor respiratory function.", ts,
        ))

    # Stress level (upper bounds only)
    sb = VITAL_THRESHOLDS["stress_level"]
    if sb.is_critical(v.stress_level):
        alerts.append(_alert(
            v, patient_name, "stress", "Stress Level", v.stress_level,
            f"<{_fmt(sb.critical_max)}", "critical",
            f"Extremely high stress level detected: {_fmt(v.stress_level)}. "
            "Potential cardiac risk. Immediate medical attention required.", ts,
        ))
    elif sb.is_abnormal(v.stress_level):
        alerts.append(_alert(
            v, patient_name, "stress", "Stress Level", v.stress_level,
            f"<{_fmt(sb.max)}", "warning",
            f"Elevated stress level: {_fmt(v.stress_level)}. Recommend relaxation techniques.", ts,
        ))

    return alerts

def summarize_alerts(alerts: List[VitalAlert]) -> Dict[str, int]:
    return {
        "alertCount": len(alerts),
        "criticalAlerts": sum(1 for a in alerts if a.severity == "critical"),
    }

def assess_emergency_risk(vitals: WearableVitals, symptom_count: int = 0) -> str:
    """
    Coarse emergency risk level: Low / Moderate / High / Critical.
    Stress uses the same 0-100 scale as the thresholds above.
    """
    score = 0

    if vitals.heart_rate > 120 or vitals.heart_rate < 50:
        score += 2
    elif vitals.heart_rate > 100 or vitals.heart_rate < 60:
        score += 1

    if vitals.temperature > 102:
        score += 3
    elif vitals.temperature > 100.4:
        score += 1

    if vitals.oxygen_saturation < 90:
        score += 3
    elif vitals.oxygen_saturation < 95:
        score += 1

    if vitals.stress_level > 80:
        score += 1

    score += min(max(symptom_count, 0), 3)

    if score >= 6:
        return "Critical"
    if score >= 3:
        return "High"
    if score >= 1:
        return "Moderate"
    return "Low"
