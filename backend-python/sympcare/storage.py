import json
from typing import List, Optional

from sqlalchemy import select, desc, func
from sqlalchemy.orm import Session

from . import config
from .models import AlertRecord, DiagnosisRecord, Patient, VitalRecord
from .schemas import Diagnosis, VitalAlert, WearableVitals, utc_now

UNKNOWN_PATIENT = "Unknown Patient"


def _prune(db: Session, model, order_col, limit: int):
    total = db.execute(select(func.count()).select_from(model)).scalar_one()
    if total <= limit:
        return
    # oldest rows first
    stale = db.execute(select(order_col).order_by(order_col).limit(total - limit)).scalars().all()
    db.query(model).filter(order_col.in_(stale)).delete(synchronize_session=False)


def alert_to_row(a: VitalAlert) -> AlertRecord:
    return AlertRecord(
        id=a.id,
        patient_id=a.patient_id,
        patient_name=a.patient_name,
        vital=a.vital,
        value_json=json.dumps(a.value),
        threshold=a.threshold,
        severity=a.severity,
        timestamp=a.timestamp,
        status=a.status,
        message=a.message,
        acknowledged_at=a.acknowledged_at,
    )


def row_to_alert(r: AlertRecord) -> VitalAlert:
    return VitalAlert(
        id=r.id,
        patient_id=r.patient_id,
        patient_name=r.patient_name,
        vital=r.vital,
        value=json.loads(r.value_json),
        threshold=r.threshold,
        severity=r.severity,
        timestamp=r.timestamp,
        status=r.status,
        message=r.message,
        acknowledged_at=r.acknowledged_at,
    )


def row_to_vitals(r: VitalRecord) -> WearableVitals:
    return WearableVitals(
        patient_id=r.patient_id,
        device_id=r.device_id,
        timestamp=r.timestamp,
        heart_rate=r.heart_rate,
        blood_pressure={"systolic": r.bp_systolic, "diastolic": r.bp_diastolic},
        temperature=r.temperature,
        oxygen_saturation=r.oxygen_saturation,
        stress_level=r.stress_level,
        steps=r.steps,
        calories=r.calories,
        battery_level=r.battery_level,
    )


def append_alerts(db: Session, alerts: List[VitalAlert], limit: int = config.ALERT_HISTORY_LIMIT):
    if not alerts:
        return
    db.add_all([alert_to_row(a) for a in alerts])
    db.flush()
    _prune(db, AlertRecord, AlertRecord.seq, limit)
    db.commit()


def append_vitals(db: Session, v: WearableVitals, limit: int = config.VITALS_HISTORY_LIMIT):
    db.add(VitalRecord(
        patient_id=v.patient_id,
        device_id=v.device_id,
        timestamp=v.timestamp,
        heart_rate=v.heart_rate,
        bp_systolic=v.blood_pressure.systolic,
        bp_diastolic=v.blood_pressure.diastolic,
        temperature=v.temperature,
        oxygen_saturation=v.oxygen_saturation,
        stress_level=v.stress_level,
        steps=v.steps,
        calories=v.calories,
        battery_level=v.battery_level,
    ))
    db.flush()
    _prune(db, VitalRecord, VitalRecord.id, limit)
    db.commit()


def count_vitals(db: Session) -> int:
    return db.execute(select(func.count()).select_from(VitalRecord)).scalar_one()


def update_patient_vitals(db: Session, v: WearableVitals) -> bool:
    """Copies the reading into the patient's snapshot. Unknown patients are left alone."""
    p = db.get(Patient, v.patient_id)
    if p is None:
        return False
    p.heart_rate = v.heart_rate
    p.blood_pressure = f"{v.blood_pressure.systolic}/{v.blood_pressure.diastolic}"
    p.temperature = v.temperature
    p.oxygen_saturation = v.oxygen_saturation
    p.stress_level = v.stress_level
    p.steps = v.steps
    p.calories = v.calories
    p.last_vital_check = v.timestamp
    db.commit()
    return True


def get_patient_name(db: Session, patient_id: str) -> str:
    p = db.get(Patient, patient_id)
    return p.name if p else UNKNOWN_PATIENT


def list_alerts(db: Session, active_only: bool = False) -> List[VitalAlert]:
    q = select(AlertRecord)
    if active_only:
        q = q.where(AlertRecord.status == "active")
    rows = db.execute(q.order_by(AlertRecord.seq)).scalars().all()
    return [row_to_alert(r) for r in rows]


def get_patient_alerts(db: Session, patient_id: str) -> List[VitalAlert]:
    q = (
        select(AlertRecord)
        .where(AlertRecord.patient_id == patient_id, AlertRecord.status == "active")
        .order_by(AlertRecord.seq)
    )
    return [row_to_alert(r) for r in db.execute(q).scalars().all()]


def update_alert_status(db: Session, alert_id: str, status: str) -> Optional[VitalAlert]:
    r = db.execute(select(AlertRecord).where(AlertRecord.id == alert_id)).scalars().first()
    if r is None:
        return None
    r.status = status
    r.acknowledged_at = utc_now()
    db.commit()
    return row_to_alert(r)


def load_vitals_history(db: Session, patient_id: str) -> List[WearableVitals]:
    q = select(VitalRecord).where(VitalRecord.patient_id == patient_id).order_by(VitalRecord.id)
    return [row_to_vitals(r) for r in db.execute(q).scalars().all()]


def append_diagnosis(db: Session, patient_id: str, diagnosis: Diagnosis):
    db.add(DiagnosisRecord(
        patient_id=patient_id,
        condition=diagnosis.condition,
        severity=diagnosis.severity,
        ai_generated=int(diagnosis.ai_generated),
        payload_json=diagnosis.model_dump_json(by_alias=True),
    ))
    db.commit()


def load_diagnoses(db: Session, patient_id: str, limit: int = 50) -> List[Diagnosis]:
    q = (
        select(DiagnosisRecord)
        .where(DiagnosisRecord.patient_id == patient_id)
        .order_by(desc(DiagnosisRecord.id))
        .limit(limit)
    )
    return [Diagnosis.model_validate_json(r.payload_json) for r in db.execute(q).scalars().all()]
