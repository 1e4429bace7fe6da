from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import select
import json
import asyncio
import logging
from typing import Optional

from . import config, storage
from .analysis import analyze_symptoms
from .db import Base, engine, get_db, SessionLocal
from .diagnosis_engine import generate_rule_based_diagnosis, no_symptoms_response
from .models import Patient
from .notify import maybe_notify
from .schemas import (
    AlertStatusUpdate, DiagnosisRequestBody, VitalsSubmission, WearableVitals,
    normalize_symptoms, utc_now,
)
from .simulator import generate_vitals
from .vitals_engine import (
    assess_emergency_risk, check_vital_thresholds, summarize_alerts, thresholds_as_dict,
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="SympCare API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.WS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# simulator continuity per patient
sim_states = {}


def seed_patients(db: Session):
    existing = db.execute(select(Patient)).scalars().first()
    if existing:
        return
    patients = [
        Patient(id="P001", name="Sarah Johnson", profile="normal", age=45, gender="female"),
        Patient(id="P002", name="Michael Chen", profile="hypertensive", age=62, gender="male"),
        Patient(id="P003", name="Emily Davis", profile="athlete", age=23, gender="female"),
        Patient(id="P004", name="Robert Wilson", profile="critical", age=70, gender="male"),
    ]
    db.add_all(patients)
    db.commit()


@app.on_event("startup")
def startup():
    db = SessionLocal()
    try:
        seed_patients(db)
    finally:
        db.close()


def process_reading(db: Session, v: WearableVitals, symptom_count: int = 0) -> dict:
    """Evaluate one reading, persist it with its alerts, page on critical ones."""
    patient_name = storage.get_patient_name(db, v.patient_id)
    alerts = check_vital_thresholds(v, patient_name)

    storage.append_alerts(db, alerts)
    storage.append_vitals(db, v)
    storage.update_patient_vitals(db, v)
    maybe_notify(v.patient_id, alerts)

    counts = summarize_alerts(alerts)
    logger.info("reading from %s: %d alert(s), %d critical",
                v.patient_id, counts["alertCount"], counts["criticalAlerts"])
    return {
        "alerts": [a.model_dump(by_alias=True) for a in alerts],
        **counts,
        "riskLevel": assess_emergency_risk(v, symptom_count),
    }


@app.post("/api/wearable-monitoring")
def submit_vitals(body: VitalsSubmission, db: Session = Depends(get_db)):
    if not body.vitals or not (body.vitals.get("patientId") or body.vitals.get("patient_id")):
        raise HTTPException(status_code=400, detail="Patient ID is required")
    try:
        v = WearableVitals.model_validate(body.vitals)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()],
        )

    result = process_reading(db, v, len(body.current_symptoms))
    return {"success": True, **result, "vitalsStored": True, "timestamp": utc_now()}


@app.get("/api/wearable-monitoring")
def monitoring_status(
    alerts_only: bool = Query(False, alias="alertsOnly"),
    patient_id: Optional[str] = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
):
    if alerts_only:
        all_alerts = storage.list_alerts(db)
        active = [a for a in all_alerts if a.status == "active"]
        return {
            "alerts": [a.model_dump(by_alias=True) for a in active],
            "totalAlerts": len(all_alerts),
            "activeAlerts": len(active),
            "criticalAlerts": sum(1 for a in active if a.severity == "critical"),
        }

    if patient_id:
        history = storage.load_vitals_history(db, patient_id)
        return {
            "patientId": patient_id,
            "vitalsHistory": [v.model_dump(by_alias=True) for v in history],
            "count": len(history),
        }

    all_alerts = storage.list_alerts(db)
    return {
        "monitoringStatus": "active",
        "totalAlerts": len(all_alerts),
        "activeAlerts": sum(1 for a in all_alerts if a.status == "active"),
        "vitalsRecorded": storage.count_vitals(db),
        "thresholds": thresholds_as_dict(),
    }


@app.patch("/api/wearable-monitoring")
def update_alert(body: AlertStatusUpdate, db: Session = Depends(get_db)):
    if not body.alert_id or not body.status:
        raise HTTPException(status_code=400, detail="Alert ID and status are required")
    alert = storage.update_alert_status(db, body.alert_id, body.status)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    logger.info("alert %s -> %s", alert.id, alert.status)
    return {
        "success": True,
        "alertId": alert.id,
        "newStatus": alert.status,
        "acknowledgedAt": alert.acknowledged_at,
    }


@app.post("/api/diagnose")
def diagnose(body: DiagnosisRequestBody):
    symptoms = normalize_symptoms(body.symptoms)
    if not symptoms:
        return no_symptoms_response().model_dump(by_alias=True)
    return generate_rule_based_diagnosis(symptoms).model_dump(by_alias=True)


@app.post("/api/ai-diagnosis")
def ai_diagnosis(body: DiagnosisRequestBody, db: Session = Depends(get_db)):
    result = analyze_symptoms(body.symptoms, body.patient_info)
    if body.patient_id and body.symptoms:
        storage.append_diagnosis(db, body.patient_id, result)
    return result.model_dump(by_alias=True)


@app.get("/patients")
def get_patients(db: Session = Depends(get_db)):
    pts = db.execute(select(Patient)).scalars().all()
    return [{
        "id": p.id,
        "name": p.name,
        "profile": p.profile,
        "age": p.age,
        "gender": p.gender,
        "vitals": {
            "heartRate": p.heart_rate,
            "bloodPressure": p.blood_pressure,
            "temperature": p.temperature,
            "oxygenSaturation": p.oxygen_saturation,
            "stressLevel": p.stress_level,
            "steps": p.steps,
            "calories": p.calories,
            "lastVitalCheck": p.last_vital_check,
        },
    } for p in pts]


def _require_patient(db: Session, patient_id: str) -> Patient:
    p = db.get(Patient, patient_id)
    if not p:
        raise HTTPException(status_code=404, detail="Patient not found")
    return p


@app.get("/patients/{patient_id}/alerts")
def get_patient_alerts(patient_id: str, db: Session = Depends(get_db)):
    _require_patient(db, patient_id)
    return [a.model_dump(by_alias=True) for a in storage.get_patient_alerts(db, patient_id)]


@app.get("/patients/{patient_id}/diagnoses")
def get_patient_diagnoses(patient_id: str, limit: int = 50, db: Session = Depends(get_db)):
    _require_patient(db, patient_id)
    return [d.model_dump(by_alias=True) for d in storage.load_diagnoses(db, patient_id, limit)]


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket, patient_id: str, count: int = 0, interval: float = 1.0):
    await ws.accept()
    db = SessionLocal()
    try:
        p = db.get(Patient, patient_id)
        if not p:
            await ws.send_text(json.dumps({"error": "Unknown patient_id"}))
            await ws.close()
            return

        state = sim_states.setdefault(patient_id, {})

        # main loop: generate, evaluate, persist, stream
        sent = 0
        while count <= 0 or sent < count:
            v = generate_vitals(patient_id, p.profile, state)
            # blocking db writes and the notify POST stay off the event loop
            result = await run_in_threadpool(process_reading, db, v)
            payload = {
                "patientId": patient_id,
                "patientName": p.name,
                "vitals": v.model_dump(by_alias=True),
                **result,
                "timestamp": v.timestamp,
            }
            await ws.send_text(json.dumps(payload))
            sent += 1
            if count <= 0 or sent < count:
                await asyncio.sleep(interval)

        await ws.close()

    except WebSocketDisconnect:
        return
    finally:
        db.close()
