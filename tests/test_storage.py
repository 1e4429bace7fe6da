from sympcare import storage
from sympcare.models import Patient
from sympcare.schemas import Diagnosis, WearableVitals
from sympcare.vitals_engine import check_vital_thresholds


def _vitals(make_vitals, **kw):
    return WearableVitals.model_validate(make_vitals(**kw))


def test_alert_history_keeps_newest(db, make_vitals):
    v = _vitals(make_vitals, heartRate=150)
    first = check_vital_thresholds(v, "X")
    storage.append_alerts(db, first, limit=5)
    for _ in range(6):
        storage.append_alerts(db, check_vital_thresholds(v, "X"), limit=5)

    kept = storage.list_alerts(db)
    assert len(kept) == 5
    assert first[0].id not in {a.id for a in kept}


def test_alert_history_default_cap_is_100(db, make_vitals):
    v = _vitals(make_vitals, heartRate=150, temperature=104.0)
    for _ in range(55):
        storage.append_alerts(db, check_vital_thresholds(v, "X"))
    assert len(storage.list_alerts(db)) == 100


def test_vitals_history_keeps_newest(db, make_vitals):
    for i in range(8):
        storage.append_vitals(db, _vitals(make_vitals, steps=i), limit=5)
    history = storage.load_vitals_history(db, "P001")
    assert [v.steps for v in history] == [3, 4, 5, 6, 7]
    assert storage.count_vitals(db) == 5


def test_alert_round_trips_through_row(db, make_vitals):
    alerts = check_vital_thresholds(_vitals(make_vitals, bloodPressure={"systolic": 181, "diastolic": 70}), "Ann")
    storage.append_alerts(db, alerts)
    (stored,) = storage.list_alerts(db)
    assert stored == alerts[0]


def test_update_alert_status(db, make_vitals):
    alerts = check_vital_thresholds(_vitals(make_vitals, heartRate=35), "X")
    storage.append_alerts(db, alerts)

    updated = storage.update_alert_status(db, alerts[0].id, "acknowledged")
    assert updated.status == "acknowledged"
    assert updated.acknowledged_at
    assert storage.list_alerts(db, active_only=True) == []
    assert storage.get_patient_alerts(db, "P001") == []


def test_update_unknown_alert(db):
    assert storage.update_alert_status(db, "nope", "resolved") is None


def test_patient_snapshot(db, make_vitals):
    db.add(Patient(id="P001", name="Sarah Johnson"))
    db.commit()

    assert storage.get_patient_name(db, "P001") == "Sarah Johnson"
    assert storage.update_patient_vitals(db, _vitals(make_vitals, heartRate=88)) is True
    p = db.get(Patient, "P001")
    assert p.heart_rate == 88
    assert p.blood_pressure == "120/80"
    assert p.last_vital_check == "2024-01-01T10:00:00Z"


def test_unknown_patient(db, make_vitals):
    assert storage.get_patient_name(db, "P999") == "Unknown Patient"
    assert storage.update_patient_vitals(db, _vitals(make_vitals, patientId="P999")) is False


def test_diagnoses_newest_first(db):
    storage.append_diagnosis(db, "P001", Diagnosis(condition="first", confidence=70, severity="mild"))
    storage.append_diagnosis(db, "P001", Diagnosis(condition="second", confidence=82, severity="moderate"))
    storage.append_diagnosis(db, "P002", Diagnosis(condition="other", confidence=70, severity="mild"))
    assert [d.condition for d in storage.load_diagnoses(db, "P001")] == ["second", "first"]
