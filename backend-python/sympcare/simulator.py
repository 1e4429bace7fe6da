import random
from typing import Dict

from .schemas import WearableVitals


def _clamp(x, lo, hi):
    return max(lo, min(hi, x))


def generate_vitals(patient_id: str, profile: str, state: Dict) -> WearableVitals:
    """
    Generates semi-realistic wearable readings with continuity using 'state'.
    Temperature is °F, stress is 0-100, steps and calories accumulate.
    """
    if not state:
        if profile == "athlete":
            state.update({"hr": 62, "sys": 118, "dia": 74, "spo2": 98, "temp": 98.0, "stress": 25})
        elif profile == "hypertensive":
            state.update({"hr": 82, "sys": 148, "dia": 96, "spo2": 97, "temp": 98.4, "stress": 55})
        elif profile == "critical":
            state.update({"hr": 98, "sys": 140, "dia": 92, "spo2": 95, "temp": 99.3, "stress": 68})
        else:
            state.update({"hr": 78, "sys": 124, "dia": 80, "spo2": 98, "temp": 98.1, "stress": 40})
        state.update({"steps": 0, "calories": 0, "battery": 100.0})

    # random walk
    state["hr"] += random.uniform(-2.5, 2.5)
    state["sys"] += random.uniform(-3.0, 3.0)
    state["dia"] += random.uniform(-2.0, 2.0)
    state["spo2"] += random.uniform(-0.6, 0.4)
    state["temp"] += random.uniform(-0.1, 0.1)
    state["stress"] += random.uniform(-4.0, 4.0)
    state["steps"] += random.randint(0, 40)
    state["calories"] += random.randint(0, 3)
    state["battery"] -= 0.05

    # occasional deterioration
    if random.random() < 0.02:
        state["hr"] += random.uniform(10, 25)
        state["sys"] += random.uniform(15, 35)
        state["dia"] += random.uniform(10, 20)
        state["stress"] += random.uniform(10, 20)

    if random.random() < 0.02:
        state["spo2"] -= random.uniform(2, 6)

    if random.random() < 0.01:
        state["temp"] += random.uniform(1.0, 2.0)

    # clamp
    state["hr"] = _clamp(state["hr"], 40, 190)
    state["sys"] = _clamp(state["sys"], 90, 220)
    state["dia"] = _clamp(state["dia"], 50, 140)
    state["spo2"] = _clamp(state["spo2"], 75, 100)
    state["temp"] = _clamp(state["temp"], 93.0, 106.0)
    state["stress"] = _clamp(state["stress"], 0, 100)
    state["battery"] = _clamp(state["battery"], 0, 100)

    return WearableVitals(
        patient_id=patient_id,
        device_id=f"sim-{patient_id}",
        heart_rate=round(state["hr"]),
        blood_pressure={"systolic": round(state["sys"]), "diastolic": round(state["dia"])},
        temperature=round(state["temp"], 1),
        oxygen_saturation=round(state["spo2"]),
        stress_level=round(state["stress"]),
        steps=state["steps"],
        calories=state["calories"],
        battery_level=round(state["battery"]),
    )
