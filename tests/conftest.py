import os

# must be set before sympcare is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest
import requests
from fastapi.testclient import TestClient

from sympcare import notify
from sympcare.db import Base, SessionLocal, engine
from sympcare.main import app


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def notify_calls(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append({"url": url, "json": json, "timeout": timeout})

    monkeypatch.setattr(notify.requests, "post", fake_post)
    return calls


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_vitals():
    def _make(**overrides):
        v = {
            "patientId": "P001",
            "deviceId": "watch-1",
            "timestamp": "2024-01-01T10:00:00Z",
            "heartRate": 72,
            "bloodPressure": {"systolic": 120, "diastolic": 80},
            "temperature": 98.6,
            "oxygenSaturation": 98,
            "stressLevel": 30,
            "steps": 1200,
            "calories": 80,
            "batteryLevel": 90,
        }
        v.update(overrides)
        return v
    return _make


@pytest.fixture
def unreachable_notify(monkeypatch):
    def boom(url, json=None, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(notify.requests, "post", boom)
