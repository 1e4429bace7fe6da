from sqlalchemy import Column, Integer, String, Float, DateTime, Text
from sqlalchemy.sql import func
from .db import Base

class Patient(Base):
    __tablename__ = "patients"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    profile = Column(String, nullable=False, default="normal")  # simulator baseline
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)

    # latest wearable snapshot
    heart_rate = Column(Integer, nullable=True)
    blood_pressure = Column(String, nullable=True)  # "120/80"
    temperature = Column(Float, nullable=True)
    oxygen_saturation = Column(Integer, nullable=True)
    stress_level = Column(Float, nullable=True)
    steps = Column(Integer, nullable=True)
    calories = Column(Integer, nullable=True)
    last_vital_check = Column(String, nullable=True)

class VitalRecord(Base):
    __tablename__ = "vitals"
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String, index=True, nullable=False)
    device_id = Column(String, nullable=False)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    timestamp = Column(String, nullable=False)  # as reported by the device

    heart_rate = Column(Integer, nullable=False)
    bp_systolic = Column(Integer, nullable=False)
    bp_diastolic = Column(Integer, nullable=False)
    temperature = Column(Float, nullable=False)
    oxygen_saturation = Column(Integer, nullable=False)
    stress_level = Column(Float, nullable=False)
    steps = Column(Integer, nullable=False, default=0)
    calories = Column(Integer, nullable=False, default=0)
    battery_level = Column(Integer, nullable=False, default=0)

class AlertRecord(Base):
    __tablename__ = "alerts"
    seq = Column(Integer, primary_key=True, autoincrement=True)  # insertion order, used for pruning
    id = Column(String, unique=True, index=True, nullable=False)
    patient_id = Column(String, index=True, nullable=False)
    patient_name = Column(String, nullable=False)

    vital = Column(String, nullable=False)      # "Heart Rate", "Blood Pressure", ...
    value_json = Column(String, nullable=False)  # 72, 98.6 or "181/70"
    threshold = Column(String, nullable=False)
    severity = Column(String, nullable=False)   # warning/critical
    timestamp = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")  # active/acknowledged/resolved
    message = Column(Text, nullable=False)
    acknowledged_at = Column(String, nullable=True)

class DiagnosisRecord(Base):
    __tablename__ = "diagnoses"
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String, index=True, nullable=False)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    condition = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    ai_generated = Column(Integer, nullable=False, default=0)
    payload_json = Column(Text, nullable=False)  # full diagnosis record
