import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from mediconnect.core.database import Base

def _new_id() -> str:
    return str(uuid.uuid4())

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    specialty = Column(String(200), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=False)
    years_of_experience = Column(Integer, nullable=False, default=0)
    password_hash = Column(String(128), nullable=False)
    profile_pic = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    consultations = relationship("Consultation", back_populates="doctor")

class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    age = Column(Integer, nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=False)
    password_hash = Column(String(128), nullable=False)
    profile_pic = Column(String(500), nullable=True)
    history_of_surgery = Column(Text, nullable=True)
    history_of_illness = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    consultations = relationship("Consultation", back_populates="patient")

class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(String(36), primary_key=True, default=_new_id)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    current_illness_history = Column(Text, nullable=False)
    recent_surgery = Column(Text, nullable=True)
    is_diabetic = Column(Boolean, nullable=False, default=False)
    allergies = Column(Text, nullable=True)
    others = Column(Text, nullable=True)
    transaction_id = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    patient = relationship("Patient", back_populates="consultations")
    doctor = relationship("Doctor", back_populates="consultations")
    prescription = relationship("Prescription", back_populates="consultation", uselist=False)

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(String(36), primary_key=True, default=_new_id)
    consultation_id = Column(String(36), ForeignKey("consultations.id"), unique=True, nullable=False)
    care_to_be_taken = Column(Text, nullable=False)
    medicines = Column(Text, nullable=False)
    pdf_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    version = Column(Integer, nullable=False)

    consultation = relationship("Consultation", back_populates="prescription")

    # Concurrent upserts of the same row fail with StaleDataError
    __mapper_args__ = {"version_id_col": version}
