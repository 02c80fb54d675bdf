from typing import List

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from mediconnect.core import errors
from mediconnect.models.db_models import Consultation, Doctor
from mediconnect.models.schemas import ConsultationCreate

def create_consultation(db: Session, patient_id: str, intake: ConsultationCreate) -> Consultation:
    """Record a patient's request to be seen by a doctor"""
    if not db.get(Doctor, intake.doctorId):
        raise errors.NotFound("Doctor not found")

    consultation = Consultation(
        patient_id=patient_id,
        doctor_id=intake.doctorId,
        current_illness_history=intake.currentIllnessHistory,
        recent_surgery=intake.recentSurgery,
        is_diabetic=intake.isDiabetic,
        allergies=intake.allergies,
        others=intake.others,
        transaction_id=intake.transactionId,
    )
    db.add(consultation)
    db.commit()
    db.refresh(consultation)

    logger.info(f"Created consultation {consultation.id} for doctor {consultation.doctor_id}")
    return consultation

def list_for_patient(db: Session, patient_id: str) -> List[Consultation]:
    return (
        db.query(Consultation)
        .options(joinedload(Consultation.doctor), joinedload(Consultation.prescription))
        .filter(Consultation.patient_id == patient_id)
        .order_by(Consultation.created_at.desc())
        .all()
    )

def list_for_doctor(db: Session, doctor_id: str) -> List[Consultation]:
    return (
        db.query(Consultation)
        .options(joinedload(Consultation.patient), joinedload(Consultation.prescription))
        .filter(Consultation.doctor_id == doctor_id)
        .order_by(Consultation.created_at.desc())
        .all()
    )
