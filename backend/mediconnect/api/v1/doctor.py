from typing import List

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from mediconnect.api.deps import doctor_only, get_prescription_composer
from mediconnect.core import errors
from mediconnect.core.database import get_db
from mediconnect.core.security import Role, TokenClaims
from mediconnect.models.schemas import (
    DoctorConsultation, DoctorProfile, PrescriptionResponse, PrescriptionUpsert
)
from mediconnect.services import consultations, credentials
from mediconnect.services.prescriptions import PrescriptionComposer

router = APIRouter(prefix="/doctor")

@router.get("/profile", response_model=DoctorProfile)
async def get_doctor_profile(
    actor: TokenClaims = Depends(doctor_only),
    db: Session = Depends(get_db),
):
    doctor = credentials.get_actor(db, Role.DOCTOR, actor.actor_id)
    return DoctorProfile.from_model(doctor)

@router.get("/consultations", response_model=List[DoctorConsultation])
async def get_doctor_consultations(
    actor: TokenClaims = Depends(doctor_only),
    db: Session = Depends(get_db),
):
    """Consultations addressed to the doctor, newest first"""
    return [
        DoctorConsultation.from_model(consultation)
        for consultation in consultations.list_for_doctor(db, actor.actor_id)
    ]

@router.post("/prescription", response_model=PrescriptionResponse)
async def create_or_update_prescription(
    request: PrescriptionUpsert,
    actor: TokenClaims = Depends(doctor_only),
    db: Session = Depends(get_db),
    composer: PrescriptionComposer = Depends(get_prescription_composer),
):
    """Write the consultation's prescription and publish it as a PDF"""

    try:
        prescription = await composer.upsert(
            db,
            consultation_id=request.consultationId,
            doctor_id=actor.actor_id,
            care_to_be_taken=request.careToBeTaken,
            medicines=request.medicines,
        )
        return PrescriptionResponse.from_model(prescription)

    except errors.MediConnectError:
        raise
    except Exception as e:
        logger.error(f"Failed to issue prescription for consultation {request.consultationId}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to issue prescription: {str(e)}")
