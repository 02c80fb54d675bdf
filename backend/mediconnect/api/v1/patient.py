from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediconnect.api.deps import any_actor, patient_only
from mediconnect.core.database import get_db
from mediconnect.core.security import Role, TokenClaims
from mediconnect.models.schemas import (
    ConsultationCreate, ConsultationResponse, DoctorSummary, PatientConsultation, PatientProfile
)
from mediconnect.services import consultations, credentials

router = APIRouter(prefix="/patient")

@router.get("/profile", response_model=PatientProfile)
async def get_patient_profile(
    actor: TokenClaims = Depends(patient_only),
    db: Session = Depends(get_db),
):
    patient = credentials.get_actor(db, Role.PATIENT, actor.actor_id)
    return PatientProfile.from_model(patient)

# Doctors browse colleagues through the same listing
@router.get("/doctors", response_model=List[DoctorSummary], dependencies=[Depends(any_actor)])
async def get_all_doctors(db: Session = Depends(get_db)):
    return [DoctorSummary.from_model(doctor) for doctor in credentials.list_doctors(db)]

@router.post("/consultation", response_model=ConsultationResponse, status_code=201)
async def create_consultation(
    request: ConsultationCreate,
    actor: TokenClaims = Depends(patient_only),
    db: Session = Depends(get_db),
):
    consultation = consultations.create_consultation(db, actor.actor_id, request)
    return ConsultationResponse.from_model(consultation)

@router.get("/consultations", response_model=List[PatientConsultation])
async def get_patient_consultations(
    actor: TokenClaims = Depends(patient_only),
    db: Session = Depends(get_db),
):
    """The patient's consultations, newest first, with doctor and prescription"""
    return [
        PatientConsultation.from_model(consultation)
        for consultation in consultations.list_for_patient(db, actor.actor_id)
    ]
