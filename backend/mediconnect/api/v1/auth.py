from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger
from sqlalchemy.orm import Session

from mediconnect.core.database import get_db
from mediconnect.core.security import Role, token_issuer
from mediconnect.core.storage import save_profile_picture
from mediconnect.models.schemas import AuthResponse, AuthUser, DoctorSignup, LoginRequest, PatientSignup
from mediconnect.services import credentials

router = APIRouter(prefix="/auth")

def _auth_response(actor, role: Role) -> AuthResponse:
    return AuthResponse(
        token=token_issuer.issue(actor.id, role),
        user=AuthUser(id=actor.id, name=actor.name, role=role),
    )

async def _store_picture(profilePic: Optional[UploadFile]) -> Optional[str]:
    # Browsers send an empty part when no file was chosen
    if profilePic is None or not profilePic.filename:
        return None
    return await save_profile_picture(profilePic)

@router.post("/doctor/signup", response_model=AuthResponse, status_code=201)
async def doctor_signup(
    name: str = Form(...),
    specialty: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    yearsOfExperience: int = Form(...),
    password: str = Form(...),
    profilePic: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """Register a doctor account"""
    data = DoctorSignup(
        name=name,
        specialty=specialty,
        email=email,
        phone=phone,
        yearsOfExperience=yearsOfExperience,
        password=password,
    )

    credentials.ensure_identity_available(db, Role.DOCTOR, data.email, data.phone)
    profile_pic = await _store_picture(profilePic)

    doctor = credentials.register_actor(
        db,
        Role.DOCTOR,
        profile={
            "name": data.name,
            "specialty": data.specialty,
            "email": data.email,
            "phone": data.phone,
            "years_of_experience": data.yearsOfExperience,
        },
        password=data.password,
        profile_pic=profile_pic,
    )
    return _auth_response(doctor, Role.DOCTOR)

@router.post("/doctor/login", response_model=AuthResponse)
async def doctor_login(request: LoginRequest, db: Session = Depends(get_db)):
    doctor = credentials.verify_credentials(db, Role.DOCTOR, request.email, request.password)
    logger.info(f"Doctor logged in: {doctor.id}")
    return _auth_response(doctor, Role.DOCTOR)

@router.post("/patient/signup", response_model=AuthResponse, status_code=201)
async def patient_signup(
    name: str = Form(...),
    age: int = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    password: str = Form(...),
    historyOfSurgery: Optional[str] = Form(None),
    historyOfIllness: Optional[str] = Form(None),
    profilePic: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """Register a patient account"""
    data = PatientSignup(
        name=name,
        age=age,
        email=email,
        phone=phone,
        password=password,
        historyOfSurgery=historyOfSurgery,
        historyOfIllness=historyOfIllness,
    )

    credentials.ensure_identity_available(db, Role.PATIENT, data.email, data.phone)
    profile_pic = await _store_picture(profilePic)

    patient = credentials.register_actor(
        db,
        Role.PATIENT,
        profile={
            "name": data.name,
            "age": data.age,
            "email": data.email,
            "phone": data.phone,
            "history_of_surgery": data.historyOfSurgery,
            "history_of_illness": data.historyOfIllness,
        },
        password=data.password,
        profile_pic=profile_pic,
    )
    return _auth_response(patient, Role.PATIENT)

@router.post("/patient/login", response_model=AuthResponse)
async def patient_login(request: LoginRequest, db: Session = Depends(get_db)):
    patient = credentials.verify_credentials(db, Role.PATIENT, request.email, request.password)
    logger.info(f"Patient logged in: {patient.id}")
    return _auth_response(patient, Role.PATIENT)
