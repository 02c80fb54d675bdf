from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from mediconnect.core.security import Role

# Auth Models
class DoctorSignup(BaseModel):
    name: str = Field(min_length=2)
    specialty: str = Field(min_length=2)
    email: EmailStr
    phone: str = Field(min_length=10)
    yearsOfExperience: int = Field(ge=0)
    password: str = Field(min_length=6)

class PatientSignup(BaseModel):
    name: str = Field(min_length=2)
    age: int = Field(ge=0)
    email: EmailStr
    phone: str = Field(min_length=10)
    password: str = Field(min_length=6)
    historyOfSurgery: Optional[str] = None
    historyOfIllness: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class AuthUser(BaseModel):
    id: str
    name: str
    role: Role

class AuthResponse(BaseModel):
    token: str
    user: AuthUser

# Profile Models
class DoctorProfile(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    specialty: str
    yearsOfExperience: int
    profilePic: Optional[str] = None

    @classmethod
    def from_model(cls, doctor) -> "DoctorProfile":
        return cls(
            id=doctor.id,
            name=doctor.name,
            email=doctor.email,
            phone=doctor.phone,
            specialty=doctor.specialty,
            yearsOfExperience=doctor.years_of_experience,
            profilePic=doctor.profile_pic,
        )

class PatientProfile(BaseModel):
    id: str
    name: str
    age: int
    email: str
    phone: str
    profilePic: Optional[str] = None
    historyOfSurgery: Optional[str] = None
    historyOfIllness: Optional[str] = None

    @classmethod
    def from_model(cls, patient) -> "PatientProfile":
        return cls(
            id=patient.id,
            name=patient.name,
            age=patient.age,
            email=patient.email,
            phone=patient.phone,
            profilePic=patient.profile_pic,
            historyOfSurgery=patient.history_of_surgery,
            historyOfIllness=patient.history_of_illness,
        )

class DoctorSummary(BaseModel):
    id: str
    name: str
    specialty: str
    profilePic: Optional[str] = None
    yearsOfExperience: int

    @classmethod
    def from_model(cls, doctor) -> "DoctorSummary":
        return cls(
            id=doctor.id,
            name=doctor.name,
            specialty=doctor.specialty,
            profilePic=doctor.profile_pic,
            yearsOfExperience=doctor.years_of_experience,
        )

# Prescription Models
class PrescriptionUpsert(BaseModel):
    consultationId: str
    careToBeTaken: str
    medicines: str

class PrescriptionResponse(BaseModel):
    id: str
    consultationId: str
    careToBeTaken: str
    medicines: str
    pdfUrl: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_model(cls, prescription) -> "PrescriptionResponse":
        return cls(
            id=prescription.id,
            consultationId=prescription.consultation_id,
            careToBeTaken=prescription.care_to_be_taken,
            medicines=prescription.medicines,
            pdfUrl=prescription.pdf_url,
            createdAt=prescription.created_at,
            updatedAt=prescription.updated_at,
        )

# Consultation Models
class ConsultationCreate(BaseModel):
    doctorId: str
    currentIllnessHistory: str
    recentSurgery: Optional[str] = None
    isDiabetic: bool
    allergies: Optional[str] = None
    others: Optional[str] = None
    transactionId: str

class ConsultationResponse(BaseModel):
    id: str
    patientId: str
    doctorId: str
    currentIllnessHistory: str
    recentSurgery: Optional[str] = None
    isDiabetic: bool
    allergies: Optional[str] = None
    others: Optional[str] = None
    transactionId: str
    createdAt: datetime
    prescription: Optional[PrescriptionResponse] = None

    @staticmethod
    def fields_from_model(consultation) -> dict:
        prescription = consultation.prescription
        return dict(
            id=consultation.id,
            patientId=consultation.patient_id,
            doctorId=consultation.doctor_id,
            currentIllnessHistory=consultation.current_illness_history,
            recentSurgery=consultation.recent_surgery,
            isDiabetic=consultation.is_diabetic,
            allergies=consultation.allergies,
            others=consultation.others,
            transactionId=consultation.transaction_id,
            createdAt=consultation.created_at,
            prescription=PrescriptionResponse.from_model(prescription) if prescription else None,
        )

    @classmethod
    def from_model(cls, consultation) -> "ConsultationResponse":
        return cls(**cls.fields_from_model(consultation))

class ConsultingDoctor(BaseModel):
    name: str
    specialty: str

class ConsultingPatient(BaseModel):
    name: str
    age: int
    email: str
    phone: str
    historyOfSurgery: Optional[str] = None
    historyOfIllness: Optional[str] = None

class PatientConsultation(ConsultationResponse):
    """A consultation as the patient sees it, with the doctor attached"""
    doctor: ConsultingDoctor

    @classmethod
    def from_model(cls, consultation) -> "PatientConsultation":
        doctor = consultation.doctor
        return cls(
            **cls.fields_from_model(consultation),
            doctor=ConsultingDoctor(name=doctor.name, specialty=doctor.specialty),
        )

class DoctorConsultation(ConsultationResponse):
    """A consultation as the doctor sees it, with patient history attached"""
    patient: ConsultingPatient

    @classmethod
    def from_model(cls, consultation) -> "DoctorConsultation":
        patient = consultation.patient
        return cls(
            **cls.fields_from_model(consultation),
            patient=ConsultingPatient(
                name=patient.name,
                age=patient.age,
                email=patient.email,
                phone=patient.phone,
                historyOfSurgery=patient.history_of_surgery,
                historyOfIllness=patient.history_of_illness,
            ),
        )

# Health Models
class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    services: dict
