"""Prescription issuance: upsert the row, render the PDF, store it, record its URL.

The whole pipeline runs inside one database transaction. If rendering or the
upload fails the row change is rolled back, so a prescription is never left
pointing at a stale or missing document.
"""
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from mediconnect.core import errors
from mediconnect.core.pdf import DocumentRenderer, PrescriptionDocument
from mediconnect.core.storage import ObjectStore
from mediconnect.models.db_models import Consultation, Prescription
from mediconnect.utils.prometheus_metrics import metrics

PDF_CONTENT_TYPE = "application/pdf"

def prescription_key(prescription_id: str) -> str:
    return f"prescription_{prescription_id}.pdf"

class PrescriptionComposer:
    def __init__(self, renderer: DocumentRenderer, store: ObjectStore):
        self.renderer = renderer
        self.store = store

    async def upsert(
        self,
        db: Session,
        consultation_id: str,
        doctor_id: str,
        care_to_be_taken: str,
        medicines: str,
    ) -> Prescription:
        consultation = (
            db.query(Consultation)
            .options(joinedload(Consultation.doctor), joinedload(Consultation.patient))
            .filter(Consultation.id == consultation_id)
            .first()
        )
        if not consultation:
            raise errors.NotFound("Consultation not found")
        if consultation.doctor_id != doctor_id:
            raise errors.Forbidden("Consultation belongs to another doctor")

        try:
            prescription = self._write_row(db, consultation_id, care_to_be_taken, medicines)

            document = PrescriptionDocument(
                doctor_name=consultation.doctor.name,
                doctor_specialty=consultation.doctor.specialty,
                patient_name=consultation.patient.name,
                patient_age=consultation.patient.age,
                care_to_be_taken=care_to_be_taken,
                medicines=medicines,
            )
            pdf_bytes = self.renderer.render(document)
            prescription.pdf_url = await self.store.put(
                prescription_key(prescription.id), pdf_bytes, PDF_CONTENT_TYPE
            )

            db.commit()
        except (StaleDataError, IntegrityError):
            db.rollback()
            metrics.record_prescription(success=False)
            logger.warning(f"Concurrent prescription write for consultation {consultation_id}")
            raise errors.Conflict("Prescription was modified concurrently, retry the request")
        except Exception:
            db.rollback()
            metrics.record_prescription(success=False)
            raise

        db.refresh(prescription)
        metrics.record_prescription(success=True)
        logger.info(f"Issued prescription {prescription.id} for consultation {consultation_id}")
        return prescription

    @staticmethod
    def _write_row(db: Session, consultation_id: str, care_to_be_taken: str, medicines: str) -> Prescription:
        prescription = (
            db.query(Prescription)
            .filter(Prescription.consultation_id == consultation_id)
            .first()
        )
        if prescription is None:
            prescription = Prescription(
                consultation_id=consultation_id,
                care_to_be_taken=care_to_be_taken,
                medicines=medicines,
            )
            db.add(prescription)
        else:
            prescription.care_to_be_taken = care_to_be_taken
            prescription.medicines = medicines

        # Assigns the id used for the storage key
        db.flush()
        return prescription
