import pytest

from conftest import auth_header
from mediconnect.core import errors
from mediconnect.core.pdf import ReportLabRenderer
from mediconnect.models.db_models import Prescription
from mediconnect.services.prescriptions import PrescriptionComposer, prescription_key

@pytest.fixture
def booked(signup_doctor, signup_patient, book_consultation):
    doctor = signup_doctor()
    patient = signup_patient()
    consultation = book_consultation(patient["token"], doctor["user"]["id"])
    return doctor, patient, consultation

def issue(client, token, consultation_id, care="Rest and hydrate", medicines="Paracetamol 500mg BD x3 days"):
    return client.post(
        "/api/doctor/prescription",
        json={"consultationId": consultation_id, "careToBeTaken": care, "medicines": medicines},
        headers=auth_header(token),
    )

class TestPrescriptionUpsert:

    def test_issue_prescription_stores_pdf(self, client, object_store, booked):
        doctor, _, consultation = booked

        response = issue(client, doctor["token"], consultation["id"])

        assert response.status_code == 200
        body = response.json()
        key = prescription_key(body["id"])
        assert body["consultationId"] == consultation["id"]
        assert body["pdfUrl"] == f"https://cdn.example.org/prescriptions/{key}"

        content, content_type = object_store.objects[key]
        assert content.startswith(b"%PDF")
        assert content_type == "application/pdf"

    def test_upsert_keeps_identity_and_last_write_wins(self, client, db, object_store, booked):
        doctor, _, consultation = booked

        first = issue(client, doctor["token"], consultation["id"]).json()
        second = issue(
            client, doctor["token"], consultation["id"],
            care="Bed rest", medicines="Ibuprofen 400mg TDS x2 days",
        ).json()

        assert second["id"] == first["id"]
        assert second["careToBeTaken"] == "Bed rest"
        assert second["medicines"] == "Ibuprofen 400mg TDS x2 days"
        assert second["pdfUrl"] == first["pdfUrl"]
        assert db.query(Prescription).count() == 1
        assert list(object_store.objects) == [prescription_key(first["id"])]

    def test_other_doctor_is_forbidden(self, client, signup_doctor, booked):
        _, _, consultation = booked
        intruder = signup_doctor(name="Vikram Shah", email="vikram@clinic.com", phone="9876500000")

        response = issue(client, intruder["token"], consultation["id"])

        assert response.status_code == 403

    def test_unknown_consultation_is_404(self, client, signup_doctor):
        doctor = signup_doctor()

        response = issue(client, doctor["token"], "no-such-consultation")

        assert response.status_code == 404

    def test_patients_cannot_prescribe(self, client, booked):
        _, patient, consultation = booked

        response = issue(client, patient["token"], consultation["id"])

        assert response.status_code == 403

    def test_upload_failure_rolls_back_new_prescription(self, client, db, object_store, booked):
        doctor, _, consultation = booked
        object_store.fail = True

        response = issue(client, doctor["token"], consultation["id"])

        assert response.status_code == 502
        assert db.query(Prescription).count() == 0

    def test_upload_failure_keeps_previous_prescription(self, client, db, object_store, booked):
        doctor, _, consultation = booked
        original = issue(client, doctor["token"], consultation["id"]).json()

        object_store.fail = True
        response = issue(client, doctor["token"], consultation["id"], care="Changed")

        assert response.status_code == 502
        stored = db.query(Prescription).one()
        assert stored.care_to_be_taken == original["careToBeTaken"]
        assert stored.pdf_url == original["pdfUrl"]

class TestComposer:

    @pytest.mark.asyncio
    async def test_renderer_failure_propagates_and_rolls_back(self, db, object_store, booked):
        _, _, consultation = booked

        class BrokenRenderer(ReportLabRenderer):
            def render(self, document):
                raise RuntimeError("layout engine crashed")

        composer = PrescriptionComposer(renderer=BrokenRenderer(), store=object_store)

        with pytest.raises(RuntimeError):
            await composer.upsert(
                db, consultation["id"], consultation["doctorId"], "Rest", "Water"
            )

        assert db.query(Prescription).count() == 0
        assert object_store.objects == {}

    @pytest.mark.asyncio
    async def test_forbidden_checked_before_any_write(self, db, object_store, booked):
        _, _, consultation = booked
        composer = PrescriptionComposer(renderer=ReportLabRenderer(), store=object_store)

        with pytest.raises(errors.Forbidden):
            await composer.upsert(db, consultation["id"], "someone-else", "Rest", "Water")

        assert db.query(Prescription).count() == 0

def test_end_to_end_scenario(client, signup_doctor):
    """Patient books, doctor prescribes, patient sees the same PDF link"""
    doctor = signup_doctor()

    signup = client.post("/api/auth/patient/signup", data={
        "name": "Asha", "age": "30", "email": "asha@x.com",
        "phone": "9998887770", "password": "secret1",
    })
    assert signup.status_code == 201
    patient_token = signup.json()["token"]

    doctors = client.get("/api/patient/doctors", headers=auth_header(patient_token)).json()
    doctor_id = doctors[0]["id"]

    booked = client.post(
        "/api/patient/consultation",
        json={
            "doctorId": doctor_id,
            "currentIllnessHistory": "Fever since yesterday",
            "isDiabetic": False,
            "transactionId": "TXN000111222",
        },
        headers=auth_header(patient_token),
    )
    assert booked.status_code == 201
    assert booked.json()["prescription"] is None

    login = client.post(
        "/api/auth/doctor/login",
        json={"email": "meera.rao@clinic.com", "password": "doctorpass"},
    )
    assert login.status_code == 200
    doctor_token = login.json()["token"]

    inbox = client.get("/api/doctor/consultations", headers=auth_header(doctor_token)).json()
    assert [c["patient"]["name"] for c in inbox] == ["Asha"]

    prescribed = issue(client, doctor_token, inbox[0]["id"])
    assert prescribed.status_code == 200
    pdf_url = prescribed.json()["pdfUrl"]
    assert pdf_url

    mine = client.get("/api/patient/consultations", headers=auth_header(patient_token)).json()
    assert mine[0]["prescription"]["pdfUrl"] == pdf_url
    assert mine[0]["prescription"]["medicines"] == "Paracetamol 500mg BD x3 days"
