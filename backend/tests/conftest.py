import os
import tempfile

# Settings are read at import time, so the environment must be ready first
_workdir = tempfile.mkdtemp(prefix="mediconnect-tests-")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-mediconnect-suite")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["UPLOAD_DIR"] = os.path.join(_workdir, "uploads")
os.environ["STORAGE_PATH"] = os.path.join(_workdir, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient

from mediconnect.api.deps import get_object_store
from mediconnect.core import errors
from mediconnect.core.database import Base, SessionLocal, engine, init_db
from mediconnect.core.storage import ObjectStore
from mediconnect.main import app

class FakeObjectStore(ObjectStore):
    """In-memory object store; set ``fail`` to simulate an upstream outage"""

    provider = "fake"

    def __init__(self):
        self.objects = {}
        self.fail = False

    async def put(self, key: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise errors.UpstreamFailure(f"Failed to upload {key}")
        self.objects[key] = (content, content_type)
        return f"https://cdn.example.org/prescriptions/{key}"

@pytest.fixture(autouse=True)
def reset_database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def object_store():
    return FakeObjectStore()

@pytest.fixture
def client(object_store):
    app.dependency_overrides[get_object_store] = lambda: object_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

DOCTOR_FORM = {
    "name": "Meera Rao",
    "specialty": "General Medicine",
    "email": "meera.rao@clinic.com",
    "phone": "9876543210",
    "yearsOfExperience": "12",
    "password": "doctorpass",
}

PATIENT_FORM = {
    "name": "Asha",
    "age": "30",
    "email": "asha@x.com",
    "phone": "9998887770",
    "password": "secret1",
}

@pytest.fixture
def signup_doctor(client):
    def _signup(**overrides):
        form = {**DOCTOR_FORM, **overrides}
        response = client.post("/api/auth/doctor/signup", data=form)
        assert response.status_code == 201, response.text
        return response.json()
    return _signup

@pytest.fixture
def signup_patient(client):
    def _signup(**overrides):
        form = {**PATIENT_FORM, **overrides}
        response = client.post("/api/auth/patient/signup", data=form)
        assert response.status_code == 201, response.text
        return response.json()
    return _signup

@pytest.fixture
def book_consultation(client):
    def _book(patient_token: str, doctor_id: str, **overrides):
        body = {
            "doctorId": doctor_id,
            "currentIllnessHistory": "Fever and body ache for two days",
            "isDiabetic": False,
            "transactionId": "TXN000111222",
            **overrides,
        }
        response = client.post(
            "/api/patient/consultation", json=body, headers=auth_header(patient_token)
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _book
