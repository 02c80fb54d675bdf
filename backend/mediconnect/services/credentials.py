from typing import Any, Dict, Optional, Union

from loguru import logger
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediconnect.core import errors
from mediconnect.core.security import Role, hash_password, verify_password
from mediconnect.models.db_models import Doctor, Patient
from mediconnect.utils.prometheus_metrics import metrics

Actor = Union[Doctor, Patient]

ACTOR_MODELS = {
    Role.DOCTOR: Doctor,
    Role.PATIENT: Patient,
}

def ensure_identity_available(db: Session, kind: Role, email: str, phone: str):
    """Raise DuplicateIdentity when email or phone is taken for this actor kind"""
    model = ACTOR_MODELS[kind]
    existing = db.query(model).filter(or_(model.email == email, model.phone == phone)).first()
    if existing:
        raise errors.DuplicateIdentity("Email or phone already exists")

def register_actor(
    db: Session,
    kind: Role,
    profile: Dict[str, Any],
    password: str,
    profile_pic: Optional[str] = None,
) -> Actor:
    """Create a doctor or patient account with a hashed password"""
    ensure_identity_available(db, kind, profile["email"], profile["phone"])

    actor = ACTOR_MODELS[kind](
        **profile,
        password_hash=hash_password(password),
        profile_pic=profile_pic,
    )
    db.add(actor)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email or phone
        db.rollback()
        metrics.record_signup(kind.value, success=False)
        raise errors.DuplicateIdentity("Email or phone already exists")

    db.refresh(actor)
    metrics.record_signup(kind.value, success=True)
    logger.info(f"Registered {kind.value.lower()}: {actor.id}")
    return actor

def verify_credentials(db: Session, kind: Role, email: str, password: str) -> Actor:
    model = ACTOR_MODELS[kind]
    actor = db.query(model).filter(model.email == email).first()

    if not actor or not verify_password(password, actor.password_hash):
        metrics.record_login(kind.value, success=False)
        logger.warning(f"Failed {kind.value.lower()} login attempt")
        raise errors.InvalidCredentials("Invalid credentials")

    metrics.record_login(kind.value, success=True)
    return actor

def get_actor(db: Session, kind: Role, actor_id: str) -> Actor:
    actor = db.get(ACTOR_MODELS[kind], actor_id)
    if not actor:
        raise errors.NotFound(f"{kind.value.capitalize()} not found")
    return actor

def list_doctors(db: Session):
    return db.query(Doctor).order_by(Doctor.name).all()
