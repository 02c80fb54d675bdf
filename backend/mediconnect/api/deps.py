from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from loguru import logger

from mediconnect.core import errors
from mediconnect.core.pdf import DocumentRenderer, renderer
from mediconnect.core.security import Role, TokenClaims, token_issuer
from mediconnect.core.storage import ObjectStore, storage_client
from mediconnect.services.prescriptions import PrescriptionComposer

# Security
security = HTTPBearer(auto_error=False)

async def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> TokenClaims:
    """Verify the bearer token and return the authenticated actor"""
    if not credentials:
        raise errors.Unauthorized("Authentication token missing")

    try:
        return token_issuer.verify(credentials.credentials)
    except errors.InvalidToken as e:
        logger.warning(f"Authentication failed: {e}")
        raise errors.Unauthorized("Invalid or expired token")

def require_roles(*allowed: Role):
    """Build a dependency that authenticates and then checks the actor's role"""
    allowed_roles = frozenset(allowed)

    async def guard(actor: TokenClaims = Depends(get_current_actor)) -> TokenClaims:
        if actor.role not in allowed_roles:
            raise errors.Forbidden("Access denied for this role")
        return actor

    return guard

doctor_only = require_roles(Role.DOCTOR)
patient_only = require_roles(Role.PATIENT)
any_actor = require_roles(Role.DOCTOR, Role.PATIENT)

def get_object_store() -> ObjectStore:
    return storage_client

def get_document_renderer() -> DocumentRenderer:
    return renderer

def get_prescription_composer(
    store: ObjectStore = Depends(get_object_store),
    document_renderer: DocumentRenderer = Depends(get_document_renderer),
) -> PrescriptionComposer:
    return PrescriptionComposer(renderer=document_renderer, store=store)
