from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import bcrypt
import jwt
from loguru import logger

from mediconnect.config import settings
from mediconnect.core import errors

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

class Role(str, Enum):
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

@dataclass(frozen=True)
class TokenClaims:
    actor_id: str
    role: Role

def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a plaintext password with a fresh salt"""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise errors.ValidationError(f"Password too long, max {MAX_PASSWORD_BYTES} bytes")

    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False

class TokenIssuer:
    """Issues and verifies signed, time-limited identity tokens.

    Tokens carry the actor id (``sub``) and role only. There is no revocation
    list and no refresh: a token is valid until it expires.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expiration_hours: int = 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expiration = timedelta(hours=expiration_hours)

    def issue(self, actor_id: str, role: Role, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": actor_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expiration),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise errors.InvalidToken("Token has expired")
        except jwt.PyJWTError as e:
            raise errors.InvalidToken(f"Token verification failed: {e}")

        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise errors.InvalidToken("Token carries an unknown role")

        return TokenClaims(actor_id=str(payload["sub"]), role=role)

token_issuer = TokenIssuer(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
    expiration_hours=settings.jwt_expiration_hours,
)
