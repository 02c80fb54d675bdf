from datetime import timedelta

import jwt
import pytest

from mediconnect.core import errors
from mediconnect.core.security import (
    Role, TokenIssuer, hash_password, verify_password
)

SECRET = "unit-test-signing-key-with-enough-bytes"

class TestTokenIssuer:

    @pytest.fixture
    def issuer(self):
        return TokenIssuer(SECRET, expiration_hours=24)

    def test_round_trip_carries_id_and_role(self, issuer):
        token = issuer.issue("doctor-1", Role.DOCTOR)

        claims = issuer.verify(token)

        assert claims.actor_id == "doctor-1"
        assert claims.role is Role.DOCTOR

    def test_token_expires_after_24_hours(self, issuer):
        token = issuer.issue("patient-1", Role.PATIENT)

        payload = jwt.decode(token, SECRET, algorithms=["HS256"])

        assert payload["exp"] - payload["iat"] == 24 * 3600
        assert set(payload) == {"sub", "role", "iat", "exp"}

    def test_expired_token_is_rejected(self, issuer):
        token = issuer.issue("patient-1", Role.PATIENT, expires_delta=timedelta(seconds=-5))

        with pytest.raises(errors.InvalidToken, match="expired"):
            issuer.verify(token)

    def test_foreign_signature_is_rejected(self, issuer):
        token = TokenIssuer("another-signing-key-with-enough-bytes").issue("x", Role.DOCTOR)

        with pytest.raises(errors.InvalidToken):
            issuer.verify(token)

    def test_unknown_role_is_rejected(self, issuer):
        token = jwt.encode({"sub": "x", "role": "ADMIN", "exp": 4102444800}, SECRET, algorithm="HS256")

        with pytest.raises(errors.InvalidToken, match="unknown role"):
            issuer.verify(token)

    def test_missing_subject_is_rejected(self, issuer):
        token = jwt.encode({"role": "DOCTOR", "exp": 4102444800}, SECRET, algorithm="HS256")

        with pytest.raises(errors.InvalidToken):
            issuer.verify(token)

    def test_garbage_is_rejected(self, issuer):
        with pytest.raises(errors.InvalidToken):
            issuer.verify("not.a.token")

class TestPasswords:

    def test_hash_is_salted_and_verifiable(self):
        first = hash_password("secret1", rounds=4)
        second = hash_password("secret1", rounds=4)

        assert first != second
        assert "secret1" not in first
        assert verify_password("secret1", first)
        assert not verify_password("secret2", first)

    def test_default_work_factor_comes_from_settings(self):
        from mediconnect.config import settings

        hashed = hash_password("secret1")

        assert hashed.startswith(f"$2b${settings.bcrypt_rounds:02d}$")

    def test_overlong_password_is_rejected(self):
        with pytest.raises(errors.ValidationError):
            hash_password("x" * 73, rounds=4)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("secret1", "not-a-bcrypt-hash") is False
