"""
Tests for token issuance and validation
"""

from datetime import datetime, timedelta, timezone

import pytest
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey

from medspa.core.config import settings
from medspa.core.exceptions import (
    UNAUTHENTICATED,
    AuthenticationError,
    TokenExpired,
    TokenInvalid,
)
from medspa.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from medspa.core.token_validator import IssuerAwareTokenValidator, LocalJWTValidationStrategy


def local_strategy() -> LocalJWTValidationStrategy:
    return LocalJWTValidationStrategy(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.AUTH_LOCAL_ISSUER,
    )


def signed(claims: dict, secret: str = settings.JWT_SECRET_KEY) -> str:
    return jose_jwt.encode({"alg": settings.JWT_ALGORITHM}, claims, OctKey.import_key(secret))


def claims_for(subject, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(subject),
        "type": "access",
        "iss": settings.AUTH_LOCAL_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=5)).timestamp()),
    }
    claims.update(overrides)
    return claims


class TestTokens:

    def test_access_token_round_trip(self):
        assert verify_token(create_access_token(subject=42)) == 42

    def test_token_carries_no_role(self):
        token = create_access_token(subject=42)
        claims = jose_jwt.decode(token, OctKey.import_key(settings.JWT_SECRET_KEY)).claims
        assert "role" not in claims
        assert claims["sub"] == "42"

    def test_expired_token(self):
        token = create_access_token(subject=42, expires_delta=timedelta(seconds=-30))
        with pytest.raises(TokenExpired):
            verify_token(token)

    @pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c", ""])
    def test_malformed_token(self, token):
        with pytest.raises(AuthenticationError) as exc_info:
            verify_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.code == UNAUTHENTICATED

    def test_bad_signature(self):
        token = signed(claims_for(42), secret="some-other-secret-that-is-long-enough-for-hs256")
        with pytest.raises(TokenInvalid):
            verify_token(token)

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(TokenInvalid):
            verify_token(create_refresh_token(subject=42), token_type="access")
        assert verify_token(create_refresh_token(subject=42), token_type="refresh") == 42

    def test_non_numeric_subject_is_rejected(self):
        with pytest.raises(AuthenticationError):
            verify_token(signed(claims_for("someone@example.com")))


class TestIssuerValidation:

    def test_untrusted_issuer_is_rejected(self):
        validator = IssuerAwareTokenValidator(
            active_issuer="local",
            trusted_issuers=[settings.AUTH_LOCAL_ISSUER],
            local_strategy=local_strategy(),
        )
        token = signed(claims_for(7, iss="malicious-issuer"))

        with pytest.raises(TokenInvalid) as exc_info:
            validator.validate(token)

        assert exc_info.value.status_code == 401
        assert "issuer" in exc_info.value.message.lower()

    def test_unsupported_active_strategy_is_a_server_error(self):
        validator = IssuerAwareTokenValidator(
            active_issuer="keycloak",
            trusted_issuers=["local", "keycloak"],
            local_strategy=local_strategy(),
        )
        with pytest.raises(RuntimeError):
            validator.validate(create_access_token(subject=7))


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("s3cret-pass")
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_corrupt_hash_is_a_mismatch(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")
