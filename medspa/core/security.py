"""
Security utilities for JWT authentication and password hashing
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union, Any
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher
import structlog

from medspa.core.config import settings
from medspa.core.exceptions import TokenMalformed
from medspa.core.token_validator import IssuerAwareTokenValidator, LocalJWTValidationStrategy

logger = structlog.get_logger()

# Password hashing context
pwd_context = PasswordHash((BcryptHasher(),))

# JWT Configuration
ALGORITHM = settings.JWT_ALGORITHM
SECRET_KEY = settings.JWT_SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
REFRESH_TOKEN_EXPIRE_DAYS = settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS
ISSUER = settings.AUTH_LOCAL_ISSUER

# joserfc key object (reusable)
_jwt_key = OctKey.import_key(SECRET_KEY)

_token_validator = IssuerAwareTokenValidator(
    active_issuer=settings.AUTH_ACTIVE_ISSUER,
    trusted_issuers=settings.AUTH_TRUSTED_ISSUERS,
    local_strategy=LocalJWTValidationStrategy(
        secret_key=SECRET_KEY,
        algorithm=ALGORITHM,
        issuer=ISSUER,
    ),
)


def _encode(subject: Union[str, Any], token_type: str, expires_delta: timedelta) -> str:
    # Subject only: roles are looked up per request, never carried in claims
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(subject),
        "type": token_type,
        "iss": ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jose_jwt.encode({"alg": ALGORITHM}, to_encode, _jwt_key)


def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        subject: Principal id
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token
    """
    expires_delta = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    encoded_jwt = _encode(subject, "access", expires_delta)
    logger.debug("Access token created", subject=subject, expires_in=int(expires_delta.total_seconds()))
    return encoded_jwt


def create_refresh_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT refresh token

    Args:
        subject: Principal id
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT refresh token
    """
    expires_delta = expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    encoded_jwt = _encode(subject, "refresh", expires_delta)
    logger.debug("Refresh token created", subject=subject)
    return encoded_jwt


def verify_token(token: str, token_type: str = "access") -> int:
    """
    Verify JWT token and return the principal id it was issued for

    Raises:
        TokenExpired, TokenInvalid, TokenMalformed
    """
    result = _token_validator.validate(token, token_type=token_type)
    try:
        return int(result.subject)
    except ValueError:
        logger.warning("Token subject is not a principal id", subject=result.subject)
        raise TokenMalformed("Invalid token: bad subject")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        # Corrupt or foreign hash formats count as a mismatch
        logger.error("Password verification error", error=str(e))
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    # Bcrypt has a 72 byte limit, truncate if necessary
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        password = password_bytes[:72].decode("utf-8", errors="ignore")
        logger.warning("Password truncated to 72 bytes for bcrypt")

    return pwd_context.hash(password)
