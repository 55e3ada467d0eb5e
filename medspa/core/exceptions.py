"""
Authentication and authorization error taxonomy.

Every failure carries an HTTP status, a machine-readable ``code`` and a
human message. The HTTP status collapses all 403 variants; clients and tests
branch on ``code``.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import status

UNAUTHENTICATED = "unauthenticated"
FORBIDDEN_ROLE = "forbidden-role"
FORBIDDEN_READONLY = "forbidden-readonly"
FORBIDDEN_SCOPE = "forbidden-scope"


class AuthError(Exception):
    status_code: int = status.HTTP_401_UNAUTHORIZED
    code: str = UNAUTHENTICATED
    default_message: str = "Authentication required"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        # Internal cause, logged but never sent to the client
        self.detail = detail
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class AuthenticationError(AuthError):
    """401 family: the caller could not be identified."""

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class MissingCredentials(AuthenticationError):
    pass


class InvalidCredentials(AuthenticationError):
    # Same message for unknown e-mail and wrong password
    default_message = "Invalid email or password"


class AccountDisabled(AuthenticationError):
    default_message = "Account is disabled"


class TokenExpired(AuthenticationError):
    default_message = "Token expired"


class TokenInvalid(AuthenticationError):
    default_message = "Invalid token"


class TokenMalformed(AuthenticationError):
    default_message = "Malformed token"


class PrincipalNotFound(AuthenticationError):
    default_message = "Authentication required"


class AuthorizationFailure(AuthError):
    """403 family: the caller is known but may not do this."""

    status_code = status.HTTP_403_FORBIDDEN
    code = FORBIDDEN_ROLE
    default_message = "Access restricted for this role"


class ForbiddenRole(AuthorizationFailure):
    pass


class ForbiddenReadOnly(AuthorizationFailure):
    code = FORBIDDEN_READONLY
    default_message = "Admins have view-only access"


class ForbiddenScope(AuthorizationFailure):
    code = FORBIDDEN_SCOPE
    default_message = "Record is outside your access scope"
