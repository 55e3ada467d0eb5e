"""
Identity Provider
Credential checks and token issuance. Tokens carry the principal id only;
roles are always looked up fresh by the authorization chain.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.exceptions import AccountDisabled, InvalidCredentials, PrincipalNotFound
from medspa.core.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_token,
)
from medspa.models.user import User
from medspa.repositories.user import user_repository
from medspa.schemas.auth import PrincipalProfile, TokenResponse

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthenticationResult:
    tokens: TokenResponse
    profile: PrincipalProfile


def to_profile(user: User) -> PrincipalProfile:
    role = user.resolved_role
    return PrincipalProfile(
        id=user.id,
        email=user.email,
        name=user.name,
        role=role.value if role else user.role,
        phone=user.phone,
        location_id=user.location_id,
    )


def issue_tokens(principal_id: int) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(subject=principal_id),
        refresh_token=create_refresh_token(subject=principal_id),
        token_type="bearer",
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


class IdentityProvider:
    async def authenticate(self, db: AsyncSession, email: str, password: str) -> AuthenticationResult:
        """
        Check credentials and issue a token pair

        Raises:
            InvalidCredentials: unknown e-mail or wrong password (indistinguishable)
            AccountDisabled: the principal is inactive
        """
        user = await user_repository.get_by_email(db, email)
        if not user:
            logger.warning("Login attempt with non-existent email", email=email)
            raise InvalidCredentials()

        # Bcrypt is CPU bound; keep it off the event loop
        password_valid = await asyncio.to_thread(verify_password, password, user.hashed_password)
        if not password_valid:
            logger.warning("Login attempt with invalid password", email=email, user_id=user.id)
            raise InvalidCredentials()

        if not user.is_active:
            logger.warning("Login attempt by inactive user", email=email, user_id=user.id)
            raise AccountDisabled()

        user.last_login_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(user)

        logger.info("User logged in successfully", email=user.email, user_id=user.id)
        return AuthenticationResult(tokens=issue_tokens(user.id), profile=to_profile(user))

    def validate(self, token: str) -> int:
        """Principal id for a valid access token; raises the token error otherwise"""
        return verify_token(token, token_type="access")

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenResponse:
        principal_id = verify_token(refresh_token, token_type="refresh")

        result = await db.execute(
            select(User).where(
                User.id == principal_id,
                User.is_active == True,
                User.is_deleted == False
            )
        )
        user = result.scalar_one_or_none()
        if not user:
            logger.warning("Refresh token for non-existent or inactive user", user_id=principal_id)
            raise PrincipalNotFound()

        logger.debug("Tokens refreshed successfully", user_id=user.id)
        return issue_tokens(user.id)


identity_provider = IdentityProvider()
