"""
Authentication Endpoints
Login, token refresh and logout
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from medspa.core.authorization import client_address
from medspa.core.database import get_db
from medspa.core.exceptions import AuthError
from medspa.core.security import verify_token
from medspa.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshTokenRequest,
    TokenResponse,
)
from medspa.services.identity import identity_provider

logger = structlog.get_logger()
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """
    User login endpoint

    Args:
        login_data: Login credentials
        db: Database session

    Returns:
        Login response with user profile and tokens

    Raises:
        InvalidCredentials: unknown e-mail or wrong password
        AccountDisabled: inactive account
    """
    try:
        result = await identity_provider.authenticate(db, login_data.email, login_data.password)
    except AuthError as exc:
        logger.warning("Login rejected", email=login_data.email, reason=exc.message, ip=client_address(request))
        raise

    return LoginResponse(user=result.profile, tokens=result.tokens, message="Login successful")


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """
    Exchange a refresh token for a new token pair

    The principal must still exist and be active.
    """
    return await identity_provider.refresh(db, refresh_data.refresh_token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request) -> Any:
    """
    Logout endpoint

    Tokens are stateless; the client discards them. The call is logged for
    the audit trail when the token still identifies someone.
    """
    user_id: Optional[int] = None
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        try:
            user_id = verify_token(authorization[7:].strip(), token_type="access")
        except AuthError:
            user_id = None

    logger.info("User logged out", user_id=user_id, ip=client_address(request))
    return LogoutResponse(message="Logout successful")
