"""
FastAPI Dependencies
Access context, current principal and registry lookups for handlers
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from medspa.core.authorization import AccessContext, PrincipalCache, PrincipalSnapshot
from medspa.core.database import get_db, get_session_factory
from medspa.core.exceptions import MissingCredentials, PrincipalNotFound
from medspa.core.registry import RoleRegistry
from medspa.core.scope import ScopeFilter
from medspa.models.user import User

logger = structlog.get_logger()


def get_access_context(request: Request) -> AccessContext:
    """
    Access context attached by the authorization middleware

    A handler reached without one was mounted outside the chain; refuse
    rather than run unauthenticated.
    """
    context: Optional[AccessContext] = getattr(request.state, "access", None)
    if context is None:
        logger.error("Handler reached without access context", path=request.url.path)
        raise MissingCredentials(detail="No access context on request")
    return context


def get_scope(context: AccessContext = Depends(get_access_context)) -> Optional[ScopeFilter]:
    return context.scope


def get_role_registry(request: Request) -> RoleRegistry:
    return request.app.state.role_registry


async def get_principal_snapshot(
    request: Request,
    context: AccessContext = Depends(get_access_context),
) -> PrincipalSnapshot:
    """Principal as read by the chain for this request; no second lookup"""
    cache = PrincipalCache.for_request(request, get_session_factory(request))
    snapshot = await cache.get(context.principal_id)
    if snapshot is None:
        raise PrincipalNotFound()
    return snapshot


async def get_current_user(
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Principal row bound to the handler's session, for writes"""
    user = await db.get(User, context.principal_id)
    if user is None or user.is_deleted or not user.is_active:
        logger.warning("User not found or inactive", user_id=context.principal_id)
        raise PrincipalNotFound()
    return user
