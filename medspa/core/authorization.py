"""
Authorization Chain
Per-request decision: token -> principal -> current role -> path policy ->
read-only override -> scope narrowing.

Each stage either passes or raises an ``AuthError``; the first failure is the
decision. Nothing here is retried and no state survives the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.requests import Request
import structlog

from medspa.core.exceptions import (
    AuthError,
    AuthorizationFailure,
    ForbiddenReadOnly,
    ForbiddenRole,
    MissingCredentials,
    PrincipalNotFound,
)
from medspa.core.registry import RoleRegistry, RoutePolicy
from medspa.core.roles import Role, Scope, is_mutating, parse_role
from medspa.core.scope import ScopeFilter
from medspa.core.security import verify_token

logger = structlog.get_logger()

TokenValidator = Callable[[str], int]


@dataclass(frozen=True)
class PrincipalSnapshot:
    """Detached view of a principal row, safe to keep after the session closes."""
    id: int
    email: str
    name: str
    role: Optional[Role]
    is_active: bool
    phone: Optional[str] = None
    location_id: Optional[int] = None


@dataclass(frozen=True)
class AccessContext:
    principal_id: int
    role: Role
    scope: Optional[ScopeFilter]
    policy: RoutePolicy


@dataclass(frozen=True)
class AccessDecision:
    context: Optional[AccessContext] = None
    failure: Optional[AuthError] = None

    @property
    def allowed(self) -> bool:
        return self.failure is None and self.context is not None

    @classmethod
    def allow(cls, context: AccessContext) -> "AccessDecision":
        return cls(context=context)

    @classmethod
    def deny(cls, failure: AuthError) -> "AccessDecision":
        return cls(failure=failure)


class PrincipalCache:
    """
    Read-through principal lookup scoped to one request.

    Lives on ``request.state`` and dies with it, so a role change made between
    two requests is always seen by the second one.
    """

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory
        self._entries: dict[int, Optional[PrincipalSnapshot]] = {}
        self.lookups = 0

    async def get(self, principal_id: int) -> Optional[PrincipalSnapshot]:
        if principal_id in self._entries:
            return self._entries[principal_id]

        # Imported here to keep models out of the core import graph
        from medspa.models.user import User

        self.lookups += 1
        async with self._session_factory() as session:
            result = await session.execute(
                select(User).where(User.id == principal_id, User.is_deleted == False)
            )
            user = result.scalar_one_or_none()

        snapshot = None
        if user is not None:
            snapshot = PrincipalSnapshot(
                id=user.id,
                email=user.email,
                name=user.name,
                role=parse_role(user.role),
                is_active=user.is_active,
                phone=user.phone,
                location_id=user.location_id,
            )
        self._entries[principal_id] = snapshot
        return snapshot

    @classmethod
    def for_request(cls, request: Request, session_factory: async_sessionmaker) -> "PrincipalCache":
        cache = getattr(request.state, "principal_cache", None)
        if cache is None:
            cache = cls(session_factory)
            request.state.principal_cache = cache
        return cache


def client_address(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


def extract_bearer_token(request: Request) -> str:
    authorization = request.headers.get("Authorization")
    if not authorization:
        raise MissingCredentials()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MissingCredentials(detail="Authorization header is not a bearer token")
    return token.strip()


class AuthorizationChain:
    """Ordered, short-circuiting authorization stages."""

    def __init__(
        self,
        registry: RoleRegistry,
        *,
        api_prefix: str = "",
        validate_token: TokenValidator = verify_token,
    ) -> None:
        self.registry = registry
        self.api_prefix = api_prefix.rstrip("/")
        self._validate_token = validate_token

    def relative_path(self, path: str) -> str:
        if self.api_prefix and (path == self.api_prefix or path.startswith(self.api_prefix + "/")):
            return path[len(self.api_prefix):] or "/"
        return path

    async def authorize(self, request: Request, session_factory: async_sessionmaker) -> AccessDecision:
        path = self.relative_path(request.url.path)
        verb = request.method.upper()
        principal_id: Optional[int] = None
        role: Optional[Role] = None

        try:
            token = extract_bearer_token(request)
            principal_id = self._validate_token(token)

            principal = await PrincipalCache.for_request(request, session_factory).get(principal_id)
            role = self._resolve_role(principal)

            policy = self._check_path(role, verb, path)
            self._check_read_only(role, verb)
            scope = self._narrow_scope(policy, role, principal_id)
        except AuthError as exc:
            self._audit_denial(request, exc, principal_id=principal_id, role=role, verb=verb, path=path)
            return AccessDecision.deny(exc)

        context = AccessContext(principal_id=principal_id, role=role, scope=scope, policy=policy)
        logger.debug(
            "Request authorized",
            user_id=principal_id,
            user_role=role.value,
            method=verb,
            path=path,
            scope=scope.describe() if scope else Scope.ALL.value,
        )
        return AccessDecision.allow(context)

    # -- stages ------------------------------------------------------------------

    @staticmethod
    def _resolve_role(principal: Optional[PrincipalSnapshot]) -> Role:
        if principal is None:
            raise PrincipalNotFound(detail="Principal does not exist")
        if not principal.is_active:
            raise PrincipalNotFound(detail="Principal is inactive")
        if principal.role is None:
            # Unknown stored role: known identity, no permissions
            raise ForbiddenRole(detail="Stored role is not recognised")
        return principal.role

    def _check_path(self, role: Role, verb: str, path: str) -> RoutePolicy:
        policy = self.registry.match(verb, path)
        if policy is None:
            raise ForbiddenRole(detail="No policy entry for path")
        if role not in policy.roles:
            raise ForbiddenRole(detail=f"Policy {policy.pattern} does not admit role")
        return policy

    def _check_read_only(self, role: Role, verb: str) -> None:
        if self.registry.is_read_only_role(role) and is_mutating(verb):
            raise ForbiddenReadOnly(f"{role.value.title()}s have view-only access")

    def _narrow_scope(self, policy: RoutePolicy, role: Role, principal_id: int) -> Optional[ScopeFilter]:
        if policy.scopes.get(role) != Scope.OWN:
            return None
        owner = self.registry.profile(role).owner
        return ScopeFilter(owner=owner, principal_id=principal_id)

    # -- audit -----------------------------------------------------------------

    @staticmethod
    def _audit_denial(
        request: Request,
        exc: AuthError,
        *,
        principal_id: Optional[int],
        role: Optional[Role],
        verb: str,
        path: str,
    ) -> None:
        event = dict(
            reason=exc.code,
            user_id=principal_id,
            user_role=role.value if role else None,
            method=verb,
            path=path,
            ip=client_address(request),
            detail=exc.detail,
        )
        if isinstance(exc, AuthorizationFailure):
            logger.warning("Access denied", **event)
        else:
            logger.warning("Authentication failed", error=exc.message, **event)


