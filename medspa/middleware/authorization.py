"""
Authorization Middleware
Runs the authorization chain in front of every non-public route and hands
the resulting access context to handlers through ``request.state.access``.
"""

from typing import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import structlog

from medspa.core.authorization import AuthorizationChain
from medspa.core.database import get_session_factory

logger = structlog.get_logger()

# Relative to the API prefix
PUBLIC_API_PATHS = ("/auth/login", "/auth/refresh", "/auth/logout", "/health")

# Absolute application paths
PUBLIC_APP_PATHS = ("/", "/health", "/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json")


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Middleware enforcing role-based access on every API request

    Paths with no handler still go through the chain, so an unauthenticated
    request gets 401 and an unregistered path gets 403 whatever the route table
    looks like.
    """

    def __init__(
        self,
        app,
        chain: AuthorizationChain,
        public_api_paths: Iterable[str] = PUBLIC_API_PATHS,
        public_app_paths: Iterable[str] = PUBLIC_APP_PATHS,
    ):
        super().__init__(app)
        self.chain = chain
        self.public_api_paths = tuple(public_api_paths)
        self.public_app_paths = frozenset(public_app_paths)

    def is_public(self, path: str) -> bool:
        if path in self.public_app_paths:
            return True
        relative = self.chain.relative_path(path)
        if relative == path and self.chain.api_prefix:
            return False
        return any(
            relative == public or relative.startswith(public + "/")
            for public in self.public_api_paths
        )

    async def dispatch(self, request: Request, call_next):
        # CORS preflight carries no credentials
        if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
            return await call_next(request)

        if self.is_public(request.url.path):
            return await call_next(request)

        decision = await self.chain.authorize(request, get_session_factory(request))
        if not decision.allowed:
            failure = decision.failure
            return JSONResponse(
                status_code=failure.status_code,
                content=failure.to_dict(),
                headers=failure.headers,
            )

        request.state.access = decision.context
        structlog.contextvars.bind_contextvars(
            user_id=decision.context.principal_id,
            user_role=decision.context.role.value,
        )
        return await call_next(request)
