"""
Security Middleware
Security headers and rate limiting
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import time
import structlog
from typing import Dict, Optional
from collections import defaultdict

from medspa.core.authorization import client_address
from medspa.core.config import settings
from medspa.core.exceptions import AuthError
from medspa.core.security import verify_token

logger = structlog.get_logger()

EXEMPT_PATHS = frozenset({"/health", "/", "/docs", "/redoc", "/openapi.json"})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses
    """

    async def dispatch(self, request: Request, call_next):
        # Skip security headers for preflight CORS requests
        if request.method == "OPTIONS":
            return await call_next(request)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        # Patient data must not land in shared caches
        response.headers["Cache-Control"] = "no-store"

        # HSTS only in production with HTTPS
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        response.headers["API-Version"] = "v1"

        if "server" in response.headers:
            del response.headers["server"]

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding one-minute window per principal, or per address when anonymous
    """

    def __init__(self, app, calls_per_minute: Optional[int] = None):
        super().__init__(app)
        self.calls_per_minute = calls_per_minute or settings.RATE_LIMIT_PER_MINUTE
        self.requests: Dict[str, list] = defaultdict(list)
        self.cleanup_interval = 60
        self.last_cleanup = time.time()

    def _get_client_id(self, request: Request) -> str:
        """Get client identifier for rate limiting"""
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            try:
                return f"user:{verify_token(auth_header[7:], token_type='access')}"
            except AuthError:
                # Bad tokens are counted against the address
                pass

        return f"ip:{client_address(request) or 'unknown'}"

    def _cleanup_old_requests(self):
        """Clean up old request records"""
        current_time = time.time()
        cutoff_time = current_time - 60

        for client_id in list(self.requests.keys()):
            self.requests[client_id] = [
                req_time for req_time in self.requests[client_id]
                if req_time > cutoff_time
            ]
            if not self.requests[client_id]:
                del self.requests[client_id]

        self.last_cleanup = current_time

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        current_time = time.time()
        if current_time - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_requests()

        client_id = self._get_client_id(request)
        recent_requests = [
            req_time for req_time in self.requests[client_id]
            if req_time > current_time - 60
        ]

        if len(recent_requests) >= self.calls_per_minute:
            logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                requests_count=len(recent_requests),
                limit=self.calls_per_minute,
                path=request.url.path
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate-limited",
                    "message": f"Maximum {self.calls_per_minute} requests per minute allowed",
                },
                headers={"Retry-After": "60"}
            )

        recent_requests.append(current_time)
        self.requests[client_id] = recent_requests

        response = await call_next(request)

        remaining = max(0, self.calls_per_minute - len(recent_requests))
        response.headers["X-RateLimit-Limit"] = str(self.calls_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(int(current_time + 60))

        return response
