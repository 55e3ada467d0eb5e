"""
FastAPI Main Application
MedSpa API Service
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import structlog
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from medspa.core.authorization import AuthorizationChain
from medspa.core.config import settings
from medspa.core.database import AsyncSessionLocal, engine, init_database, close_database, check_database_health
from medspa.core.exceptions import AuthError
from medspa.core.logging import setup_logging
from medspa.core.registry import RoleRegistry, build_registry
from medspa.api.v1.router import build_api_router
from medspa.api.v1.endpoints.health import SERVICE_NAME, SERVICE_VERSION
from medspa.middleware.authorization import AuthorizationMiddleware
from medspa.middleware.logging import LoggingMiddleware
from medspa.middleware.security import SecurityHeadersMiddleware, RateLimitMiddleware
from medspa.services.bootstrap_admin import ensure_bootstrap_admin_exists

# Setup structured logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting MedSpa API Service", version=SERVICE_VERSION, environment=settings.ENVIRONMENT)

    await init_database(app.state.engine)

    if settings.BOOTSTRAP_ADMIN_ENABLED:
        async with app.state.session_factory() as session:
            await ensure_bootstrap_admin_exists(session)

    yield

    logger.info("Shutting down MedSpa API Service")
    await close_database(app.state.engine)


def _cors_origins() -> list:
    if settings.ENVIRONMENT == "development":
        origins = [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
        for origin in settings.CORS_ORIGINS:
            if origin not in origins:
                origins.append(origin)
        return origins
    return list(settings.CORS_ORIGINS)


async def auth_error_handler(request: Request, exc: AuthError):
    """Render auth failures raised inside handlers and repositories"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal-error",
            "message": "An unexpected error occurred"
        }
    )


def create_app(
    *,
    registry: Optional[RoleRegistry] = None,
    db_engine: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker] = None,
    rate_limit_enabled: Optional[bool] = None,
) -> FastAPI:
    """
    Build the application

    The role registry is built once here and never changes while the app
    runs. Tests pass their own engine and session factory.
    """
    registry = registry or build_registry(settings.AUTH_READ_ONLY_ROLES)
    docs_enabled = settings.ENVIRONMENT == "development"

    app = FastAPI(
        title="MedSpa API",
        description="Medical spa management API with role-based access control",
        version=SERVICE_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan
    )
    app.state.role_registry = registry
    app.state.engine = db_engine or engine
    app.state.session_factory = session_factory or AsyncSessionLocal

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Starlette runs the last added middleware first: authorization is the
    # innermost layer, CORS the outermost.
    chain = AuthorizationChain(registry, api_prefix=settings.API_V1_PREFIX)
    app.add_middleware(AuthorizationMiddleware, chain=chain)

    if settings.RATE_LIMIT_ENABLED if rate_limit_enabled is None else rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)

    if settings.ENVIRONMENT == "production":
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID", "Origin"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    app.include_router(build_api_router(registry), prefix=settings.API_V1_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for Docker and load balancers"""
        if await check_database_health(app.state.engine):
            return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION, "database": "connected"}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME, "version": SERVICE_VERSION},
        )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "MedSpa API Service",
            "version": SERVICE_VERSION,
            "docs": "/docs" if docs_enabled else "disabled",
            "health": "/health"
        }

    logger.info(
        "Application configured",
        read_only_roles=sorted(role.value for role in registry.read_only_roles),
        namespaces=[ns.prefix for ns in registry.namespaces],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medspa.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
