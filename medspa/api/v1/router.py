"""
API v1 Router
Namespaced resource routes are generated from the role registry; nothing
here lists which role may reach what.
"""

from fastapi import APIRouter
import structlog

from medspa.api.v1.endpoints import auth, health, shared
from medspa.api.v1.endpoints.resources import RESOURCE_BINDINGS, build_resource_router
from medspa.api.v1.endpoints.views import VIEW_ROUTERS
from medspa.core.registry import RoleRegistry
from medspa.schemas.base import ErrorResponse

logger = structlog.get_logger()

# Rejections raised by the authorization chain before a handler runs
AUTH_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing, expired or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Role, read-only or record scope denial"},
}

SHARED_ROUTERS = (
    (shared.me_router, "/me", "me"),
    (shared.profile_router, "/profile", "me"),
    (shared.notifications_router, "/notifications", "notifications"),
    (shared.business_settings_router, "/business-settings", "settings"),
)


def build_api_router(registry: RoleRegistry) -> APIRouter:
    api_router = APIRouter()

    # Authentication endpoints
    api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

    # Health and monitoring endpoints
    api_router.include_router(health.router, prefix="/health", tags=["health"])

    # Shared, unprefixed endpoints
    for router, prefix, tag in SHARED_ROUTERS:
        api_router.include_router(router, prefix=prefix, tags=[tag], responses=AUTH_ERROR_RESPONSES)

    resource_routers = {binding.name: build_resource_router(binding) for binding in RESOURCE_BINDINGS}
    resource_routers.update(VIEW_ROUTERS)

    for namespace in registry.namespaces:
        exposed = registry.exposed_resources(namespace.name)
        mounted = []
        for name in sorted(exposed):
            router = resource_routers.get(name)
            if router is None:
                continue
            api_router.include_router(
                router,
                prefix=f"{namespace.prefix}/{name}",
                tags=[namespace.name],
                responses=AUTH_ERROR_RESPONSES,
            )
            mounted.append(name)
        logger.debug("Namespace mounted", namespace=namespace.prefix, resources=mounted)

    return api_router
