"""
Bootstrap admin creation service.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.config import settings
from medspa.core.roles import Role
from medspa.repositories.user import user_repository
from medspa.schemas.user_management import PrincipalCreateRequest
from medspa.services.principal import principal_service

logger = structlog.get_logger()


async def ensure_bootstrap_admin_exists(db: AsyncSession) -> None:
    admin_email = settings.BOOTSTRAP_ADMIN_EMAIL.lower().strip()

    existing = await user_repository.get_by_email(db, admin_email, include_deleted=False)
    if existing:
        logger.info("Bootstrap admin already exists", email=admin_email, user_id=existing.id)
        return

    bootstrap_user = await principal_service.create(
        db,
        PrincipalCreateRequest(
            email=admin_email,
            name=settings.BOOTSTRAP_ADMIN_NAME,
            password=settings.BOOTSTRAP_ADMIN_PASSWORD,
            role=Role.ADMIN,
        ),
    )

    logger.info("Bootstrap admin created", email=admin_email, user_id=bootstrap_user.id)
