"""
Principal Service
Administrative principal management. Role reassignment only happens here,
driven by the operator CLI; no HTTP route exposes it.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.roles import Role
from medspa.core.security import get_password_hash
from medspa.models.client import Client
from medspa.models.user import User
from medspa.repositories.user import user_repository
from medspa.schemas.user_management import PrincipalCreateRequest

logger = structlog.get_logger()


class PrincipalExists(ValueError):
    pass


class PrincipalMissing(LookupError):
    pass


class PrincipalService:
    async def create(self, db: AsyncSession, payload: PrincipalCreateRequest) -> User:
        """
        Create a principal

        Client principals get a linked client record so their own-record
        scope resolves to something.
        """
        existing = await user_repository.get_by_email(db, payload.email, include_deleted=True)
        if existing:
            raise PrincipalExists(f"A principal with email {payload.email} already exists")

        role = Role(payload.role)
        user = User(
            email=payload.email,
            name=payload.name,
            phone=payload.phone,
            hashed_password=get_password_hash(payload.password),
            role=role.value,
            location_id=payload.location_id,
            is_active=True,
        )
        db.add(user)
        await db.flush()

        if role == Role.CLIENT:
            db.add(Client(
                user_id=user.id,
                name=user.name,
                email=user.email,
                phone=user.phone,
                location_id=user.location_id,
            ))

        await db.commit()
        await db.refresh(user)
        logger.info("Principal created", user_id=user.id, email=user.email, role=user.role)
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> User:
        user = await user_repository.get_by_email(db, email)
        if not user:
            raise PrincipalMissing(f"No principal with email {email}")
        return user

    async def change_role(self, db: AsyncSession, email: str, role: Role) -> User:
        user = await self.get_by_email(db, email)
        return await user_repository.set_role(db, user, role)

    async def set_active(self, db: AsyncSession, email: str, is_active: bool) -> User:
        user = await self.get_by_email(db, email)
        user.is_active = is_active
        await db.commit()
        await db.refresh(user)
        logger.info("Principal activation changed", user_id=user.id, is_active=is_active)
        return user

    async def list_principals(self, db: AsyncSession, role: Optional[Role] = None) -> list[User]:
        filters = {"role": role.value} if role else None
        return await user_repository.get_multi(db, filters=filters, order_by="email", limit=1000)


principal_service = PrincipalService()
