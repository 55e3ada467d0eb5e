"""
User Repository
Database operations for principals.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.roles import Role
from medspa.models.user import User
from medspa.repositories.base import CRUDBase
from medspa.schemas.auth import ProfileUpdate
from medspa.schemas.user_management import PrincipalCreateRequest

logger = structlog.get_logger()

STAFF_ROLES = (Role.PROVIDER.value, Role.RECEPTION.value, "staff")


class UserRepository(CRUDBase[User, PrincipalCreateRequest, ProfileUpdate]):
    async def get_by_email(self, db: AsyncSession, email: str, include_deleted: bool = False) -> Optional[User]:
        query = select(User).where(User.email == email.lower().strip())
        if not include_deleted:
            query = query.where(User.is_deleted == False)

        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_staff(self, db: AsyncSession, *, skip: int = 0, limit: int = 100) -> list[User]:
        query = (
            select(User)
            .where(User.is_deleted == False, User.role.in_(STAFF_ROLES))
            .order_by(User.name)
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def set_role(self, db: AsyncSession, user: User, role: Role) -> User:
        previous = user.role
        user.role = role.value
        await db.commit()
        await db.refresh(user)
        logger.info("Principal role changed", user_id=user.id, previous_role=previous, role=role.value)
        return user


user_repository = UserRepository(User)
