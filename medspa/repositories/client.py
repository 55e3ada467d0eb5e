"""
Client Repository
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.models.client import Client
from medspa.repositories.base import CRUDBase
from medspa.schemas.client import ClientCreate, ClientUpdate


class ClientRepository(CRUDBase[Client, ClientCreate, ClientUpdate]):
    async def get_by_user_id(self, db: AsyncSession, user_id: int) -> Optional[Client]:
        result = await db.execute(
            select(Client).where(Client.user_id == user_id, Client.is_deleted == False)
        )
        return result.scalar_one_or_none()


client_repository = ClientRepository(Client)
