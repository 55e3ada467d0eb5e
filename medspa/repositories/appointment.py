"""
Appointment Repository
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.scope import ScopeFilter
from medspa.models.appointment import Appointment
from medspa.repositories.base import CRUDBase
from medspa.schemas.appointment import AppointmentCreate, AppointmentUpdate

logger = structlog.get_logger()


class AppointmentRepository(CRUDBase[Appointment, AppointmentCreate, AppointmentUpdate]):
    async def set_status(
        self,
        db: AsyncSession,
        *,
        id: int,
        status: str,
        scope: Optional[ScopeFilter] = None,
    ) -> Optional[Appointment]:
        """Change status of an appointment visible under ``scope``"""
        appointment = await self.get(db, id, scope=scope)
        if appointment is None:
            return None

        previous = appointment.status
        appointment = await self.update(db, db_obj=appointment, obj_in={"status": status})
        logger.info("Appointment status changed", appointment_id=id, previous=previous, status=status)
        return appointment


appointment_repository = AppointmentRepository(Appointment)
