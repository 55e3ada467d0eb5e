"""
Read-only views
Stock alerts, staff roster and dashboard summaries
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.core.database import get_db
from medspa.core.deps import get_access_context, get_scope
from medspa.core.authorization import AccessContext
from medspa.core.scope import ScopeFilter
from medspa.repositories.appointment import appointment_repository
from medspa.repositories.resources import product_repository, treatment_repository
from medspa.repositories.user import user_repository
from medspa.schemas.catalog import ProductResponse
from medspa.schemas.user_management import StaffListItem

stock_alerts_router = APIRouter()
staff_router = APIRouter()
dashboard_router = APIRouter()


@stock_alerts_router.get("", response_model=List[ProductResponse])
@stock_alerts_router.head("", response_model=List[ProductResponse], include_in_schema=False)
async def list_stock_alerts(
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Products at or below their minimum stock level"""
    return await product_repository.low_stock(db, limit=limit)


@staff_router.get("", response_model=List[StaffListItem])
@staff_router.head("", response_model=List[StaffListItem], include_in_schema=False)
async def list_staff(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    return await user_repository.list_staff(db, skip=skip, limit=limit)


@dashboard_router.get("")
@dashboard_router.head("", include_in_schema=False)
async def dashboard_summary(
    context: AccessContext = Depends(get_access_context),
    scope: Optional[ScopeFilter] = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Counts over the records the caller can see"""
    appointments = await appointment_repository.count(db, scope=scope)
    upcoming = await appointment_repository.count(
        db,
        scope=scope,
        filters={"status": ["scheduled", "confirmed"]},
    )
    treatments = await treatment_repository.count(db, scope=scope)

    return {
        "role": context.role.value,
        "scope": scope.describe() if scope else "all",
        "appointments": appointments,
        "open_appointments": upcoming,
        "treatments": treatments,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


VIEW_ROUTERS: Dict[str, APIRouter] = {
    "stock-alerts": stock_alerts_router,
    "staff": staff_router,
    "dashboard": dashboard_router,
}
