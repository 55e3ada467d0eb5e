"""
Shared Endpoints
Routes available to every authenticated role without a namespace prefix
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from medspa.core.authorization import AccessContext, PrincipalSnapshot
from medspa.core.config import settings
from medspa.core.database import get_db
from medspa.core.deps import get_access_context, get_current_user, get_principal_snapshot, get_role_registry
from medspa.core.registry import RoleRegistry
from medspa.models.user import User
from medspa.repositories.resources import notification_repository
from medspa.repositories.user import user_repository
from medspa.schemas.auth import PermissionManifestResponse, PrincipalProfile, ProfileUpdate
from medspa.schemas.notification import BusinessSettingsResponse, NotificationResponse
from medspa.services.identity import to_profile

logger = structlog.get_logger()

me_router = APIRouter()
profile_router = APIRouter()
notifications_router = APIRouter()
business_settings_router = APIRouter()


def _snapshot_profile(snapshot: PrincipalSnapshot, context: AccessContext) -> PrincipalProfile:
    return PrincipalProfile(
        id=snapshot.id,
        email=snapshot.email,
        name=snapshot.name,
        role=context.role.value,
        phone=snapshot.phone,
        location_id=snapshot.location_id,
    )


@me_router.get("", response_model=PrincipalProfile)
@me_router.head("", response_model=PrincipalProfile, include_in_schema=False)
async def read_me(
    snapshot: PrincipalSnapshot = Depends(get_principal_snapshot),
    context: AccessContext = Depends(get_access_context),
):
    """Current profile; the role is whatever the store says right now"""
    return _snapshot_profile(snapshot, context)


@me_router.get("/permissions", response_model=PermissionManifestResponse)
@me_router.head("/permissions", response_model=PermissionManifestResponse, include_in_schema=False)
async def read_my_permissions(
    context: AccessContext = Depends(get_access_context),
    registry: RoleRegistry = Depends(get_role_registry),
):
    """Effective permissions for the caller's current role, read-only flag applied"""
    return registry.permissions_for(context.role).to_dict()


@profile_router.get("", response_model=PrincipalProfile)
@profile_router.head("", response_model=PrincipalProfile, include_in_schema=False)
async def read_profile(
    snapshot: PrincipalSnapshot = Depends(get_principal_snapshot),
    context: AccessContext = Depends(get_access_context),
):
    return _snapshot_profile(snapshot, context)


@profile_router.put("", response_model=PrincipalProfile)
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_repository.update(db, db_obj=user, obj_in=payload)
    logger.info("Profile updated", user_id=user.id, fields=sorted(payload.model_fields_set))
    return to_profile(user)


@notifications_router.get("", response_model=List[NotificationResponse])
@notifications_router.head("", response_model=List[NotificationResponse], include_in_schema=False)
async def list_notifications(
    unread_only: bool = False,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    return await notification_repository.for_user(db, context.principal_id, unread_only=unread_only)


@notifications_router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    notification = await notification_repository.get(db, notification_id)
    # Someone else's notification reads as missing
    if notification is None or notification.user_id != context.principal_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return await notification_repository.update(db, db_obj=notification, obj_in={"is_read": True})


@business_settings_router.get("", response_model=BusinessSettingsResponse)
@business_settings_router.head("", response_model=BusinessSettingsResponse, include_in_schema=False)
async def read_business_settings():
    return BusinessSettingsResponse(
        name=settings.BUSINESS_NAME,
        timezone=settings.BUSINESS_TIMEZONE,
        currency=settings.BUSINESS_CURRENCY,
    )
