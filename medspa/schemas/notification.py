"""
Notification and business settings schemas
"""

from typing import Optional
from pydantic import BaseModel

from medspa.schemas.base import BaseResponseSchema


class NotificationResponse(BaseResponseSchema):
    title: str
    message: Optional[str] = None
    is_read: bool


class BusinessSettingsResponse(BaseModel):
    name: str
    timezone: str
    currency: str
