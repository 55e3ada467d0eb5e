"""
Location Schemas
"""

from typing import Optional
from pydantic import Field

from medspa.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class LocationCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    is_active: bool = True


class LocationUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None


class LocationResponse(BaseResponseSchema):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
