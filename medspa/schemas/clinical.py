"""
Clinical Schemas
Treatment records and consent forms
"""

from datetime import datetime
from typing import Optional
from pydantic import Field

from medspa.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class TreatmentCreate(BaseCreateSchema):
    client_id: int = Field(..., description="Treated client")
    provider_id: Optional[int] = Field(None, description="Treating provider; defaults to the caller")
    appointment_id: Optional[int] = None
    service_id: Optional[int] = None
    notes: Optional[str] = None
    performed_at: Optional[datetime] = None


class TreatmentUpdate(BaseUpdateSchema):
    notes: Optional[str] = None
    performed_at: Optional[datetime] = None


class TreatmentResponse(BaseResponseSchema):
    client_id: int
    provider_id: Optional[int] = None
    appointment_id: Optional[int] = None
    service_id: Optional[int] = None
    notes: Optional[str] = None
    performed_at: Optional[datetime] = None


class ConsentFormCreate(BaseCreateSchema):
    client_id: Optional[int] = Field(None, description="Client; defaults to the caller's own profile")
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    signed_at: Optional[datetime] = None


class ConsentFormUpdate(BaseUpdateSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    signed_at: Optional[datetime] = None


class ConsentFormResponse(BaseResponseSchema):
    client_id: int
    title: str
    content: Optional[str] = None
    signed_at: Optional[datetime] = None
