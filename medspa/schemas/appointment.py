"""
Appointment Schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import Field, model_validator
from enum import Enum

from medspa.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class AppointmentStatusEnum(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentCreate(BaseCreateSchema):
    """
    Schema for booking an appointment

    ``client_id`` may be omitted by a client booking for themselves; the
    owner is taken from the caller's scope.
    """
    client_id: Optional[int] = Field(None, description="Client being treated")
    provider_id: Optional[int] = Field(None, description="Assigned provider")
    service_id: Optional[int] = Field(None, description="Booked service")
    location_id: Optional[int] = Field(None, description="Location")
    start_time: datetime = Field(..., description="Start of the slot")
    end_time: Optional[datetime] = Field(None, description="End of the slot")
    status: AppointmentStatusEnum = Field(AppointmentStatusEnum.SCHEDULED, description="Initial status")
    notes: Optional[str] = Field(None, description="Booking notes")

    @model_validator(mode='after')
    def validate_time_range(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdate(BaseUpdateSchema):
    """Schema for rescheduling or editing an appointment"""
    provider_id: Optional[int] = Field(None, description="Assigned provider")
    service_id: Optional[int] = Field(None, description="Booked service")
    location_id: Optional[int] = Field(None, description="Location")
    start_time: Optional[datetime] = Field(None, description="Start of the slot")
    end_time: Optional[datetime] = Field(None, description="End of the slot")
    status: Optional[AppointmentStatusEnum] = Field(None, description="Status")
    notes: Optional[str] = Field(None, description="Booking notes")


class AppointmentStatusUpdate(BaseUpdateSchema):
    status: AppointmentStatusEnum = Field(..., description="New status")


class AppointmentResponse(BaseResponseSchema):
    client_id: int
    provider_id: Optional[int] = None
    service_id: Optional[int] = None
    location_id: Optional[int] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
