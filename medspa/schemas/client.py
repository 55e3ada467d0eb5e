"""
Client Schemas
"""

from datetime import date
from typing import Optional
from pydantic import Field, field_validator

from medspa.schemas.base import (
    BaseCreateSchema,
    BaseUpdateSchema,
    BaseResponseSchema,
    validate_email,
    validate_non_empty_string,
)


class ClientCreate(BaseCreateSchema):
    """Schema for creating a client record"""
    name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, max_length=30, description="Contact phone")
    user_id: Optional[int] = Field(None, description="Principal that signs in as this client")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    notes: Optional[str] = Field(None, description="Front-desk notes")
    location_id: Optional[int] = Field(None, description="Home location")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return validate_non_empty_string(v)

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v) if v else v


class ClientUpdate(BaseUpdateSchema):
    """Schema for updating a client record"""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Full name")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, max_length=30, description="Contact phone")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    notes: Optional[str] = Field(None, description="Front-desk notes")
    location_id: Optional[int] = Field(None, description="Home location")

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v) if v else v


class ClientResponse(BaseResponseSchema):
    user_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    notes: Optional[str] = None
    location_id: Optional[int] = None
