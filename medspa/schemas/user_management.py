"""
Principal management schemas for the operator CLI and staff listings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from medspa.core.roles import Role
from medspa.schemas.base import BaseSchema, validate_email, validate_non_empty_string


class PrincipalCreateRequest(BaseSchema):
    email: str = Field(..., description="Unique email")
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Field(Role.CLIENT)
    phone: Optional[str] = Field(None, max_length=30)
    location_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return validate_non_empty_string(value)


class StaffListItem(BaseSchema):
    id: int
    email: str
    name: str
    role: str
    phone: Optional[str] = None
    location_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
