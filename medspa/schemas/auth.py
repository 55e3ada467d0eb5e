"""
Authentication Schemas
Pydantic models for authentication requests and responses
"""

from typing import Dict, List, Optional
from pydantic import Field, field_validator
from medspa.schemas.base import BaseSchema, validate_email, validate_non_empty_string


class LoginRequest(BaseSchema):
    """Login request schema"""
    email: str = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator('password')
    @classmethod
    def validate_password_not_empty(cls, v):
        return validate_non_empty_string(v)


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema"""
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class TokenResponse(BaseSchema):
    """Token response schema"""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")


class PrincipalProfile(BaseSchema):
    """Public profile; role is for display and never trusted on later requests"""
    id: int = Field(..., description="Principal ID")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")
    role: str = Field(..., description="Current role")
    phone: Optional[str] = Field(None, description="Phone number")
    location_id: Optional[int] = Field(None, description="Affiliated location")


class LoginResponse(BaseSchema):
    """Login response schema"""
    user: PrincipalProfile = Field(..., description="Principal profile")
    tokens: TokenResponse = Field(..., description="Authentication tokens")
    message: str = Field("Login successful", description="Success message")


class LogoutResponse(BaseSchema):
    """Logout response schema"""
    message: str = Field("Logout successful", description="Success message")


class ProfileUpdate(BaseSchema):
    """Self-service profile edit; role and e-mail are not editable here"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Display name")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")

    model_config = {"extra": "forbid"}


class ResourcePermissionSchema(BaseSchema):
    actions: List[str] = Field(..., description="Effective actions")
    scope: str = Field(..., description="all or own")


class PermissionManifestResponse(BaseSchema):
    """Effective permissions for the caller's current role"""
    role: str = Field(..., description="Current role")
    read_only: bool = Field(..., description="Whether the role is restricted to reads")
    namespaces: List[str] = Field(..., description="Route prefixes available to the role")
    permissions: Dict[str, ResourcePermissionSchema] = Field(..., description="Per-resource permissions")
