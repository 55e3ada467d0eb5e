"""
Application Configuration
Environment variables and settings management
"""

from pydantic_settings import BaseSettings, NoDecode
from pydantic import Field, field_validator
from typing import Annotated, List


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    ENVIRONMENT: str = Field(default="development", description="Application environment")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    API_V1_PREFIX: str = Field(default="/api/v1", description="Mount point of the versioned API")

    # Database
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./medspa.db", description="Database URL")
    DB_POOL_SIZE: int = Field(default=10, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Database max overflow connections")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Database pool timeout in seconds")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Database pool recycle time in seconds")

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(
        default="medspa-development-secret-key-change-me-in-production",
        description="JWT secret key"
    )
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1, le=24 * 60, description="JWT access token expiration")
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, description="JWT refresh token expiration")

    # Token issuers
    AUTH_ACTIVE_ISSUER: str = Field(default="local", description="Validation strategy used for bearer tokens")
    AUTH_LOCAL_ISSUER: str = Field(default="medspa-local", description="Issuer claim of locally minted tokens")
    AUTH_TRUSTED_ISSUERS: Annotated[List[str], NoDecode] = Field(
        default=["medspa-local"], description="Issuers accepted on inbound tokens"
    )

    # Authorization
    AUTH_READ_ONLY_ROLES: Annotated[List[str], NoDecode] = Field(
        default=["admin"], description="Roles restricted to non-mutating verbs"
    )

    # Security
    ALLOWED_HOSTS: Annotated[List[str], NoDecode] = Field(default=["*"], description="Allowed hosts for production")
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default=[], description="CORS allowed origins")

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = Field(default=120, description="Rate limit per minute")
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Toggle the in-process rate limiter")

    # Business profile
    BUSINESS_NAME: str = Field(default="MedSpa", description="Business display name")
    BUSINESS_TIMEZONE: str = Field(default="UTC", description="Business timezone")
    BUSINESS_CURRENCY: str = Field(default="USD", description="Business currency")

    # Bootstrap admin
    BOOTSTRAP_ADMIN_ENABLED: bool = Field(default=False, description="Create the bootstrap admin on startup")
    BOOTSTRAP_ADMIN_EMAIL: str = Field(default="admin@medspa.local", description="Bootstrap admin email")
    BOOTSTRAP_ADMIN_NAME: str = Field(default="Administrator", description="Bootstrap admin name")
    BOOTSTRAP_ADMIN_PASSWORD: str = Field(default="change-me-now", description="Bootstrap admin password")

    # Client guard
    GUARD_REVALIDATE_SECONDS: int = Field(
        default=300, description="Max age of a cached profile before the guard re-fetches it"
    )

    @field_validator("CORS_ORIGINS", "ALLOWED_HOSTS", "AUTH_TRUSTED_ISSUERS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Parse comma separated values from string or list"""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v if isinstance(v, list) else []

    @field_validator("AUTH_READ_ONLY_ROLES", mode="before")
    @classmethod
    def parse_read_only_roles(cls, v):
        """Parse and normalize read-only role names"""
        if isinstance(v, str):
            v = v.split(",")
        return [role.strip().lower() for role in (v or []) if role and role.strip()]

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value"""
        allowed = ["development", "testing", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


# Create settings instance
settings = Settings()

# Derived settings
DATABASE_CONFIG = {
    "pool_size": settings.DB_POOL_SIZE,
    "max_overflow": settings.DB_MAX_OVERFLOW,
    "pool_timeout": settings.DB_POOL_TIMEOUT,
    "pool_recycle": settings.DB_POOL_RECYCLE,
    "pool_pre_ping": True,
}

JWT_CONFIG = {
    "secret_key": settings.JWT_SECRET_KEY,
    "algorithm": settings.JWT_ALGORITHM,
    "access_token_expire_minutes": settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    "refresh_token_expire_days": settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS,
    "issuer": settings.AUTH_LOCAL_ISSUER,
}
