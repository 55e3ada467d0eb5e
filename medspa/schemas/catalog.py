"""
Catalog Schemas
Services, packages and products
"""

from decimal import Decimal
from typing import Optional
from pydantic import Field

from medspa.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class ServiceCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(60, ge=5, le=600, description="Duration in minutes")
    is_active: bool = True


class ServiceUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(None, ge=5, le=600)
    is_active: Optional[bool] = None


class ServiceResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: int
    is_active: bool


class PackageCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(None, ge=1, description="Validity in days")
    is_active: bool = True


class PackageUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class PackageResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: Optional[int] = None
    is_active: bool


class ProductCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=255)
    sku: Optional[str] = Field(None, max_length=64)
    category: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    current_stock: int = Field(0, ge=0)
    minimum_stock: int = Field(0, ge=0)


class ProductUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, max_length=64)
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    current_stock: Optional[int] = Field(None, ge=0)
    minimum_stock: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseResponseSchema):
    name: str
    sku: Optional[str] = None
    category: Optional[str] = None
    price: Decimal
    current_stock: int
    minimum_stock: int
    is_low_stock: bool
