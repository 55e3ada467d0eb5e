"""
Payment Schemas
"""

from decimal import Decimal
from typing import Optional
from pydantic import Field
from enum import Enum

from medspa.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class PaymentMethodEnum(str, Enum):
    CARD = "card"
    CASH = "cash"
    PACKAGE = "package"
    GIFT_CARD = "gift_card"


class PaymentStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentCreate(BaseCreateSchema):
    client_id: Optional[int] = Field(None, description="Paying client; defaults to the caller's own profile")
    appointment_id: Optional[int] = Field(None, description="Related appointment")
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Amount charged")
    payment_method: PaymentMethodEnum = Field(PaymentMethodEnum.CARD, description="Tender type")
    status: PaymentStatusEnum = Field(PaymentStatusEnum.PENDING, description="Payment status")
    transaction_id: Optional[str] = Field(None, max_length=100, description="Gateway reference")


class PaymentUpdate(BaseUpdateSchema):
    status: Optional[PaymentStatusEnum] = Field(None, description="Payment status")
    transaction_id: Optional[str] = Field(None, max_length=100, description="Gateway reference")


class PaymentResponse(BaseResponseSchema):
    client_id: int
    appointment_id: Optional[int] = None
    amount: Decimal
    payment_method: str
    status: str
    transaction_id: Optional[str] = None
