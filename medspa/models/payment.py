"""
Payment Model
Point-of-sale payments; gateway details are out of scope
"""

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from medspa.models.base import SoftDeleteModel
import enum


class PaymentStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    FAILED = "failed"


class Payment(SoftDeleteModel):
    """Recorded payment"""
    __tablename__ = "payments"

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    client = relationship("Client")
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(30), nullable=False, default="card")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    transaction_id = Column(String(100), nullable=True, unique=True)

    def __repr__(self):
        return f"<Payment(id={self.id}, amount={self.amount}, status='{self.status}')>"
