"""
Appointment Model
"""

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from medspa.models.base import SoftDeleteModel
import enum


class AppointmentStatus(enum.Enum):
    """Appointment lifecycle status"""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Appointment(SoftDeleteModel):
    """Booked treatment slot"""
    __tablename__ = "appointments"

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    client = relationship("Client")

    # Assigned provider (a principal with the provider role)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index('ix_appointment_provider_start', 'provider_id', 'start_time'),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, status='{self.status}')>"
