"""
Clinical Models
Treatment records and consent forms
"""

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey
from medspa.models.base import SoftDeleteModel


class Treatment(SoftDeleteModel):
    """Treatment performed during an appointment"""
    __tablename__ = "treatments"

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)

    notes = Column(Text, nullable=True)
    performed_at = Column(DateTime(timezone=True), nullable=True)


class ConsentForm(SoftDeleteModel):
    """Signed or pending client consent"""
    __tablename__ = "consent_forms"

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
