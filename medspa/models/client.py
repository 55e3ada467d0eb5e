"""
Client Model
Client records; ``user_id`` links a record to the principal that owns it
"""

from sqlalchemy import Column, String, Text, Integer, Date, ForeignKey
from sqlalchemy.orm import relationship
from medspa.models.base import SoftDeleteModel


class Client(SoftDeleteModel):
    """Spa client profile"""
    __tablename__ = "clients"

    # Principal that signs in as this client, if any
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True, index=True)
    user = relationship("User")

    name = Column(String(255), nullable=False, index=True)
    email = Column(String(254), nullable=True, index=True)
    phone = Column(String(30), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)

    def __repr__(self):
        return f"<Client(name='{self.name}')>"
