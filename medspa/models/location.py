"""
Location Model
"""

from sqlalchemy import Column, String, Boolean
from medspa.models.base import BaseModel


class Location(BaseModel):
    """Physical spa location"""
    __tablename__ = "locations"

    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Location(name='{self.name}')>"
