"""
Notification Model
"""

from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey
from medspa.models.base import BaseModel


class Notification(BaseModel):
    """In-app notice addressed to one principal"""
    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
