"""
User Model
Principals: everyone who can sign in, staff and clients alike
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from medspa.core.roles import Role, parse_role
from medspa.models.base import SoftDeleteModel


class User(SoftDeleteModel):
    """Principal with exactly one role"""
    __tablename__ = "users"

    # Basic user information
    email = Column(String(254), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    hashed_password = Column(String(128), nullable=False)

    # Authorization; stored as text so legacy values survive a schema change
    role = Column(String(20), nullable=False, default=Role.CLIENT.value, index=True)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)
    location = relationship("Location")

    # Activity tracking
    last_login_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (
        Index('ix_user_email_active', 'email', 'is_active'),
        Index('ix_user_role_active', 'role', 'is_active'),
    )

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}')>"

    @property
    def resolved_role(self):
        """Role enum for the stored value, None when unrecognised"""
        return parse_role(self.role)
