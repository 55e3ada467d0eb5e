"""
Catalog Models
Services, packages and retail products offered by the spa
"""

from sqlalchemy import Column, String, Text, Integer, Numeric, Boolean
from medspa.models.base import SoftDeleteModel


class Service(SoftDeleteModel):
    """Bookable treatment"""
    __tablename__ = "services"

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    is_active = Column(Boolean, default=True, nullable=False)


class Package(SoftDeleteModel):
    """Prepaid bundle of services"""
    __tablename__ = "packages"

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=True)  # validity in days
    is_active = Column(Boolean, default=True, nullable=False)


class Product(SoftDeleteModel):
    """Inventory item"""
    __tablename__ = "products"

    name = Column(String(255), nullable=False, index=True)
    sku = Column(String(64), nullable=True, unique=True)
    category = Column(String(100), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    current_stock = Column(Integer, default=0, nullable=False)
    minimum_stock = Column(Integer, default=0, nullable=False)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock
