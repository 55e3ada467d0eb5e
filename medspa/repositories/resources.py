"""
Repositories for the remaining business resources.

These need nothing beyond the generic CRUD operations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medspa.models.catalog import Package, Product, Service
from medspa.models.clinical import ConsentForm, Treatment
from medspa.models.location import Location
from medspa.models.notification import Notification
from medspa.models.payment import Payment
from medspa.repositories.base import CRUDBase
from medspa.schemas.catalog import (
    PackageCreate,
    PackageUpdate,
    ProductCreate,
    ProductUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from medspa.schemas.clinical import ConsentFormCreate, ConsentFormUpdate, TreatmentCreate, TreatmentUpdate
from medspa.schemas.location import LocationCreate, LocationUpdate
from medspa.schemas.payment import PaymentCreate, PaymentUpdate


class ProductRepository(CRUDBase[Product, ProductCreate, ProductUpdate]):
    async def low_stock(self, db: AsyncSession, *, limit: int = 100) -> list[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.is_deleted == False, Product.current_stock <= Product.minimum_stock)
            .order_by(Product.current_stock)
            .limit(limit)
        )
        return list(result.scalars().all())


class NotificationRepository(CRUDBase):
    async def for_user(self, db: AsyncSession, user_id: int, *, unread_only: bool = False) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        result = await db.execute(query.order_by(Notification.id.desc()))
        return list(result.scalars().all())


payment_repository = CRUDBase[Payment, PaymentCreate, PaymentUpdate](Payment)
service_repository = CRUDBase[Service, ServiceCreate, ServiceUpdate](Service)
package_repository = CRUDBase[Package, PackageCreate, PackageUpdate](Package)
product_repository = ProductRepository(Product)
treatment_repository = CRUDBase[Treatment, TreatmentCreate, TreatmentUpdate](Treatment)
consent_form_repository = CRUDBase[ConsentForm, ConsentFormCreate, ConsentFormUpdate](ConsentForm)
location_repository = CRUDBase[Location, LocationCreate, LocationUpdate](Location)
notification_repository = NotificationRepository(Notification)
