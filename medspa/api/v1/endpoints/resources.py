"""
Resource Endpoints
CRUD routers generated per namespace. Access was decided by the
authorization chain before any of these run; handlers only pass the
request's scope filter to the repository.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from medspa.core.database import get_db
from medspa.core.deps import get_scope
from medspa.core.scope import ScopeFilter
from medspa.repositories.appointment import appointment_repository
from medspa.repositories.base import CRUDBase
from medspa.repositories.client import client_repository
from medspa.repositories.resources import (
    consent_form_repository,
    location_repository,
    package_repository,
    payment_repository,
    product_repository,
    service_repository,
    treatment_repository,
)
from medspa.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from medspa.schemas.base import PaginatedResponse
from medspa.schemas.catalog import (
    PackageCreate,
    PackageResponse,
    PackageUpdate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from medspa.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from medspa.schemas.clinical import (
    ConsentFormCreate,
    ConsentFormResponse,
    ConsentFormUpdate,
    TreatmentCreate,
    TreatmentResponse,
    TreatmentUpdate,
)
from medspa.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from medspa.schemas.payment import PaymentCreate, PaymentResponse, PaymentUpdate

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResourceBinding:
    name: str
    repository: CRUDBase
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    response_schema: Type[BaseModel]
    search_fields: tuple[str, ...] = ()
    extend: Optional[Callable[[APIRouter, "ResourceBinding"], None]] = None


def _not_found(binding: ResourceBinding, item_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{binding.name} record {item_id} not found",
    )


def _integrity_error(binding: ResourceBinding, exc: IntegrityError) -> HTTPException:
    logger.warning("Write rejected by database constraints", resource=binding.name, error=str(exc.orig))
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="Missing required reference or duplicate value",
    )


def build_resource_router(binding: ResourceBinding) -> APIRouter:
    """CRUD router for one resource; mounted once per namespace exposing it"""
    router = APIRouter()
    CreateSchema = binding.create_schema
    UpdateSchema = binding.update_schema
    ResponseSchema = binding.response_schema

    @router.get("", response_model=PaginatedResponse)
    @router.head("", response_model=PaginatedResponse, include_in_schema=False)
    async def list_records(
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=1000),
        search: Optional[str] = Query(None, min_length=1, max_length=100),
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        if search and binding.search_fields:
            records = await binding.repository.search(
                db, query=search, search_fields=list(binding.search_fields), scope=scope, skip=skip, limit=limit
            )
            total = await binding.repository.count(
                db, scope=scope, search=search, search_fields=list(binding.search_fields)
            )
        else:
            records = await binding.repository.get_multi(db, scope=scope, skip=skip, limit=limit)
            total = await binding.repository.count(db, scope=scope)

        return PaginatedResponse.create(
            items=[ResponseSchema.model_validate(record) for record in records],
            total=total,
            skip=skip,
            limit=limit,
        )

    @router.get("/{item_id}", response_model=ResponseSchema)
    @router.head("/{item_id}", response_model=ResponseSchema, include_in_schema=False)
    async def get_record(
        item_id: int,
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        record = await binding.repository.get(db, item_id, scope=scope)
        if record is None:
            raise _not_found(binding, item_id)
        return record

    @router.post("", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
    async def create_record(
        payload: CreateSchema,
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        try:
            return await binding.repository.create(db, obj_in=payload, scope=scope)
        except IntegrityError as exc:
            raise _integrity_error(binding, exc)

    async def update_record(
        item_id: int,
        payload: UpdateSchema,
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        record = await binding.repository.get(db, item_id, scope=scope)
        if record is None:
            raise _not_found(binding, item_id)
        try:
            return await binding.repository.update(db, db_obj=record, obj_in=payload, scope=scope)
        except IntegrityError as exc:
            raise _integrity_error(binding, exc)

    router.add_api_route("/{item_id}", update_record, methods=["PUT", "PATCH"], response_model=ResponseSchema)

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(
        item_id: int,
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        deleted = await binding.repository.delete(db, id=item_id, scope=scope)
        if deleted is None:
            raise _not_found(binding, item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if binding.extend is not None:
        binding.extend(router, binding)

    return router


def add_appointment_status_route(router: APIRouter, binding: ResourceBinding) -> None:
    @router.patch("/{item_id}/status", response_model=AppointmentResponse)
    async def update_appointment_status(
        item_id: int,
        payload: AppointmentStatusUpdate,
        scope: Optional[ScopeFilter] = Depends(get_scope),
        db: AsyncSession = Depends(get_db),
    ):
        appointment = await appointment_repository.set_status(db, id=item_id, status=payload.status, scope=scope)
        if appointment is None:
            raise _not_found(binding, item_id)
        return appointment


RESOURCE_BINDINGS: tuple[ResourceBinding, ...] = (
    ResourceBinding(
        "clients", client_repository, ClientCreate, ClientUpdate, ClientResponse,
        search_fields=("name", "email", "phone"),
    ),
    ResourceBinding(
        "appointments", appointment_repository, AppointmentCreate, AppointmentUpdate, AppointmentResponse,
        extend=add_appointment_status_route,
    ),
    ResourceBinding("payments", payment_repository, PaymentCreate, PaymentUpdate, PaymentResponse),
    ResourceBinding(
        "packages", package_repository, PackageCreate, PackageUpdate, PackageResponse,
        search_fields=("name",),
    ),
    ResourceBinding(
        "services", service_repository, ServiceCreate, ServiceUpdate, ServiceResponse,
        search_fields=("name",),
    ),
    ResourceBinding(
        "products", product_repository, ProductCreate, ProductUpdate, ProductResponse,
        search_fields=("name", "sku", "category"),
    ),
    ResourceBinding("treatments", treatment_repository, TreatmentCreate, TreatmentUpdate, TreatmentResponse),
    ResourceBinding(
        "consent-forms", consent_form_repository, ConsentFormCreate, ConsentFormUpdate, ConsentFormResponse,
    ),
    ResourceBinding(
        "locations", location_repository, LocationCreate, LocationUpdate, LocationResponse,
        search_fields=("name",),
    ),
)
