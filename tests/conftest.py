"""
Shared fixtures for the MedSpa test suite.

Every test gets its own SQLite file; the app is built around it with the
rate limiter off. ASGITransport does not run the lifespan, so tables are
created here.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from medspa.core.database import build_engine, close_database, init_database
from medspa.core.registry import build_registry
from medspa.core.roles import Role
from medspa.core.security import create_access_token
from medspa.main import create_app
from medspa.models.appointment import Appointment
from medspa.models.payment import Payment
from medspa.models.user import User
from medspa.schemas.user_management import PrincipalCreateRequest
from medspa.services.principal import principal_service

API = "/api/v1"
PASSWORD = "correct-horse-battery"


def bearer(user_or_id) -> dict:
    """Authorization header for a principal or a raw principal id"""
    principal_id = getattr(user_or_id, "id", user_or_id)
    return {"Authorization": f"Bearer {create_access_token(subject=principal_id)}"}


# ==================== Fixtures ====================

@pytest.fixture
def registry():
    """Deployed registry with admins read-only"""
    return build_registry(("admin",))


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a throwaway SQLite file"""
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_database(db_engine)
    yield db_engine
    await close_database(db_engine)


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """Session for arranging data and checking results"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(engine, session_factory, registry):
    return create_app(registry=registry, db_engine=engine, session_factory=session_factory, rate_limit_enabled=False)


@pytest_asyncio.fixture
async def client(app):
    """HTTP client talking to the app in-process"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
def make_principal(db):
    """Factory creating principals through the principal service"""
    counter = {"n": 0}

    async def _make(role, *, email=None, name=None, password=PASSWORD, is_active=True) -> User:
        counter["n"] += 1
        stored_role = role.value if isinstance(role, Role) else role
        create_role = Role(stored_role) if stored_role in {r.value for r in Role} else Role.RECEPTION
        user = await principal_service.create(
            db,
            PrincipalCreateRequest(
                email=email or f"{stored_role}{counter['n']}@medspa.test",
                name=name or f"{stored_role.title()} {counter['n']}",
                password=password,
                role=create_role,
            ),
        )
        # Legacy or unknown role values are written straight to the row
        if stored_role != create_role.value or not is_active:
            user.role = stored_role
            user.is_active = is_active
            await db.commit()
            await db.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def world(db, make_principal):
    """
    A small practice: one admin, two providers, one receptionist, two clients

    Appointments: client A with provider A, client B with provider B, client A
    with provider B. One payment per client.
    """
    from medspa.repositories.client import client_repository

    admin = await make_principal(Role.ADMIN)
    provider_a = await make_principal(Role.PROVIDER)
    provider_b = await make_principal(Role.PROVIDER)
    reception = await make_principal(Role.RECEPTION)
    client_a = await make_principal(Role.CLIENT)
    client_b = await make_principal(Role.CLIENT)

    record_a = await client_repository.get_by_user_id(db, client_a.id)
    record_b = await client_repository.get_by_user_id(db, client_b.id)

    start = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    appointments = [
        Appointment(client_id=record_a.id, provider_id=provider_a.id, start_time=start),
        Appointment(client_id=record_b.id, provider_id=provider_b.id, start_time=start + timedelta(hours=1)),
        Appointment(client_id=record_a.id, provider_id=provider_b.id, start_time=start + timedelta(hours=2)),
    ]
    payments = [
        Payment(client_id=record_a.id, appointment_id=None, amount=Decimal("120.00"), payment_method="card"),
        Payment(client_id=record_b.id, appointment_id=None, amount=Decimal("80.00"), payment_method="cash"),
    ]
    db.add_all(appointments + payments)
    await db.commit()

    return SimpleNamespace(
        admin=admin,
        provider_a=provider_a,
        provider_b=provider_b,
        reception=reception,
        client_a=client_a,
        client_b=client_b,
        client_record_a=record_a,
        client_record_b=record_b,
        appointments=appointments,
        payments=payments,
    )
