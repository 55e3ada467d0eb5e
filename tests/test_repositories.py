"""
Tests for row-level scoping in the CRUD repositories
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from medspa.core.exceptions import ForbiddenScope
from medspa.core.scope import OwnerKind, ScopeFilter
from medspa.repositories.appointment import appointment_repository
from medspa.repositories.client import client_repository
from medspa.repositories.resources import payment_repository, service_repository, treatment_repository
from medspa.schemas.appointment import AppointmentCreate, AppointmentUpdate


def provider_scope(user) -> ScopeFilter:
    return ScopeFilter(OwnerKind.PROVIDER, user.id)


def client_scope(user) -> ScopeFilter:
    return ScopeFilter(OwnerKind.CLIENT, user.id)


class TestScopedReads:

    @pytest.mark.asyncio
    async def test_unscoped_sees_everything(self, db, world):
        assert await appointment_repository.count(db) == 3

    @pytest.mark.asyncio
    async def test_provider_sees_assigned_appointments(self, db, world):
        records = await appointment_repository.get_multi(db, scope=provider_scope(world.provider_b))
        assert {r.provider_id for r in records} == {world.provider_b.id}
        assert len(records) == 2

    @pytest.mark.asyncio
    async def test_client_sees_own_appointments(self, db, world):
        records = await appointment_repository.get_multi(db, scope=client_scope(world.client_a))
        assert {r.client_id for r in records} == {world.client_record_a.id}
        assert await appointment_repository.count(db, scope=client_scope(world.client_a)) == 2

    @pytest.mark.asyncio
    async def test_disjoint_principals_see_disjoint_rows(self, db, world):
        mine = await payment_repository.get_multi(db, scope=client_scope(world.client_a))
        theirs = await payment_repository.get_multi(db, scope=client_scope(world.client_b))
        assert mine and theirs
        assert not {p.id for p in mine} & {p.id for p in theirs}

    @pytest.mark.asyncio
    async def test_out_of_scope_get_reads_as_missing(self, db, world):
        other = world.appointments[1]
        assert await appointment_repository.get(db, other.id, scope=client_scope(world.client_a)) is None
        assert await appointment_repository.get(db, other.id) is not None

    @pytest.mark.asyncio
    async def test_client_scope_on_client_model_uses_user_link(self, db, world):
        records = await client_repository.get_multi(db, scope=client_scope(world.client_b))
        assert [r.id for r in records] == [world.client_record_b.id]

    @pytest.mark.asyncio
    async def test_model_without_owner_column_admits_nothing(self, db, world):
        await service_repository.create(db, obj_in={"name": "Facial", "price": Decimal("90.00")})
        assert await service_repository.get_multi(db) != []
        assert await service_repository.get_multi(db, scope=provider_scope(world.provider_a)) == []

    @pytest.mark.asyncio
    async def test_scoped_search(self, db, world):
        records = await client_repository.search(
            db, query="client", search_fields=["name"], scope=client_scope(world.client_a)
        )
        assert [r.id for r in records] == [world.client_record_a.id]

    @pytest.mark.asyncio
    async def test_search_count_matches_scoped_search(self, db, world):
        scoped = await client_repository.count(
            db, search="client", search_fields=["name"], scope=client_scope(world.client_a)
        )
        unscoped = await client_repository.count(db, search="client", search_fields=["name"])
        no_match = await client_repository.count(db, search="nobody-has-this-name", search_fields=["name"])

        assert scoped == 1
        assert unscoped == 2
        assert no_match == 0


class TestScopedWrites:

    @pytest.mark.asyncio
    async def test_client_create_is_forced_to_own_record(self, db, world):
        payload = AppointmentCreate(start_time=datetime(2026, 4, 1, 9, tzinfo=timezone.utc))
        appointment = await appointment_repository.create(db, obj_in=payload, scope=client_scope(world.client_a))
        assert appointment.client_id == world.client_record_a.id

    @pytest.mark.asyncio
    async def test_client_create_for_someone_else_is_forbidden(self, db, world):
        payload = AppointmentCreate(
            client_id=world.client_record_b.id,
            start_time=datetime(2026, 4, 1, 9, tzinfo=timezone.utc),
        )
        with pytest.raises(ForbiddenScope):
            await appointment_repository.create(db, obj_in=payload, scope=client_scope(world.client_a))

    @pytest.mark.asyncio
    async def test_provider_create_is_attributed_to_provider(self, db, world):
        treatment = await treatment_repository.create(
            db,
            obj_in={"client_id": world.client_record_a.id, "notes": "Chemical peel"},
            scope=provider_scope(world.provider_a),
        )
        assert treatment.provider_id == world.provider_a.id

    @pytest.mark.asyncio
    async def test_scoped_update_cannot_reassign_owner(self, db, world):
        scope = provider_scope(world.provider_a)
        appointment = await appointment_repository.get(db, world.appointments[0].id, scope=scope)

        with pytest.raises(ForbiddenScope):
            await appointment_repository.update(
                db, db_obj=appointment, obj_in=AppointmentUpdate(provider_id=world.provider_b.id), scope=scope
            )

        updated = await appointment_repository.update(
            db, db_obj=appointment, obj_in=AppointmentUpdate(notes="Bring SPF"), scope=scope
        )
        assert updated.notes == "Bring SPF"
        assert updated.provider_id == world.provider_a.id

    @pytest.mark.asyncio
    async def test_client_without_profile_cannot_create(self, db, world, make_principal):
        user = await make_principal("client")
        record = await client_repository.get_by_user_id(db, user.id)
        await client_repository.delete(db, id=record.id)

        payload = AppointmentCreate(start_time=datetime(2026, 4, 1, 9, tzinfo=timezone.utc))
        with pytest.raises(ForbiddenScope):
            await appointment_repository.create(db, obj_in=payload, scope=client_scope(user))

    @pytest.mark.asyncio
    async def test_out_of_scope_delete_is_a_no_op(self, db, world):
        other = world.appointments[1]
        assert await appointment_repository.delete(db, id=other.id, scope=client_scope(world.client_a)) is None
        assert await appointment_repository.get(db, other.id) is not None

    @pytest.mark.asyncio
    async def test_set_status_respects_scope(self, db, world):
        scope = provider_scope(world.provider_a)
        assert await appointment_repository.set_status(
            db, id=world.appointments[1].id, status="cancelled", scope=scope
        ) is None

        appointment = await appointment_repository.set_status(
            db, id=world.appointments[0].id, status="confirmed", scope=scope
        )
        assert appointment.status == "confirmed"
