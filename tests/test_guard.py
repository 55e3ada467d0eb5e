"""
Tests for the client-side guard
Navigation visibility from permission manifests and session revalidation
"""

import pytest

from medspa.core.roles import Action, Role
from medspa.guard.navigation import NavigationGuard
from medspa.guard.session import GuardOutcome, GuardSession, SessionExpired
from medspa.services.principal import principal_service
from conftest import API, PASSWORD


def guard_for(registry, role: Role) -> NavigationGuard:
    return NavigationGuard(registry.permissions_for(role).to_dict())


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# ==================== Navigation ====================

class TestNavigationVisibility:

    def test_admin_sees_everything_except_clinical_and_mutations(self, registry):
        ids = guard_for(registry, Role.ADMIN).visible_ids()

        assert {"dashboard", "reports", "compliance-audit", "settings-staff", "inventory-alerts"} <= ids
        assert "treatments" not in ids
        assert not {"appointments-book", "clients-add", "payments-pos"} & ids

    def test_reception_sees_front_desk_items(self, registry):
        guard = guard_for(registry, Role.RECEPTION)
        ids = guard.visible_ids()

        assert {"appointments-book", "clients-add", "payments-pos", "inventory-products"} <= ids
        assert not {"treatments", "reports", "compliance", "inventory-alerts", "settings-staff"} & ids

    def test_provider_sees_clinical_items(self, registry):
        ids = guard_for(registry, Role.PROVIDER).visible_ids()

        assert {"treatments-notes", "treatments-consents", "treatments-photos", "compliance-alerts"} <= ids
        assert not {"payments", "appointments-book", "clients-add", "compliance-audit", "reports"} & ids

    def test_client_sees_self_service_items(self, registry):
        ids = guard_for(registry, Role.CLIENT).visible_ids()

        assert {"appointments-book", "payments-pos", "treatments-consents", "settings-profile"} <= ids
        assert not {"clients", "inventory", "reports", "treatments-photos"} & ids

    def test_parent_hidden_when_no_child_is_visible(self, registry):
        manifest = {
            "role": "reception",
            "read_only": False,
            "permissions": {"reports": {"actions": [], "scope": "all"}, "compliance-alerts": {"actions": ["read"]}},
        }
        ids = NavigationGuard(manifest).visible_ids()
        assert "compliance" in ids
        assert "compliance-alerts" in ids
        assert "reports" not in ids

    def test_can_navigate(self, registry):
        guard = guard_for(registry, Role.PROVIDER)
        assert guard.can_navigate("/treatments/notes")
        assert guard.can_navigate("/treatments/notes/")
        assert not guard.can_navigate("/payments/pos")
        assert not guard.can_navigate("/totally/unknown")

    def test_can_mutate_follows_read_only_flag(self, registry):
        assert not guard_for(registry, Role.ADMIN).can_mutate("appointments")
        assert guard_for(registry, Role.RECEPTION).can_mutate("appointments")
        assert guard_for(registry, Role.CLIENT).allows("payments", Action.CREATE)


# ==================== Session ====================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(client, clock):
    return GuardSession(client, api_prefix=API, revalidate_seconds=300, clock=clock)


class TestGuardSession:

    @pytest.mark.asyncio
    async def test_login_loads_profile_and_manifest(self, session, world):
        result = await session.login(world.reception.email, PASSWORD)

        assert result.authorized
        assert session.role == "reception"
        assert await session.can_navigate("/clients/add")
        assert not await session.can_navigate("/treatments/notes")

    @pytest.mark.asyncio
    async def test_failed_login(self, session, world):
        result = await session.login(world.reception.email, "wrong-password")

        assert result.outcome == GuardOutcome.REAUTHENTICATE
        assert result.reason == "unauthenticated"
        assert not session.is_authenticated

    @pytest.mark.asyncio
    async def test_role_change_picked_up_after_interval(self, session, clock, db, world):
        await session.login(world.reception.email, PASSWORD)
        await principal_service.change_role(db, world.reception.email, Role.PROVIDER)

        # Within the interval the cached manifest is used
        assert await session.can_navigate("/clients/add")

        clock.now += 301
        assert session.needs_revalidation()
        assert not await session.can_navigate("/clients/add")
        assert session.role == "provider"

    @pytest.mark.asyncio
    async def test_forbidden_marks_profile_stale(self, session, world):
        await session.login(world.provider_a.email, PASSWORD)
        assert not session.needs_revalidation()

        result = await session.request("GET", "/staff/payments")

        assert result.outcome == GuardOutcome.ACCESS_RESTRICTED
        assert result.reason == "forbidden-role"
        assert session.needs_revalidation()
        assert session.is_authenticated

    @pytest.mark.asyncio
    async def test_allowed_request_returns_data(self, session, world):
        await session.login(world.client_a.email, PASSWORD)

        result = await session.request("GET", "/client/payments")

        assert result.authorized
        assert result.data["total"] == 1

    @pytest.mark.asyncio
    async def test_unauthorized_clears_session(self, session, db, world):
        await session.login(world.client_a.email, PASSWORD)
        await principal_service.set_active(db, world.client_a.email, False)

        result = await session.request("GET", "/client/appointments")

        assert result.outcome == GuardOutcome.REAUTHENTICATE
        assert not session.is_authenticated
        assert session.profile is None

    @pytest.mark.asyncio
    async def test_revalidate_raises_when_server_rejects(self, session, db, world):
        await session.login(world.client_a.email, PASSWORD)
        await principal_service.set_active(db, world.client_a.email, False)

        with pytest.raises(SessionExpired):
            await session.revalidate(force=True)
        assert not session.is_authenticated

    @pytest.mark.asyncio
    async def test_request_without_session(self, session):
        with pytest.raises(SessionExpired):
            await session.request("GET", "/me")

    @pytest.mark.asyncio
    async def test_logout(self, session, world):
        await session.login(world.client_b.email, PASSWORD)
        await session.logout()
        assert not session.is_authenticated
