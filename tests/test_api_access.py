"""
End-to-end access control tests
Requests go through the full middleware stack into the real handlers.
"""

from datetime import timedelta

import pytest

from medspa.core.roles import Role, is_mutating
from medspa.core.security import create_access_token
from medspa.models.catalog import Product
from medspa.models.notification import Notification
from medspa.services.principal import principal_service
from conftest import API, PASSWORD, bearer


def error_of(response) -> str:
    return response.json()["error"]


# ==================== Authentication ====================

class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/admin/appointments", "/staff/clients", "/me", "/no/such/route"])
    async def test_missing_token_is_401_everywhere(self, client, path):
        response = await client.get(f"{API}{path}")
        assert response.status_code == 401
        assert error_of(response) == "unauthenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_expired_token(self, client, world):
        token = create_access_token(subject=world.reception.id, expires_delta=timedelta(seconds=-5))
        response = await client.get(f"{API}/staff/clients", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"error": "unauthenticated", "message": "Token expired"}

    @pytest.mark.asyncio
    async def test_malformed_token(self, client):
        response = await client.get(f"{API}/admin/appointments", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert error_of(response) == "unauthenticated"

    @pytest.mark.asyncio
    async def test_token_for_deleted_principal(self, client):
        response = await client.get(f"{API}/me", headers=bearer(424242))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_and_use_token(self, client, world):
        response = await client.post(
            f"{API}/auth/login", json={"email": world.provider_a.email, "password": PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "provider"

        token = body["tokens"]["access_token"]
        me = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == world.provider_a.email

    @pytest.mark.asyncio
    async def test_login_failures_do_not_say_which_part_was_wrong(self, client, world):
        wrong_password = await client.post(
            f"{API}/auth/login", json={"email": world.provider_a.email, "password": "nope-nope"}
        )
        unknown_email = await client.post(
            f"{API}/auth/login", json={"email": "ghost@medspa.test", "password": PASSWORD}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

    @pytest.mark.asyncio
    async def test_disabled_account_cannot_log_in(self, client, make_principal):
        user = await make_principal(Role.RECEPTION, is_active=False)
        response = await client.post(f"{API}/auth/login", json={"email": user.email, "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["message"] == "Account is disabled"

    @pytest.mark.asyncio
    async def test_refresh(self, client, world):
        login = await client.post(f"{API}/auth/login", json={"email": world.client_a.email, "password": PASSWORD})
        refresh = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": login.json()["tokens"]["refresh_token"]}
        )
        assert refresh.status_code == 200
        assert refresh.json()["access_token"]

    @pytest.mark.asyncio
    async def test_logout_is_public(self, client):
        response = await client.post(f"{API}/auth/logout")
        assert response.status_code == 200


# ==================== Role and namespace checks ====================

class TestNamespaces:

    @pytest.mark.asyncio
    async def test_reception_creates_clients_under_staff_only(self, client, world):
        headers = bearer(world.reception)
        created = await client.post(f"{API}/staff/clients", json={"name": "Walk In"}, headers=headers)
        assert created.status_code == 201
        assert created.json()["name"] == "Walk In"

        denied = await client.post(f"{API}/admin/clients", json={"name": "Walk In"}, headers=headers)
        assert denied.status_code == 403
        assert error_of(denied) == "forbidden-role"

    @pytest.mark.asyncio
    async def test_reception_namespace_alias(self, client, world):
        response = await client.get(f"{API}/reception/clients", headers=bearer(world.reception))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_legacy_staff_role_acts_as_reception(self, client, make_principal):
        user = await make_principal("staff")
        response = await client.post(f"{API}/staff/clients", json={"name": "Legacy"}, headers=bearer(user))
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_unknown_role_has_no_access(self, client, make_principal):
        user = await make_principal("superuser")
        response = await client.get(f"{API}/me", headers=bearer(user))
        assert response.status_code == 403
        assert error_of(response) == "forbidden-role"

    @pytest.mark.asyncio
    async def test_unregistered_path_is_forbidden(self, client, world):
        response = await client.get(f"{API}/billing/invoices", headers=bearer(world.reception))
        assert response.status_code == 403
        assert error_of(response) == "forbidden-role"

    @pytest.mark.asyncio
    async def test_provider_has_no_payments(self, client, world):
        response = await client.get(f"{API}/staff/payments", headers=bearer(world.provider_a))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_client_cannot_reach_admin_payments(self, client, world):
        response = await client.get(f"{API}/admin/payments", headers=bearer(world.client_a))
        assert response.status_code == 403
        assert error_of(response) == "forbidden-role"

    @pytest.mark.asyncio
    async def test_allowed_resource_without_handler_is_404(self, client, world):
        response = await client.get(f"{API}/admin/reports", headers=bearer(world.admin))
        assert response.status_code == 404


# ==================== Read-only override ====================

class TestReadOnlyAdmin:

    @pytest.mark.asyncio
    async def test_admin_reads_everything(self, client, world):
        response = await client.get(f"{API}/admin/appointments", headers=bearer(world.admin))
        assert response.status_code == 200
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_admin_mutations_are_read_only_denials(self, client, world):
        headers = bearer(world.admin)
        appointment_id = world.appointments[0].id

        delete = await client.delete(f"{API}/admin/appointments/{appointment_id}", headers=headers)
        assert delete.status_code == 403
        assert delete.json() == {"error": "forbidden-readonly", "message": "Admins have view-only access"}

        create = await client.post(f"{API}/admin/clients", json={"name": "X"}, headers=headers)
        assert error_of(create) == "forbidden-readonly"

    @pytest.mark.asyncio
    async def test_admin_profile_edit_is_read_only_denial(self, client, world):
        response = await client.put(f"{API}/profile", json={"name": "Boss"}, headers=bearer(world.admin))
        assert response.status_code == 403
        assert error_of(response) == "forbidden-readonly"

    @pytest.mark.asyncio
    async def test_record_survives_denied_delete(self, client, world):
        appointment_id = world.appointments[0].id
        await client.delete(f"{API}/admin/appointments/{appointment_id}", headers=bearer(world.admin))
        response = await client.get(f"{API}/admin/appointments/{appointment_id}", headers=bearer(world.admin))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_every_admin_write_route_is_read_only(self, client, registry, world):
        headers = bearer(world.admin)
        swept = []

        for policy in registry.iter_policies():
            if Role.ADMIN not in policy.roles or not is_mutating(policy.verb):
                continue
            write = await client.request(policy.verb, f"{API}{policy.pattern}/1", json={}, headers=headers)
            assert (policy.verb, policy.pattern, write.status_code, error_of(write)) == (
                policy.verb, policy.pattern, 403, "forbidden-readonly"
            )

            read = await client.get(f"{API}{policy.pattern}", headers=headers)
            assert read.status_code != 403, policy.pattern
            swept.append(policy.pattern)

        assert "/admin/appointments" in swept
        assert "/profile" in swept

    @pytest.mark.asyncio
    async def test_head_is_a_read(self, client, world):
        headers = bearer(world.admin)
        appointment_id = world.appointments[0].id

        assert (await client.head(f"{API}/admin/appointments", headers=headers)).status_code == 200
        assert (await client.head(f"{API}/admin/appointments/{appointment_id}", headers=headers)).status_code == 200
        assert (await client.head(f"{API}/admin/dashboard", headers=headers)).status_code == 200
        assert (await client.head(f"{API}/me", headers=headers)).status_code == 200


# ==================== Record scope ====================

class TestRecordScope:

    @pytest.mark.asyncio
    async def test_provider_sees_only_assigned_appointments(self, client, world):
        response = await client.get(f"{API}/staff/appointments", headers=bearer(world.provider_a))
        items = response.json()["items"]
        assert response.json()["total"] == 1
        assert [i["provider_id"] for i in items] == [world.provider_a.id]

    @pytest.mark.asyncio
    async def test_provider_namespace_is_scoped_too(self, client, world):
        response = await client.get(f"{API}/provider/appointments", headers=bearer(world.provider_b))
        assert {i["provider_id"] for i in response.json()["items"]} == {world.provider_b.id}

    @pytest.mark.asyncio
    async def test_other_providers_appointment_reads_as_missing(self, client, world):
        other = world.appointments[1].id
        response = await client.get(f"{API}/staff/appointments/{other}", headers=bearer(world.provider_a))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_provider_updates_own_appointment_status(self, client, world):
        own = world.appointments[0].id
        response = await client.patch(
            f"{API}/staff/appointments/{own}/status", json={"status": "confirmed"}, headers=bearer(world.provider_a)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    @pytest.mark.asyncio
    async def test_reception_sees_all_appointments(self, client, world):
        response = await client.get(f"{API}/staff/appointments", headers=bearer(world.reception))
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_clients_see_disjoint_payments(self, client, world):
        mine = (await client.get(f"{API}/client/payments", headers=bearer(world.client_a))).json()["items"]
        theirs = (await client.get(f"{API}/client/payments", headers=bearer(world.client_b))).json()["items"]

        assert [p["client_id"] for p in mine] == [world.client_record_a.id]
        assert [p["client_id"] for p in theirs] == [world.client_record_b.id]
        assert not {p["id"] for p in mine} & {p["id"] for p in theirs}

    @pytest.mark.asyncio
    async def test_client_payment_is_attributed_to_caller(self, client, world):
        response = await client.post(
            f"{API}/client/payments", json={"amount": "45.00"}, headers=bearer(world.client_a)
        )
        assert response.status_code == 201
        assert response.json()["client_id"] == world.client_record_a.id

    @pytest.mark.asyncio
    async def test_client_cannot_pay_as_someone_else(self, client, world):
        response = await client.post(
            f"{API}/client/payments",
            json={"amount": "45.00", "client_id": world.client_record_b.id},
            headers=bearer(world.client_a),
        )
        assert response.status_code == 403
        assert error_of(response) == "forbidden-scope"

    @pytest.mark.asyncio
    async def test_client_books_own_appointment(self, client, world):
        response = await client.post(
            f"{API}/client/appointments",
            json={"start_time": "2026-05-01T10:00:00Z", "provider_id": world.provider_a.id},
            headers=bearer(world.client_b),
        )
        assert response.status_code == 201
        assert response.json()["client_id"] == world.client_record_b.id

    @pytest.mark.asyncio
    async def test_client_cannot_delete_someone_elses_appointment(self, client, world):
        other = world.appointments[1].id
        response = await client.delete(f"{API}/client/appointments/{other}", headers=bearer(world.client_a))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_dashboard_counts_follow_scope(self, client, world):
        provider = (await client.get(f"{API}/staff/dashboard", headers=bearer(world.provider_b))).json()
        reception = (await client.get(f"{API}/staff/dashboard", headers=bearer(world.reception))).json()

        assert provider["scope"] == f"provider:{world.provider_b.id}"
        assert provider["appointments"] == 2
        assert reception["appointments"] == 3

    @pytest.mark.asyncio
    async def test_search_results_page_with_full_total(self, client, world):
        headers = bearer(world.reception)
        for i in range(3):
            await client.post(f"{API}/staff/clients", json={"name": f"Zed {i}"}, headers=headers)

        first = (await client.get(f"{API}/staff/clients?search=Zed&limit=2", headers=headers)).json()
        assert first["total"] == 3
        assert first["has_next"] is True
        assert len(first["items"]) == 2

        second = (await client.get(f"{API}/staff/clients?search=Zed&limit=2&skip=2", headers=headers)).json()
        assert second["total"] == 3
        assert second["has_next"] is False
        assert [c["name"] for c in first["items"] + second["items"]] == ["Zed 0", "Zed 1", "Zed 2"]

    @pytest.mark.asyncio
    async def test_stock_alerts_list_only_low_stock(self, client, db, world):
        db.add_all([
            Product(name="Serum", price=40, current_stock=2, minimum_stock=5),
            Product(name="Cleanser", price=20, current_stock=30, minimum_stock=5),
        ])
        await db.commit()

        response = await client.get(f"{API}/provider/stock-alerts", headers=bearer(world.provider_a))
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Serum"]

    @pytest.mark.asyncio
    async def test_staff_roster_excludes_clients_and_admins(self, client, world):
        response = await client.get(f"{API}/admin/staff", headers=bearer(world.admin))
        assert response.status_code == 200
        assert {member["role"] for member in response.json()} == {"provider", "reception"}


# ==================== Role changes ====================

class TestRoleChanges:

    @pytest.mark.asyncio
    async def test_role_change_applies_without_new_token(self, client, db, world):
        headers = bearer(world.reception)
        before = await client.post(f"{API}/staff/clients", json={"name": "Before"}, headers=headers)
        assert before.status_code == 201

        await principal_service.change_role(db, world.reception.email, Role.CLIENT)

        after = await client.post(f"{API}/staff/clients", json={"name": "After"}, headers=headers)
        assert after.status_code == 403
        assert error_of(after) == "forbidden-role"

        me = await client.get(f"{API}/me", headers=headers)
        assert me.json()["role"] == "client"

    @pytest.mark.asyncio
    async def test_deactivation_applies_without_new_token(self, client, db, world):
        headers = bearer(world.provider_a)
        await principal_service.set_active(db, world.provider_a.email, False)
        response = await client.get(f"{API}/staff/appointments", headers=headers)
        assert response.status_code == 401


# ==================== Shared routes ====================

class TestSharedRoutes:

    @pytest.mark.asyncio
    async def test_permissions_manifest(self, client, world):
        response = await client.get(f"{API}/me/permissions", headers=bearer(world.provider_a))
        body = response.json()

        assert body["role"] == "provider"
        assert body["read_only"] is False
        assert body["permissions"]["appointments"] == {"actions": ["read", "update"], "scope": "own"}
        assert "payments" not in body["permissions"]

    @pytest.mark.asyncio
    async def test_admin_manifest_is_read_only(self, client, world):
        body = (await client.get(f"{API}/me/permissions", headers=bearer(world.admin))).json()
        assert body["read_only"] is True
        assert all(entry["actions"] == ["read"] for entry in body["permissions"].values())

    @pytest.mark.asyncio
    async def test_profile_update(self, client, world):
        response = await client.put(
            f"{API}/profile", json={"name": "Dana Reyes", "phone": "555-0100"}, headers=bearer(world.client_a)
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Dana Reyes"

    @pytest.mark.asyncio
    async def test_profile_update_cannot_change_role(self, client, world):
        response = await client.put(f"{API}/profile", json={"role": "admin"}, headers=bearer(world.client_a))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_notifications_are_per_principal(self, client, db, world):
        note = Notification(user_id=world.client_b.id, title="Reminder", message="See you tomorrow")
        db.add(note)
        await db.commit()

        mine = await client.get(f"{API}/notifications", headers=bearer(world.client_b))
        assert [n["title"] for n in mine.json()] == ["Reminder"]

        stolen = await client.post(f"{API}/notifications/{note.id}/read", headers=bearer(world.client_a))
        assert stolen.status_code == 404

        read = await client.post(f"{API}/notifications/{note.id}/read", headers=bearer(world.client_b))
        assert read.json()["is_read"] is True

    @pytest.mark.asyncio
    async def test_business_settings_visible_to_every_role(self, client, world):
        for user in (world.admin, world.provider_a, world.reception, world.client_a):
            response = await client.get(f"{API}/business-settings", headers=bearer(user))
            assert response.status_code == 200


# ==================== Public routes and headers ====================

class TestPublicRoutes:

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, client):
        assert (await client.get("/health")).status_code == 200
        assert (await client.get(f"{API}/health/live")).status_code == 200

    @pytest.mark.asyncio
    async def test_responses_carry_request_id_and_security_headers(self, client):
        response = await client.get(f"{API}/me", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"

    def test_protected_routes_document_auth_errors(self, app):
        paths = app.openapi()["paths"]
        error_ref = "#/components/schemas/ErrorResponse"

        for path in (f"{API}/admin/appointments", f"{API}/me"):
            responses = paths[path]["get"]["responses"]
            for code in ("401", "403"):
                assert responses[code]["content"]["application/json"]["schema"]["$ref"] == error_ref

        assert "403" not in paths[f"{API}/auth/login"]["post"]["responses"]
