"""
Tests for the startup bootstrap admin
"""

import pytest

from medspa.core.config import settings
from medspa.core.roles import Role
from medspa.repositories.user import user_repository
from medspa.services.bootstrap_admin import ensure_bootstrap_admin_exists
from medspa.services.principal import principal_service


@pytest.fixture
def bootstrap_settings(monkeypatch):
    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_EMAIL", " Owner@MedSpa.Example ")
    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_NAME", "Clinic Owner")
    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", "bootstrap-password")


class TestBootstrapAdmin:

    @pytest.mark.asyncio
    async def test_creates_admin_once(self, db, bootstrap_settings):
        await ensure_bootstrap_admin_exists(db)
        await ensure_bootstrap_admin_exists(db)

        admin = await user_repository.get_by_email(db, "owner@medspa.example")
        assert admin is not None
        assert admin.role == Role.ADMIN.value
        assert admin.name == "Clinic Owner"

        admins = await principal_service.list_principals(db, Role.ADMIN)
        assert len(admins) == 1
