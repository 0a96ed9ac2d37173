"""Tests for app/services/admin_service.py."""

from unittest.mock import MagicMock

import pytest

from app.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from app.services.admin_service import ADMIN_MAX_TIMEOUT_HOURS, AdminService
from app.storage import MemoryStorage
from app.services.plant_service import PlantService


class TestGetConfig:
    """Tests for default config seeding."""

    def test_seeds_from_static_lists(self, admin_service, storage):
        assert storage.get_admin_config() is None

        admin_config = admin_service.get_config()

        assert admin_config.timeout_hours == 24
        assert admin_config.allowed_emails == ["user@example.com", "demo@example.com", "admin@example.com"]
        assert admin_config.admin_emails == ["admin@example.com"]
        assert storage.get_admin_config() is not None

    def test_admins_unioned_without_duplicates(self):
        storage = MemoryStorage()
        service = AdminService(
            storage=storage,
            plant_service=PlantService(storage),
            seed_allowed_emails=["Boss@Example.com ", "a@example.com"],
            seed_admin_emails=["boss@example.com"],
        )
        admin_config = service.get_config()
        assert admin_config.allowed_emails == ["boss@example.com", "a@example.com"]

    def test_stored_config_wins_over_seed(self, admin_service):
        admin_service.add_user("new@example.com")
        assert "new@example.com" in admin_service.get_config().allowed_emails


class TestUpdateTimeout:
    """Tests for AdminService.update_timeout."""

    def test_syncs_plant_timeout(self, admin_service, plant_service):
        admin_service.update_timeout(72, actor="admin@example.com")

        assert admin_service.get_config().timeout_hours == 72
        assert plant_service.get_plant().timeout_hours == 72
        assert plant_service.get_timer().timeout_hours == 72

    def test_syncs_existing_plant(self, admin_service, plant_service):
        plant_service.water("user@example.com")
        admin_service.update_timeout(6)
        plant = plant_service.get_plant()
        assert plant.timeout_hours == 6
        assert plant.watered_by == "user@example.com"

    def test_stamps_audit_fields(self, admin_service):
        admin_config = admin_service.update_timeout(12, actor="admin@example.com")
        assert admin_config.modified_by == "admin@example.com"
        assert admin_config.last_modified is not None

    @pytest.mark.parametrize("hours", [0, -5, ADMIN_MAX_TIMEOUT_HOURS + 1, 8760])
    def test_out_of_range(self, admin_service, plant_service, hours):
        with pytest.raises(ValidationError, match="between 1 and 168"):
            admin_service.update_timeout(hours)
        assert plant_service.get_plant().timeout_hours == 24

    @pytest.mark.parametrize("hours", [1, ADMIN_MAX_TIMEOUT_HOURS])
    def test_bounds_inclusive(self, admin_service, hours):
        assert admin_service.update_timeout(hours).timeout_hours == hours

    def test_failed_plant_save_leaves_config_untouched(self, admin_service, plant_service, storage):
        admin_service.get_config()
        plant_service.get_plant()
        storage.save_plant = MagicMock(side_effect=StorageError("db down"))

        with pytest.raises(StorageError):
            admin_service.update_timeout(72, actor="admin@example.com")

        admin_config = storage.get_admin_config()
        assert admin_config.timeout_hours == 24
        assert admin_config.modified_by == "system"
        assert storage.get_plant().timeout_hours == 24


class TestUsers:
    """Tests for allowlist management."""

    def test_add_user(self, admin_service):
        email = admin_service.add_user("  New@Example.com ")
        assert email == "new@example.com"
        allowed, _ = admin_service.list_users()
        assert allowed[-1] == "new@example.com"

    def test_add_duplicate(self, admin_service):
        admin_service.add_user("dup@x.com")
        with pytest.raises(ConflictError):
            admin_service.add_user("dup@x.com")
        allowed, _ = admin_service.list_users()
        assert allowed.count("dup@x.com") == 1

    @pytest.mark.parametrize("email", ["", "   ", "no-at-sign.com", "nodot@example"])
    def test_add_invalid(self, admin_service, email):
        with pytest.raises(ValidationError):
            admin_service.add_user(email)

    def test_remove_user(self, admin_service):
        admin_service.remove_user("user@example.com", actor="admin@example.com")
        allowed, _ = admin_service.list_users()
        assert "user@example.com" not in allowed
        assert admin_service.get_config().modified_by == "admin@example.com"

    def test_remove_missing(self, admin_service):
        with pytest.raises(NotFoundError):
            admin_service.remove_user("ghost@x.com")

    def test_remove_admin_revokes_admin(self, admin_service):
        admin_service.remove_user("admin@example.com")
        allowed, admins = admin_service.list_users()
        assert "admin@example.com" not in allowed
        assert "admin@example.com" not in admins


class TestStats:
    """Tests for AdminService.stats."""

    def test_unwatered(self, admin_service):
        stats = admin_service.stats()
        assert stats["total_users"] == 3
        assert stats["admin_users"] == 1
        assert stats["timeout_hours"] == 24
        assert stats["plant_watered"] is False
        assert stats["last_watered"] is None
        assert stats["watered_by"] is None
        assert stats["total_events"] == 0
        assert stats["system_status"] == "healthy"

    def test_watered(self, admin_service, plant_service):
        plant = plant_service.water("user@example.com")
        stats = admin_service.stats()
        assert stats["plant_watered"] is True
        assert stats["last_watered"] == plant.last_watered
        assert stats["watered_by"] == "user@example.com"
        assert stats["total_events"] == 1
