"""
Tests for first-run setup and database seeding.
"""
from decimal import Decimal

import pytest

from finops.models.user import UserRole
from finops.repositories.user_repository import UserRepository
from finops.services.exceptions import ValidationError


class TestSetupStatus:

    async def test_fresh_database_needs_setup(self, container):
        status = await container.setup_service.get_status()

        assert status.needs_setup is True
        assert status.user_count == 0
        assert status.environment == "testing"

    async def test_status_after_first_user(self, container, user):
        status = await container.setup_service.get_status()

        assert status.needs_setup is False
        assert status.user_count == 1


class TestCreateAdmin:

    async def test_create_admin(self, container):
        admin = await container.setup_service.create_admin("boss@example.com", "pw-123456")

        assert admin.role == UserRole.ADMIN
        assert admin.email == "boss@example.com"

        result = await container.auth_service.authenticate("boss@example.com", "pw-123456")
        assert result.user.id == admin.id

    @pytest.mark.parametrize("email,password", [(None, "pw"), ("a@b.com", None), ("", "")])
    async def test_missing_fields(self, container, email, password):
        with pytest.raises(ValidationError) as exc_info:
            await container.setup_service.create_admin(email, password)
        assert exc_info.value.message == "Email and password are required"

    async def test_duplicate_email(self, container):
        await container.setup_service.create_admin("boss@example.com", "pw-123456")

        with pytest.raises(ValidationError) as exc_info:
            await container.setup_service.create_admin("boss@example.com", "other")
        assert exc_info.value.message == "User with this email already exists"

    async def test_duplicate_email_racing_past_lookup(self, container, monkeypatch):
        await container.setup_service.create_admin("boss@example.com", "pw-123456")

        async def lookup_misses(self, email):
            return None

        monkeypatch.setattr(UserRepository, "get_by_email", lookup_misses)

        with pytest.raises(ValidationError) as exc_info:
            await container.setup_service.create_admin("boss@example.com", "other")
        assert exc_info.value.message == "User with this email already exists"

        monkeypatch.undo()
        status = await container.setup_service.get_status()
        assert status.user_count == 1

    async def test_more_admins_allowed_after_setup(self, container, user):
        admin = await container.setup_service.create_admin("second@example.com", "pw-123456")

        assert admin.role == UserRole.ADMIN
        status = await container.setup_service.get_status()
        assert status.user_count == 2


class TestInitializeDatabase:

    async def test_seeds_admin_and_samples(self, container):
        admin = await container.setup_service.initialize_database("admin@app.com", "admin123")

        assert admin is not None
        page = await container.operation_service.list_operations(admin.id)
        assert page.total == 3
        assert {(op.type.value, op.amount, op.currency) for op in page.items} == {
            ("BUY", Decimal("1000.00"), "USD"),
            ("SELL", Decimal("500.00"), "EUR"),
            ("BUY", Decimal("0.50"), "BTC"),
        }

    async def test_without_samples(self, container):
        admin = await container.setup_service.initialize_database(
            "admin@app.com", "admin123", with_samples=False
        )

        stats = await container.operation_service.get_stats(admin.id)
        assert stats.total == 0

    async def test_is_idempotent(self, container):
        first = await container.setup_service.initialize_database("admin@app.com", "admin123")
        second = await container.setup_service.initialize_database("admin@app.com", "admin123")

        assert first is not None
        assert second is None
        stats = await container.operation_service.get_stats(first.id)
        assert stats.total == 3
