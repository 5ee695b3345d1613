"""Unit tests for password hashing, admin/superadmin login and provisioning."""

import pytest
from backoffice.core.auth import Role, decode_access_token
from backoffice.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from backoffice.domain.services.auth_service import (
    AuthService,
    check_password_strength,
    hash_password,
    verify_password,
)
from backoffice.infrastructure.db.models import ModerationStatus
from sqlalchemy.ext.asyncio import AsyncSession

from tests.utils import SUPERADMIN, create_admin


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_returns_different_hash(self):
        """Same password should produce different hashes (salt)."""
        password = "testpassword123"
        hash1 = hash_password(password)
        hash2 = hash_password(password)

        assert hash1 != hash2
        assert hash1.startswith("$2b$")

    def test_verify_password_correct(self):
        password = "testpassword123"
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_short_password_is_rejected(self):
        with pytest.raises(ValidationError):
            check_password_strength("12345")
        check_password_strength("123456")


class TestAdminLogin:
    async def test_approved_admin_receives_tokens(self, db: AsyncSession):
        await create_admin(db, admin_id="admin-1", email="a1@example.com")

        result = await AuthService(db).login_admin(email="A1@example.com", password="secret123")

        assert result["user"]["id"] == "admin-1"
        assert result["user"]["role"] == "Admin"
        assert "hashed_password" not in result["user"]
        assert result["tokens"]["token_type"] == "bearer"
        payload = decode_access_token(result["tokens"]["access_token"])
        assert payload["sub"] == "admin-1"
        assert payload["role"] == Role.ADMIN.value

    async def test_pending_admin_may_sign_in(self, db: AsyncSession):
        await create_admin(db, status=ModerationStatus.PENDING)

        result = await AuthService(db).login_admin(email="a1@example.com", password="secret123")

        assert result["user"]["status"] == "pending"

    async def test_rejected_admin_is_refused(self, db: AsyncSession):
        await create_admin(db, status=ModerationStatus.REJECTED)

        with pytest.raises(AuthorizationError):
            await AuthService(db).login_admin(email="a1@example.com", password="secret123")

    async def test_wrong_password(self, db: AsyncSession):
        await create_admin(db)

        with pytest.raises(AuthenticationError):
            await AuthService(db).login_admin(email="a1@example.com", password="nope-nope")

    async def test_unknown_email(self, db: AsyncSession):
        with pytest.raises(AuthenticationError):
            await AuthService(db).login_admin(email="ghost@example.com", password="secret123")


class TestSuperAdmin:
    async def test_create_and_login(self, db: AsyncSession):
        service = AuthService(db)
        account = await service.create_superadmin(email="Root@Example.com", password="rootpass")

        assert account.email == "root@example.com"
        result = await service.login_superadmin(email="root@example.com", password="rootpass")
        assert result["user"]["role"] == Role.SUPER_ADMIN.value
        assert result["user"]["last_login_at"] is not None

    async def test_duplicate_superadmin_conflicts(self, db: AsyncSession):
        service = AuthService(db)
        await service.create_superadmin(email="root@example.com", password="rootpass")

        with pytest.raises(ConflictError):
            await service.create_superadmin(email="root@example.com", password="another")

    async def test_admin_credentials_do_not_open_superadmin_login(self, db: AsyncSession):
        await create_admin(db)

        with pytest.raises(AuthenticationError):
            await AuthService(db).login_superadmin(email="a1@example.com", password="secret123")


async def test_profile_for_unprovisioned_superadmin(db: AsyncSession):
    with pytest.raises(NotFoundError):
        await AuthService(db).get_profile(SUPERADMIN)
