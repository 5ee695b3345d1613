"""Authentication service with password hashing and credential issuance."""

from __future__ import annotations

from datetime import timedelta

import structlog
from backoffice.core.auth import Role, create_access_token
from backoffice.core.config import get_settings
from backoffice.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from backoffice.domain.models import Principal
from backoffice.infrastructure.db.models import (
    AdminModel,
    ModerationStatus,
    SuperAdminModel,
    utcnow,
)
from backoffice.infrastructure.repositories.unit_of_work import UnitOfWork
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Password hashing context with bcrypt (cost 12 as per security standards)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def check_password_strength(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


class AuthService:
    """Service for login, profile lookup and SuperAdmin provisioning."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.uow = UnitOfWork(session)

    async def login_admin(self, *, email: str, password: str) -> dict:
        """
        Authenticate an admin with email and password.

        Rejected accounts are refused; pending accounts may sign in so they can
        follow their verification status and resubmit documents.
        """
        await logger.ainfo("login_attempt", email=email, role=Role.ADMIN.value)

        admin = await self.uow.admins.first(AdminModel.email == email.lower())
        if admin is None or not verify_password(password, admin.hashed_password):
            await logger.awarning("login_invalid_credentials", email=email)
            raise AuthenticationError("Invalid email or password")

        if admin.status == ModerationStatus.REJECTED:
            await logger.awarning("login_rejected_admin", admin_id=admin.id)
            raise AuthorizationError("Your account has been rejected")

        admin.last_login_at = utcnow()
        await self.uow.commit()

        principal = Principal(
            id=admin.id, role=Role.ADMIN, email=admin.email, name=admin.full_name
        )
        await logger.ainfo("login_success", user_id=admin.id, role=Role.ADMIN.value)
        return {"user": admin_to_dict(admin), "tokens": self.generate_tokens(principal)}

    async def login_superadmin(self, *, email: str, password: str) -> dict:
        await logger.ainfo("login_attempt", email=email, role=Role.SUPER_ADMIN.value)

        account = await self.uow.superadmins.first(SuperAdminModel.email == email.lower())
        if account is None or not verify_password(password, account.hashed_password):
            await logger.awarning("login_invalid_credentials", email=email)
            raise AuthenticationError("Invalid email or password")

        account.last_login_at = utcnow()
        await self.uow.commit()

        principal = Principal(id=account.id, role=Role.SUPER_ADMIN, email=account.email)
        await logger.ainfo("login_success", user_id=account.id, role=Role.SUPER_ADMIN.value)
        return {
            "user": superadmin_to_dict(account),
            "tokens": self.generate_tokens(principal),
        }

    async def get_profile(self, principal: Principal) -> dict:
        """Profile of the authenticated Admin or SuperAdmin."""
        if principal.role == Role.SUPER_ADMIN:
            account = await self.uow.superadmins.get(principal.id)
            if account is None:
                raise NotFoundError("Account not found")
            return superadmin_to_dict(account)

        if principal.role == Role.ADMIN:
            admin = await self.uow.admins.get(principal.id)
            if admin is None:
                raise NotFoundError("Account not found")
            return admin_to_dict(admin)

        raise AuthorizationError("No profile available for this role")

    async def create_superadmin(self, *, email: str, password: str) -> SuperAdminModel:
        """Provision a SuperAdmin account; used by the bootstrap script."""
        check_password_strength(password)
        email = email.lower()
        if await self.uow.superadmins.first(SuperAdminModel.email == email) is not None:
            raise ConflictError(f"SuperAdmin with email {email} already exists")

        async with self.uow:
            account = await self.uow.superadmins.upsert(
                SuperAdminModel(email=email, hashed_password=hash_password(password))
            )

        await logger.ainfo("superadmin_created", user_id=account.id, email=email)
        return account

    def generate_tokens(self, principal: Principal) -> dict:
        """Generate access and refresh tokens for a principal."""
        settings = get_settings()

        access_token = create_access_token(
            principal.id,
            role=principal.role,
            email=principal.email,
            name=principal.name,
            expires_delta=timedelta(seconds=settings.access_token_ttl_seconds),
        )
        refresh_token = create_access_token(
            principal.id,
            role=principal.role,
            email=principal.email,
            expires_delta=timedelta(seconds=settings.refresh_token_ttl_seconds),
        )

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": settings.access_token_ttl_seconds,
        }


def admin_to_dict(admin: AdminModel) -> dict:
    """Convert AdminModel to dict for response; never includes the password hash."""
    return {
        "id": admin.id,
        "role": Role.ADMIN.value,
        "first_name": admin.first_name,
        "last_name": admin.last_name,
        "email": admin.email,
        "phone_number": admin.phone_number,
        "affiliation": admin.affiliation,
        "government_id_type": admin.government_id_type,
        "government_id_number": admin.government_id_number,
        "id_document_url": admin.id_document_url,
        "selfie_with_id_url": admin.selfie_with_id_url,
        "status": admin.status.value,
        "is_identity_verified": admin.is_identity_verified,
        "created_at": admin.created_at,
        "updated_at": admin.updated_at,
        "last_login_at": admin.last_login_at,
    }


def superadmin_to_dict(account: SuperAdminModel) -> dict:
    return {
        "id": account.id,
        "role": Role.SUPER_ADMIN.value,
        "email": account.email,
        "created_at": account.created_at,
        "last_login_at": account.last_login_at,
    }
