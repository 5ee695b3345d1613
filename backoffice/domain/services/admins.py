"""
Admin accounts: registration with identity documents and SuperAdmin review.

An admin's verification record is moderated through the shared workflow; the
account's ``status`` is the review decision.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import structlog
from backoffice.core.auth import Role
from backoffice.core.config import get_settings
from backoffice.core.errors import ConflictError, NotFoundError, ValidationError
from backoffice.core.permissions import Capability, ensure_capability
from backoffice.domain.models import Principal
from backoffice.domain.services.auth_service import check_password_strength, hash_password
from backoffice.domain.services.moderation import (
    ADMIN_KIND,
    BulkTransitionResult,
    ModerationWorkflow,
)
from backoffice.infrastructure.db.models import (
    AdminModel,
    ModerationStatus,
    StoreModel,
    SuperAdminModel,
)
from backoffice.infrastructure.repositories.unit_of_work import UnitOfWork
from backoffice.libs.resend_client import (
    ResendClient,
    ResendClientError,
    render_admin_decision_email,
)
from backoffice.libs.storage_client import BlobStorage, UploadedFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(slots=True)
class AdminRegistration:
    first_name: str
    last_name: str
    email: str
    phone_number: str
    password: str
    affiliation: str
    government_id_type: str
    government_id_number: str


@dataclass(slots=True)
class AdminReview:
    admin: AdminModel
    status_changed: bool
    emailed: bool


class AdminService:
    def __init__(
        self,
        session: AsyncSession,
        storage: BlobStorage,
        *,
        email_client: ResendClient | None = None,
    ) -> None:
        self.session = session
        self.storage = storage
        self.email_client = email_client
        self.uow = UnitOfWork(session)
        self.workflow = ModerationWorkflow(session, ADMIN_KIND)

    async def register(
        self,
        registration: AdminRegistration,
        *,
        id_document: UploadedFile | None,
        selfie_with_id: UploadedFile | None = None,
    ) -> AdminModel:
        check_password_strength(registration.password)
        if id_document is None or not id_document.data:
            raise ValidationError("ID document is required")

        email = registration.email.strip().lower()
        await self._ensure_email_free(email)

        id_document_url = await self._upload(id_document, "id-document")
        selfie_url = None
        if selfie_with_id is not None and selfie_with_id.data:
            selfie_url = await self._upload(selfie_with_id, "selfie")

        admin_id = str(uuid.uuid4())
        applicant = Principal(
            id=admin_id,
            role=Role.ADMIN,
            email=email,
            name=f"{registration.first_name} {registration.last_name}",
        )
        payload = {
            "first_name": registration.first_name,
            "last_name": registration.last_name,
            "email": email,
            "phone_number": registration.phone_number,
            "hashed_password": hash_password(registration.password),
            "affiliation": registration.affiliation,
            "government_id_type": registration.government_id_type,
            "government_id_number": registration.government_id_number,
            "id_document_url": id_document_url,
            "selfie_with_id_url": selfie_url,
        }

        try:
            admin = await self.workflow.submit(applicant, payload, entity_id=admin_id)
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning("admin_register_duplicate_email", email=email)
            raise ConflictError("Email already registered") from exc

        logger.info("admin_registered", admin_id=admin.id, email=email)
        return admin

    async def list_with_stores(self, actor: Principal) -> list[dict[str, Any]]:
        """Every admin with a summary of the store they run, if any."""
        ensure_capability(actor.role, Capability.ADMINS_MANAGE)
        admins = await self.uow.admins.query(order_by=(AdminModel.created_at.desc(),))
        if not admins:
            return []

        stores = await self.uow.stores.query(
            StoreModel.owner_id.in_([admin.id for admin in admins]),
            order_by=(StoreModel.created_at.asc(),),
        )
        store_by_owner: dict[str, StoreModel] = {}
        for store in stores:
            store_by_owner.setdefault(store.owner_id, store)

        results = []
        for admin in admins:
            store = store_by_owner.get(admin.id)
            results.append(
                {
                    "admin": admin,
                    "has_store": store is not None,
                    "store": None
                    if store is None
                    else {"id": store.id, "name": store.name, "slug": store.slug},
                }
            )
        return results

    async def review(
        self,
        admin_id: str,
        actor: Principal,
        *,
        status: str | None = None,
        is_identity_verified: bool | None = None,
    ) -> AdminReview:
        """Apply a review decision and/or the identity flag to an admin account."""
        ensure_capability(actor.role, Capability.ADMINS_MANAGE)
        if status is None and is_identity_verified is None:
            raise ValidationError("Nothing to update: provide status or is_identity_verified")

        admin = await self.uow.admins.get(admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        status_changed = False
        if status is not None:
            result = await self.workflow.transition(admin_id, actor, status)
            admin = result.entity
            status_changed = result.changed

        if is_identity_verified is not None and admin.is_identity_verified != is_identity_verified:
            admin.is_identity_verified = is_identity_verified
            await self.uow.commit()
            logger.info(
                "admin_identity_flag_updated",
                admin_id=admin_id,
                is_identity_verified=is_identity_verified,
            )

        emailed = False
        if status_changed and admin.status in (ModerationStatus.APPROVED, ModerationStatus.REJECTED):
            emailed = await self._send_decision_email(admin)

        return AdminReview(admin=admin, status_changed=status_changed, emailed=emailed)

    async def bulk_review(
        self, admin_ids: list[str], actor: Principal, status: str
    ) -> BulkTransitionResult:
        ensure_capability(actor.role, Capability.ADMINS_MANAGE)
        return await self.workflow.bulk_transition(admin_ids, actor, status)

    async def resubmit_own(
        self,
        actor: Principal,
        changes: dict[str, Any],
        *,
        id_document: UploadedFile | None = None,
        selfie_with_id: UploadedFile | None = None,
    ) -> AdminModel:
        """Admin updates their identity details; the account goes back to pending."""
        await self.workflow.get_editable(actor.id, actor)

        changes = {key: value for key, value in changes.items() if value is not None}
        if id_document is not None and id_document.data:
            changes["id_document_url"] = await self._upload(id_document, "id-document")
        if selfie_with_id is not None and selfie_with_id.data:
            changes["selfie_with_id_url"] = await self._upload(selfie_with_id, "selfie")

        return await self.workflow.resubmit(actor.id, actor, changes)

    async def delete(self, admin_id: str, actor: Principal) -> None:
        ensure_capability(actor.role, Capability.ADMINS_MANAGE)
        admin = await self.uow.admins.get(admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        async with self.uow:
            await self.uow.admins.delete(admin)
        logger.info("admin_deleted", admin_id=admin_id, actor_id=actor.id)

    async def _ensure_email_free(self, email: str) -> None:
        taken = await self.uow.admins.first(AdminModel.email == email)
        if taken is None:
            taken = await self.uow.superadmins.first(SuperAdminModel.email == email)
        if taken is not None:
            raise ConflictError("Email already registered")

    async def _upload(self, upload: UploadedFile, prefix: str) -> str:
        return await self.storage.upload(
            upload.data,
            content_type=upload.content_type,
            prefix=prefix,
            filename=upload.filename,
        )

    async def _send_decision_email(self, admin: AdminModel) -> bool:
        if self.email_client is None:
            return False

        subject, html, text = render_admin_decision_email(
            full_name=admin.full_name, status=admin.status.value
        )
        try:
            await self.email_client.send_email(
                from_email=get_settings().email_from,
                to_emails=[admin.email],
                subject=subject,
                html=html,
                text=text,
            )
        except ResendClientError as exc:
            logger.warning("admin_decision_email_failed", admin_id=admin.id, error=str(exc))
            return False

        logger.info("admin_decision_email_sent", admin_id=admin.id, status=admin.status.value)
        return True
