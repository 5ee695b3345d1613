"""Stores: one per admin, owned, not moderated."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from backoffice.core.auth import Role
from backoffice.core.errors import AuthorizationError, NotFoundError, ValidationError
from backoffice.core.permissions import Capability, ensure_capability
from backoffice.domain.models import Principal
from backoffice.domain.services.notifications import (
    NotificationService,
    NotificationTarget,
    render_notification,
)
from backoffice.domain.slugs import make_unique, slugify
from backoffice.infrastructure.db.models import MaterialModel, StoreModel, utcnow
from backoffice.infrastructure.repositories.unit_of_work import UnitOfWork
from backoffice.libs.storage_client import BlobStorage, UploadedFile
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ADDRESS_FIELDS = ("street_address", "city", "state", "postal_code")


@dataclass(slots=True)
class StoreDetails:
    """Editable store fields; ``None`` means "leave unchanged" on update."""

    name: str | None = None
    display_name: str | None = None
    email: str | None = None
    phone: str | None = None
    vat_number: str | None = None
    address: dict[str, str] | None = None
    business_hours: dict[str, str] | None = None
    attachments: list[str] | None = None

    def changes(self) -> dict[str, object]:
        values: dict[str, object] = {}
        for name in ("name", "display_name", "email", "phone", "vat_number"):
            value = getattr(self, name)
            if value is not None and value.strip():
                values[name] = value.strip()
        address = normalize_address(self.address)
        if address is not None:
            values["address"] = address
        if self.business_hours is not None:
            values["business_hours"] = self.business_hours
        if self.attachments is not None:
            values["attachments"] = self.attachments
        return values


@dataclass(slots=True)
class StoreSaveResult:
    store: StoreModel
    created: bool
    notified: bool = False


def normalize_address(address: dict[str, str] | None) -> dict[str, str] | None:
    """Keep trimmed, non-empty address parts; ``None`` when nothing is left."""
    if not address:
        return None
    cleaned = {
        key: str(address[key]).strip()
        for key in ADDRESS_FIELDS
        if address.get(key) and str(address[key]).strip()
    }
    return cleaned or None


class StoreService:
    def __init__(self, session: AsyncSession, storage: BlobStorage) -> None:
        self.session = session
        self.storage = storage
        self.uow = UnitOfWork(session)
        self.notifications = NotificationService(session)

    async def save_own(
        self,
        actor: Principal,
        details: StoreDetails,
        *,
        logo: UploadedFile | None = None,
    ) -> StoreSaveResult:
        """Create the actor's store, or update it when one already exists."""
        ensure_capability(actor.role, Capability.STORES_MANAGE)
        if not details.name or not details.name.strip():
            raise ValidationError("Store name is required")

        values = details.changes()
        if logo is not None and logo.data:
            values["logo_url"] = await self._upload_logo(logo)

        existing = await self.uow.stores.first(StoreModel.owner_id == actor.id)
        if existing is None:
            store = StoreModel(owner_id=actor.id, **values)
            store.slug = await self._unique_slug(values["name"])
            await self.uow.stores.upsert(store)
            event = "created"
        else:
            store = existing
            if values["name"] != store.name:
                store.slug = await self._unique_slug(values["name"], current_id=store.id)
            for name, value in values.items():
                setattr(store, name, value)
            store.updated_at = utcnow()
            event = "updated"
        await self.uow.commit()

        logger.info(f"store_{event}", store_id=store.id, owner_id=actor.id)
        notified = await self.notifications.try_notify(
            NotificationTarget.user(actor.id),
            render_notification("store", event, label=store.name, actor=actor.display_name),
            type=f"store_{event}",
            related_id=store.id,
        )
        if not notified:
            await self.session.refresh(store)
        return StoreSaveResult(store=store, created=existing is None, notified=notified)

    async def list_visible(self, actor: Principal) -> list[StoreModel]:
        """The actor's own stores; every store for holders of ``stores:read_all``."""
        criteria = []
        if not actor.can(Capability.STORES_READ_ALL):
            criteria.append(StoreModel.owner_id == actor.id)
        return await self.uow.stores.query(*criteria, order_by=(StoreModel.created_at.desc(),))

    async def get(self, store_id: str) -> StoreModel:
        store = await self.uow.stores.get(store_id)
        if store is None:
            raise NotFoundError("Store not found")
        return store

    async def list_for_admin(self, admin_id: str, actor: Principal) -> list[StoreModel]:
        ensure_capability(actor.role, Capability.STORES_READ_ALL)
        stores = await self.uow.stores.query(
            StoreModel.owner_id == admin_id, order_by=(StoreModel.created_at.desc(),)
        )
        if not stores:
            raise NotFoundError("No store found for this admin")
        return stores

    async def update(
        self,
        store_id: str,
        actor: Principal,
        details: StoreDetails,
        *,
        logo: UploadedFile | None = None,
    ) -> StoreSaveResult:
        store = await self._get_managed(store_id, actor)

        values = details.changes()
        if logo is not None and logo.data:
            values["logo_url"] = await self._upload_logo(logo)
        if "name" in values and values["name"] != store.name:
            store.slug = await self._unique_slug(values["name"], current_id=store.id)
        for name, value in values.items():
            setattr(store, name, value)
        store.updated_at = utcnow()
        await self.uow.commit()

        logger.info("store_updated", store_id=store.id, actor_id=actor.id, fields=sorted(values))
        notified = await self.notifications.try_notify(
            NotificationTarget.role(Role.SUPER_ADMIN),
            render_notification("store", "updated", label=store.name, actor=actor.display_name),
            type="store_updated",
            related_id=store.id,
        )
        if not notified:
            await self.session.refresh(store)
        return StoreSaveResult(store=store, created=False, notified=notified)

    async def delete(self, store_id: str, actor: Principal) -> None:
        """Delete a store together with the materials listed under it."""
        store = await self._get_managed(store_id, actor)

        async with self.uow:
            materials = await self.uow.materials.query(MaterialModel.store_id == store.id)
            for material in materials:
                await self.uow.materials.delete(material)
            await self.uow.stores.delete(store)

        logger.info(
            "store_deleted",
            store_id=store_id,
            actor_id=actor.id,
            materials_deleted=len(materials),
        )

    async def _get_managed(self, store_id: str, actor: Principal) -> StoreModel:
        ensure_capability(actor.role, Capability.STORES_MANAGE)
        store = await self.get(store_id)
        if store.owner_id != actor.id and not actor.can(Capability.STORES_READ_ALL):
            raise AuthorizationError("Only the store owner can modify this store")
        return store

    async def _upload_logo(self, logo: UploadedFile) -> str:
        return await self.storage.upload(
            logo.data, content_type=logo.content_type, prefix="logo", filename=logo.filename
        )

    async def _unique_slug(self, name: str, *, current_id: str | None = None) -> str:
        async def taken(candidate: str) -> bool:
            criteria = [StoreModel.slug == candidate]
            if current_id is not None:
                criteria.append(StoreModel.id != current_id)
            return await self.uow.stores.first(*criteria) is not None

        return await make_unique(slugify(name, fallback="store"), taken)
