"""Material listing: uploads, store checks and statistics around the workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from backoffice.core.errors import AuthorizationError, NotFoundError, ValidationError
from backoffice.core.permissions import Capability, ensure_capability
from backoffice.domain.models import Principal
from backoffice.domain.services.moderation import (
    MATERIAL_KIND,
    BulkTransitionResult,
    ModerationWorkflow,
    TransitionResult,
)
from backoffice.infrastructure.db.models import MaterialModel, ModerationStatus, StoreModel
from backoffice.infrastructure.repositories.sql import SqlRepository
from backoffice.libs.storage_client import BlobStorage, UploadedFile
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(slots=True)
class StatusBreakdown:
    count: int = 0
    total_value: float = 0.0


@dataclass(slots=True)
class MaterialStatistics:
    total_materials: int
    stores_with_materials: int
    by_status: dict[str, StatusBreakdown] = field(default_factory=dict)


class MaterialService:
    def __init__(self, session: AsyncSession, storage: BlobStorage) -> None:
        self.session = session
        self.storage = storage
        self.workflow = ModerationWorkflow(session, MATERIAL_KIND)
        self.materials = SqlRepository(session, MaterialModel)
        self.stores = SqlRepository(session, StoreModel)

    async def create(
        self,
        actor: Principal,
        *,
        name: str,
        quantity: float,
        unit: str,
        unit_cost: float,
        store_id: str,
        image: UploadedFile | None,
    ) -> MaterialModel:
        ensure_capability(actor.role, Capability.MODERATION_SUBMIT)
        if image is None or not image.data:
            raise ValidationError("Image is required")
        _check_amounts(quantity=quantity, unit_cost=unit_cost)
        await self._require_store(store_id)

        image_url = await self.storage.upload(
            image.data,
            content_type=image.content_type,
            prefix="material",
            filename=image.filename,
        )
        material = await self.workflow.submit(
            actor,
            {
                "name": name,
                "quantity": quantity,
                "unit": unit,
                "unit_cost": unit_cost,
                "store_id": store_id,
                "image_url": image_url,
            },
        )
        logger.info("material_submitted", material_id=material.id, store_id=store_id)
        return material

    async def list_for_store(self, store_id: str) -> list[MaterialModel]:
        if not store_id:
            raise ValidationError("store_id query parameter is required")
        return await self.materials.query(
            MaterialModel.store_id == store_id,
            order_by=(MaterialModel.created_at.desc(),),
        )

    async def resubmit(
        self,
        material_id: str,
        actor: Principal,
        *,
        changes: dict[str, Any],
        image: UploadedFile | None = None,
    ) -> MaterialModel:
        """Apply the owner's edits and an optional new image; back to pending."""
        await self.workflow.get_editable(material_id, actor)

        changes = {key: value for key, value in changes.items() if value is not None}
        _check_amounts(quantity=changes.get("quantity"), unit_cost=changes.get("unit_cost"))
        if "store_id" in changes:
            await self._require_store(changes["store_id"])

        if image is not None and image.data:
            changes["image_url"] = await self.storage.upload(
                image.data,
                content_type=image.content_type,
                prefix="material",
                filename=image.filename,
            )

        return await self.workflow.resubmit(material_id, actor, changes)

    async def delete(self, material_id: str, actor: Principal) -> None:
        material = await self.materials.get(material_id)
        if material is None:
            raise NotFoundError("Material not found")
        if material.owner_id != actor.id and not actor.can(Capability.MODERATION_EDIT_ANY):
            raise AuthorizationError("Only the owner can delete this material")

        image_url = material.image_url
        await self.materials.delete(material)
        await self.session.commit()
        logger.info("material_deleted", material_id=material_id, actor_id=actor.id)
        if image_url:
            await self.storage.delete(image_url)

    async def list_all(
        self, actor: Principal, *, status: str | None = None
    ) -> list[MaterialModel]:
        return await self.workflow.list_all(actor, status=status)

    async def transition(
        self, material_id: str, actor: Principal, new_status: str
    ) -> TransitionResult:
        return await self.workflow.transition(material_id, actor, new_status)

    async def bulk_transition(
        self, material_ids: list[str], actor: Principal, new_status: str
    ) -> BulkTransitionResult:
        return await self.workflow.bulk_transition(material_ids, actor, new_status)

    async def statistics(self, actor: Principal) -> MaterialStatistics:
        ensure_capability(actor.role, Capability.MATERIALS_STATISTICS)

        total = int(await self.session.scalar(select(func.count(MaterialModel.id))) or 0)
        stores = int(
            await self.session.scalar(select(func.count(distinct(MaterialModel.store_id)))) or 0
        )

        rows = await self.session.execute(
            select(
                MaterialModel.status,
                func.count(MaterialModel.id),
                func.coalesce(func.sum(MaterialModel.quantity * MaterialModel.unit_cost), 0),
            ).group_by(MaterialModel.status)
        )
        by_status = {status.value: StatusBreakdown() for status in ModerationStatus}
        for status, count, total_value in rows.all():
            by_status[ModerationStatus(status).value] = StatusBreakdown(
                count=int(count), total_value=float(total_value)
            )

        return MaterialStatistics(
            total_materials=total, stores_with_materials=stores, by_status=by_status
        )

    async def _require_store(self, store_id: str) -> StoreModel:
        store = await self.stores.get(store_id)
        if store is None:
            raise ValidationError("Store does not exist")
        return store


def _check_amounts(*, quantity: float | None, unit_cost: float | None) -> None:
    if quantity is not None and quantity <= 0:
        raise ValidationError("Quantity must be a positive number")
    if unit_cost is not None and unit_cost <= 0:
        raise ValidationError("Unit cost must be a positive number")
