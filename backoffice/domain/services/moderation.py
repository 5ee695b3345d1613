"""
Approval workflow shared by every moderated record (materials, admin accounts).

State machine: pending, approved and rejected are all reachable from one
another. Owners (re)submit, which always lands in ``pending``; holders of
``moderation:transition`` move records between any two states.

Each mutating operation runs as a two-step saga: the entity write is committed
first, then the notification is written in a separate commit. A failed
notification write is logged and does not undo the entity change.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

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
from backoffice.infrastructure.db.models import (
    AdminModel,
    MaterialModel,
    ModeratableMixin,
    ModerationStatus,
    utcnow,
)
from backoffice.infrastructure.repositories.sql import SqlRepository
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ModeratableKind:
    """Binds an entity kind to its table, payload fields and notification tag."""

    name: str
    title: str
    model: type[Any]
    notification_type: str
    submit_fields: frozenset[str]
    resubmit_fields: frozenset[str]
    label: Callable[[Any], str]


MATERIAL_KIND = ModeratableKind(
    name="material",
    title="Material",
    model=MaterialModel,
    notification_type="material",
    submit_fields=frozenset({"name", "quantity", "unit", "unit_cost", "store_id", "image_url"}),
    resubmit_fields=frozenset({"name", "quantity", "unit", "unit_cost", "store_id", "image_url"}),
    label=lambda material: material.name,
)

_ADMIN_IDENTITY_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "phone_number",
        "affiliation",
        "government_id_type",
        "government_id_number",
        "id_document_url",
        "selfie_with_id_url",
    }
)

ADMIN_KIND = ModeratableKind(
    name="admin",
    title="Admin",
    model=AdminModel,
    notification_type="admin_registration",
    submit_fields=_ADMIN_IDENTITY_FIELDS | {"email", "hashed_password"},
    resubmit_fields=_ADMIN_IDENTITY_FIELDS,
    label=lambda admin: admin.full_name,
)

MODERATABLE_KINDS: dict[str, ModeratableKind] = {
    kind.name: kind for kind in (MATERIAL_KIND, ADMIN_KIND)
}


@dataclass(slots=True)
class TransitionResult:
    entity: Any
    previous_status: ModerationStatus
    changed: bool
    notified: bool


@dataclass(slots=True)
class BulkTransitionResult:
    status: ModerationStatus
    modified_count: int = 0
    notified_count: int = 0
    modified_ids: list[str] = field(default_factory=list)
    missing_ids: list[str] = field(default_factory=list)


def parse_status(value: ModerationStatus | str) -> ModerationStatus:
    try:
        return ModerationStatus(value)
    except ValueError as exc:
        raise ValidationError(
            "Invalid status. Must be 'approved', 'rejected', or 'pending'"
        ) from exc


class ModerationWorkflow:
    """Submit, resubmit and transition records of one moderated kind."""

    def __init__(
        self,
        session: AsyncSession,
        kind: ModeratableKind,
        *,
        notifications: NotificationService | None = None,
    ) -> None:
        self.session = session
        self.kind = kind
        self.repository: SqlRepository[Any] = SqlRepository(session, kind.model)
        self.notifications = notifications or NotificationService(session)

    async def submit(
        self,
        actor: Principal,
        payload: Mapping[str, Any],
        *,
        entity_id: str | None = None,
    ) -> ModeratableMixin:
        """Create a record owned by ``actor`` in ``pending`` and alert SuperAdmins."""
        ensure_capability(actor.role, Capability.MODERATION_SUBMIT)
        self._check_fields(payload, self.kind.submit_fields)

        now = utcnow()
        entity = self.kind.model(**payload)
        if entity_id is not None:
            entity.id = entity_id
        entity.owner_id = actor.id
        entity.status = ModerationStatus.PENDING
        entity.last_modified_by = actor.id
        entity.created_at = now
        entity.updated_at = now

        await self.repository.upsert(entity)
        await self.session.commit()

        logger.info(
            "moderation_submitted",
            kind=self.kind.name,
            entity_id=entity.id,
            owner_id=actor.id,
        )
        await self._emit("submitted", NotificationTarget.role(Role.SUPER_ADMIN), entity, actor)
        return entity

    async def get_for(self, entity_id: str, actor: Principal) -> ModeratableMixin:
        """Load a record visible to ``actor`` (its owner or a read-all reviewer)."""
        entity = await self._load(entity_id)
        if entity.owner_id != actor.id and not actor.can(Capability.MODERATION_READ_ALL):
            raise AuthorizationError(f"You do not own this {self.kind.name}")
        return entity

    async def get_editable(self, entity_id: str, actor: Principal) -> ModeratableMixin:
        """Load a record ``actor`` may resubmit; raises before any side effect."""
        ensure_capability(actor.role, Capability.MODERATION_RESUBMIT)
        entity = await self._load(entity_id)
        if entity.owner_id != actor.id and not actor.can(Capability.MODERATION_EDIT_ANY):
            raise AuthorizationError(f"Only the owner can update this {self.kind.name}")
        return entity

    async def resubmit(
        self,
        entity_id: str,
        actor: Principal,
        changes: Mapping[str, Any],
    ) -> ModeratableMixin:
        """Apply the owner's changes and send the record back to ``pending``."""
        self._check_fields(changes, self.kind.resubmit_fields)
        entity = await self.get_editable(entity_id, actor)

        for name, value in changes.items():
            setattr(entity, name, value)
        entity.status = ModerationStatus.PENDING
        entity.last_modified_by = actor.id
        entity.updated_at = utcnow()
        await self.session.commit()

        logger.info(
            "moderation_resubmitted",
            kind=self.kind.name,
            entity_id=entity.id,
            editor_id=actor.id,
            updated_fields=sorted(changes),
        )
        await self._emit("resubmitted", NotificationTarget.role(Role.SUPER_ADMIN), entity, actor)
        return entity

    async def transition(
        self,
        entity_id: str,
        actor: Principal,
        new_status: ModerationStatus | str,
    ) -> TransitionResult:
        """Move one record to ``new_status``; no notification when it is unchanged."""
        ensure_capability(actor.role, Capability.MODERATION_TRANSITION)
        status = parse_status(new_status)
        entity = await self._load(entity_id)
        return await self._apply(entity, actor, status)

    async def bulk_transition(
        self,
        entity_ids: Iterable[str],
        actor: Principal,
        new_status: ModerationStatus | str,
    ) -> BulkTransitionResult:
        """Best-effort transition of a set of ids; unknown ids are skipped."""
        ensure_capability(actor.role, Capability.MODERATION_BULK_TRANSITION)
        status = parse_status(new_status)

        unique_ids = list(dict.fromkeys(entity_ids))
        if not unique_ids:
            raise ValidationError(f"{self.kind.title} IDs array is required")

        result = BulkTransitionResult(status=status)
        for entity_id in unique_ids:
            entity = await self.repository.get(entity_id)
            if entity is None:
                result.missing_ids.append(entity_id)
                continue
            outcome = await self._apply(entity, actor, status)
            result.modified_count += 1
            result.modified_ids.append(entity_id)
            if outcome.notified:
                result.notified_count += 1

        logger.info(
            "moderation_bulk_transitioned",
            kind=self.kind.name,
            status=status.value,
            actor_id=actor.id,
            modified_count=result.modified_count,
            missing_ids=result.missing_ids,
        )
        return result

    async def list_all(
        self,
        actor: Principal,
        *,
        status: ModerationStatus | str | None = None,
    ) -> list[Any]:
        ensure_capability(actor.role, Capability.MODERATION_READ_ALL)
        criteria = []
        if status is not None:
            criteria.append(self.kind.model.status == parse_status(status))
        return await self.repository.query(
            *criteria, order_by=(self.kind.model.created_at.desc(),)
        )

    async def _load(self, entity_id: str) -> Any:
        entity = await self.repository.get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.kind.title} not found")
        return entity

    async def _apply(
        self,
        entity: Any,
        actor: Principal,
        status: ModerationStatus,
    ) -> TransitionResult:
        previous = entity.status
        changed = previous != status

        if changed:
            entity.status = status
        entity.last_modified_by = actor.id
        entity.updated_at = utcnow()
        await self.session.commit()

        logger.info(
            "moderation_transitioned",
            kind=self.kind.name,
            entity_id=entity.id,
            actor_id=actor.id,
            previous_status=previous.value,
            status=status.value,
            changed=changed,
        )

        notified = False
        # The owner is only told about decisions made by someone else.
        if changed and entity.owner_id != actor.id:
            notified = await self._emit(
                status.value, NotificationTarget.user(entity.owner_id), entity, actor
            )
        return TransitionResult(
            entity=entity, previous_status=previous, changed=changed, notified=notified
        )

    async def _emit(
        self,
        event: str,
        target: NotificationTarget,
        entity: Any,
        actor: Principal,
    ) -> bool:
        rendered = render_notification(
            self.kind.name, event, label=self.kind.label(entity), actor=actor.display_name
        )
        delivered = await self.notifications.try_notify(
            target, rendered, type=self.kind.notification_type, related_id=entity.id
        )
        if not delivered:
            # Rollback expired the instance; reload the committed row.
            await self.session.refresh(entity)
        return delivered

    def _check_fields(self, payload: Mapping[str, Any], allowed: frozenset[str]) -> None:
        unknown = set(payload) - allowed
        if unknown:
            raise ValidationError(
                f"Unsupported {self.kind.name} field(s): {', '.join(sorted(unknown))}"
            )
