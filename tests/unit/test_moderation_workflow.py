"""Unit tests for the shared approval workflow."""

from __future__ import annotations

import pytest
from backoffice.core.errors import AuthorizationError, NotFoundError, ValidationError
from backoffice.domain.services.moderation import MATERIAL_KIND, ModerationWorkflow
from backoffice.domain.services.notifications import NotificationService
from backoffice.infrastructure.db.models import MaterialModel, ModerationStatus
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from tests.utils import ADMIN_ONE, ADMIN_TWO, PLAIN_USER, SUPERADMIN, create_store


@pytest.fixture()
async def store_id(db: AsyncSession) -> str:
    store = await create_store(db, ADMIN_ONE.id)
    return store.id


@pytest.fixture()
def workflow(db: AsyncSession) -> ModerationWorkflow:
    return ModerationWorkflow(db, MATERIAL_KIND)


def _payload(store_id: str, name: str = "Cement") -> dict:
    return {
        "name": name,
        "quantity": 10,
        "unit": "bag",
        "unit_cost": 4.5,
        "store_id": store_id,
        "image_url": "https://blob.test/material.png",
    }


async def _count(db: AsyncSession, principal) -> int:
    return len(await NotificationService(db).list_for(principal))


class TestSubmit:
    async def test_submit_creates_pending_entity_owned_by_actor(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        assert material.status == ModerationStatus.PENDING
        assert material.owner_id == ADMIN_ONE.id
        assert material.last_modified_by == ADMIN_ONE.id
        notifications = await NotificationService(db).list_for(SUPERADMIN)
        assert len(notifications) == 1
        assert notifications[0].related_id == material.id
        assert notifications[0].type == "material"
        assert notifications[0].message == "Ada One created a new material: Cement"

    async def test_submit_rejects_unknown_fields(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        payload = _payload(store_id) | {"status": "approved"}

        with pytest.raises(ValidationError):
            await workflow.submit(ADMIN_ONE, payload)
        assert await _count(db, SUPERADMIN) == 0

    async def test_user_role_cannot_submit(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        with pytest.raises(AuthorizationError):
            await workflow.submit(PLAIN_USER, _payload(store_id))


class TestResubmit:
    async def test_resubmit_always_returns_to_pending(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))
        await workflow.transition(material.id, SUPERADMIN, "approved")

        for quantity in (11, 12, 13):
            material = await workflow.resubmit(material.id, ADMIN_ONE, {"quantity": quantity})
            assert material.status == ModerationStatus.PENDING

        assert material.quantity == 13
        # One "submitted" plus three "resubmitted" notifications.
        assert await _count(db, SUPERADMIN) == 4

    async def test_resubmit_by_non_owner_is_forbidden(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        with pytest.raises(AuthorizationError):
            await workflow.resubmit(material.id, ADMIN_TWO, {"name": "Hijacked"})

        reloaded = await db.get(MaterialModel, material.id)
        assert reloaded.name == "Cement"

    async def test_superadmin_may_edit_any(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        updated = await workflow.resubmit(material.id, SUPERADMIN, {"unit": "kg"})

        assert updated.unit == "kg"
        assert updated.last_modified_by == SUPERADMIN.id

    async def test_resubmit_missing_entity(self, workflow: ModerationWorkflow) -> None:
        with pytest.raises(NotFoundError):
            await workflow.resubmit("missing", ADMIN_ONE, {"name": "x"})


class TestTransition:
    async def test_transition_notifies_owner_once(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        result = await workflow.transition(material.id, SUPERADMIN, "approved")

        assert result.changed and result.notified
        assert result.entity.status == ModerationStatus.APPROVED
        assert result.entity.last_modified_by == SUPERADMIN.id
        owner_notifications = await NotificationService(db).list_for(ADMIN_ONE)
        assert len(owner_notifications) == 1
        assert "approved" in owner_notifications[0].message

    async def test_transition_to_same_status_is_silent(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))
        before = material.updated_at

        result = await workflow.transition(material.id, SUPERADMIN, "pending")

        assert not result.changed and not result.notified
        assert result.entity.last_modified_by == SUPERADMIN.id
        assert result.entity.updated_at >= before
        assert await _count(db, ADMIN_ONE) == 0

    async def test_returning_to_pending_notifies_owner(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))
        await workflow.transition(material.id, SUPERADMIN, "rejected")

        await workflow.transition(material.id, SUPERADMIN, "pending")

        messages = [n.message for n in await NotificationService(db).list_for(ADMIN_ONE)]
        assert len(messages) == 2
        assert "returned to pending review" in messages[0]

    async def test_non_superadmin_transition_fails_without_change(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        with pytest.raises(AuthorizationError):
            await workflow.transition(material.id, ADMIN_ONE, "approved")

        reloaded = await db.get(MaterialModel, material.id)
        assert reloaded.status == ModerationStatus.PENDING
        assert await _count(db, ADMIN_ONE) == 0

    async def test_invalid_status_is_a_validation_error(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        with pytest.raises(ValidationError):
            await workflow.transition(material.id, SUPERADMIN, "archived")

    async def test_transition_missing_entity(self, workflow: ModerationWorkflow) -> None:
        with pytest.raises(NotFoundError):
            await workflow.transition("missing", SUPERADMIN, "approved")

    async def test_failed_notification_keeps_entity_change(
        self,
        db: AsyncSession,
        workflow: ModerationWorkflow,
        store_id: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        async def broken_notify(*args, **kwargs):
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk full"))

        monkeypatch.setattr(workflow.notifications, "notify", broken_notify)

        result = await workflow.transition(material.id, SUPERADMIN, "approved")

        assert result.changed and not result.notified
        reloaded = await db.get(MaterialModel, material.id)
        assert reloaded.status == ModerationStatus.APPROVED


class TestBulkTransition:
    async def test_bulk_skips_missing_and_collapses_duplicates(
        self, db: AsyncSession, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        first = await workflow.submit(ADMIN_ONE, _payload(store_id, "Cement"))
        second = await workflow.submit(ADMIN_ONE, _payload(store_id, "Sand"))

        result = await workflow.bulk_transition(
            [first.id, "missing", second.id, first.id], SUPERADMIN, "approved"
        )

        assert result.modified_count == 2
        assert result.missing_ids == ["missing"]
        assert result.notified_count == 2
        assert await _count(db, ADMIN_ONE) == 2

    async def test_bulk_requires_ids(self, workflow: ModerationWorkflow) -> None:
        with pytest.raises(ValidationError):
            await workflow.bulk_transition([], SUPERADMIN, "approved")

    async def test_bulk_is_superadmin_only(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        with pytest.raises(AuthorizationError):
            await workflow.bulk_transition([material.id], ADMIN_ONE, "approved")


class TestReads:
    async def test_get_for_owner_or_reviewer(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        material = await workflow.submit(ADMIN_ONE, _payload(store_id))

        assert (await workflow.get_for(material.id, ADMIN_ONE)).id == material.id
        assert (await workflow.get_for(material.id, SUPERADMIN)).id == material.id
        with pytest.raises(AuthorizationError):
            await workflow.get_for(material.id, ADMIN_TWO)

    async def test_list_all_filters_by_status(
        self, workflow: ModerationWorkflow, store_id: str
    ) -> None:
        first = await workflow.submit(ADMIN_ONE, _payload(store_id, "Cement"))
        await workflow.submit(ADMIN_ONE, _payload(store_id, "Sand"))
        await workflow.transition(first.id, SUPERADMIN, "approved")

        approved = await workflow.list_all(SUPERADMIN, status="approved")
        everything = await workflow.list_all(SUPERADMIN)

        assert [m.id for m in approved] == [first.id]
        assert len(everything) == 2
        with pytest.raises(AuthorizationError):
            await workflow.list_all(ADMIN_ONE)


async def test_end_to_end_moderation_scenario(
    db: AsyncSession, workflow: ModerationWorkflow, store_id: str
) -> None:
    notifications = NotificationService(db)

    m1 = await workflow.submit(ADMIN_ONE, _payload(store_id, "M1"))
    assert m1.status == ModerationStatus.PENDING
    assert len(await notifications.list_for(SUPERADMIN)) == 1

    await workflow.transition(m1.id, SUPERADMIN, "approved")
    owner_inbox = await notifications.list_for(ADMIN_ONE)
    assert len(owner_inbox) == 1 and "approved" in owner_inbox[0].message

    m1 = await workflow.resubmit(m1.id, ADMIN_ONE, {"name": "M1 revised"})
    assert m1.status == ModerationStatus.PENDING
    assert len(await notifications.list_for(SUPERADMIN)) == 2

    result = await workflow.bulk_transition([m1.id, "nonexistent"], SUPERADMIN, "rejected")
    assert result.modified_count == 1
    reloaded = await db.get(MaterialModel, m1.id)
    assert reloaded.status == ModerationStatus.REJECTED
    owner_inbox = await notifications.list_for(ADMIN_ONE)
    assert len(owner_inbox) == 2 and "rejected" in owner_inbox[0].message
