import pytest
from backoffice.domain.services.moderation import MODERATABLE_KINDS
from backoffice.domain.services.notifications import (
    NOTIFICATION_TEMPLATES,
    NotificationTarget,
    render_notification,
)
from backoffice.domain.slugs import make_unique, normalize_sku, slugify
from backoffice.core.auth import Role


@pytest.mark.parametrize("kind", sorted(MODERATABLE_KINDS))
@pytest.mark.parametrize("event", ["submitted", "resubmitted", "approved", "rejected", "pending"])
def test_every_moderated_kind_has_every_event_template(kind: str, event: str) -> None:
    assert (kind, event) in NOTIFICATION_TEMPLATES


def test_decision_messages_name_the_reviewer() -> None:
    approved = render_notification("material", "approved", label="Cement", actor="Root")
    rejected = render_notification("material", "rejected", label="Cement", actor="Root")
    pending = render_notification("admin", "pending", label="Ada One", actor="Root")

    assert approved.message == 'Your material "Cement" has been approved by SuperAdmin'
    assert "has been rejected by SuperAdmin" in rejected.message
    assert "returned to pending review by SuperAdmin" in pending.message


def test_submission_message_names_the_actor() -> None:
    rendered = render_notification("material", "submitted", label="Sand", actor="Ada One")

    assert rendered.title == "New Material Awaiting Approval"
    assert rendered.message == "Ada One created a new material: Sand"


def test_missing_template_raises_key_error() -> None:
    with pytest.raises(KeyError):
        render_notification("material", "archived", label="x", actor="y")


def test_notification_target_helpers() -> None:
    assert NotificationTarget.role(Role.SUPER_ADMIN).for_role == "SuperAdmin"
    assert NotificationTarget.user("a-1").user_id == "a-1"
    assert NotificationTarget().is_empty


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Acme Builders", "acme-builders"),
        ("  Steel & Iron  Co. ", "steel-iron-co"),
        ("!!!", "item"),
    ],
)
def test_slugify(text: str, expected: str) -> None:
    assert slugify(text) == expected


def test_normalize_sku() -> None:
    assert normalize_sku(" ab-12 ", name="ignored") == "AB-12"
    assert normalize_sku(None, name="Steel beam 20mm") == "STEEL-BEAM-20MM"
    assert normalize_sku("", name="A very long product name indeed") == "A-VERY-LONG-PRODUCT-"


async def test_make_unique_appends_counter() -> None:
    taken = {"cement", "cement-1"}

    async def exists(candidate: str) -> bool:
        return candidate in taken

    assert await make_unique("cement", exists) == "cement-2"
    assert await make_unique("sand", exists) == "sand"
