import pytest
from backoffice.core.auth import Role
from backoffice.core.errors import AuthorizationError
from backoffice.core.permissions import (
    Capability,
    capabilities_for,
    ensure_capability,
    has_capability,
)
from backoffice.domain.models import Principal

MODERATOR_ONLY = [
    Capability.MODERATION_TRANSITION,
    Capability.MODERATION_BULK_TRANSITION,
    Capability.MODERATION_READ_ALL,
    Capability.MODERATION_EDIT_ANY,
    Capability.ADMINS_MANAGE,
    Capability.MATERIALS_STATISTICS,
    Capability.STORES_READ_ALL,
    Capability.PRODUCTS_READ_ALL,
]


def test_superadmin_holds_every_capability() -> None:
    assert capabilities_for(Role.SUPER_ADMIN) == frozenset(Capability)


def test_user_can_only_read_notifications() -> None:
    assert capabilities_for(Role.USER) == frozenset({Capability.NOTIFICATIONS_READ})


@pytest.mark.parametrize(
    "capability",
    [
        Capability.MODERATION_SUBMIT,
        Capability.MODERATION_RESUBMIT,
        Capability.NOTIFICATIONS_READ,
        Capability.STORES_MANAGE,
        Capability.PRODUCTS_MANAGE,
    ],
)
def test_admin_capabilities(capability: Capability) -> None:
    assert has_capability(Role.ADMIN, capability)


@pytest.mark.parametrize("capability", MODERATOR_ONLY)
def test_admin_lacks_moderator_capabilities(capability: Capability) -> None:
    assert not has_capability(Role.ADMIN, capability)
    assert not has_capability(Role.USER, capability)


def test_ensure_capability_raises_authorization_error() -> None:
    with pytest.raises(AuthorizationError) as excinfo:
        ensure_capability(Role.ADMIN, Capability.MODERATION_TRANSITION)

    assert excinfo.value.status_code == 403
    assert "moderation:transition" in excinfo.value.message


def test_principal_can_and_display_name() -> None:
    anonymous = Principal(id="u-1", role=Role.USER)
    named = Principal(id="a-1", role=Role.ADMIN, email="a@example.com", name="Ada")

    assert anonymous.display_name == "A user"
    assert Principal(id="a-2", role=Role.ADMIN, email="b@example.com").display_name == "b@example.com"
    assert named.display_name == "Ada"
    assert named.can(Capability.MODERATION_SUBMIT)
    assert not anonymous.can(Capability.MODERATION_SUBMIT)
