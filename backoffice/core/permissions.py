"""Role -> capability lookup table.

Authorization decisions are made here and nowhere else: callers ask whether a
role holds a capability instead of comparing role strings.
"""

from __future__ import annotations

from enum import Enum

from backoffice.core.auth import Role
from backoffice.core.errors import AuthorizationError


class Capability(str, Enum):
    MODERATION_SUBMIT = "moderation:submit"
    MODERATION_RESUBMIT = "moderation:resubmit"
    MODERATION_EDIT_ANY = "moderation:edit_any"
    MODERATION_READ_ALL = "moderation:read_all"
    MODERATION_TRANSITION = "moderation:transition"
    MODERATION_BULK_TRANSITION = "moderation:bulk_transition"
    NOTIFICATIONS_READ = "notifications:read"
    STORES_MANAGE = "stores:manage"
    STORES_READ_ALL = "stores:read_all"
    PRODUCTS_MANAGE = "products:manage"
    PRODUCTS_READ_ALL = "products:read_all"
    MATERIALS_STATISTICS = "materials:statistics"
    ADMINS_MANAGE = "admins:manage"


_ADMIN_CAPABILITIES = frozenset(
    {
        Capability.MODERATION_SUBMIT,
        Capability.MODERATION_RESUBMIT,
        Capability.NOTIFICATIONS_READ,
        Capability.STORES_MANAGE,
        Capability.PRODUCTS_MANAGE,
    }
)

# SuperAdmin is listed explicitly; there is no inheritance between roles.
ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: frozenset({Capability.NOTIFICATIONS_READ}),
    Role.ADMIN: _ADMIN_CAPABILITIES,
    Role.SUPER_ADMIN: frozenset(Capability),
}


def capabilities_for(role: Role) -> frozenset[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in capabilities_for(role)


def ensure_capability(role: Role, capability: Capability) -> None:
    """Raise AuthorizationError unless ``role`` holds ``capability``."""
    if not has_capability(role, capability):
        raise AuthorizationError(f"Role {role.value} is not allowed to perform {capability.value}")
