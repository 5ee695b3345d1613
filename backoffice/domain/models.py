from __future__ import annotations

from dataclasses import dataclass

from backoffice.core.auth import Role
from backoffice.core.permissions import Capability, has_capability


@dataclass(frozen=True, slots=True)
class Principal:
    """Represents an authenticated actor resolved from a bearer credential."""

    id: str
    role: Role
    email: str = ""
    name: str | None = None

    def can(self, capability: Capability) -> bool:
        return has_capability(self.role, capability)

    @property
    def display_name(self) -> str:
        return self.name or self.email or "A user"
