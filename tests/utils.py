from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backoffice.api.deps import issue_smoke_token
from backoffice.core.auth import Role
from backoffice.core.errors import DependencyError
from backoffice.domain.models import Principal
from backoffice.domain.services.auth_service import hash_password
from backoffice.infrastructure.db.models import AdminModel, ModerationStatus, StoreModel
from backoffice.libs.resend_client import ResendEmailResponse
from backoffice.libs.storage_client import build_object_name
from sqlalchemy.ext.asyncio import AsyncSession

SUPERADMIN = Principal(id="superadmin-1", role=Role.SUPER_ADMIN, email="root@example.com")
ADMIN_ONE = Principal(id="admin-1", role=Role.ADMIN, email="a1@example.com", name="Ada One")
ADMIN_TWO = Principal(id="admin-2", role=Role.ADMIN, email="a2@example.com", name="Bo Two")
PLAIN_USER = Principal(id="user-1", role=Role.USER, email="user@example.com")

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def auth_headers(principal: Principal) -> dict[str, str]:
    token = issue_smoke_token(
        principal.id, role=principal.role, email=principal.email, name=principal.name
    )
    return {"Authorization": f"Bearer {token}"}


def image_file(name: str = "photo.png") -> tuple[str, bytes, str]:
    return (name, PNG_BYTES, "image/png")


class InMemoryBlobStorage:
    """Blob store double; ``fail = True`` makes uploads raise like an outage."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail = False

    async def upload(
        self,
        data: bytes,
        *,
        content_type: str,
        prefix: str,
        filename: str | None = None,
    ) -> str:
        if self.fail:
            raise DependencyError("Failed to upload file")
        url = f"https://blob.test/{build_object_name(prefix, filename)}"
        self.objects[url] = data
        return url

    async def delete(self, url: str) -> None:
        self.deleted.append(url)
        self.objects.pop(url, None)


@dataclass
class RecordingEmailClient:
    sent: list[dict[str, Any]] = field(default_factory=list)

    async def send_email(self, **kwargs: Any) -> ResendEmailResponse:
        self.sent.append(kwargs)
        return ResendEmailResponse(id=f"email-{len(self.sent)}")


async def create_store(session: AsyncSession, owner_id: str, name: str = "Main Store") -> StoreModel:
    store = StoreModel(owner_id=owner_id, name=name, slug=f"{owner_id}-{name}".lower().replace(" ", "-"))
    session.add(store)
    await session.commit()
    return store


async def create_admin(
    session: AsyncSession,
    *,
    admin_id: str = "admin-1",
    email: str = "a1@example.com",
    password: str = "secret123",
    status: ModerationStatus = ModerationStatus.APPROVED,
) -> AdminModel:
    admin = AdminModel(
        id=admin_id,
        owner_id=admin_id,
        status=status,
        first_name="Ada",
        last_name="One",
        email=email,
        phone_number="+2348000000000",
        hashed_password=hash_password(password),
        affiliation="Acme Builders",
        government_id_type="passport",
        government_id_number="A1234567",
        id_document_url="https://blob.test/id-document.png",
    )
    session.add(admin)
    await session.commit()
    return admin
