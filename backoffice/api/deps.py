from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

from backoffice.core.auth import Role, TokenError, create_access_token, decode_access_token
from backoffice.core.config import get_settings
from backoffice.core.errors import AuthenticationError, ValidationError
from backoffice.core.permissions import Capability, ensure_capability
from backoffice.core.rate_limit import get_rate_limiter
from backoffice.domain import Principal
from backoffice.infrastructure.db.session import session_scope
from backoffice.libs.resend_client import ResendClient
from backoffice.libs.storage_client import BlobStorage, SupabaseStorageClient, UploadedFile
from fastapi import Depends, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> Principal:
    """Resolve the authenticated principal from a bearer token."""
    if credentials is None:
        raise AuthenticationError("Missing bearer token")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError as exc:
        raise AuthenticationError(str(exc)) from exc

    return Principal(
        id=payload["sub"],
        role=Role(payload["role"]),
        email=payload.get("email", ""),
        name=payload.get("name"),
    )


def require_capability(capability: Capability) -> Callable[[Principal], Principal]:
    """Dependency factory enforcing that the principal's role holds ``capability``."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:  # noqa: B008
        ensure_capability(principal.role, capability)
        return principal

    return dependency


async def enforce_rate_limit(request: Request) -> None:
    """Sliding-window limit keyed by the caller's IP address."""
    identity = request.client.host if request.client else "unknown"
    await get_rate_limiter().check(identity)


def issue_smoke_token(
    user_id: str, *, role: Role, email: str | None = None, name: str | None = None
) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, role=role, email=email, name=name)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async with session_scope() as session:
        yield session


def get_blob_storage() -> BlobStorage:
    """Bucket for material images, identity documents and product images."""
    return SupabaseStorageClient()


def get_logo_storage() -> BlobStorage:
    return SupabaseStorageClient(bucket=get_settings().supabase_logo_bucket)


def get_email_client() -> ResendClient | None:
    if not get_settings().resend_api_key:
        return None
    return ResendClient()


async def read_upload(upload: UploadFile | None) -> UploadedFile | None:
    """Read a multipart file into memory, enforcing the configured size cap."""
    if upload is None or not upload.filename:
        return None

    data = await upload.read()
    limit = get_settings().max_upload_bytes
    if len(data) > limit:
        raise ValidationError(f"File {upload.filename} exceeds the {limit // (1024 * 1024)}MB limit")
    return UploadedFile(
        data=data,
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename,
    )


def parse_json_field(value: str | None, type_: Any, *, field: str) -> Any:
    """Decode a JSON-encoded multipart form field such as ``business_hours``."""
    if value is None or not value.strip():
        return None
    try:
        return TypeAdapter(type_).validate_json(value)
    except PydanticValidationError as exc:
        raise ValidationError(f"Field {field} must be valid JSON") from exc
