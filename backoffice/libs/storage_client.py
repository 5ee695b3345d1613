"""
Supabase Storage client for material images, identity documents and logos.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog
from backoffice.core.config import get_settings
from backoffice.core.errors import DependencyError

logger = structlog.get_logger(__name__)

_EXTENSION_RE = re.compile(r"\.[0-9a-z]+$", re.IGNORECASE)


@dataclass(slots=True)
class UploadedFile:
    """File body received from a multipart request."""

    data: bytes
    content_type: str
    filename: str | None = None


class BlobStorage(Protocol):
    """Blob store contract consumed by services that accept file uploads."""

    async def upload(
        self,
        data: bytes,
        *,
        content_type: str,
        prefix: str,
        filename: str | None = None,
    ) -> str:
        """Store ``data`` and return its public URL."""
        ...

    async def delete(self, url: str) -> None: ...


def build_object_name(prefix: str, filename: str | None) -> str:
    """``material-<uuid>.png``: unique name keeping the upload's extension."""
    match = _EXTENSION_RE.search(filename or "")
    extension = match.group(0).lower() if match else ".jpg"
    return f"{prefix}-{uuid.uuid4()}{extension}"


class SupabaseStorageClient:
    """Async Supabase Storage REST client."""

    def __init__(
        self,
        *,
        bucket: str | None = None,
        base_url: str | None = None,
        service_key: str | None = None,
        timeout_seconds: int | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.service_key = service_key or settings.supabase_service_key
        self.bucket = bucket or settings.supabase_bucket
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.storage_timeout_seconds
        )

        if not self.base_url or not self.service_key:
            logger.warning("supabase_storage_not_configured", bucket=self.bucket)

    def public_url(self, object_name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_name}"

    async def upload(
        self,
        data: bytes,
        *,
        content_type: str,
        prefix: str,
        filename: str | None = None,
    ) -> str:
        if not self.base_url or not self.service_key:
            raise DependencyError("File storage is not configured")

        object_name = build_object_name(prefix, filename)
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": content_type,
            "x-upsert": "false",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/storage/v1/object/{self.bucket}/{object_name}",
                    headers=headers,
                    content=data,
                )
        except httpx.HTTPError as exc:
            logger.error("storage_upload_failed", bucket=self.bucket, error=str(exc))
            raise DependencyError("Failed to upload file") from exc

        if response.status_code not in (200, 201):
            logger.error(
                "storage_upload_rejected",
                bucket=self.bucket,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise DependencyError("Failed to upload file")

        logger.info("storage_upload_succeeded", bucket=self.bucket, object_name=object_name)
        return self.public_url(object_name)

    async def delete(self, url: str) -> None:
        """Remove a previously uploaded object; failures are logged only."""
        object_name = url.rsplit("/", 1)[-1]
        if not object_name or not self.base_url or not self.service_key:
            return

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_url}/storage/v1/object/{self.bucket}",
                    headers={"Authorization": f"Bearer {self.service_key}"},
                    json={"prefixes": [object_name]},
                )
        except httpx.HTTPError as exc:
            logger.warning("storage_delete_failed", object_name=object_name, error=str(exc))
            return

        if response.status_code not in (200, 204):
            logger.warning(
                "storage_delete_rejected",
                object_name=object_name,
                status_code=response.status_code,
            )
