"""Shared library helpers."""

from backoffice.libs.resend_client import (
    ResendAPIError,
    ResendClient,
    ResendClientError,
    ResendEmailResponse,
)
from backoffice.libs.storage_client import BlobStorage, SupabaseStorageClient

__all__ = [
    "BlobStorage",
    "ResendAPIError",
    "ResendClient",
    "ResendClientError",
    "ResendEmailResponse",
    "SupabaseStorageClient",
]
