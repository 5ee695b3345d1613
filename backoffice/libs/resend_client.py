"""
Resend API client for transactional emails.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

import httpx
import structlog
from backoffice.core.config import get_settings

logger = structlog.get_logger(__name__)


class ResendClientError(Exception):
    """Base exception for Resend client errors."""


class ResendAPIError(ResendClientError):
    """Raised for non-success responses from Resend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class ResendEmailResponse:
    """Minimal Resend email response."""

    id: str


class ResendClient:
    """Async Resend API client."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.resend_api_key
        self.base_url = base_url or settings.resend_base_url
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.resend_timeout_seconds
        )

        if not self.api_key:
            logger.warning("resend_api_key_missing", msg="RESEND_API_KEY not configured")

    async def send_email(
        self,
        *,
        from_email: str,
        to_emails: list[str],
        subject: str,
        html: str,
        text: str,
    ) -> ResendEmailResponse:
        """Send an email via Resend."""
        if not self.api_key:
            raise ResendClientError("RESEND_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": from_email,
            "to": to_emails,
            "subject": subject,
            "html": html,
            "text": text,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/emails",
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as exc:
            raise ResendClientError(f"Resend request failed: {exc}") from exc

        if response.status_code not in (200, 201):
            raise ResendAPIError(
                f"Resend error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ResendAPIError(
                "Resend response was not valid JSON",
                status_code=response.status_code,
            ) from exc

        email_id = data.get("id")
        if not email_id:
            raise ResendAPIError(
                "Resend response missing email id",
                status_code=response.status_code,
            )

        return ResendEmailResponse(id=email_id)


def render_admin_decision_email(*, full_name: str, status: str) -> tuple[str, str, str]:
    """Return ``(subject, html, text)`` for an admin account review decision."""
    if status == "approved":
        subject = "Your admin account has been approved"
        body = "Your registration has been reviewed and approved. You can now sign in."
    else:
        subject = "Your admin account has been rejected"
        body = (
            "Your registration has been reviewed and could not be approved. "
            "Update your identity documents and resubmit to request another review."
        )
    text = f"Hello, {full_name}\n\n{body}"
    html = f"<h3>Hello, {escape(full_name)}</h3><p>{escape(body)}</p>"
    return subject, html, text
