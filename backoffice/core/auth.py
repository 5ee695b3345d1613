from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum

import jwt
from backoffice.core.config import get_settings


class TokenError(Exception):
    """Raised when a token cannot be decoded or validated."""


class Role(str, Enum):
    USER = "User"
    ADMIN = "Admin"
    SUPER_ADMIN = "SuperAdmin"

    @classmethod
    def parse(cls, value: str) -> Role:
        """Resolve a role string case-insensitively ("superadmin" -> SUPER_ADMIN)."""
        normalized = (value or "").strip().lower()
        for role in cls:
            if role.value.lower() == normalized:
                return role
        raise ValueError(f"Unsupported role: {value}")


def create_access_token(
    subject: str,
    *,
    role: Role | str,
    email: str | None = None,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Generate a signed JWT access token carrying ``{sub, role}``."""
    settings = get_settings()

    try:
        resolved = Role.parse(role.value if isinstance(role, Role) else role)
    except ValueError as exc:
        raise TokenError(str(exc)) from exc

    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    payload = {
        "sub": subject,
        "role": resolved.value,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.app_name,
    }

    if email:
        payload["email"] = email
    if name:
        payload["name"] = name

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT access token."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.PyJWTError as exc:  # pragma: no cover - third-party raises numerous subclasses
        raise TokenError("Invalid or expired token") from exc

    try:
        payload["role"] = Role.parse(payload["role"]).value
    except ValueError as exc:
        raise TokenError(str(exc)) from exc
    return payload
