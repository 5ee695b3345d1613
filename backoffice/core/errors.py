"""Error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable ``kind`` and the HTTP status
it is rendered with. Messages are meant for humans and never include storage
internals; the original cause is kept on ``__cause__`` for logging.
"""

from __future__ import annotations


class BackofficeError(Exception):
    """Base class for errors surfaced to API clients."""

    kind: str = "internal_error"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "detail": self.message}


class AuthenticationError(BackofficeError):
    """Missing, malformed or expired credential."""

    kind = "authentication_error"
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(BackofficeError):
    """The principal is authenticated but lacks the capability or ownership."""

    kind = "authorization_error"
    status_code = 403
    default_message = "Forbidden"


ForbiddenError = AuthorizationError


class NotFoundError(BackofficeError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class ConflictError(BackofficeError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class ValidationError(BackofficeError):
    """Malformed payload or notification target."""

    kind = "validation_error"
    status_code = 400
    default_message = "Invalid input data"


class RateLimitError(BackofficeError):
    kind = "rate_limited"
    status_code = 429
    default_message = "Too many requests"


class DependencyError(BackofficeError):
    """Blob storage, email or persistence collaborator failed."""

    kind = "dependency_error"
    status_code = 500
    default_message = "A required service is unavailable"
