import pytest
from backoffice.core.errors import (
    AuthenticationError,
    AuthorizationError,
    BackofficeError,
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "kind", "status_code"),
    [
        (AuthenticationError, "authentication_error", 401),
        (AuthorizationError, "authorization_error", 403),
        (NotFoundError, "not_found", 404),
        (ConflictError, "conflict", 409),
        (ValidationError, "validation_error", 400),
        (RateLimitError, "rate_limited", 429),
        (DependencyError, "dependency_error", 500),
    ],
)
def test_error_taxonomy(error_cls: type[BackofficeError], kind: str, status_code: int) -> None:
    error = error_cls("boom")

    assert isinstance(error, BackofficeError)
    assert error.kind == kind
    assert error.status_code == status_code
    assert error.to_dict() == {"kind": kind, "detail": "boom"}


def test_default_message_is_used_when_none_given() -> None:
    assert NotFoundError().message == "Not found"


def test_forbidden_is_an_alias_of_authorization_error() -> None:
    assert ForbiddenError is AuthorizationError
