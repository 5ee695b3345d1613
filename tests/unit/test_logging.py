import logging

import pytest
from backoffice.core.config import Settings
from backoffice.core.logging import resolve_level, service_fields


def test_resolve_level_accepts_names_in_any_case() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" WARNING ") == logging.WARNING


def test_resolve_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        resolve_level("chatty")


def test_events_are_stamped_with_service_and_environment() -> None:
    settings = Settings(APP_NAME="Back Office Test", APP_ENV="staging")
    processor = service_fields(settings)

    event = processor(None, "info", {"event": "service_startup"})

    assert event == {
        "event": "service_startup",
        "service": "Back Office Test",
        "environment": "staging",
    }


def test_explicit_service_field_wins() -> None:
    processor = service_fields(Settings(APP_NAME="Back Office Test"))

    event = processor(None, "info", {"event": "x", "service": "worker"})

    assert event["service"] == "worker"
