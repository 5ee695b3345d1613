"""structlog setup for the API process and the operator scripts.

Every event carries the service name and environment, plus whatever the
request middleware bound (``request_id``, ``path``, ``method``).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from backoffice.core.config import Settings, get_settings

_CONFIGURED = False

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "passlib")


def resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def service_fields(settings: Settings) -> Any:
    """Processor stamping each event with the service name and environment."""
    fields = {"service": settings.app_name, "environment": settings.environment}

    def add_service_fields(logger: Any, method_name: str, event_dict: dict) -> dict:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_fields


def setup_logging(settings: Settings | None = None) -> None:
    """Configure JSON structlog output at the ``LOG_LEVEL`` threshold."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = settings or get_settings()
    level = resolve_level(settings.log_level)

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        service_fields(settings),
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
