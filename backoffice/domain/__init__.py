"""Domain layer: principals and moderation services."""

from backoffice.domain.models import Principal

__all__ = ["Principal"]
