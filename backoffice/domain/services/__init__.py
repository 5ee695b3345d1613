"""Domain services."""

from backoffice.domain.services.admins import AdminRegistration, AdminService
from backoffice.domain.services.auth_service import AuthService
from backoffice.domain.services.materials import MaterialService, MaterialStatistics
from backoffice.domain.services.moderation import (
    ADMIN_KIND,
    MATERIAL_KIND,
    BulkTransitionResult,
    ModeratableKind,
    ModerationWorkflow,
    TransitionResult,
)
from backoffice.domain.services.notifications import (
    NotificationService,
    NotificationTarget,
    render_notification,
)
from backoffice.domain.services.products import ProductDraft, ProductService
from backoffice.domain.services.stores import StoreDetails, StoreService

__all__ = [
    "ADMIN_KIND",
    "MATERIAL_KIND",
    "AdminRegistration",
    "AdminService",
    "AuthService",
    "BulkTransitionResult",
    "MaterialService",
    "MaterialStatistics",
    "ModeratableKind",
    "ModerationWorkflow",
    "NotificationService",
    "NotificationTarget",
    "ProductDraft",
    "ProductService",
    "StoreDetails",
    "StoreService",
    "TransitionResult",
    "render_notification",
]
