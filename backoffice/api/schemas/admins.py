from __future__ import annotations

from pydantic import BaseModel, Field

from .auth import AdminProfile


class StoreSummary(BaseModel):
    id: str
    name: str
    slug: str


class AdminListItem(AdminProfile):
    has_store: bool
    store: StoreSummary | None = None


class AdminListResponse(BaseModel):
    admins: list[AdminListItem]


class AdminReviewRequest(BaseModel):
    status: str | None = Field(None, description="pending, approved or rejected")
    is_identity_verified: bool | None = None


class AdminReviewResponse(BaseModel):
    message: str
    admin: AdminProfile


class AdminBulkUpdateRequest(BaseModel):
    admin_ids: list[str] = Field(..., min_length=1)
    status: str
