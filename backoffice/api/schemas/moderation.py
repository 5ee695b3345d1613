from __future__ import annotations

from pydantic import BaseModel, Field


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending, approved or rejected")


class BulkUpdateResponse(BaseModel):
    message: str
    modified_count: int
    missing_ids: list[str] = Field(default_factory=list)
