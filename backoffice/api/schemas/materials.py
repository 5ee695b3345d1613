from __future__ import annotations

from datetime import datetime

from backoffice.infrastructure.db.models import ModerationStatus
from pydantic import BaseModel, ConfigDict, Field


class MaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    quantity: float
    unit: str
    unit_cost: float
    store_id: str
    image_url: str
    owner_id: str
    status: ModerationStatus
    last_modified_by: str | None = None
    created_at: datetime
    updated_at: datetime


class MaterialListResponse(BaseModel):
    materials: list[MaterialResponse]


class MaterialBulkUpdateRequest(BaseModel):
    material_ids: list[str] = Field(..., min_length=1)
    status: str


class StatusBreakdownResponse(BaseModel):
    count: int
    total_value: float


class MaterialStatisticsResponse(BaseModel):
    total_materials: int
    stores_with_materials: int
    by_status: dict[str, StatusBreakdownResponse]
