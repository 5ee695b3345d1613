from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class StoreAddress(BaseModel):
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None


class StoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    slug: str
    display_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: StoreAddress | None = None
    vat_number: str | None = None
    logo_url: str | None = None
    business_hours: dict[str, str] | None = None
    attachments: list[str] | None = None
    created_at: datetime
    updated_at: datetime


class StoreListResponse(BaseModel):
    stores: list[StoreResponse]
