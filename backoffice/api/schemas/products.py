from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GalleryImageSchema(BaseModel):
    url: str
    alt: str = ""
    is_main: bool = False


class Specification(BaseModel):
    name: str
    value: str


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    slug: str
    sku: str
    description: str
    short_description: str | None = None
    brand: str
    category: str
    price: float
    original_price: float | None = None
    discount: float
    stock: int
    low_stock_threshold: int
    in_stock: bool
    image_url: str
    gallery: list[GalleryImageSchema] | None = None
    specifications: list[Specification] | None = None
    tags: list[str] | None = None
    is_active: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime


class ProductCreatedResponse(BaseModel):
    message: str = "Product created successfully"
    product: ProductResponse


class ProductListResponse(BaseModel):
    data: list[ProductResponse]


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = None
    short_description: str | None = Field(None, max_length=500)
    sku: str | None = None
    brand: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    price: float | None = Field(None, ge=0)
    original_price: float | None = Field(None, ge=0)
    discount: float | None = Field(None, ge=0, le=100)
    stock: int | None = Field(None, ge=0)
    low_stock_threshold: int | None = Field(None, ge=0)
    in_stock: bool | None = None
    specifications: list[Specification] | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
