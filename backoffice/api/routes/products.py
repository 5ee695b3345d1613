"""Product catalogue endpoints; listing and detail are public."""

from __future__ import annotations

from backoffice.api.deps import (
    get_blob_storage,
    get_db_session,
    parse_json_field,
    read_upload,
    require_capability,
)
from backoffice.api.schemas.products import (
    ProductCreatedResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    Specification,
)
from backoffice.core.permissions import Capability
from backoffice.domain import Principal
from backoffice.domain.services.products import GalleryImage, ProductDraft, ProductService
from backoffice.libs.storage_client import BlobStorage
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    description: str = Form(...),
    brand: str = Form(...),
    category: str = Form(...),
    price: float = Form(..., ge=0),
    stock: int = Form(..., ge=0),
    sku: str | None = Form(None),
    short_description: str | None = Form(None),
    original_price: float | None = Form(None, ge=0),
    discount: float = Form(0, ge=0, le=100),
    low_stock_threshold: int = Form(10, ge=0),
    is_active: bool = Form(True),
    is_featured: bool = Form(False),
    specifications: str | None = Form(None, description="JSON array of {name, value}"),
    tags: str | None = Form(None, description="JSON array of strings"),
    gallery_alts: str | None = Form(None, description="JSON array of alt texts, one per image"),
    main_gallery_index: int | None = Form(None, ge=0),
    image: UploadFile | None = File(None),
    images: list[UploadFile] | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.PRODUCTS_MANAGE)),
) -> ProductCreatedResponse:
    specs = parse_json_field(specifications, list[Specification], field="specifications") or []
    alts = parse_json_field(gallery_alts, list[str], field="gallery_alts") or []

    gallery = []
    for position, upload in enumerate(images or []):
        uploaded = await read_upload(upload)
        if uploaded is None:
            continue
        gallery.append(
            GalleryImage(
                file=uploaded,
                alt=alts[position] if position < len(alts) else "",
                is_main=position == main_gallery_index,
            )
        )

    draft = ProductDraft(
        name=name,
        description=description,
        brand=brand,
        category=category,
        price=price,
        stock=stock,
        sku=sku,
        short_description=short_description,
        original_price=original_price,
        discount=discount,
        low_stock_threshold=low_stock_threshold,
        is_active=is_active,
        is_featured=is_featured,
        specifications=[spec.model_dump() for spec in specs],
        tags=parse_json_field(tags, list[str], field="tags") or [],
    )
    product = await ProductService(session, storage).create(
        principal, draft, image=await read_upload(image), gallery=gallery
    )
    return ProductCreatedResponse(product=ProductResponse.model_validate(product))


@router.get("", response_model=ProductListResponse)
async def list_products(
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
) -> ProductListResponse:
    """Active products, newest first."""
    products = await ProductService(session, storage).list_active()
    return ProductListResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
) -> ProductResponse:
    product = await ProductService(session, storage).get_active(product_id)
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.PRODUCTS_MANAGE)),
) -> ProductResponse:
    product = await ProductService(session, storage).update(
        product_id, principal, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.PRODUCTS_MANAGE)),
) -> Response:
    await ProductService(session, storage).delete(product_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
