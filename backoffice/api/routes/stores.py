"""Store endpoints: one store per admin, managed by its owner."""

from __future__ import annotations

from backoffice.api.deps import (
    get_current_principal,
    get_db_session,
    get_logo_storage,
    parse_json_field,
    read_upload,
    require_capability,
)
from backoffice.api.schemas.stores import StoreListResponse, StoreResponse
from backoffice.core.permissions import Capability
from backoffice.domain import Principal
from backoffice.domain.services.stores import StoreDetails, StoreService
from backoffice.libs.storage_client import BlobStorage
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/stores", tags=["Stores"])


def _details(
    *,
    name: str | None,
    display_name: str | None,
    email: str | None,
    phone: str | None,
    street_address: str | None,
    city: str | None,
    state: str | None,
    postal_code: str | None,
    vat_number: str | None,
    business_hours: str | None,
    attachments: str | None,
) -> StoreDetails:
    return StoreDetails(
        name=name,
        display_name=display_name,
        email=email,
        phone=phone,
        vat_number=vat_number,
        address={
            "street_address": street_address,
            "city": city,
            "state": state,
            "postal_code": postal_code,
        },
        business_hours=parse_json_field(business_hours, dict[str, str], field="business_hours"),
        attachments=parse_json_field(attachments, list[str], field="attachments"),
    )


@router.post("", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def save_own_store(
    response: Response,
    name: str = Form(...),
    display_name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    street_address: str | None = Form(None),
    city: str | None = Form(None),
    state: str | None = Form(None),
    postal_code: str | None = Form(None),
    vat_number: str | None = Form(None),
    business_hours: str | None = Form(None, description="JSON object: day -> hours"),
    attachments: str | None = Form(None, description="JSON array of URLs"),
    logo: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    principal: Principal = Depends(require_capability(Capability.STORES_MANAGE)),
) -> StoreResponse:
    """Create the caller's store (201), or update it if it already exists (200)."""
    details = _details(
        name=name,
        display_name=display_name,
        email=email,
        phone=phone,
        street_address=street_address,
        city=city,
        state=state,
        postal_code=postal_code,
        vat_number=vat_number,
        business_hours=business_hours,
        attachments=attachments,
    )
    result = await StoreService(session, storage).save_own(
        principal, details, logo=await read_upload(logo)
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return StoreResponse.model_validate(result.store)


@router.get("", response_model=StoreListResponse)
async def list_stores(
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    principal: Principal = Depends(get_current_principal),
) -> StoreListResponse:
    stores = await StoreService(session, storage).list_visible(principal)
    return StoreListResponse(stores=[StoreResponse.model_validate(store) for store in stores])


@router.get("/admin/{admin_id}", response_model=StoreListResponse)
async def list_admin_stores(
    admin_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    principal: Principal = Depends(require_capability(Capability.STORES_READ_ALL)),
) -> StoreListResponse:
    stores = await StoreService(session, storage).list_for_admin(admin_id, principal)
    return StoreListResponse(stores=[StoreResponse.model_validate(store) for store in stores])


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store(
    store_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    _: Principal = Depends(get_current_principal),
) -> StoreResponse:
    store = await StoreService(session, storage).get(store_id)
    return StoreResponse.model_validate(store)


@router.patch("/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: str,
    name: str | None = Form(None),
    display_name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    street_address: str | None = Form(None),
    city: str | None = Form(None),
    state: str | None = Form(None),
    postal_code: str | None = Form(None),
    vat_number: str | None = Form(None),
    business_hours: str | None = Form(None),
    attachments: str | None = Form(None),
    logo: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    principal: Principal = Depends(require_capability(Capability.STORES_MANAGE)),
) -> StoreResponse:
    details = _details(
        name=name,
        display_name=display_name,
        email=email,
        phone=phone,
        street_address=street_address,
        city=city,
        state=state,
        postal_code=postal_code,
        vat_number=vat_number,
        business_hours=business_hours,
        attachments=attachments,
    )
    result = await StoreService(session, storage).update(
        store_id, principal, details, logo=await read_upload(logo)
    )
    return StoreResponse.model_validate(result.store)


@router.delete("/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store(
    store_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_logo_storage),
    principal: Principal = Depends(require_capability(Capability.STORES_MANAGE)),
) -> Response:
    await StoreService(session, storage).delete(store_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
