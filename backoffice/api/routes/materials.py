"""Material listings and their SuperAdmin moderation endpoints."""

from __future__ import annotations

from backoffice.api.deps import (
    get_blob_storage,
    get_current_principal,
    get_db_session,
    read_upload,
    require_capability,
)
from backoffice.api.schemas.materials import (
    MaterialBulkUpdateRequest,
    MaterialListResponse,
    MaterialResponse,
    MaterialStatisticsResponse,
    StatusBreakdownResponse,
)
from backoffice.api.schemas.moderation import BulkUpdateResponse, StatusUpdateRequest
from backoffice.core.permissions import Capability
from backoffice.domain import Principal
from backoffice.domain.services.materials import MaterialService
from backoffice.libs.storage_client import BlobStorage
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/materials", tags=["Materials"])


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    name: str = Form(..., min_length=1),
    quantity: float = Form(...),
    unit: str = Form(..., min_length=1),
    unit_cost: float = Form(...),
    store_id: str = Form(..., min_length=1),
    image: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MODERATION_SUBMIT)),
) -> MaterialResponse:
    """Submit a material for review; it starts out pending."""
    material = await MaterialService(session, storage).create(
        principal,
        name=name.strip(),
        quantity=quantity,
        unit=unit.strip(),
        unit_cost=unit_cost,
        store_id=store_id,
        image=await read_upload(image),
    )
    return MaterialResponse.model_validate(material)


@router.get("", response_model=MaterialListResponse)
async def list_store_materials(
    store_id: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    _: Principal = Depends(get_current_principal),
) -> MaterialListResponse:
    materials = await MaterialService(session, storage).list_for_store(store_id)
    return MaterialListResponse(
        materials=[MaterialResponse.model_validate(material) for material in materials]
    )


# "/admin/..." routes are registered before "/{material_id}" variants.
@router.get("/admin/all", response_model=MaterialListResponse)
async def list_all_materials(
    status_filter: str | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MODERATION_READ_ALL)),
) -> MaterialListResponse:
    materials = await MaterialService(session, storage).list_all(principal, status=status_filter)
    return MaterialListResponse(
        materials=[MaterialResponse.model_validate(material) for material in materials]
    )


@router.get("/admin/statistics", response_model=MaterialStatisticsResponse)
async def material_statistics(
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MATERIALS_STATISTICS)),
) -> MaterialStatisticsResponse:
    stats = await MaterialService(session, storage).statistics(principal)
    return MaterialStatisticsResponse(
        total_materials=stats.total_materials,
        stores_with_materials=stats.stores_with_materials,
        by_status={
            name: StatusBreakdownResponse(count=row.count, total_value=row.total_value)
            for name, row in stats.by_status.items()
        },
    )


@router.patch("/admin/bulk-update", response_model=BulkUpdateResponse)
async def bulk_update_materials(
    payload: MaterialBulkUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MODERATION_BULK_TRANSITION)),
) -> BulkUpdateResponse:
    result = await MaterialService(session, storage).bulk_transition(
        payload.material_ids, principal, payload.status
    )
    return BulkUpdateResponse(
        message=f"{result.modified_count} material(s) updated to {result.status.value}",
        modified_count=result.modified_count,
        missing_ids=result.missing_ids,
    )


@router.patch("/admin/{material_id}", response_model=MaterialResponse)
async def update_material_status(
    material_id: str,
    payload: StatusUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MODERATION_TRANSITION)),
) -> MaterialResponse:
    result = await MaterialService(session, storage).transition(
        material_id, principal, payload.status
    )
    return MaterialResponse.model_validate(result.entity)


@router.patch("/{material_id}", response_model=MaterialResponse)
async def resubmit_material(
    material_id: str,
    name: str | None = Form(None),
    quantity: float | None = Form(None),
    unit: str | None = Form(None),
    unit_cost: float | None = Form(None),
    store_id: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.MODERATION_RESUBMIT)),
) -> MaterialResponse:
    """Edit a material; any edit sends it back to pending review."""
    material = await MaterialService(session, storage).resubmit(
        material_id,
        principal,
        changes={
            "name": name,
            "quantity": quantity,
            "unit": unit,
            "unit_cost": unit_cost,
            "store_id": store_id,
        },
        image=await read_upload(image),
    )
    return MaterialResponse.model_validate(material)


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    await MaterialService(session, storage).delete(material_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
