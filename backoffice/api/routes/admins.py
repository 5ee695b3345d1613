"""Admin account management (SuperAdmin) and self-service resubmission."""

from __future__ import annotations

from backoffice.api.deps import (
    get_blob_storage,
    get_current_principal,
    get_db_session,
    get_email_client,
    read_upload,
    require_capability,
)
from backoffice.api.schemas.admins import (
    AdminBulkUpdateRequest,
    AdminListItem,
    AdminListResponse,
    AdminReviewRequest,
    AdminReviewResponse,
    StoreSummary,
)
from backoffice.api.schemas.auth import AdminProfile
from backoffice.api.schemas.moderation import BulkUpdateResponse
from backoffice.core.permissions import Capability
from backoffice.domain import Principal
from backoffice.domain.services.admins import AdminService
from backoffice.domain.services.auth_service import admin_to_dict
from backoffice.libs.resend_client import ResendClient
from backoffice.libs.storage_client import BlobStorage
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admins", tags=["Admins"])


@router.get("", response_model=AdminListResponse)
async def list_admins(
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.ADMINS_MANAGE)),
) -> AdminListResponse:
    """Every admin account with its store, if it has one."""
    rows = await AdminService(session, storage).list_with_stores(principal)
    return AdminListResponse(
        admins=[
            AdminListItem(
                **admin_to_dict(row["admin"]),
                has_store=row["has_store"],
                store=StoreSummary(**row["store"]) if row["store"] else None,
            )
            for row in rows
        ]
    )


# Registered before "/{admin_id}" so the literal paths are not captured as ids.
@router.patch("/bulk-update", response_model=BulkUpdateResponse)
async def bulk_update_admins(
    payload: AdminBulkUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.ADMINS_MANAGE)),
) -> BulkUpdateResponse:
    result = await AdminService(session, storage).bulk_review(
        payload.admin_ids, principal, payload.status
    )
    return BulkUpdateResponse(
        message=f"{result.modified_count} admin(s) updated to {result.status.value}",
        modified_count=result.modified_count,
        missing_ids=result.missing_ids,
    )


@router.patch("/me", response_model=AdminProfile)
async def resubmit_own_details(
    first_name: str | None = Form(None),
    last_name: str | None = Form(None),
    phone_number: str | None = Form(None),
    affiliation: str | None = Form(None),
    government_id_type: str | None = Form(None),
    government_id_number: str | None = Form(None),
    id_document: UploadFile | None = File(None),
    selfie_with_id: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(get_current_principal),
) -> AdminProfile:
    """Update identity details; the account returns to pending review."""
    admin = await AdminService(session, storage).resubmit_own(
        principal,
        {
            "first_name": first_name,
            "last_name": last_name,
            "phone_number": phone_number,
            "affiliation": affiliation,
            "government_id_type": government_id_type,
            "government_id_number": government_id_number,
        },
        id_document=await read_upload(id_document),
        selfie_with_id=await read_upload(selfie_with_id),
    )
    return AdminProfile(**admin_to_dict(admin))


@router.patch("/{admin_id}", response_model=AdminReviewResponse)
async def review_admin(
    admin_id: str,
    payload: AdminReviewRequest,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    email_client: ResendClient | None = Depends(get_email_client),
    principal: Principal = Depends(require_capability(Capability.ADMINS_MANAGE)),
) -> AdminReviewResponse:
    service = AdminService(session, storage, email_client=email_client)
    review = await service.review(
        admin_id,
        principal,
        status=payload.status,
        is_identity_verified=payload.is_identity_verified,
    )
    return AdminReviewResponse(
        message="Admin updated successfully",
        admin=AdminProfile(**admin_to_dict(review.admin)),
    )


@router.delete("/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_admin(
    admin_id: str,
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_capability(Capability.ADMINS_MANAGE)),
) -> Response:
    await AdminService(session, storage).delete(admin_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
