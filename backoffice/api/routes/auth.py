"""Authentication routes - admin registration, logins, profile."""

from __future__ import annotations

from backoffice.api.deps import (
    enforce_rate_limit,
    get_blob_storage,
    get_current_principal,
    get_db_session,
    read_upload,
)
from backoffice.api.schemas.auth import (
    AdminLoginResponse,
    AdminProfile,
    LoginRequest,
    MeResponse,
    RegisterAdminResponse,
    SuperAdminLoginResponse,
    SuperAdminProfile,
)
from backoffice.core.auth import Role
from backoffice.domain import Principal
from backoffice.domain.services.admins import AdminRegistration, AdminService
from backoffice.domain.services.auth_service import AuthService, admin_to_dict
from backoffice.libs.storage_client import BlobStorage
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register-admin",
    response_model=RegisterAdminResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
    summary="Register admin",
    description="Submit an admin account with identity documents for SuperAdmin review.",
)
async def register_admin(
    first_name: str = Form(..., min_length=1),
    last_name: str = Form(..., min_length=1),
    email: EmailStr = Form(...),
    phone_number: str = Form(..., min_length=1),
    password: str = Form(...),
    affiliation: str = Form(..., min_length=1),
    government_id_type: str = Form(..., min_length=1),
    government_id_number: str = Form(..., min_length=1),
    id_document: UploadFile | None = File(None),
    selfie_with_id: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
) -> RegisterAdminResponse:
    service = AdminService(session, storage)
    admin = await service.register(
        AdminRegistration(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            phone_number=phone_number.strip(),
            password=password,
            affiliation=affiliation.strip(),
            government_id_type=government_id_type.strip(),
            government_id_number=government_id_number.strip(),
        ),
        id_document=await read_upload(id_document),
        selfie_with_id=await read_upload(selfie_with_id),
    )
    return RegisterAdminResponse(user=AdminProfile(**admin_to_dict(admin)))


@router.post(
    "/login-admin",
    response_model=AdminLoginResponse,
    dependencies=[Depends(enforce_rate_limit)],
    summary="Admin login",
    description="Authenticate an admin with email and password, returns JWT tokens.",
)
async def login_admin(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> AdminLoginResponse:
    result = await AuthService(session).login_admin(email=payload.email, password=payload.password)
    return AdminLoginResponse(**result)


@router.post(
    "/login-superadmin",
    response_model=SuperAdminLoginResponse,
    dependencies=[Depends(enforce_rate_limit)],
    summary="SuperAdmin login",
)
async def login_superadmin(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> SuperAdminLoginResponse:
    result = await AuthService(session).login_superadmin(
        email=payload.email, password=payload.password
    )
    return SuperAdminLoginResponse(**result)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current principal",
    description="Profile of the authenticated Admin or SuperAdmin.",
)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    profile = await AuthService(session).get_profile(principal)
    if principal.role == Role.SUPER_ADMIN:
        return MeResponse(user=SuperAdminProfile(**profile))
    return MeResponse(user=AdminProfile(**profile))
