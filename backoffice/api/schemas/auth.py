"""Pydantic schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

# --- Request Schemas ---


class LoginRequest(BaseModel):
    """Request schema for admin and superadmin login."""

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


# --- Response Schemas ---


class TokenResponse(BaseModel):
    """Response schema containing JWT tokens."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str | None = Field(None, description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token TTL in seconds")


class AdminProfile(BaseModel):
    """Admin account as returned to clients; never carries the password hash."""

    id: str
    role: str = "Admin"
    first_name: str
    last_name: str
    email: str
    phone_number: str
    affiliation: str
    government_id_type: str
    government_id_number: str
    id_document_url: str
    selfie_with_id_url: str | None = None
    status: str = Field(..., description="Verification status: pending, approved or rejected")
    is_identity_verified: bool
    created_at: datetime
    updated_at: datetime | None = None
    last_login_at: datetime | None = None


class SuperAdminProfile(BaseModel):
    id: str
    role: str = "SuperAdmin"
    email: str
    created_at: datetime
    last_login_at: datetime | None = None


class AdminLoginResponse(BaseModel):
    message: str = Field(default="Login successful")
    user: AdminProfile
    tokens: TokenResponse


class SuperAdminLoginResponse(BaseModel):
    message: str = Field(default="Login successful")
    user: SuperAdminProfile
    tokens: TokenResponse


class RegisterAdminResponse(BaseModel):
    """Registration is accepted for review; no credential is issued yet."""

    message: str = Field(default="Registration submitted. Await SuperAdmin approval.")
    user: AdminProfile


class MeResponse(BaseModel):
    """Response schema for current principal info."""

    user: AdminProfile | SuperAdminProfile
