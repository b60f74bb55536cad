"""Schemas for account and session operations."""

from typing import Optional

from pydantic import BaseModel, Field

from trashmap.services.auth_service import UserRole


class CredentialsRequest(BaseModel):
    email: str = Field(..., min_length=3, description="Account email")
    password: str = Field(..., min_length=6, max_length=72, description="Account password")


class SignupRequest(CredentialsRequest):
    display_name: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3)


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)


class UserResponse(BaseModel):
    """Public view of the signed-in user."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: UserRole
    is_admin: bool


class SessionResponse(BaseModel):
    user: UserResponse
    token: str
