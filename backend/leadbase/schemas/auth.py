"""Pydantic schemas for authentication endpoints.

Request bodies for the auth routes and the public user/session shapes
returned inside the ``{"success", "message", "data"}`` envelope.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    """Request body for creating a password account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class EmailRequest(BaseModel):
    """Request body for asking a password reset link."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=128)


class UserOut(BaseModel):
    """Public user representation returned by the API."""

    id: int
    email: str
    name: str | None = None
    is_verified: bool = Field(serialization_alias="isVerified")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    class Config:
        from_attributes = True


class SessionOut(BaseModel):
    """An active (live) refresh token session."""

    id: int
    device_info: str | None = Field(default=None, serialization_alias="deviceInfo")
    ip_address: str | None = Field(default=None, serialization_alias="ipAddress")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")
    expires_at: datetime = Field(serialization_alias="expiresAt")

    class Config:
        from_attributes = True


class ApiResponse(BaseModel):
    """Envelope shared by every auth endpoint."""

    success: bool = True
    message: str | None = None
    data: dict[str, Any] | None = None


def dump_user(user) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json", by_alias=True)


def dump_session(session) -> dict:
    return SessionOut.model_validate(session).model_dump(mode="json", by_alias=True)
