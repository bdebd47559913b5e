"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from relohub.schemas import CamelModel

_PHONE_RE = re.compile(r"^[6-9]\d{9}$")


class SignupRequest(CamelModel):
    """Account registration."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str | None = Field(None, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None


class SigninRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class ProfileUpdateRequest(CamelModel):
    """Editable profile fields. Email is not editable."""

    first_name: str = Field(..., max_length=50)
    last_name: str | None = Field(None, max_length=50)
    phone_number: str | None = None

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            msg = "First name must be at least 2 characters"
            raise ValueError(msg)
        return v

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        if not v:
            return None
        v = v.strip()
        if not _PHONE_RE.match(v):
            msg = "Invalid phone number format (must be 10 digits starting with 6-9)"
            raise ValueError(msg)
        return v


class UserResponse(CamelModel):
    id: str
    first_name: str
    last_name: str | None = None
    email: str
    phone_number: str | None = None
    role: str
    package: str
    package_activated_at: datetime | None = None
    package_expires_at: datetime | None = None
    has_active_plan: bool = False
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    token: str
    user: UserResponse
