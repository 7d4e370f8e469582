"""Pydantic schemas for authentication endpoints"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from ..schemas import CamelModel


class SignupRequest(CamelModel):
    """Registration of an institution account.

    role is accepted only so that attempts to self-register as admin can be
    refused explicitly.
    """
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Optional[str] = None
    institution_name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(CamelModel):
    """Editable profile fields; omitted fields are left unchanged."""
    institution_name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class UserResponse(CamelModel):
    """User information response (excludes password_hash)."""
    id: UUID
    email: str
    role: str
    institution_name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    created_at: datetime


class AuthResponse(CamelModel):
    """Response for signup and login: token plus profile."""
    success: bool = True
    token: str
    expires_in: int
    user: UserResponse


class MeResponse(CamelModel):
    success: bool = True
    user: UserResponse
