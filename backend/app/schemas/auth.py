# backend/app/schemas/auth.py
"""
Request and response schemas for authentication routes.

Password rules live in ``AuthService``; these models only enforce shape so
weak passwords surface as the service's WEAK_PASSWORD error with its
requirement list.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from ..core.enums import RoleName
from .base import CamelModel, CamelRequestModel


class RegisterRequest(CamelRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: RoleName = RoleName.CUSTOMER


class LoginRequest(CamelRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class MagicLinkRequest(CamelRequestModel):
    email: EmailStr
    callback_url: Optional[str] = Field(None, max_length=500)


class MagicLinkVerifyRequest(CamelRequestModel):
    token: str = Field(..., min_length=1, max_length=128)


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    primary_role: str
    roles: List[str] = Field(default_factory=list)
    email_verified_at: Optional[datetime] = None
    is_suspended: bool = False
    created_at: datetime


class MeResponse(UserResponse):
    permissions: List[str] = Field(default_factory=list)


class AuthResponse(CamelModel):
    success: bool = True
    user: UserResponse
    message: Optional[str] = None


class LoginResponse(AuthResponse):
    # Same opaque token as the session cookie, for Bearer clients.
    session_token: str


class MagicLinkResponse(CamelModel):
    success: bool = True
    message: str
    # Only populated outside production.
    magic_link: Optional[str] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str
