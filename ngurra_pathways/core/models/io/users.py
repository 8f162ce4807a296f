"""
User and authentication I/O models.

Request schemas validate input shape (email format, password length); business
rules such as duplicate emails are enforced by the auth service.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ngurra_pathways.core.database.entities.users import UserType

from .common import Pagination

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
# bcrypt rejects input longer than 72 bytes
MAX_PASSWORD_BYTES = 72


class UserRead(BaseModel):
    """Full account view returned to the account holder and admins."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    user_type: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    company_name: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    is_active: bool
    email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class PublicUserRead(BaseModel):
    """Profile visible to other members. Omits email and account state."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_type: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    company_name: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    created_at: datetime


class UserList(BaseModel):
    data: List[UserRead]
    pagination: Pagination


class PublicUserList(BaseModel):
    data: List[PublicUserRead]
    pagination: Pagination


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    display_name: Optional[str] = Field(default=None, max_length=120)
    first_name: Optional[str] = Field(default=None, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    headline: Optional[str] = Field(default=None, max_length=200)
    bio: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=120)
    avatar_url: Optional[str] = None
    company_name: Optional[str] = Field(default=None, max_length=200)
    skills: Optional[List[str]] = None


class AdminUserUpdate(ProfileUpdate):
    """Profile update that may also carry admin-only fields."""

    user_type: Optional[UserType] = None
    is_active: Optional[bool] = None


class RegisterRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=8, max_length=MAX_PASSWORD_BYTES)
    user_type: UserType = UserType.MEMBER
    display_name: Optional[str] = Field(default=None, max_length=120)
    first_name: Optional[str] = Field(default=None, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    company_name: Optional[str] = Field(default=None, max_length=200)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token lifetime in seconds")


class AuthResponse(TokenPair):
    user: UserRead
