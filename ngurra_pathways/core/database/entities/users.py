"""
User account entities.

Tables:
- users: Member, mentor, employer and admin accounts
- auth_sessions: Opaque access/refresh token pairs issued at login
"""

from enum import Enum
from typing import List, Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field

from ..base import Base
from ..utils import new_id, utc_now


class UserType(str, Enum):
    """Kind of account."""

    MEMBER = "MEMBER"
    MENTOR = "MENTOR"
    COMPANY = "COMPANY"
    INSTITUTION = "INSTITUTION"
    GOVERNMENT = "GOVERNMENT"
    ADMIN = "ADMIN"


class UserBase(Base):
    """Profile fields shared by the table model and API schemas."""

    email: str = Field(max_length=255, description="Login email, stored lower-cased")
    user_type: str = Field(default=UserType.MEMBER.value, max_length=32, index=True)
    display_name: Optional[str] = Field(default=None, max_length=120)
    first_name: Optional[str] = Field(default=None, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    headline: Optional[str] = Field(default=None, max_length=200)
    bio: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None, max_length=120)
    avatar_url: Optional[str] = Field(default=None)
    company_name: Optional[str] = Field(default=None, max_length=200)


class User(UserBase, table=True):
    """Registered account.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(description="bcrypt hash of the password")
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_active: bool = Field(default=True, index=True)
    email_verified: bool = Field(default=False)
    last_login_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())

    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )

    @property
    def name(self) -> str:
        """Best available human-readable name."""
        if self.display_name:
            return self.display_name
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.email.split("@")[0]

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, type={self.user_type})"


class AuthSession(Base, table=True):
    """Issued token pair. Only SHA-256 digests of the tokens are stored.

    Table: auth_sessions
    """

    __tablename__ = "auth_sessions"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    access_token_hash: str = Field(max_length=64, unique=True, index=True)
    refresh_token_hash: str = Field(max_length=64, unique=True, index=True)
    access_expires_at: NaiveDatetime = Field(sa_type=DateTime())
    refresh_expires_at: NaiveDatetime = Field(sa_type=DateTime())
    last_activity_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    revoked: bool = Field(default=False)
    user_agent: Optional[str] = Field(default=None, max_length=255)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
