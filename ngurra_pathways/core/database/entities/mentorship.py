"""
Mentorship session entity.

Table: mentor_sessions
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field

from ..base import Base
from ..utils import new_id, utc_now


class SessionStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MentorSession(Base, table=True):
    """A booked session between a mentor and a mentee."""

    __tablename__ = "mentor_sessions"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    mentor_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    mentee_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    scheduled_at: NaiveDatetime = Field(index=True, sa_type=DateTime())
    duration: int = Field(default=60, ge=15, le=180, description="Length in minutes")
    status: str = Field(default=SessionStatus.SCHEDULED.value, max_length=12, index=True)
    topic: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None)
    meeting_link: Optional[str] = Field(default=None)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    feedback: Optional[str] = Field(default=None)
    feedback_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    completed_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    cancelled_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )
