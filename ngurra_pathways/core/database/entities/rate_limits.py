"""
Per-user action counters for rate limiting.

Table: rate_limit_trackers
"""

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base
from ..utils import new_id, utc_now


class RateLimitTracker(Base, table=True):
    """Minute, hour and day counters for one (user, action) pair."""

    __tablename__ = "rate_limit_trackers"
    __table_args__ = (
        UniqueConstraint("user_id", "action", name="uq_rate_limit_trackers_user_action"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    action: str = Field(max_length=40)
    minute_count: int = Field(default=0)
    hour_count: int = Field(default=0)
    day_count: int = Field(default=0)
    minute_reset_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    hour_reset_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    day_reset_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
