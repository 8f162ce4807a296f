"""
In-app notification entity.

Table: notifications
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field

from ..base import Base
from ..utils import new_id, utc_now


class NotificationType(str, Enum):
    JOB_APPLICATION = "JOB_APPLICATION"
    JOB_APPLICATION_UPDATE = "JOB_APPLICATION_UPDATE"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    OFFER_RECEIVED = "OFFER_RECEIVED"
    NEW_MESSAGE = "NEW_MESSAGE"
    CONNECTION_REQUEST = "CONNECTION_REQUEST"
    CONNECTION_ACCEPTED = "CONNECTION_ACCEPTED"
    POST_REACTION = "POST_REACTION"
    POST_COMMENT = "POST_COMMENT"
    MENTION = "MENTION"
    MENTORSHIP_REQUEST = "MENTORSHIP_REQUEST"
    MENTORSHIP_CANCELLED = "MENTORSHIP_CANCELLED"
    PAYMENT_SUCCEEDED = "PAYMENT_SUCCEEDED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    SUBSCRIPTION_CANCELLED = "SUBSCRIPTION_CANCELLED"
    SYSTEM = "SYSTEM"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Notification(Base, table=True):
    """Table: notifications"""

    __tablename__ = "notifications"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    type: str = Field(max_length=40)
    title: str = Field(max_length=200)
    message: str
    data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    action_url: Optional[str] = Field(default=None)
    priority: str = Field(default=NotificationPriority.MEDIUM.value, max_length=10)
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
