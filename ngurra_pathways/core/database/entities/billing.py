"""
Subscription billing entities.

Tables:
- subscriptions: One row per account holding the current tier
- invoices: Paid invoices mirrored from Stripe
- processed_webhook_events: Stripe event ids already handled
"""

from enum import Enum
from typing import Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base
from ..utils import new_id, utc_now


class SubscriptionTier(str, Enum):
    FREE = "FREE"
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"
    RAP = "RAP"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


class Subscription(Base, table=True):
    """Table: subscriptions"""

    __tablename__ = "subscriptions"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True, max_length=36)
    tier: str = Field(default=SubscriptionTier.FREE.value, max_length=20)
    status: str = Field(default=SubscriptionStatus.ACTIVE.value, max_length=20)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)
    current_period_start: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    current_period_end: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    cancel_at_period_end: bool = Field(default=False)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )


class Invoice(Base, table=True):
    """Table: invoices"""

    __tablename__ = "invoices"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    subscription_id: Optional[str] = Field(default=None, foreign_key="subscriptions.id", max_length=36)
    stripe_invoice_id: str = Field(max_length=255, unique=True)
    amount_cents: int = Field(default=0)
    currency: str = Field(default="aud", max_length=3)
    status: str = Field(default="paid", max_length=20)
    hosted_invoice_url: Optional[str] = Field(default=None)
    pdf_url: Optional[str] = Field(default=None)
    period_start: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    period_end: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    paid_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())


class ProcessedWebhookEvent(Base, table=True):
    """Table: processed_webhook_events"""

    __tablename__ = "processed_webhook_events"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, max_length=255, description="Stripe event id")
    event_type: str = Field(max_length=100)
    processed_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
