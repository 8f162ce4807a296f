"""
Subscription billing I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ngurra_pathways.core.database.entities.billing import SubscriptionTier


class TierLimits(BaseModel):
    max_jobs: int
    analytics: bool = False
    priority_listing: bool = False
    api_access: bool = False
    rap_reporting: bool = False


class TierInfo(BaseModel):
    tier: str
    name: str
    price_cents: int
    limits: TierLimits


class SubscriptionRead(BaseModel):
    tier: str
    status: str
    cancel_at_period_end: bool
    current_period_end: Optional[datetime] = None
    limits: TierLimits
    price_cents: int
    active_jobs: int
    can_post_more: bool


class TierRequest(BaseModel):
    tier: SubscriptionTier


class CheckoutResponse(BaseModel):
    url: Optional[str] = None
    session_id: Optional[str] = None
    tier: Optional[str] = None
    message: Optional[str] = None


class PortalResponse(BaseModel):
    url: str


class SubscriptionChange(BaseModel):
    success: bool = True
    tier: str
    cancel_at_period_end: bool
    message: str


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stripe_invoice_id: str
    amount_cents: int
    currency: str
    status: str
    hosted_invoice_url: Optional[str] = None
    pdf_url: Optional[str] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime


class InvoiceList(BaseModel):
    invoices: List[InvoiceRead]


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: bool = False
