"""
Stripe webhook verification and event processing.

Signatures follow Stripe's scheme: the ``Stripe-Signature`` header carries
``t=<unix time>`` and one or more ``v1=<hex>`` entries, each an HMAC-SHA256 of
``"{t}.{raw body}"`` keyed with the endpoint secret.
"""

import hashlib
import hmac
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.billing import (
    Invoice,
    ProcessedWebhookEvent,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
)
from ngurra_pathways.core.database.entities.notifications import Notification, NotificationPriority, NotificationType
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.monitoring import log_domain_event

from .notifications import notify, publish_notifications

logger = get_logger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)


def compute_signature(secret: str, timestamp: str, payload: bytes) -> str:
    signed = timestamp.encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_signature(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """
    Validate a ``Stripe-Signature`` header.

    Raises:
        BadRequestError: Missing or malformed header, no matching signature, or
            a timestamp outside the tolerance window
    """
    if not header:
        raise BadRequestError("Missing Stripe-Signature header")

    timestamp: Optional[str] = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)
    if not timestamp or not signatures:
        raise BadRequestError("Invalid Stripe-Signature header")

    try:
        signed_at = int(timestamp)
    except ValueError:
        raise BadRequestError("Invalid Stripe-Signature timestamp")
    current = time.time() if now is None else now
    if abs(current - signed_at) > tolerance_seconds:
        raise BadRequestError("Webhook timestamp outside tolerance")

    expected = compute_signature(secret, timestamp, payload)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise BadRequestError("Webhook signature verification failed")


def _from_unix(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


class WebhookProcessor:
    """Applies verified Stripe events to local subscription state."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._pending: List[Notification] = []
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            "checkout.session.completed": self._checkout_completed,
            "invoice.paid": self._invoice_paid,
            "invoice.payment_failed": self._invoice_failed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
        }

    @staticmethod
    def parse(payload: bytes) -> Dict[str, Any]:
        try:
            event = json.loads(payload)
        except ValueError:
            raise BadRequestError("Invalid JSON payload")
        if not isinstance(event, dict):
            raise BadRequestError("Invalid event payload")
        if not isinstance(event.get("id"), str) or not isinstance(event.get("type"), str):
            raise BadRequestError("Invalid event payload")
        return event

    async def process(self, event: Dict[str, Any]) -> bool:
        """
        Handle one event at most once.

        Notifications raised by the handler are pushed only after the event is
        committed. A concurrent delivery of the same event that commits first
        makes this one a no-op.

        Returns:
            False when the event id was processed before, otherwise True.
        """
        event_id = event["id"]
        event_type = event["type"]
        if await self._already_processed(event_id):
            logger.info(f"Skipping duplicate webhook event {event_id}")
            return False

        self._pending = []
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
        else:
            await handler(self._event_object(event))

        self.session.add(ProcessedWebhookEvent(id=event_id, event_type=event_type))
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            if not await self._already_processed(event_id):
                raise
            logger.info(f"Webhook event {event_id} was processed concurrently")
            return False

        await publish_notifications(*self._pending)
        return True

    async def _already_processed(self, event_id: str) -> bool:
        return await self.session.get(ProcessedWebhookEvent, event_id) is not None

    @staticmethod
    def _event_object(event: Dict[str, Any]) -> Dict[str, Any]:
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}

    async def _by_customer(self, customer_id: Optional[str]) -> Optional[Subscription]:
        if not customer_id:
            return None
        result = await self.session.execute(
            select(Subscription).where(Subscription.stripe_customer_id == customer_id)
        )
        return result.scalars().first()

    async def _by_subscription_id(self, subscription_id: Optional[str]) -> Optional[Subscription]:
        if not subscription_id:
            return None
        result = await self.session.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == subscription_id)
        )
        return result.scalars().first()

    async def _checkout_completed(self, obj: Dict[str, Any]) -> None:
        metadata = obj.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        subscription = await self._by_customer(obj.get("customer"))
        if subscription is None and metadata.get("user_id"):
            result = await self.session.execute(
                select(Subscription).where(Subscription.user_id == metadata["user_id"])
            )
            subscription = result.scalars().first()
        if subscription is None:
            logger.warning(f"checkout.session.completed for unknown customer {obj.get('customer')}")
            return

        now = utc_now()
        tier = metadata.get("tier")
        if tier in SubscriptionTier.__members__:
            subscription.tier = tier
        subscription.stripe_subscription_id = obj.get("subscription") or subscription.stripe_subscription_id
        subscription.stripe_customer_id = obj.get("customer") or subscription.stripe_customer_id
        subscription.status = SubscriptionStatus.ACTIVE.value
        subscription.current_period_start = now
        subscription.current_period_end = now + SUBSCRIPTION_PERIOD
        subscription.cancel_at_period_end = False
        self.session.add(subscription)

        notification = await notify(
            self.session,
            subscription.user_id,
            NotificationType.PAYMENT_SUCCEEDED.value,
            "Subscription activated",
            f"Your {subscription.tier} plan is now active.",
            data={"tier": subscription.tier},
            action_url="/billing",
            commit=False,
        )
        self._pending.append(notification)
        log_domain_event("payment.checkout_completed", user_id=subscription.user_id, tier=subscription.tier)

    async def _invoice_paid(self, obj: Dict[str, Any]) -> None:
        invoice_id = obj.get("id")
        if not invoice_id:
            logger.warning("invoice.paid without an invoice id")
            return
        subscription = await self._by_subscription_id(obj.get("subscription")) or await self._by_customer(
            obj.get("customer")
        )
        if subscription is None:
            logger.warning(f"invoice.paid for unknown subscription {obj.get('subscription')}")
            return
        result = await self.session.execute(select(Invoice).where(Invoice.stripe_invoice_id == invoice_id))
        if result.scalars().first() is not None:
            return
        self.session.add(
            Invoice(
                user_id=subscription.user_id,
                subscription_id=subscription.id,
                stripe_invoice_id=invoice_id,
                amount_cents=int(obj.get("amount_paid") or 0),
                currency=(obj.get("currency") or "aud").lower(),
                status="paid",
                hosted_invoice_url=obj.get("hosted_invoice_url"),
                pdf_url=obj.get("invoice_pdf"),
                period_start=_from_unix(obj.get("period_start")),
                period_end=_from_unix(obj.get("period_end")),
                paid_at=utc_now(),
            )
        )
        if subscription.status == SubscriptionStatus.PAST_DUE.value:
            subscription.status = SubscriptionStatus.ACTIVE.value
            self.session.add(subscription)
        log_domain_event("payment.succeeded", user_id=subscription.user_id, amount_cents=obj.get("amount_paid"))

    async def _invoice_failed(self, obj: Dict[str, Any]) -> None:
        subscription = await self._by_subscription_id(obj.get("subscription")) or await self._by_customer(
            obj.get("customer")
        )
        if subscription is None:
            logger.warning(f"invoice.payment_failed for unknown subscription {obj.get('subscription')}")
            return
        subscription.status = SubscriptionStatus.PAST_DUE.value
        self.session.add(subscription)
        notification = await notify(
            self.session,
            subscription.user_id,
            NotificationType.PAYMENT_FAILED.value,
            "Payment failed",
            "We could not process your latest payment. Please update your billing details.",
            action_url="/billing",
            priority=NotificationPriority.HIGH.value,
            commit=False,
        )
        self._pending.append(notification)
        log_domain_event("payment.failed", user_id=subscription.user_id)

    async def _subscription_updated(self, obj: Dict[str, Any]) -> None:
        subscription = await self._by_subscription_id(obj.get("id")) or await self._by_customer(obj.get("customer"))
        if subscription is None:
            logger.warning(f"customer.subscription.updated for unknown subscription {obj.get('id')}")
            return
        if isinstance(obj.get("status"), str) and obj["status"]:
            subscription.status = obj["status"]
        if obj.get("current_period_end") is not None:
            subscription.current_period_end = _from_unix(obj["current_period_end"])
        if obj.get("current_period_start") is not None:
            subscription.current_period_start = _from_unix(obj["current_period_start"])
        subscription.cancel_at_period_end = bool(obj.get("cancel_at_period_end", subscription.cancel_at_period_end))
        self.session.add(subscription)

    async def _subscription_deleted(self, obj: Dict[str, Any]) -> None:
        subscription = await self._by_subscription_id(obj.get("id")) or await self._by_customer(obj.get("customer"))
        if subscription is None:
            logger.warning(f"customer.subscription.deleted for unknown subscription {obj.get('id')}")
            return
        subscription.status = SubscriptionStatus.CANCELED.value
        subscription.tier = SubscriptionTier.FREE.value
        subscription.cancel_at_period_end = False
        self.session.add(subscription)
        notification = await notify(
            self.session,
            subscription.user_id,
            NotificationType.SUBSCRIPTION_CANCELLED.value,
            "Subscription ended",
            "Your subscription has ended and your account is now on the Free plan.",
            action_url="/billing",
            commit=False,
        )
        self._pending.append(notification)
        log_domain_event("billing.subscription_deleted", user_id=subscription.user_id)
