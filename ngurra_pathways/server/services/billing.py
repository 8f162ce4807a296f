"""
Subscription tiers and account subscription state.

Tier limits decide how many active jobs an employer may post and which
premium features they get. Payments themselves go through ``stripe_client``.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.billing import Invoice, Subscription, SubscriptionStatus, SubscriptionTier
from ngurra_pathways.core.database.entities.jobs import Job
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.errors import BadRequestError, ForbiddenError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.monitoring import log_domain_event
from ngurra_pathways.server.core.config import settings

from .stripe_client import StripeClient

logger = get_logger(__name__)

UNLIMITED = -1


@dataclass(frozen=True)
class TierPlan:
    name: str
    price_cents: int
    max_jobs: int
    analytics: bool = False
    priority_listing: bool = False
    api_access: bool = False
    rap_reporting: bool = False

    def limits(self) -> Dict[str, object]:
        return {
            "max_jobs": self.max_jobs,
            "analytics": self.analytics,
            "priority_listing": self.priority_listing,
            "api_access": self.api_access,
            "rap_reporting": self.rap_reporting,
        }


TIER_PLANS: Dict[str, TierPlan] = {
    SubscriptionTier.FREE.value: TierPlan(name="Free", price_cents=0, max_jobs=1),
    SubscriptionTier.STARTER.value: TierPlan(name="Starter", price_cents=9900, max_jobs=5, analytics=True),
    SubscriptionTier.PROFESSIONAL.value: TierPlan(
        name="Professional", price_cents=24900, max_jobs=20, analytics=True, priority_listing=True
    ),
    SubscriptionTier.ENTERPRISE.value: TierPlan(
        name="Enterprise",
        price_cents=49900,
        max_jobs=UNLIMITED,
        analytics=True,
        priority_listing=True,
        api_access=True,
    ),
    SubscriptionTier.RAP.value: TierPlan(
        name="RAP Partner",
        price_cents=500000,
        max_jobs=UNLIMITED,
        analytics=True,
        priority_listing=True,
        api_access=True,
        rap_reporting=True,
    ),
}

CHECKOUT_TIERS = (
    SubscriptionTier.STARTER.value,
    SubscriptionTier.PROFESSIONAL.value,
    SubscriptionTier.ENTERPRISE.value,
)


def plan_for(tier: str) -> TierPlan:
    return TIER_PLANS.get(tier, TIER_PLANS[SubscriptionTier.FREE.value])


def list_tiers() -> List[Dict[str, object]]:
    return [
        {"tier": tier, "name": plan.name, "price_cents": plan.price_cents, "limits": plan.limits()}
        for tier, plan in TIER_PLANS.items()
    ]


class BillingService:
    """Subscription reads and changes for one account."""

    def __init__(self, session: AsyncSession, stripe: Optional[StripeClient] = None):
        self.session = session
        self.stripe = stripe if stripe is not None else StripeClient(settings.stripe)

    async def get_or_create(self, user_id: str, commit: bool = True) -> Subscription:
        """Subscription row of a user; a FREE one is created on first access."""
        result = await self.session.execute(select(Subscription).where(Subscription.user_id == user_id))
        subscription = result.scalars().first()
        if subscription is None:
            subscription = Subscription(user_id=user_id, tier=SubscriptionTier.FREE.value)
            self.session.add(subscription)
            if commit:
                await self.session.commit()
                await self.session.refresh(subscription)
            else:
                await self.session.flush()
        return subscription

    async def active_job_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Job).where(Job.employer_id == user_id, Job.is_active.is_(True))
        )
        return int(result.scalar_one())

    async def ensure_can_post_job(self, user_id: str) -> None:
        """
        Raises:
            ForbiddenError: The tier's active job limit is reached
        """
        subscription = await self.get_or_create(user_id, commit=False)
        plan = plan_for(subscription.tier)
        if plan.max_jobs == UNLIMITED:
            return
        if await self.active_job_count(user_id) >= plan.max_jobs:
            raise ForbiddenError(f"Job limit reached for {subscription.tier} tier")

    async def has_analytics(self, user_id: str) -> bool:
        subscription = await self.get_or_create(user_id, commit=False)
        return plan_for(subscription.tier).analytics

    async def summary(self, user_id: str) -> Dict[str, object]:
        subscription = await self.get_or_create(user_id)
        plan = plan_for(subscription.tier)
        active_jobs = await self.active_job_count(user_id)
        return {
            "tier": subscription.tier,
            "status": subscription.status,
            "cancel_at_period_end": subscription.cancel_at_period_end,
            "current_period_end": subscription.current_period_end,
            "limits": plan.limits(),
            "price_cents": plan.price_cents,
            "active_jobs": active_jobs,
            "can_post_more": plan.max_jobs == UNLIMITED or active_jobs < plan.max_jobs,
        }

    async def create_checkout(self, user: User, tier: str) -> Dict[str, object]:
        """
        Start a paid subscription.

        Without Stripe configured the tier is applied immediately, which keeps
        local and staging environments usable.
        """
        if tier not in CHECKOUT_TIERS:
            raise BadRequestError(f"Invalid tier for checkout. Choose one of: {', '.join(CHECKOUT_TIERS)}")
        subscription = await self.get_or_create(user.id)

        if not self.stripe.enabled:
            subscription.tier = tier
            subscription.status = SubscriptionStatus.ACTIVE.value
            self.session.add(subscription)
            await self.session.commit()
            logger.warning(f"Stripe not configured; applied {tier} to user {user.id} without payment")
            return {"tier": tier, "message": "Payments are not configured; tier applied directly"}

        if not subscription.stripe_customer_id:
            customer = await self.stripe.create_customer(email=user.email, name=user.name, user_id=user.id)
            subscription.stripe_customer_id = customer["id"]
            self.session.add(subscription)
            await self.session.commit()

        frontend = settings.frontend_url.rstrip("/")
        checkout = await self.stripe.create_checkout_session(
            customer_id=subscription.stripe_customer_id,
            price_id=self.stripe.config.price_for(tier),
            success_url=f"{frontend}/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{frontend}/billing/cancelled",
            metadata={"user_id": user.id, "tier": tier},
        )
        log_domain_event("billing.checkout_started", user_id=user.id, tier=tier)
        return {"url": checkout.get("url"), "session_id": checkout.get("id")}

    async def create_portal(self, user: User) -> str:
        subscription = await self.get_or_create(user.id)
        if not self.stripe.enabled or not subscription.stripe_customer_id:
            raise BadRequestError("No billing account found")
        portal = await self.stripe.create_portal_session(
            customer_id=subscription.stripe_customer_id,
            return_url=f"{settings.frontend_url.rstrip('/')}/billing",
        )
        return portal["url"]

    async def set_cancel_at_period_end(self, user: User, cancel: bool) -> Subscription:
        """Schedule (or undo scheduling of) a cancellation at period end."""
        subscription = await self.get_or_create(user.id)
        if not subscription.stripe_subscription_id:
            raise BadRequestError("No active paid subscription")
        if self.stripe.enabled:
            await self.stripe.update_subscription(subscription.stripe_subscription_id, cancel_at_period_end=cancel)
        subscription.cancel_at_period_end = cancel
        self.session.add(subscription)
        await self.session.commit()
        await self.session.refresh(subscription)
        log_domain_event(
            "billing.cancel_scheduled" if cancel else "billing.reactivated",
            user_id=user.id,
            tier=subscription.tier,
        )
        return subscription

    async def change_tier(self, user: User, tier: str) -> Subscription:
        """
        Direct tier change. Downgrading to FREE is always allowed; paid tiers
        must go through checkout when payments are configured.
        """
        if tier != SubscriptionTier.FREE.value and self.stripe.enabled:
            raise BadRequestError(
                "Paid tiers require checkout", extra={"redirect_to": "/api/v1/subscriptions/checkout"}
            )
        subscription = await self.get_or_create(user.id)
        subscription.tier = tier
        subscription.status = SubscriptionStatus.ACTIVE.value
        self.session.add(subscription)
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def invoices(self, user_id: str, limit: int = 20) -> List[Invoice]:
        result = await self.session.execute(
            select(Invoice).where(Invoice.user_id == user_id).order_by(Invoice.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
