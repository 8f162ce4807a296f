"""
Subscription API Endpoints.

Employer subscription tiers, Stripe Checkout and Billing Portal sessions,
scheduled cancellation and invoice history.
"""

from typing import List

from fastapi import APIRouter

from ngurra_pathways.core.models.io.billing import (
    CheckoutResponse,
    InvoiceList,
    InvoiceRead,
    PortalResponse,
    SubscriptionChange,
    SubscriptionRead,
    TierInfo,
    TierRequest,
)
from ngurra_pathways.server.services.billing import BillingService, list_tiers
from ngurra_pathways.server.services.deps import CurrentUser, DBSession

router = APIRouter()


@router.get(
    "/tiers",
    response_model=List[TierInfo],
    summary="List Tiers",
    description="All subscription tiers with their monthly price and limits.",
)
async def tiers() -> List[TierInfo]:
    return [TierInfo.model_validate(t) for t in list_tiers()]


@router.get(
    "/me",
    response_model=SubscriptionRead,
    summary="Current Subscription",
    description="The caller's subscription. A FREE subscription is created on first access.",
)
async def my_subscription(user: CurrentUser, session: DBSession) -> SubscriptionRead:
    return SubscriptionRead.model_validate(await BillingService(session).summary(user.id))


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Start Checkout",
    description="Create a Stripe Checkout session for a paid tier.",
    responses={
        400: {"description": "Tier cannot be purchased through checkout"},
        502: {"description": "Payment provider error"},
    },
)
async def checkout(data: TierRequest, user: CurrentUser, session: DBSession) -> CheckoutResponse:
    """
    Start a checkout.

    - **tier**: STARTER, PROFESSIONAL or ENTERPRISE.

    When payments are not configured the tier is applied directly and the
    response carries an explanatory message instead of a checkout URL.
    """
    return CheckoutResponse.model_validate(await BillingService(session).create_checkout(user, data.tier.value))


@router.post(
    "/portal",
    response_model=PortalResponse,
    summary="Billing Portal",
    description="Create a Stripe Billing Portal session for managing payment details.",
    responses={400: {"description": "No billing account found"}},
)
async def portal(user: CurrentUser, session: DBSession) -> PortalResponse:
    return PortalResponse(url=await BillingService(session).create_portal(user))


@router.post(
    "/cancel",
    response_model=SubscriptionChange,
    summary="Cancel Subscription",
    description="Cancel the paid subscription at the end of the current period.",
    responses={400: {"description": "No active paid subscription"}},
)
async def cancel(user: CurrentUser, session: DBSession) -> SubscriptionChange:
    subscription = await BillingService(session).set_cancel_at_period_end(user, True)
    return SubscriptionChange(
        tier=subscription.tier,
        cancel_at_period_end=subscription.cancel_at_period_end,
        message="Subscription will be cancelled at the end of the billing period",
    )


@router.post(
    "/reactivate",
    response_model=SubscriptionChange,
    summary="Reactivate Subscription",
    description="Undo a scheduled cancellation.",
    responses={400: {"description": "No active paid subscription"}},
)
async def reactivate(user: CurrentUser, session: DBSession) -> SubscriptionChange:
    subscription = await BillingService(session).set_cancel_at_period_end(user, False)
    return SubscriptionChange(
        tier=subscription.tier,
        cancel_at_period_end=subscription.cancel_at_period_end,
        message="Subscription reactivated",
    )


@router.post(
    "/upgrade",
    response_model=SubscriptionChange,
    summary="Change Tier",
    description=(
        "Change tier directly. FREE is always allowed; paid tiers answer 400 with "
        "`redirect_to` pointing at checkout when payments are configured."
    ),
    responses={400: {"description": "Paid tier requires checkout"}},
)
async def upgrade(data: TierRequest, user: CurrentUser, session: DBSession) -> SubscriptionChange:
    subscription = await BillingService(session).change_tier(user, data.tier.value)
    return SubscriptionChange(
        tier=subscription.tier,
        cancel_at_period_end=subscription.cancel_at_period_end,
        message=f"Subscription changed to {subscription.tier}",
    )


@router.get(
    "/invoices",
    response_model=InvoiceList,
    summary="List Invoices",
    description="The caller's 20 most recent invoices.",
)
async def invoices(user: CurrentUser, session: DBSession) -> InvoiceList:
    rows = await BillingService(session).invoices(user.id)
    return InvoiceList(invoices=[InvoiceRead.model_validate(i) for i in rows])
