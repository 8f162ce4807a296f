"""
Webhook API Endpoints.

Receives Stripe events. The raw body is verified against the
``Stripe-Signature`` header before it is parsed.
"""

from fastapi import APIRouter, Request

from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.billing import WebhookAck
from ngurra_pathways.server.core.config import settings
from ngurra_pathways.server.services.deps import DBSession
from ngurra_pathways.server.services.webhooks import WebhookProcessor, verify_signature

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/stripe",
    response_model=WebhookAck,
    summary="Stripe Webhook",
    description="Apply a Stripe billing event. Events are processed at most once by id.",
    responses={400: {"description": "Invalid signature or payload"}},
)
async def stripe_webhook(request: Request, session: DBSession) -> WebhookAck:
    """
    Handle a Stripe webhook.

    Signature verification is skipped only when no webhook secret is
    configured.
    """
    payload = await request.body()
    stripe = settings.stripe
    if stripe.webhook_secret:
        verify_signature(
            payload,
            request.headers.get("stripe-signature"),
            stripe.webhook_secret,
            tolerance_seconds=stripe.webhook_tolerance_seconds,
        )
    else:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; accepting unsigned webhook")

    processor = WebhookProcessor(session)
    processed = await processor.process(processor.parse(payload))
    return WebhookAck(received=True, duplicate=not processed)
