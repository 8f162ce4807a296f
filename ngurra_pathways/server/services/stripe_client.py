"""Stripe REST API client

Thin async client over the Stripe HTTP API, covering only the calls the billing
flow needs: customers, Checkout Sessions, billing portal sessions and
subscription updates.

Stripe expects ``application/x-www-form-urlencoded`` bodies with nested keys
written as ``metadata[user_id]``; ``encode_form`` flattens dictionaries into
that shape.

Errors
------
Non-2xx responses and transport failures raise ``PaymentProviderError`` with
the Stripe error message when one is present.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from ngurra_pathways.core.errors import PaymentProviderError, ServiceUnavailableError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.server.core.config import StripeConfig

logger = get_logger(__name__)


def encode_form(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested dicts and lists into Stripe's bracketed form keys."""
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                if isinstance(item, dict):
                    pairs.extend(encode_form(item, f"{name}[{index}]"))
                else:
                    pairs.append((f"{name}[{index}]", str(item)))
        elif isinstance(value, bool):
            pairs.append((name, "true" if value else "false"))
        else:
            pairs.append((name, str(value)))
    return pairs


class StripeClient:
    """Async client for the Stripe API."""

    def __init__(
        self,
        config: StripeConfig,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Create a Stripe client.

        Args:
            config: Stripe settings group (secret key, API base, price ids)
            timeout: HTTP timeout in seconds
            transport: Optional transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.config = config
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.enabled:
            raise ServiceUnavailableError("Payments are not configured")
        async with httpx.AsyncClient(
            base_url=self.config.api_base.rstrip("/"),
            auth=(self.config.secret_key or "", ""),
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(
                    method,
                    path,
                    content=urlencode(encode_form(data or {})),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
            except httpx.HTTPError as e:
                logger.error(f"Stripe request {method} {path} failed: {e}")
                raise PaymentProviderError("Could not reach payment provider") from e

        if response.is_error:
            try:
                message = response.json().get("error", {}).get("message")
            except ValueError:
                message = None
            logger.error(f"Stripe {method} {path} returned {response.status_code}: {message or response.text}")
            raise PaymentProviderError(message or f"Payment provider error ({response.status_code})")
        return response.json()

    async def create_customer(self, *, email: str, name: Optional[str], user_id: str) -> Dict[str, Any]:
        """``POST /customers``"""
        return await self._request("POST", "/customers", {"email": email, "name": name, "metadata": {"user_id": user_id}})

    async def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: Optional[str],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Any]:
        """``POST /checkout/sessions`` in subscription mode."""
        if not price_id:
            raise ServiceUnavailableError(f"No price configured for tier {metadata.get('tier')}")
        return await self._request(
            "POST",
            "/checkout/sessions",
            {
                "mode": "subscription",
                "customer": customer_id,
                "line_items": [{"price": price_id, "quantity": 1}],
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
                "subscription_data": {"metadata": metadata},
            },
        )

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> Dict[str, Any]:
        """``POST /billing_portal/sessions``"""
        return await self._request(
            "POST", "/billing_portal/sessions", {"customer": customer_id, "return_url": return_url}
        )

    async def update_subscription(self, subscription_id: str, **fields: Any) -> Dict[str, Any]:
        """``POST /subscriptions/{id}``"""
        return await self._request("POST", f"/subscriptions/{subscription_id}", fields)
