"""
Stripe adapter for the payment processor interface.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import stripe

from shared.config import get_settings
from modules.entitlements.exceptions import CollaboratorUnavailableError

from .exceptions import ProcessorNotConfiguredError
from .models import ProcessorSubscription

logger = logging.getLogger(__name__)

STRIPE = "stripe"


class StripeProcessor:
    """Lists customer subscriptions through the Stripe API."""

    def __init__(self, api_key: Optional[str] = None, page_size: int = 20):
        self._api_key = (api_key if api_key is not None else get_settings().stripe_secret_key).strip()
        self._page_size = page_size

    def list_subscriptions(self, customer_id: str) -> list[ProcessorSubscription]:
        if not self._api_key:
            raise ProcessorNotConfiguredError()

        try:
            result = stripe.Subscription.list(
                api_key=self._api_key,
                customer=customer_id,
                status="all",
                limit=self._page_size,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe subscription list error for customer {customer_id}: {e}")
            raise CollaboratorUnavailableError(STRIPE, str(e)) from e

        return [self._map_subscription(sub, customer_id) for sub in result.data]

    def _map_subscription(self, sub: Any, customer_id: str) -> ProcessorSubscription:
        """Map a Stripe subscription object to ProcessorSubscription."""
        items = _field(_field(sub, "items"), "data") or []
        price_id = _field(_field(items[0], "price"), "id") if items else None
        created = _field(sub, "created")

        return ProcessorSubscription(
            id=sub["id"],
            customer_id=_field(sub, "customer") or customer_id,
            status=sub["status"],
            price_id=price_id,
            created_at=datetime.fromtimestamp(created, tz=timezone.utc) if created else None,
        )


def _field(obj: Any, key: str) -> Any:
    """Item access on Stripe objects, None when missing."""
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None
