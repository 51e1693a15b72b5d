"""
Billing service implementation.

Reconciles the stored billing row with the payment processor. Webhook
ingestion and checkout sessions live outside this service; it only reads
processor state and writes the user's single `user_subscriptions` row.
"""

import asyncio
import logging
from typing import Optional

from modules.entitlements.interfaces import IRecordStore
from modules.entitlements.models import SubscriptionStatus, TIER_ORDER, Tier
from modules.entitlements.quotas import TierQuotas

from .interfaces import IBillingService, IPaymentProcessor
from .models import (
    PlanInfo,
    PriceCatalog,
    map_processor_status,
    select_subscription,
)

logger = logging.getLogger(__name__)


class BillingService(IBillingService):
    """
    Billing service backed by a record store and a payment processor.

    Every write is an upsert keyed by user_id, so reconciliation can be
    retried or run concurrently without creating duplicate rows.
    """

    def __init__(
        self,
        store: IRecordStore,
        processor: IPaymentProcessor,
        prices: Optional[PriceCatalog] = None,
        quotas: Optional[TierQuotas] = None,
    ):
        self._store = store
        self._processor = processor
        self._prices = prices or PriceCatalog.from_settings()
        self._quotas = quotas or TierQuotas.from_settings()

    async def reconcile_with_processor(self, user_id: str) -> None:
        """Bring the user's billing row in line with the processor."""
        customer_id = await asyncio.to_thread(self._store.get_stripe_customer_id, user_id)

        if not customer_id:
            await asyncio.to_thread(self._store.upsert_default_subscription, user_id)
            logger.debug("No processor customer, ensured default row", extra={"user_id": user_id})
            return

        subscriptions = await asyncio.to_thread(self._processor.list_subscriptions, customer_id)
        chosen = select_subscription(subscriptions)

        if chosen is None:
            await self._lapse_or_default(user_id)
            return

        tier = self._prices.tier_for_price_id(chosen.price_id)
        status = map_processor_status(chosen.status)

        await asyncio.to_thread(self._store.upsert_subscription, {
            "user_id": user_id,
            "tier": tier.value,
            "status": status.value,
            "max_documents": self._quotas.quota_for(tier),
            "stripe_customer_id": customer_id,
            "stripe_subscription_id": chosen.id,
        })

        logger.info(
            "Reconciled subscription with processor",
            extra={
                "user_id": user_id,
                "tier": tier.value,
                "status": status.value,
                "processor_status": chosen.status,
            },
        )

    async def _lapse_or_default(self, user_id: str) -> None:
        """
        Handle a customer with no processor subscriptions.

        A row that came from the processor is marked inactive; otherwise the
        free default is ensured.
        """
        existing = await asyncio.to_thread(self._store.get_subscription, user_id)
        if existing is not None and existing.stripe_subscription_id:
            if existing.status != SubscriptionStatus.INACTIVE.value:
                await asyncio.to_thread(self._store.upsert_subscription, {
                    "user_id": user_id,
                    "tier": existing.tier,
                    "status": SubscriptionStatus.INACTIVE.value,
                    "max_documents": existing.max_documents,
                    "stripe_customer_id": existing.stripe_customer_id,
                    "stripe_subscription_id": existing.stripe_subscription_id,
                })
                logger.info("Marked lapsed subscription inactive", extra={"user_id": user_id})
            return

        await asyncio.to_thread(self._store.upsert_default_subscription, user_id)

    def price_id_for_tier(self, tier: Tier) -> str:
        """Get the processor price to check out for a tier."""
        return self._prices.price_id_for_tier(tier)

    def list_plans(self) -> list[PlanInfo]:
        """List every tier with its quota and purchase availability."""
        plans = []
        for tier in TIER_ORDER:
            if tier not in self._quotas:
                continue
            price_id = (
                self._prices.price_id_for_tier(tier)
                if self._prices.is_configured(tier)
                else None
            )
            plans.append(PlanInfo(
                tier=tier,
                max_documents=self._quotas.quota_for(tier),
                price_id=price_id,
                available=tier == Tier.FREE or price_id is not None,
            ))
        return plans
