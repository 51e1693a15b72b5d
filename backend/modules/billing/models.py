"""
Billing module data models.

These models define the processor-side view of a subscription and the
price catalog that maps processor prices to tiers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from shared.config import Settings, get_settings
from modules.entitlements.models import SubscriptionStatus, Tier

from .exceptions import PriceNotConfiguredError, UnknownPriceError


class ProcessorSubscription(BaseModel):
    """
    A subscription as reported by the payment processor.

    Only the fields this system reads are kept.
    """

    id: str = Field(..., description="Processor subscription ID")
    customer_id: str = Field(..., description="Processor customer ID")
    status: str = Field(..., description="Processor status (e.g., active, unpaid)")
    price_id: Optional[str] = Field(None, description="Price of the first item")
    created_at: Optional[datetime] = Field(None, description="Creation time")


# Processor statuses that still require the customer to pay
_PAYMENT_REQUIRED_STATUSES = {"past_due", "unpaid"}


def map_processor_status(status: str) -> SubscriptionStatus:
    """Map a processor status onto the local status enum."""
    if status == "active":
        return SubscriptionStatus.ACTIVE
    if status == "trialing":
        return SubscriptionStatus.TRIALING
    if status in _PAYMENT_REQUIRED_STATUSES:
        return SubscriptionStatus.PAST_DUE
    return SubscriptionStatus.INACTIVE


def select_subscription(
    subscriptions: list[ProcessorSubscription],
) -> Optional[ProcessorSubscription]:
    """
    Pick the subscription that should drive the user's billing row.

    Active or trialing first, then past due, then anything else; the most
    recently created wins within a group.
    """
    if not subscriptions:
        return None

    def priority(sub: ProcessorSubscription) -> tuple[int, float]:
        status = map_processor_status(sub.status)
        if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING):
            group = 0
        elif status == SubscriptionStatus.PAST_DUE:
            group = 1
        else:
            group = 2
        created = sub.created_at.timestamp() if sub.created_at else 0.0
        return group, -created

    return min(subscriptions, key=priority)


class PriceCatalog:
    """Two-way mapping between paid tiers and processor price IDs."""

    def __init__(self, prices: dict[Tier, str]):
        self._prices = {tier: price for tier, price in prices.items() if price}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PriceCatalog":
        settings = settings or get_settings()
        return cls({
            Tier.BASE: settings.stripe_price_id_base,
            Tier.PRO: settings.stripe_price_id_pro,
            Tier.ENTERPRISE: settings.stripe_price_id_enterprise,
        })

    def price_id_for_tier(self, tier: Tier) -> str:
        """
        Raises:
            PriceNotConfiguredError: If the tier has no price configured
        """
        price_id = self._prices.get(tier)
        if not price_id:
            raise PriceNotConfiguredError(tier.value)
        return price_id

    def tier_for_price_id(self, price_id: Optional[str]) -> Tier:
        """
        Raises:
            UnknownPriceError: If no tier is configured with this price
        """
        for tier, configured in self._prices.items():
            if configured == price_id:
                return tier
        raise UnknownPriceError(price_id or "")

    def is_configured(self, tier: Tier) -> bool:
        return tier in self._prices


class PlanInfo(BaseModel):
    """A purchasable (or free) plan as shown on the subscription page."""

    tier: Tier = Field(..., description="Tier")
    max_documents: int = Field(..., description="Document quota (-1 for unlimited)")
    price_id: Optional[str] = Field(None, description="Processor price ID")
    available: bool = Field(..., description="Whether the plan can be purchased")


class PlanListResponse(BaseModel):
    """API response for the plan catalog."""

    plans: list[PlanInfo]


class UpgradePriceResponse(BaseModel):
    """API response with the price to check out for a tier."""

    tier: Tier
    price_id: str
