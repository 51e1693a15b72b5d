"""
Billing API endpoints.

Exposes the plan catalog and the price to check out for an upgrade.
Checkout session creation itself happens in the payment processor's
hosted flow.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_billing_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser
from modules.entitlements.models import Tier

from .exceptions import PriceNotConfiguredError
from .interfaces import IBillingService
from .models import PlanListResponse, UpgradePriceResponse

router = APIRouter()


@router.get("/plans", response_model=PlanListResponse)
async def list_plans(
    service: IBillingService = Depends(get_billing_service),
) -> PlanListResponse:
    """
    List every tier with its document quota.

    Paid tiers without a configured price are listed as unavailable.
    """
    return PlanListResponse(plans=service.list_plans())


@router.get("/plans/{tier}/price", response_model=UpgradePriceResponse)
async def get_upgrade_price(
    tier: Tier,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IBillingService = Depends(get_billing_service),
) -> UpgradePriceResponse:
    """
    Get the processor price ID to check out for a tier.

    Returns 503 when the tier has no price configured, so the upgrade
    fails visibly instead of silently.
    """
    try:
        price_id = service.price_id_for_tier(tier)
    except PriceNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    return UpgradePriceResponse(tier=tier, price_id=price_id)
