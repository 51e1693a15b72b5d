"""
Entitlement route guards.

Every guard resolves through the entitlement service; none of them
re-implements tier or role precedence.

Usage:
    @router.get("/reports")
    async def reports(state: EntitlementState = Depends(require_tier(Tier.PRO))):
        ...
"""

from typing import Any, Callable, Coroutine

from fastapi import Depends, HTTPException, status

from shared.config import get_settings
from shared.models import AuthenticatedUser
from modules.entitlements.models import EntitlementState, Tier
from modules.entitlements.service import EntitlementService

from ..dependencies import get_entitlement_service
from .auth import get_current_user


class EntitlementDeniedError(HTTPException):
    """Access denied by an entitlement guard, with a redirect hint."""

    def __init__(self, status_code: int, code: str, message: str, **details: Any):
        super().__init__(
            status_code=status_code,
            detail={
                "error": code,
                "message": message,
                "redirect_to": get_settings().subscription_path,
                **details,
            },
        )


async def get_current_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementState:
    """
    Dependency for informational display.

    Fails open: on collaborator errors the cached entitlement is returned
    with `error` set rather than failing the request.
    """
    return await service.current(user.id)


async def require_active_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementState:
    """Dependency that requires a usable (active or trialing) entitlement."""
    state = await service.current(user.id)
    if not state.is_active:
        raise EntitlementDeniedError(
            status.HTTP_402_PAYMENT_REQUIRED,
            "ENTITLEMENT_INACTIVE",
            "An active subscription is required",
            payment_required=state.payment_required,
        )
    return state


def require_tier(
    tier: Tier,
) -> Callable[..., Coroutine[Any, Any, EntitlementState]]:
    """
    Build a dependency that requires at least `tier`.

    Fails closed for paid tiers: if refreshing keeps failing and the held
    record has gone stale, access is denied until a refresh succeeds.
    """

    async def dependency(
        user: AuthenticatedUser = Depends(get_current_user),
        service: EntitlementService = Depends(get_entitlement_service),
    ) -> EntitlementState:
        state = await service.current(user.id)
        if tier != Tier.FREE and service.is_degraded(user.id):
            raise EntitlementDeniedError(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "ENTITLEMENT_UNAVAILABLE",
                "Entitlement could not be verified",
                required_tier=tier.value,
            )
        if not state.has_tier_at_least(tier):
            raise EntitlementDeniedError(
                status.HTTP_403_FORBIDDEN,
                "TIER_REQUIRED",
                f"The {tier.value} tier or higher is required",
                required_tier=tier.value,
                current_tier=state.tier.value,
            )
        return state

    return dependency


# Type aliases for cleaner route definitions
CurrentEntitlement = Depends(get_current_entitlement)
RequireActiveEntitlement = Depends(require_active_entitlement)
RequirePro = Depends(require_tier(Tier.PRO))
