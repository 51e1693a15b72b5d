"""
Entitlement API endpoints.

Lets the frontend read the current user's entitlement and ask for a
re-sync after a mutation such as a completed checkout.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_entitlement_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser

from .models import EntitlementResponse
from .service import EntitlementService

router = APIRouter()


@router.get("/me", response_model=EntitlementResponse)
async def get_my_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementResponse:
    """
    Get the current user's effective entitlement.

    Refreshes first when nothing is cached or the cached record is stale.
    On collaborator errors the cached entitlement is still returned, with
    `error` describing the failure.
    """
    state = await service.current(user.id)
    return EntitlementResponse.from_state(state)


@router.post("/refresh", response_model=EntitlementResponse)
async def refresh_my_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementResponse:
    """
    Reconcile billing and recompute the current user's entitlement now.

    Call after checkout completes or a payment method is updated.
    """
    await service.refresh(user.id)
    return EntitlementResponse.from_state(service.get_entitlement(user.id))


@router.post("/invalidate", status_code=202)
async def invalidate_my_entitlement(
    user: AuthenticatedUser = Depends(get_current_user),
    service: EntitlementService = Depends(get_entitlement_service),
) -> dict[str, str]:
    """Mark the current user's entitlement stale; the next read refreshes."""
    service.invalidate(user.id)
    return {"status": "invalidated"}
