"""
User-related endpoints.

Provides endpoints for user profile and account management.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr

from shared.models import AuthenticatedUser
from modules.entitlements.models import EntitlementState
from ..middleware.auth import get_current_user
from ..middleware.entitlements import get_current_entitlement

router = APIRouter()


class UserProfileResponse(BaseModel):
    """User profile response model."""

    id: str
    email: EmailStr
    email_verified: bool
    tier: str
    is_active: bool
    payment_required: bool


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    entitlement: EntitlementState = Depends(get_current_entitlement),
) -> UserProfileResponse:
    """
    Get the current user's profile.

    Requires authentication. The tier comes from the resolved entitlement,
    never from token claims.
    """
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        email_verified=user.email_verified,
        tier=entitlement.tier.value,
        is_active=entitlement.is_active,
        payment_required=entitlement.payment_required,
    )
