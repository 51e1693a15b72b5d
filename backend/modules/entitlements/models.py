"""
Entitlements module data models.

These models define the inputs the resolver reads (roles, admin grants,
billing rows), the record it produces, and the consumer-facing state
exposed to route guards and the UI.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, computed_field


# Sentinel quota for tiers and overrides with no document cap
UNLIMITED_DOCUMENTS = -1


class Tier(str, Enum):
    """Subscription tiers, lowest first."""

    FREE = "free"
    BASE = "base"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    def at_least(self, other: "Tier") -> bool:
        """True if this tier is the same as or above `other`."""
        return self.rank >= other.rank


TIER_ORDER: list[Tier] = [Tier.FREE, Tier.BASE, Tier.PRO, Tier.ENTERPRISE]
HIGHEST_TIER = TIER_ORDER[-1]


class SubscriptionStatus(str, Enum):
    """Billing status as the resolver understands it."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    INACTIVE = "inactive"


ACTIVE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING})


class EntitlementSource(str, Enum):
    """Which input produced an entitlement record."""

    ADMIN_GRANT = "admin_grant"
    BILLING = "billing"
    NONE = "none"


class ResolutionBranch(str, Enum):
    """The precedence rule that matched, in evaluation order."""

    ROLE_OVERRIDE = "role_override"
    PAID_GRANT = "paid_grant"
    FREE_GRANT = "free_grant"
    BILLING = "billing"
    DEFAULT = "default"


class Role(str, Enum):
    """Operational roles that bypass billing entirely."""

    ADMIN = "admin"
    MODERATOR = "moderator"


STAFF_ROLES = frozenset({Role.ADMIN, Role.MODERATOR})


# -----------------------------------------------------------------------------
# Admin grant state
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class NoGrant:
    """No operator override is in place."""


@dataclass(frozen=True)
class FreeGrant:
    """Operator granted base-tier access without billing."""


@dataclass(frozen=True)
class PaidGrant:
    """Operator granted a paid tier without billing."""

    tier: Tier


GrantState = Union[NoGrant, FreeGrant, PaidGrant]


class AdminGrant(BaseModel):
    """
    Operator-set override as stored on the user's profile.

    `granted_tier` is kept as the raw stored string so that unknown values
    reach the resolver and are reported instead of failing to parse.
    """

    user_id: Optional[str] = Field(None, description="User ID")
    granted_tier: Optional[str] = Field(None, description="Granted tier, if any")
    has_free_access: bool = Field(
        default=False,
        description="Legacy flag granting base-tier access",
    )


class BillingSubscription(BaseModel):
    """
    A user's billing row as stored in `user_subscriptions`.

    There is at most one row per user, keyed by `user_id`.
    """

    id: Optional[str] = Field(None, description="Row ID")
    user_id: str = Field(..., description="User ID")
    tier: str = Field(default=Tier.FREE.value, description="Tier as stored")
    status: str = Field(
        default=SubscriptionStatus.ACTIVE.value,
        description="Status as stored",
    )
    max_documents: Optional[int] = Field(
        None,
        description="Document quota recorded with the subscription",
    )
    stripe_customer_id: Optional[str] = Field(None, description="Stripe customer ID")
    stripe_subscription_id: Optional[str] = Field(
        None,
        description="Stripe subscription ID",
    )
    created_at: Optional[datetime] = Field(None, description="Row creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")


# -----------------------------------------------------------------------------
# Resolved entitlement
# -----------------------------------------------------------------------------


class EntitlementRecord(BaseModel):
    """
    The effective entitlement for a user at one instant.

    Always derived from roles, admin grant and billing row; never stored.
    """

    model_config = {"frozen": True}

    user_id: Optional[str] = Field(None, description="User ID")
    source: EntitlementSource = Field(..., description="Input that produced this record")
    branch: ResolutionBranch = Field(..., description="Precedence rule that matched")
    tier: Tier = Field(..., description="Effective tier")
    status: SubscriptionStatus = Field(..., description="Effective status")
    max_documents: int = Field(
        ...,
        description="Document quota (UNLIMITED_DOCUMENTS for no cap)",
    )
    payment_required: bool = Field(
        default=False,
        description="Billing row is past due and the user must update payment",
    )
    computed_at: datetime = Field(..., description="When this record was derived")
    warnings: list[str] = Field(
        default_factory=list,
        description="Inconsistent inputs ignored during resolution",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def has_unlimited_documents(self) -> bool:
        return self.max_documents == UNLIMITED_DOCUMENTS

    def has_tier_at_least(self, tier: Tier) -> bool:
        return self.is_active and self.tier.at_least(tier)

    def is_past_due(self) -> bool:
        return self.payment_required


class EntitlementState(BaseModel):
    """
    Consumer-facing entitlement shape.

    Wraps the last resolved record with transitional `loading` and the
    non-fatal `error` of the most recent refresh.
    """

    user_id: str = Field(..., description="User ID")
    tier: Tier
    status: SubscriptionStatus
    is_active: bool
    max_documents: int
    source: EntitlementSource
    branch: ResolutionBranch
    payment_required: bool = False
    computed_at: datetime
    loading: bool = Field(default=False, description="A refresh is in flight")
    error: Optional[dict[str, Any]] = Field(
        None,
        description="Error payload from the most recent refresh",
    )

    @classmethod
    def from_record(
        cls,
        user_id: str,
        record: EntitlementRecord,
        loading: bool = False,
        error: Optional[dict[str, Any]] = None,
    ) -> "EntitlementState":
        return cls(
            user_id=user_id,
            tier=record.tier,
            status=record.status,
            is_active=record.is_active,
            max_documents=record.max_documents,
            source=record.source,
            branch=record.branch,
            payment_required=record.payment_required,
            computed_at=record.computed_at,
            loading=loading,
            error=error,
        )

    def has_tier_at_least(self, tier: Tier) -> bool:
        return self.is_active and self.tier.at_least(tier)

    def is_past_due(self) -> bool:
        return self.payment_required


class EntitlementResponse(BaseModel):
    """API response for entitlement queries."""

    tier: Tier
    status: SubscriptionStatus
    is_active: bool
    max_documents: int
    unlimited_documents: bool
    source: EntitlementSource
    payment_required: bool
    computed_at: datetime
    loading: bool
    error: Optional[dict[str, Any]] = None

    @classmethod
    def from_state(cls, state: EntitlementState) -> "EntitlementResponse":
        return cls(
            tier=state.tier,
            status=state.status,
            is_active=state.is_active,
            max_documents=state.max_documents,
            unlimited_documents=state.max_documents == UNLIMITED_DOCUMENTS,
            source=state.source,
            payment_required=state.payment_required,
            computed_at=state.computed_at,
            loading=state.loading,
            error=state.error,
        )
