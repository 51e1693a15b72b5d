"""
Entitlement resolution rules.

`resolve` is the single place that decides a user's effective tier. It is a
pure function of (roles, admin grant, billing row): every route guard, badge
and quota check goes through it instead of re-implementing precedence.

Precedence, first match wins:
    1. admin/moderator role   -> highest tier, unlimited, active
    2. paid admin grant       -> granted tier
    3. free admin grant       -> base tier
    4. active/trialing billing -> billing tier and status
    5. nothing                -> synthesized free default

A past-due billing row never matches rule 4. It only sets
`payment_required` on whatever record is produced.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, TypeVar

from .exceptions import InconsistentStateError, MissingQuotaError
from .models import (
    ACTIVE_STATUSES,
    HIGHEST_TIER,
    STAFF_ROLES,
    UNLIMITED_DOCUMENTS,
    AdminGrant,
    BillingSubscription,
    EntitlementRecord,
    EntitlementSource,
    FreeGrant,
    GrantState,
    NoGrant,
    PaidGrant,
    ResolutionBranch,
    Role,
    SubscriptionStatus,
    Tier,
)
from .quotas import TierQuotas

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_PAID_TIERS = frozenset({Tier.PRO, Tier.ENTERPRISE})
_DEFAULT_QUOTAS = TierQuotas()


def _parse(enum_cls: type[E], value: object) -> Optional[E]:
    """Parse a stored string into an enum member, None if unknown."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


def normalize_roles(roles: Optional[Iterable[str]]) -> set[Role]:
    """Keep only roles the system knows; anything else grants nothing."""
    parsed = (_parse(Role, r) for r in roles or ())
    return {r for r in parsed if r is not None}


def normalize_grant(
    grant: Optional[AdminGrant],
    user_id: Optional[str] = None,
) -> tuple[GrantState, list[InconsistentStateError]]:
    """
    Collapse the stored grant columns into a single GrantState.

    Returns the state plus any inconsistencies found. An unknown
    `granted_tier` is dropped, but `has_free_access` is still honoured.
    """
    if grant is None:
        return NoGrant(), []

    issues: list[InconsistentStateError] = []
    tier: Optional[Tier] = None
    if grant.granted_tier:
        tier = _parse(Tier, grant.granted_tier)
        if tier is None:
            issues.append(InconsistentStateError("granted_tier", grant.granted_tier, user_id))

    if tier in _PAID_TIERS:
        return PaidGrant(tier), issues
    if grant.has_free_access or tier == Tier.BASE:
        return FreeGrant(), issues
    return NoGrant(), issues


def resolve(
    roles: Optional[Iterable[str]],
    grant: Optional[AdminGrant],
    subscription: Optional[BillingSubscription],
    quotas: Optional[TierQuotas] = None,
    now: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> EntitlementRecord:
    """
    Resolve the effective entitlement from the three inputs.

    Args:
        roles: Role strings assigned to the user (may be empty)
        grant: Admin grant from the profile, or None
        subscription: The user's billing row, or None
        quotas: Quota table (defaults to the built-in table)
        now: Timestamp to stamp on the record
        user_id: User ID; inferred from grant or subscription if omitted

    Returns:
        Exactly one EntitlementRecord; never raises for missing inputs
    """
    quotas = quotas or _DEFAULT_QUOTAS
    now = now or datetime.now(timezone.utc)
    user_id = user_id or (grant.user_id if grant else None) or (
        subscription.user_id if subscription else None
    )

    role_set = normalize_roles(roles)
    grant_state, issues = normalize_grant(grant, user_id)

    billing_status: Optional[SubscriptionStatus] = None
    if subscription is not None:
        billing_status = _parse(SubscriptionStatus, subscription.status)
        if billing_status is None:
            issues.append(InconsistentStateError("status", subscription.status, user_id))

    payment_required = billing_status == SubscriptionStatus.PAST_DUE

    def build(
        source: EntitlementSource,
        branch: ResolutionBranch,
        tier: Tier,
        status: SubscriptionStatus,
        max_documents: int,
    ) -> EntitlementRecord:
        record = EntitlementRecord(
            user_id=user_id,
            source=source,
            branch=branch,
            tier=tier,
            status=status,
            max_documents=max_documents,
            payment_required=payment_required,
            computed_at=now,
            warnings=[issue.message for issue in issues],
        )
        for issue in issues:
            logger.warning(
                "Ignoring inconsistent entitlement input",
                extra={"user_id": user_id, **issue.details},
            )
        logger.debug(
            "Resolved entitlement",
            extra={
                "user_id": user_id,
                "roles": sorted(r.value for r in role_set),
                "grant": type(grant_state).__name__,
                "subscription_tier": subscription.tier if subscription else None,
                "subscription_status": subscription.status if subscription else None,
                "branch": branch.value,
                "tier": tier.value,
            },
        )
        return record

    def quota(tier: Tier) -> Optional[int]:
        try:
            return quotas.quota_for(tier)
        except MissingQuotaError:
            issues.append(InconsistentStateError("tier_quota", tier.value, user_id))
            return None

    # 1. Staff are never blocked by billing state
    if role_set & STAFF_ROLES:
        return build(
            EntitlementSource.ADMIN_GRANT,
            ResolutionBranch.ROLE_OVERRIDE,
            HIGHEST_TIER,
            SubscriptionStatus.ACTIVE,
            UNLIMITED_DOCUMENTS,
        )

    # 2. Paid grant beats billing, even an active one
    if isinstance(grant_state, PaidGrant):
        max_documents = quota(grant_state.tier)
        if max_documents is not None:
            return build(
                EntitlementSource.ADMIN_GRANT,
                ResolutionBranch.PAID_GRANT,
                grant_state.tier,
                SubscriptionStatus.ACTIVE,
                max_documents,
            )

    # 3. Free grant (legacy has_free_access or granted base)
    if isinstance(grant_state, FreeGrant) or (grant is not None and grant.has_free_access):
        max_documents = quota(Tier.BASE)
        if max_documents is not None:
            return build(
                EntitlementSource.ADMIN_GRANT,
                ResolutionBranch.FREE_GRANT,
                Tier.BASE,
                SubscriptionStatus.ACTIVE,
                max_documents,
            )

    # 4. Billing, only while active or trialing
    if subscription is not None and billing_status in ACTIVE_STATUSES:
        tier = _parse(Tier, subscription.tier)
        if tier is None:
            issues.append(InconsistentStateError("tier", subscription.tier, user_id))
        else:
            max_documents = subscription.max_documents
            if max_documents is None or (
                max_documents < 0 and max_documents != UNLIMITED_DOCUMENTS
            ):
                max_documents = quota(tier)
            if max_documents is not None:
                return build(
                    EntitlementSource.BILLING,
                    ResolutionBranch.BILLING,
                    tier,
                    billing_status,
                    max_documents,
                )

    # 5. Synthesized free default
    return build(
        EntitlementSource.NONE,
        ResolutionBranch.DEFAULT,
        Tier.FREE,
        SubscriptionStatus.ACTIVE,
        quotas.quota_for(Tier.FREE),
    )


def default_record(
    user_id: Optional[str] = None,
    quotas: Optional[TierQuotas] = None,
    now: Optional[datetime] = None,
) -> EntitlementRecord:
    """The synthesized free record used when no inputs exist."""
    return resolve((), None, None, quotas=quotas, now=now, user_id=user_id)
