"""Tests for entitlements module models."""

import pytest
from datetime import datetime, timezone

from modules.entitlements.models import (
    AdminGrant,
    BillingSubscription,
    EntitlementRecord,
    EntitlementResponse,
    EntitlementSource,
    EntitlementState,
    ResolutionBranch,
    SubscriptionStatus,
    Tier,
    TIER_ORDER,
    HIGHEST_TIER,
    UNLIMITED_DOCUMENTS,
)


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_record(**overrides) -> EntitlementRecord:
    data = {
        "user_id": "user-123",
        "source": EntitlementSource.BILLING,
        "branch": ResolutionBranch.BILLING,
        "tier": Tier.PRO,
        "status": SubscriptionStatus.ACTIVE,
        "max_documents": 50,
        "computed_at": NOW,
    }
    data.update(overrides)
    return EntitlementRecord(**data)


class TestTier:
    def test_order_is_lowest_first(self):
        """Tiers should be ordered free < base < pro < enterprise."""
        assert TIER_ORDER == [Tier.FREE, Tier.BASE, Tier.PRO, Tier.ENTERPRISE]
        assert HIGHEST_TIER == Tier.ENTERPRISE

    def test_at_least(self):
        """at_least should compare by rank."""
        assert Tier.PRO.at_least(Tier.BASE)
        assert Tier.PRO.at_least(Tier.PRO)
        assert not Tier.BASE.at_least(Tier.PRO)
        assert Tier.ENTERPRISE.at_least(Tier.FREE)

    def test_values(self):
        """Tier values should match stored strings."""
        assert Tier("free") == Tier.FREE
        assert Tier.ENTERPRISE.value == "enterprise"


class TestEntitlementRecord:
    def test_active_statuses(self):
        """Active and trialing records should be active."""
        assert make_record(status=SubscriptionStatus.ACTIVE).is_active
        assert make_record(status=SubscriptionStatus.TRIALING).is_active
        assert not make_record(status=SubscriptionStatus.PAST_DUE).is_active
        assert not make_record(status=SubscriptionStatus.INACTIVE).is_active

    def test_has_tier_at_least_requires_active(self):
        """An inactive pro record should not satisfy a pro check."""
        assert make_record().has_tier_at_least(Tier.PRO)
        assert not make_record(status=SubscriptionStatus.INACTIVE).has_tier_at_least(Tier.BASE)

    def test_unlimited_documents(self):
        """The unlimited sentinel should be reported."""
        assert make_record(max_documents=UNLIMITED_DOCUMENTS).has_unlimited_documents
        assert not make_record(max_documents=50).has_unlimited_documents

    def test_is_past_due(self):
        """Past due should follow payment_required."""
        assert make_record(payment_required=True).is_past_due()
        assert not make_record().is_past_due()

    def test_is_frozen(self):
        """Records should be immutable."""
        record = make_record()
        with pytest.raises(Exception):
            record.tier = Tier.FREE

    def test_is_active_serialized(self):
        """is_active should appear in the serialized record."""
        assert make_record().model_dump()["is_active"] is True


class TestEntitlementState:
    def test_from_record(self):
        """State should copy the record and carry loading/error."""
        record = make_record(payment_required=True)
        state = EntitlementState.from_record(
            "user-123",
            record,
            loading=True,
            error={"error": "COLLABORATOR_UNAVAILABLE"},
        )
        assert state.tier == Tier.PRO
        assert state.is_active is True
        assert state.payment_required is True
        assert state.loading is True
        assert state.error == {"error": "COLLABORATOR_UNAVAILABLE"}

    def test_has_tier_at_least(self):
        """State predicates should match the record's."""
        state = EntitlementState.from_record("user-123", make_record(tier=Tier.BASE))
        assert state.has_tier_at_least(Tier.BASE)
        assert not state.has_tier_at_least(Tier.PRO)


class TestEntitlementResponse:
    def test_from_state_flags_unlimited(self):
        """Response should expose unlimited_documents."""
        state = EntitlementState.from_record(
            "user-123",
            make_record(tier=Tier.ENTERPRISE, max_documents=UNLIMITED_DOCUMENTS),
        )
        response = EntitlementResponse.from_state(state)
        assert response.unlimited_documents is True
        assert response.max_documents == -1
        assert response.loading is False


class TestInputs:
    def test_admin_grant_keeps_raw_tier(self):
        """Unknown granted tiers should survive parsing for the resolver."""
        grant = AdminGrant(user_id="u", granted_tier="platinum")
        assert grant.granted_tier == "platinum"
        assert grant.has_free_access is False

    def test_subscription_defaults(self):
        """A bare row should default to free and active."""
        sub = BillingSubscription(user_id="u")
        assert sub.tier == "free"
        assert sub.status == "active"
        assert sub.max_documents is None
