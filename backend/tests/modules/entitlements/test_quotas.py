"""Tests for the tier quota table."""

import pytest

from shared.config import Settings
from modules.entitlements.exceptions import ConfigurationError, MissingQuotaError
from modules.entitlements.models import Tier, UNLIMITED_DOCUMENTS
from modules.entitlements.quotas import DEFAULT_QUOTAS, TierQuotas


class TestTierQuotas:
    def test_defaults(self):
        """Default quotas should be 2 / 5 / 50 / unlimited."""
        quotas = TierQuotas()
        assert quotas.quota_for(Tier.FREE) == 2
        assert quotas.quota_for(Tier.BASE) == 5
        assert quotas.quota_for(Tier.PRO) == 50
        assert quotas.quota_for(Tier.ENTERPRISE) == UNLIMITED_DOCUMENTS

    def test_missing_tier_raises(self):
        """A tier with no mapping should raise, not return zero."""
        quotas = TierQuotas({Tier.FREE: 2})
        with pytest.raises(MissingQuotaError) as exc_info:
            quotas.quota_for(Tier.PRO)
        assert exc_info.value.code == "MISSING_QUOTA"
        assert exc_info.value.details == {"tier": "pro"}

    def test_free_tier_required(self):
        """The free tier must always be mapped."""
        with pytest.raises(ConfigurationError):
            TierQuotas({Tier.PRO: 50})

    def test_negative_is_unlimited(self):
        """Any negative quota should read as unlimited."""
        quotas = TierQuotas({Tier.FREE: 2, Tier.ENTERPRISE: -100})
        assert quotas.quota_for(Tier.ENTERPRISE) == UNLIMITED_DOCUMENTS

    def test_contains(self):
        """Membership should reflect configured tiers."""
        quotas = TierQuotas({Tier.FREE: 2})
        assert Tier.FREE in quotas
        assert Tier.BASE not in quotas

    def test_from_settings(self):
        """Quotas should be read from settings."""
        settings = Settings(entitlement_quota_pro=75, entitlement_quota_free=3)
        quotas = TierQuotas.from_settings(settings)
        assert quotas.quota_for(Tier.PRO) == 75
        assert quotas.quota_for(Tier.FREE) == 3

    def test_defaults_not_mutated(self):
        """Constructing a table should not alter the defaults."""
        TierQuotas({Tier.FREE: -5})
        assert DEFAULT_QUOTAS[Tier.FREE] == 2
