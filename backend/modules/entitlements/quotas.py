"""
Document quota table per tier.

A missing mapping is a configuration error, never a silent zero quota.
"""

from typing import Mapping, Optional

from shared.config import Settings, get_settings

from .exceptions import ConfigurationError, MissingQuotaError
from .models import Tier, UNLIMITED_DOCUMENTS


DEFAULT_QUOTAS: dict[Tier, int] = {
    Tier.FREE: 2,
    Tier.BASE: 5,
    Tier.PRO: 50,
    Tier.ENTERPRISE: UNLIMITED_DOCUMENTS,
}


class TierQuotas:
    """
    Maps each tier to its document quota.

    The free tier must always be mapped: it backs the synthesized default
    entitlement, which must exist for every user.
    """

    def __init__(self, quotas: Optional[Mapping[Tier, int]] = None):
        quotas = dict(DEFAULT_QUOTAS if quotas is None else quotas)
        if Tier.FREE not in quotas:
            raise ConfigurationError(
                "The free tier must have a document quota",
                details={"tier": Tier.FREE.value},
            )
        # Any negative value is read as "no cap"
        self._quotas = {
            tier: UNLIMITED_DOCUMENTS if value < 0 else value
            for tier, value in quotas.items()
        }

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TierQuotas":
        settings = settings or get_settings()
        return cls({
            Tier.FREE: settings.entitlement_quota_free,
            Tier.BASE: settings.entitlement_quota_base,
            Tier.PRO: settings.entitlement_quota_pro,
            Tier.ENTERPRISE: settings.entitlement_quota_enterprise,
        })

    def quota_for(self, tier: Tier) -> int:
        """
        Get the document quota for a tier.

        Raises:
            MissingQuotaError: If the tier has no mapping
        """
        try:
            return self._quotas[tier]
        except KeyError:
            raise MissingQuotaError(tier.value) from None

    def __contains__(self, tier: object) -> bool:
        return tier in self._quotas
