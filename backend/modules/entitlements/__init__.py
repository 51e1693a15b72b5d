"""
Entitlements module.

Decides, for a user at a given instant, what they are allowed to do by
merging role assignments, admin grants and billing state.

Public API:
- resolve: Pure precedence rules (roles > grant > billing > free default)
- IEntitlementService: Interface for refresh and consumer-facing state
- IRecordStore / IBillingReconciler: Collaborators the service consumes
- EntitlementRecord / EntitlementState: Resolved entitlement shapes
- Entitlement exceptions: ConfigurationError, etc.
"""

from .interfaces import IBillingReconciler, IEntitlementService, IRecordStore
from .models import (
    AdminGrant,
    BillingSubscription,
    EntitlementRecord,
    EntitlementSource,
    EntitlementState,
    FreeGrant,
    GrantState,
    NoGrant,
    PaidGrant,
    ResolutionBranch,
    Role,
    SubscriptionStatus,
    Tier,
    UNLIMITED_DOCUMENTS,
)
from .quotas import TierQuotas, DEFAULT_QUOTAS
from .resolver import default_record, normalize_grant, resolve
from .exceptions import (
    EntitlementError,
    ConfigurationError,
    MissingQuotaError,
    CollaboratorUnavailableError,
    InconsistentStateError,
)

__all__ = [
    # Interfaces
    "IEntitlementService",
    "IRecordStore",
    "IBillingReconciler",
    # Models
    "AdminGrant",
    "BillingSubscription",
    "EntitlementRecord",
    "EntitlementSource",
    "EntitlementState",
    "FreeGrant",
    "GrantState",
    "NoGrant",
    "PaidGrant",
    "ResolutionBranch",
    "Role",
    "SubscriptionStatus",
    "Tier",
    "UNLIMITED_DOCUMENTS",
    # Rules
    "TierQuotas",
    "DEFAULT_QUOTAS",
    "resolve",
    "default_record",
    "normalize_grant",
    # Exceptions
    "EntitlementError",
    "ConfigurationError",
    "MissingQuotaError",
    "CollaboratorUnavailableError",
    "InconsistentStateError",
]
