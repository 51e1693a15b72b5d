"""
Entitlements module exceptions.

The resolver never raises for expected branches (missing grant, missing
subscription). These exceptions cover configuration gaps, unreachable
collaborators and malformed inputs.
"""

from typing import Any, Optional

from shared.exceptions import VantageError, ExternalServiceError


class EntitlementError(VantageError):
    """Base exception for entitlement-related errors."""

    pass


class ConfigurationError(EntitlementError):
    """
    Raised when required configuration is missing.

    Fatal to the operation that needed it (e.g., an upgrade to a tier with
    no price configured) but never to resolution as a whole.
    """

    def __init__(
        self,
        message: str,
        code: str = "CONFIGURATION_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, details=details)


class MissingQuotaError(ConfigurationError):
    """Raised when a tier has no document quota mapping."""

    def __init__(self, tier: str):
        super().__init__(
            f"No document quota configured for tier: {tier}",
            code="MISSING_QUOTA",
            details={"tier": tier},
        )


class CollaboratorUnavailableError(ExternalServiceError):
    """
    Raised when the record store or billing collaborator can't be reached.

    Non-fatal to refresh: the last-known-good entitlement is kept.
    """

    def __init__(self, service: str, reason: str):
        super().__init__(
            f"{service} unavailable: {reason}",
            service=service,
            code="COLLABORATOR_UNAVAILABLE",
            details={"reason": reason},
        )


class InconsistentStateError(EntitlementError):
    """
    Describes a malformed input (unknown tier or status).

    The resolver reports these as warnings on the record and falls
    through to a lower-precedence rule.
    """

    def __init__(self, field: str, value: Any, user_id: Optional[str] = None):
        super().__init__(
            f"Inconsistent {field}: {value!r}",
            code="INCONSISTENT_STATE",
            details={"field": field, "value": str(value)},
        )
        if user_id:
            self.details["user_id"] = user_id
