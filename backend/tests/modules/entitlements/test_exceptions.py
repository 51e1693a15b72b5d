"""Tests for entitlements module exceptions."""

from shared.exceptions import ExternalServiceError, VantageError
from modules.entitlements.exceptions import (
    CollaboratorUnavailableError,
    ConfigurationError,
    EntitlementError,
    InconsistentStateError,
    MissingQuotaError,
)


class TestEntitlementExceptions:
    def test_hierarchy(self):
        """Entitlement errors should share the Vantage base."""
        assert issubclass(EntitlementError, VantageError)
        assert issubclass(ConfigurationError, EntitlementError)
        assert issubclass(MissingQuotaError, ConfigurationError)
        assert issubclass(InconsistentStateError, EntitlementError)
        assert issubclass(CollaboratorUnavailableError, ExternalServiceError)

    def test_configuration_error_defaults(self):
        """ConfigurationError should carry a stable code."""
        error = ConfigurationError("Missing price")
        assert error.code == "CONFIGURATION_ERROR"
        assert error.details == {}

    def test_missing_quota(self):
        """MissingQuotaError should name the tier."""
        error = MissingQuotaError("pro")
        assert error.to_dict() == {
            "error": "MISSING_QUOTA",
            "message": "No document quota configured for tier: pro",
            "details": {"tier": "pro"},
        }

    def test_collaborator_unavailable(self):
        """CollaboratorUnavailableError should carry the service and reason."""
        error = CollaboratorUnavailableError("stripe", "timeout")
        assert error.service == "stripe"
        assert error.code == "COLLABORATOR_UNAVAILABLE"
        assert error.details == {"reason": "timeout", "service": "stripe"}
        assert "stripe unavailable" in str(error)

    def test_inconsistent_state(self):
        """InconsistentStateError should describe the field and value."""
        error = InconsistentStateError("status", "paused", "user-123")
        assert error.code == "INCONSISTENT_STATE"
        assert error.details == {"field": "status", "value": "paused", "user_id": "user-123"}

    def test_inconsistent_state_without_user(self):
        """user_id should be omitted when unknown."""
        error = InconsistentStateError("tier", "gold")
        assert "user_id" not in error.details
