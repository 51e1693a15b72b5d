"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

When we're ready to extract a module to a microservice, we only need
to change the implementation here to an HTTP client.
"""

from typing import TYPE_CHECKING

from shared.config import get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.billing.interfaces import IBillingService
    from modules.entitlements.interfaces import IRecordStore
    from modules.entitlements.service import EntitlementService


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container, so the
    entitlement service's last-known-good records live for the process.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self) -> None:
        self._record_store: "IRecordStore | None" = None
        self._billing_service: "IBillingService | None" = None
        self._entitlement_service: "EntitlementService | None" = None

    @property
    def record_store(self) -> "IRecordStore":
        """Get the record store instance."""
        if self._record_store is None:
            from modules.entitlements.repository import EntitlementRepository
            from shared.database import get_supabase_client
            self._record_store = EntitlementRepository(get_supabase_client())
        return self._record_store

    @property
    def billing(self) -> "IBillingService":
        """Get the billing service instance."""
        if self._billing_service is None:
            from modules.billing.processor import StripeProcessor
            from modules.billing.service import BillingService
            self._billing_service = BillingService(
                store=self.record_store,
                processor=StripeProcessor(),
            )
        return self._billing_service

    @property
    def entitlements(self) -> "EntitlementService":
        """Get the entitlement service instance."""
        if self._entitlement_service is None:
            from modules.entitlements.service import EntitlementService
            self._entitlement_service = EntitlementService(
                store=self.record_store,
                billing=self.billing if get_settings().enable_billing else None,
            )
        return self._entitlement_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._record_store = None
        self._billing_service = None
        self._entitlement_service = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_billing_service() -> "IBillingService":
    """FastAPI dependency for billing service."""
    return get_container().billing


def get_entitlement_service() -> "EntitlementService":
    """FastAPI dependency for entitlement service."""
    return get_container().entitlements
