"""
Entitlements module interfaces.

Other modules should depend on IEntitlementService, not the concrete
implementation. The record store and billing reconciler are the two
collaborators the service consumes; both are defined here so the
entitlements module never imports the billing module.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import (
    AdminGrant,
    BillingSubscription,
    EntitlementRecord,
    EntitlementState,
)


@runtime_checkable
class IRecordStore(Protocol):
    """
    Persistent inputs to entitlement resolution.

    Implementations must make `upsert_default_subscription` and
    `upsert_subscription` atomic upserts keyed by user_id, so concurrent
    refreshes can never create duplicate rows.
    """

    def get_roles(self, user_id: str) -> set[str]:
        """Get the role strings assigned to a user (possibly empty)."""
        ...

    def get_admin_grant(self, user_id: str) -> Optional[AdminGrant]:
        """Get the operator override for a user, None if no profile row."""
        ...

    def get_active_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        """
        Get the user's billing row if it is active or trialing.

        Past-due rows are also returned so the resolver can flag
        payment_required; other statuses read as None.
        """
        ...

    def get_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        """Get the user's billing row regardless of status."""
        ...

    def upsert_default_subscription(self, user_id: str) -> BillingSubscription:
        """
        Ensure the user has a billing row, creating the free default if absent.

        Never overwrites an existing row.
        """
        ...

    def upsert_subscription(self, data: dict[str, Any]) -> BillingSubscription:
        """Insert or replace the user's billing row, keyed by user_id."""
        ...

    def get_stripe_customer_id(self, user_id: str) -> Optional[str]:
        """Get the payment processor customer ID stored on the profile."""
        ...


@runtime_checkable
class IBillingReconciler(Protocol):
    """The billing collaborator as seen from the entitlements module."""

    async def reconcile_with_processor(self, user_id: str) -> None:
        """
        Bring the stored billing row in line with the payment processor.

        Idempotent and safe to retry.

        Raises:
            CollaboratorUnavailableError: If the processor can't be reached
            ConfigurationError: If price IDs or keys are missing
        """
        ...


@runtime_checkable
class IEntitlementService(Protocol):
    """
    Interface for entitlement operations.

    This protocol defines the contract that route guards, the sync trigger
    and the UI-facing endpoints rely on.
    """

    async def refresh(self, user_id: str) -> EntitlementRecord:
        """
        Reconcile billing, re-read all inputs and resolve.

        Never raises for collaborator failures: the last-known-good record
        is kept and the error is reported on the consumer state.

        Args:
            user_id: Supabase user ID (UUID)

        Returns:
            The record now held for the user
        """
        ...

    def get_entitlement(self, user_id: str) -> EntitlementState:
        """
        Get the consumer-facing snapshot without touching collaborators.

        Before the first refresh completes this is the synthesized free
        default with loading=True.
        """
        ...

    async def current(self, user_id: str) -> EntitlementState:
        """Refresh if missing, stale or invalidated, then return the snapshot."""
        ...

    def invalidate(self, user_id: str) -> None:
        """Mark the user's record stale so the next `current` call refreshes."""
        ...
