"""
Billing module interface.

Other modules should depend on IBillingService, not the concrete
implementation. The entitlements module only needs reconciliation, which
IBillingService satisfies structurally (IBillingReconciler).
"""

from typing import Protocol, runtime_checkable

from modules.entitlements.models import Tier

from .models import PlanInfo, ProcessorSubscription


@runtime_checkable
class IPaymentProcessor(Protocol):
    """Read access to the payment processor."""

    def list_subscriptions(self, customer_id: str) -> list[ProcessorSubscription]:
        """
        List every subscription the processor holds for a customer.

        Raises:
            ProcessorNotConfiguredError: If no secret key is configured
            CollaboratorUnavailableError: If the processor request fails
        """
        ...


@runtime_checkable
class IBillingService(Protocol):
    """
    Interface for billing operations.

    This protocol defines the contract that the billing module exposes
    to other modules.
    """

    async def reconcile_with_processor(self, user_id: str) -> None:
        """
        Bring the user's billing row in line with the payment processor.

        Users without a processor customer get the free default row.
        Idempotent: repeated calls converge on the same single row.

        Args:
            user_id: Supabase user ID

        Raises:
            ConfigurationError: If keys or price IDs are missing
            CollaboratorUnavailableError: If the processor is unreachable
        """
        ...

    def price_id_for_tier(self, tier: Tier) -> str:
        """
        Get the processor price to check out for a tier.

        Raises:
            PriceNotConfiguredError: If the tier has no price configured
        """
        ...

    def list_plans(self) -> list[PlanInfo]:
        """List every tier with its quota and purchase availability."""
        ...
