"""
Billing module.

Reconciles stored billing rows with Stripe and maps processor prices
to tiers.

Public API:
- IBillingService: Interface for billing operations
- IPaymentProcessor: Interface for processor reads
- PriceCatalog: Tier <-> price ID mapping
- Billing exceptions: PriceNotConfiguredError, etc.
"""

from .interfaces import IBillingService, IPaymentProcessor
from .models import (
    ProcessorSubscription,
    PriceCatalog,
    PlanInfo,
    map_processor_status,
    select_subscription,
)
from .exceptions import (
    PriceNotConfiguredError,
    UnknownPriceError,
    ProcessorNotConfiguredError,
)

__all__ = [
    # Interfaces
    "IBillingService",
    "IPaymentProcessor",
    # Models
    "ProcessorSubscription",
    "PriceCatalog",
    "PlanInfo",
    "map_processor_status",
    "select_subscription",
    # Exceptions
    "PriceNotConfiguredError",
    "UnknownPriceError",
    "ProcessorNotConfiguredError",
]
