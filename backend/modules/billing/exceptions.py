"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from modules.entitlements.exceptions import ConfigurationError


class PriceNotConfiguredError(ConfigurationError):
    """
    Raised when a tier has no processor price ID configured.

    Fails the upgrade to that tier visibly; other tiers are unaffected.
    """

    def __init__(self, tier: str):
        super().__init__(
            f"No price configured for tier: {tier}",
            code="PRICE_NOT_CONFIGURED",
            details={"tier": tier},
        )


class UnknownPriceError(ConfigurationError):
    """Raised when the processor reports a price ID no tier is mapped to."""

    def __init__(self, price_id: str):
        super().__init__(
            f"No tier configured for price: {price_id}",
            code="UNKNOWN_PRICE",
            details={"price_id": price_id},
        )


class ProcessorNotConfiguredError(ConfigurationError):
    """Raised when the payment processor secret key is missing."""

    def __init__(self):
        super().__init__(
            "Payment processor is not configured. Set STRIPE_SECRET_KEY.",
            code="PROCESSOR_NOT_CONFIGURED",
        )
