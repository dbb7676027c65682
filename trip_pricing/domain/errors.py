"""Error taxonomy for the pricing core.

All failures are deterministic input rejections; callers surface them to the
planner verbatim so the offending input can be corrected.
"""

from __future__ import annotations


class PricingError(Exception):
    """Base class for every pricing-core failure."""


class PricingValidationError(PricingError, ValueError):
    """Raised when a count, amount, label or percentage is out of range."""


class CurrencyNotFoundError(PricingValidationError):
    """Raised when a currency code has no rate in the supplied table."""

    def __init__(self, currency_code: str, reporting_currency: str) -> None:
        self.currency_code = currency_code
        self.reporting_currency = reporting_currency
        super().__init__(
            f"No exchange rate for currency '{currency_code}' to {reporting_currency}"
        )


class RoomConfigurationError(PricingError):
    """Raised when no usable room type exists for a non-empty category."""


class AllocationInfeasibleError(PricingError):
    """Raised when a category cannot be fully housed by the room inventory."""
