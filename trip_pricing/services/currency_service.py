"""Conversion of line-item amounts into the reporting currency."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from trip_pricing.domain.errors import CurrencyNotFoundError, PricingValidationError
from trip_pricing.domain.models import CurrencyRate
from trip_pricing.utils.config import get_settings


def _normalize_code(code: str) -> str:
    normalized = code.strip().upper()
    if not normalized:
        raise PricingValidationError("Currency code must not be blank")
    return normalized


class CurrencyRateTable:
    """Immutable code -> rate-to-reporting-currency lookup.

    The reporting currency itself is always present at 1.0.
    """

    def __init__(
        self,
        rates: Mapping[str, float],
        reporting_currency: Optional[str] = None,
    ) -> None:
        self._reporting_currency = _normalize_code(
            reporting_currency or get_settings().reporting_currency
        )
        resolved: dict[str, float] = {self._reporting_currency: 1.0}
        for code, rate in rates.items():
            normalized = _normalize_code(code)
            if rate <= 0:
                raise PricingValidationError(
                    f"Exchange rate for '{normalized}' must be > 0, got {rate}"
                )
            if normalized == self._reporting_currency and rate != 1.0:
                raise PricingValidationError(
                    f"Reporting currency '{normalized}' must have a rate of 1.0"
                )
            resolved[normalized] = float(rate)
        self._rates = resolved

    @classmethod
    def from_records(
        cls,
        records: Iterable[CurrencyRate],
        reporting_currency: Optional[str] = None,
    ) -> "CurrencyRateTable":
        """Build a table from master-data records, latest effective date winning."""
        latest: dict[str, CurrencyRate] = {}
        for record in records:
            code = _normalize_code(record.code)
            current = latest.get(code)
            if current is None or (record.effective_date or "") >= (current.effective_date or ""):
                latest[code] = record
        return cls(
            {code: record.rate_to_reporting_currency for code, record in latest.items()},
            reporting_currency=reporting_currency,
        )

    @property
    def reporting_currency(self) -> str:
        return self._reporting_currency

    @property
    def codes(self) -> list[str]:
        return sorted(self._rates)

    def rate_for(self, currency_code: str) -> float:
        code = _normalize_code(currency_code)
        try:
            return self._rates[code]
        except KeyError:
            raise CurrencyNotFoundError(code, self._reporting_currency) from None

    def __contains__(self, currency_code: object) -> bool:
        if not isinstance(currency_code, str) or not currency_code.strip():
            return False
        return currency_code.strip().upper() in self._rates


def convert(amount: float, currency_code: str, rate_table: CurrencyRateTable) -> float:
    """Convert ``amount`` in ``currency_code`` into the reporting currency."""
    return amount * rate_table.rate_for(currency_code)
