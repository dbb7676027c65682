"""Per-property accommodation costing on top of the room allocation engine."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Optional

from trip_pricing.domain.constraints import validate_non_negative
from trip_pricing.domain.errors import PricingValidationError
from trip_pricing.domain.models import (
    AccommodationInput,
    AccommodationLineItem,
    AllocationStrategy,
    ParticipantCategoryId,
    RoomAllocationResult,
    TripType,
)
from trip_pricing.services.allocation_service import RoomAllocationService
from trip_pricing.services.currency_service import CurrencyRateTable, convert
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def calculate_nightly_cost(allocation: RoomAllocationResult) -> float:
    return math.fsum(
        entry.number_of_rooms * entry.cost_per_room
        for category_breakdown in allocation.breakdown.values()
        for entry in category_breakdown
    )


def calculate_accommodation_cost(
    allocation: RoomAllocationResult,
    nights: int,
    currency: str,
    rate_table: CurrencyRateTable,
) -> tuple[float, float, float]:
    """Return ``(nightly_cost, total_cost, total_cost_in_reporting_currency)``."""
    if nights < 0:
        raise PricingValidationError(f"nights must be >= 0, got {nights}")
    nightly_cost = calculate_nightly_cost(allocation)
    total_cost = nightly_cost * nights
    return nightly_cost, total_cost, convert(total_cost, currency, rate_table)


def build_accommodation_line_item(
    accommodation: AccommodationInput,
    allocation: RoomAllocationResult,
    rate_table: CurrencyRateTable,
) -> AccommodationLineItem:
    nightly_cost, total_cost, total_in_reporting = calculate_accommodation_cost(
        allocation,
        accommodation.nights,
        accommodation.currency,
        rate_table,
    )
    return AccommodationLineItem(
        hotel_name=accommodation.hotel_name,
        city=accommodation.city,
        nights=accommodation.nights,
        currency=accommodation.currency.strip().upper(),
        room_types=list(accommodation.room_types),
        preferences=dict(accommodation.preferences),
        breakfast_included=accommodation.breakfast_included,
        allocation=allocation,
        nightly_cost=nightly_cost,
        total_cost=total_cost,
        total_cost_in_reporting_currency=total_in_reporting,
    )


class AccommodationCostService:
    """Allocates rooms for one property and prices the stay."""

    def __init__(self, allocation_service: Optional[RoomAllocationService] = None) -> None:
        self._allocation_service = allocation_service or RoomAllocationService()

    def price_accommodation(
        self,
        *,
        accommodation: AccommodationInput,
        participants: Mapping[ParticipantCategoryId, int],
        trip_type: TripType,
        rate_table: CurrencyRateTable,
        strategy: Optional[AllocationStrategy | str] = None,
    ) -> AccommodationLineItem:
        validate_non_negative("nights", accommodation.nights)
        # Resolve the rate before allocating so an unknown currency fails fast.
        rate_table.rate_for(accommodation.currency)
        allocation = self._allocation_service.allocate(
            participants=participants,
            room_types=accommodation.room_types,
            trip_type=trip_type,
            preferences=accommodation.preferences,
            strategy=strategy,
        )
        line_item = build_accommodation_line_item(accommodation, allocation, rate_table)
        logger.info(
            (
                "Accommodation priced | hotel=%s | city=%s | nights=%s | rooms=%s | "
                "total_cost=%.2f %s | total_reporting=%.2f"
            ),
            line_item.hotel_name,
            line_item.city,
            line_item.nights,
            line_item.total_rooms,
            line_item.total_cost,
            line_item.currency,
            line_item.total_cost_in_reporting_currency,
        )
        return line_item
