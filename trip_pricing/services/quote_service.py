"""Quote orchestration: allocation -> line items -> aggregation -> taxes -> per head."""

from __future__ import annotations

from typing import Optional

from trip_pricing.domain.categories import normalize_participants, total_headcount
from trip_pricing.domain.models import (
    AccommodationLineItem,
    CostCategory,
    CostLineItem,
    TripQuote,
    TripQuoteRequest,
)
from trip_pricing.services.accommodation_service import AccommodationCostService
from trip_pricing.services.allocation_service import RoomAllocationService
from trip_pricing.services.cost_service import (
    accommodation_cost_item,
    activity_item,
    aggregate_costs,
    bus_item,
    extras_items,
    meals_item,
    overhead_item,
    per_person_item,
)
from trip_pricing.services.currency_service import CurrencyRateTable
from trip_pricing.services.distribution_service import chargeable_headcount, cost_per_participant
from trip_pricing.services.tax_service import compute_taxes
from trip_pricing.utils.config import Settings, get_settings
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def build_line_items(
    request: TripQuoteRequest,
    accommodations: list[AccommodationLineItem],
    headcount: int,
) -> list[CostLineItem]:
    """Expand the request into line items in their own currencies."""
    items: list[CostLineItem] = [accommodation_cost_item(line) for line in accommodations]
    for flight in request.flights:
        items.append(
            per_person_item(
                category=CostCategory.TRANSPORT,
                label=flight.label,
                cost_per_person=flight.cost_per_person,
                headcount=headcount,
                currency=flight.currency,
            )
        )
    for train in request.trains:
        items.append(
            per_person_item(
                category=CostCategory.TRANSPORT,
                label=train.label,
                cost_per_person=train.cost_per_person,
                headcount=headcount,
                currency=train.currency,
            )
        )
    for bus in request.buses:
        items.append(
            bus_item(
                label=bus.label,
                cost_per_bus=bus.cost_per_bus,
                quantity=bus.quantity,
                number_of_days=bus.number_of_days,
                currency=bus.currency,
            )
        )
    if request.meals is not None:
        # Breakfast is billed unless every property serves it.
        breakfast_in_stay = bool(accommodations) and all(
            line.breakfast_included for line in accommodations
        )
        items.append(
            meals_item(
                breakfast_cost_per_person=request.meals.breakfast_cost_per_person,
                lunch_cost_per_person=request.meals.lunch_cost_per_person,
                dinner_cost_per_person=request.meals.dinner_cost_per_person,
                headcount=headcount,
                days=request.meals.days,
                currency=request.meals.currency,
                breakfast_included_in_stay=breakfast_in_stay,
            )
        )
    for activity in request.activities:
        items.append(
            activity_item(
                label=activity.label,
                entry_cost=activity.entry_cost,
                transport_cost=activity.transport_cost,
                guide_cost=activity.guide_cost,
                headcount=headcount,
                currency=activity.currency,
            )
        )
    for overhead in request.overheads:
        items.append(
            overhead_item(
                label=overhead.label,
                amount=overhead.amount,
                currency=overhead.currency,
                hide_from_client=overhead.hide_from_client,
            )
        )
    if request.extras is not None:
        items.extend(
            extras_items(
                trip_category=request.trip_category,
                headcount=headcount,
                visa_cost_per_person=request.extras.visa_cost_per_person,
                visa_currency=request.extras.visa_currency,
                tips_cost_per_person=request.extras.tips_cost_per_person,
                tips_currency=request.extras.tips_currency,
                insurance_cost_per_person=request.extras.insurance_cost_per_person,
                insurance_currency=request.extras.insurance_currency,
            )
        )
    return items


class TripQuoteService:
    """Runs the whole pricing pipeline for one trip and returns a fresh quote."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        allocation_service: Optional[RoomAllocationService] = None,
        accommodation_service: Optional[AccommodationCostService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._allocation_service = allocation_service or RoomAllocationService(self._settings)
        self._accommodation_service = accommodation_service or AccommodationCostService(
            allocation_service=self._allocation_service,
        )

    @property
    def allocation_service(self) -> RoomAllocationService:
        return self._allocation_service

    def quote(self, request: TripQuoteRequest, rate_table: CurrencyRateTable) -> TripQuote:
        participants = normalize_participants(request.participants, request.trip_type)
        headcount = total_headcount(participants)

        accommodations = [
            self._accommodation_service.price_accommodation(
                accommodation=accommodation,
                participants=participants,
                trip_type=request.trip_type,
                rate_table=rate_table,
                strategy=request.strategy,
            )
            for accommodation in request.accommodations
        ]
        line_items = build_line_items(request, accommodations, headcount)
        breakdown = aggregate_costs(line_items, rate_table)
        taxes = compute_taxes(
            subtotal=breakdown.subtotal,
            profit=request.profit,
            trip_category=request.trip_category,
            gst_percentage=request.gst_percentage,
            tcs_percentage=request.tcs_percentage,
        )
        billable = chargeable_headcount(participants, request.trip_type)
        per_head = cost_per_participant(taxes.grand_total, billable)

        quote = TripQuote(
            trip_type=request.trip_type,
            trip_category=request.trip_category,
            accommodations=accommodations,
            line_items=line_items,
            cost_breakdown=breakdown,
            taxes=taxes,
            total_headcount=headcount,
            chargeable_headcount=billable,
            cost_per_participant=per_head,
        )
        if quote.used_fallback:
            logger.warning("Quote used greedy fallback for at least one property")
        logger.info(
            (
                "Trip quoted | trip_type=%s | category=%s | headcount=%s | billable=%s | "
                "subtotal=%.2f | grand_total=%.2f | per_participant=%.2f"
            ),
            request.trip_type.value,
            request.trip_category.value,
            headcount,
            billable,
            breakdown.subtotal,
            taxes.grand_total,
            per_head,
        )
        return quote
