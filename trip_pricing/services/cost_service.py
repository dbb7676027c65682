"""Line-item builders and the reporting-currency cost aggregation pipeline."""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable

from trip_pricing.domain.constraints import validate_non_negative
from trip_pricing.domain.models import (
    AccommodationLineItem,
    CostCategory,
    CostLineItem,
    TripCategory,
    TripCostBreakdown,
)
from trip_pricing.services.currency_service import CurrencyRateTable, convert
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def per_person_item(
    *,
    category: CostCategory,
    label: str,
    cost_per_person: float,
    headcount: int,
    currency: str,
) -> CostLineItem:
    """Flights, trains and per-person extras: ``cost_per_person * headcount``."""
    validate_non_negative(f"{label} cost_per_person", cost_per_person)
    validate_non_negative("headcount", headcount)
    return CostLineItem(
        category=category,
        label=label,
        amount=cost_per_person * headcount,
        currency=currency,
    )


def bus_item(
    *,
    label: str,
    cost_per_bus: float,
    quantity: int,
    number_of_days: int,
    currency: str,
) -> CostLineItem:
    validate_non_negative(f"{label} cost_per_bus", cost_per_bus)
    validate_non_negative(f"{label} quantity", quantity)
    validate_non_negative(f"{label} number_of_days", number_of_days)
    return CostLineItem(
        category=CostCategory.TRANSPORT,
        label=label,
        amount=cost_per_bus * quantity * number_of_days,
        currency=currency,
    )


def meals_item(
    *,
    breakfast_cost_per_person: float,
    lunch_cost_per_person: float,
    dinner_cost_per_person: float,
    headcount: int,
    days: int,
    currency: str,
    breakfast_included_in_stay: bool = True,
) -> CostLineItem:
    """Daily meals for everyone; breakfast is only charged when the stay lacks it."""
    validate_non_negative("breakfast_cost_per_person", breakfast_cost_per_person)
    validate_non_negative("lunch_cost_per_person", lunch_cost_per_person)
    validate_non_negative("dinner_cost_per_person", dinner_cost_per_person)
    validate_non_negative("headcount", headcount)
    validate_non_negative("days", days)
    daily_cost_per_person = lunch_cost_per_person + dinner_cost_per_person
    if not breakfast_included_in_stay:
        daily_cost_per_person += breakfast_cost_per_person
    return CostLineItem(
        category=CostCategory.MEALS,
        label="Meals",
        amount=daily_cost_per_person * headcount * days,
        currency=currency,
    )


def activity_item(
    *,
    label: str,
    entry_cost: float,
    transport_cost: float,
    guide_cost: float,
    headcount: int,
    currency: str,
) -> CostLineItem:
    """Entry is paid per person; transport and guide are flat per activity."""
    validate_non_negative(f"{label} entry_cost", entry_cost)
    validate_non_negative(f"{label} transport_cost", transport_cost)
    validate_non_negative(f"{label} guide_cost", guide_cost)
    validate_non_negative("headcount", headcount)
    return CostLineItem(
        category=CostCategory.ACTIVITIES,
        label=label,
        amount=entry_cost * headcount + transport_cost + guide_cost,
        currency=currency,
    )


def overhead_item(
    *,
    label: str,
    amount: float,
    currency: str,
    hide_from_client: bool = False,
) -> CostLineItem:
    validate_non_negative(f"{label} amount", amount)
    return CostLineItem(
        category=CostCategory.OVERHEADS,
        label=label,
        amount=amount,
        currency=currency,
        hide_from_client=hide_from_client,
    )


def extras_items(
    *,
    trip_category: TripCategory,
    headcount: int,
    visa_cost_per_person: float,
    visa_currency: str,
    tips_cost_per_person: float,
    tips_currency: str,
    insurance_cost_per_person: float,
    insurance_currency: str,
) -> list[CostLineItem]:
    """Visa and tips apply to international trips only; insurance always applies."""
    items: list[CostLineItem] = []
    if trip_category is TripCategory.INTERNATIONAL:
        items.append(
            per_person_item(
                category=CostCategory.EXTRAS,
                label="Visa",
                cost_per_person=visa_cost_per_person,
                headcount=headcount,
                currency=visa_currency,
            )
        )
        items.append(
            per_person_item(
                category=CostCategory.EXTRAS,
                label="Tips",
                cost_per_person=tips_cost_per_person,
                headcount=headcount,
                currency=tips_currency,
            )
        )
    elif visa_cost_per_person or tips_cost_per_person:
        logger.debug(
            "Visa and tips ignored for domestic trip | visa=%s | tips=%s",
            visa_cost_per_person,
            tips_cost_per_person,
        )
    items.append(
        per_person_item(
            category=CostCategory.EXTRAS,
            label="Insurance",
            cost_per_person=insurance_cost_per_person,
            headcount=headcount,
            currency=insurance_currency,
        )
    )
    return items


def accommodation_cost_item(line_item: AccommodationLineItem) -> CostLineItem:
    return CostLineItem(
        category=CostCategory.ACCOMMODATION,
        label=f"{line_item.hotel_name} ({line_item.city})",
        amount=line_item.total_cost,
        currency=line_item.currency,
    )


def aggregate_costs(
    line_items: Iterable[CostLineItem],
    rate_table: CurrencyRateTable,
) -> TripCostBreakdown:
    """Convert each item on its own, then sum per category.

    ``math.fsum`` is exact up to the final rounding, so the totals do not
    depend on the order the items arrive in.
    """
    converted: dict[CostCategory, list[float]] = defaultdict(list)
    visible_overheads: list[float] = []
    for item in line_items:
        validate_non_negative(f"{item.label} amount", item.amount)
        amount_in_reporting = convert(item.amount, item.currency, rate_table)
        converted[item.category].append(amount_in_reporting)
        if item.category is CostCategory.OVERHEADS and not item.hide_from_client:
            visible_overheads.append(amount_in_reporting)

    breakdown = TripCostBreakdown(
        transport=math.fsum(converted[CostCategory.TRANSPORT]),
        accommodation=math.fsum(converted[CostCategory.ACCOMMODATION]),
        meals=math.fsum(converted[CostCategory.MEALS]),
        activities=math.fsum(converted[CostCategory.ACTIVITIES]),
        extras=math.fsum(converted[CostCategory.EXTRAS]),
        overheads=math.fsum(converted[CostCategory.OVERHEADS]),
        client_visible_overheads=math.fsum(visible_overheads),
    )
    logger.debug(
        (
            "Costs aggregated | transport=%.2f | accommodation=%.2f | meals=%.2f | "
            "activities=%.2f | extras=%.2f | overheads=%.2f | subtotal=%.2f"
        ),
        breakdown.transport,
        breakdown.accommodation,
        breakdown.meals,
        breakdown.activities,
        breakdown.extras,
        breakdown.overheads,
        breakdown.subtotal,
    )
    return breakdown
