"""Division of the grand total across billable participants."""

from __future__ import annotations

from collections.abc import Mapping

from trip_pricing.domain.categories import categories_for_trip_type
from trip_pricing.domain.models import ParticipantCategoryId, TripType


def chargeable_headcount(
    participants: Mapping[ParticipantCategoryId, int],
    trip_type: TripType,
) -> int:
    """Count the participants who share the bill.

    VXplorers never pay. On institute trips faculty travel free as well, so
    only students are billed.
    """
    billable = 0
    for category in categories_for_trip_type(trip_type):
        if category.excluded_from_billing:
            continue
        if trip_type is TripType.INSTITUTE and category.is_faculty:
            continue
        billable += participants.get(category.category_id, 0)
    return billable


def cost_per_participant(grand_total: float, billable_headcount: int) -> float:
    if billable_headcount <= 0:
        return 0.0
    return grand_total / billable_headcount
