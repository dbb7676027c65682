"""Participant category catalog keyed by trip type."""

from __future__ import annotations

from collections.abc import Mapping

from trip_pricing.domain.errors import PricingValidationError
from trip_pricing.domain.models import (
    ParticipantCategory,
    ParticipantCategoryId,
    PreferenceGroup,
    TripType,
)


CATEGORY_CATALOG: dict[ParticipantCategoryId, ParticipantCategory] = {
    definition.category_id: definition
    for definition in (
        ParticipantCategory(
            category_id=ParticipantCategoryId.BOYS,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.STUDENTS,
            display_name="Boys",
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.GIRLS,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.STUDENTS,
            display_name="Girls",
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.MALE_FACULTY,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.FACULTY,
            display_name="Male Faculty",
            always_single_occupancy=True,
            is_faculty=True,
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.FEMALE_FACULTY,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.FACULTY,
            display_name="Female Faculty",
            always_single_occupancy=True,
            is_faculty=True,
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.MALE_VXPLORERS,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.VXPLORERS,
            display_name="Male VXplorers",
            excluded_from_billing=True,
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.FEMALE_VXPLORERS,
            trip_type=TripType.INSTITUTE,
            preference_group=PreferenceGroup.VXPLORERS,
            display_name="Female VXplorers",
            excluded_from_billing=True,
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.COMMERCIAL_MALE,
            trip_type=TripType.COMMERCIAL,
            preference_group=PreferenceGroup.PARTICIPANTS,
            display_name="Male Participants",
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.COMMERCIAL_FEMALE,
            trip_type=TripType.COMMERCIAL,
            preference_group=PreferenceGroup.PARTICIPANTS,
            display_name="Female Participants",
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.COMMERCIAL_OTHER,
            trip_type=TripType.COMMERCIAL,
            preference_group=PreferenceGroup.PARTICIPANTS,
            display_name="Other Participants",
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.COMMERCIAL_MALE_VXPLORERS,
            trip_type=TripType.COMMERCIAL,
            preference_group=PreferenceGroup.COMMERCIAL_VXPLORERS,
            display_name="Male VXplorers",
            excluded_from_billing=True,
        ),
        ParticipantCategory(
            category_id=ParticipantCategoryId.COMMERCIAL_FEMALE_VXPLORERS,
            trip_type=TripType.COMMERCIAL,
            preference_group=PreferenceGroup.COMMERCIAL_VXPLORERS,
            display_name="Female VXplorers",
            excluded_from_billing=True,
        ),
    )
}


def categories_for_trip_type(trip_type: TripType) -> list[ParticipantCategory]:
    """Return the catalog entries of one trip type in declaration order."""
    return [
        definition
        for definition in CATEGORY_CATALOG.values()
        if definition.trip_type is trip_type
    ]


def get_category(category_id: ParticipantCategoryId) -> ParticipantCategory:
    return CATEGORY_CATALOG[category_id]


def normalize_participants(
    participants: Mapping[ParticipantCategoryId, int],
    trip_type: TripType,
) -> dict[ParticipantCategoryId, int]:
    """Validate headcounts and expand them to every category of the trip type.

    Categories missing from ``participants`` count as zero. A non-zero count for
    a category that belongs to the other trip type is rejected.
    """
    allowed = {definition.category_id for definition in categories_for_trip_type(trip_type)}
    for category_id, headcount in participants.items():
        if isinstance(headcount, bool) or not isinstance(headcount, int):
            raise PricingValidationError(
                f"Headcount for '{category_id.value}' must be an integer"
            )
        if headcount < 0:
            raise PricingValidationError(
                f"Headcount for '{category_id.value}' must be >= 0, got {headcount}"
            )
        if category_id not in allowed and headcount > 0:
            raise PricingValidationError(
                f"Category '{category_id.value}' is not valid for {trip_type.value} trips"
            )
    return {
        category_id: int(participants.get(category_id, 0))
        for category_id in CATEGORY_CATALOG
        if category_id in allowed
    }


def total_headcount(participants: Mapping[ParticipantCategoryId, int]) -> int:
    return sum(participants.values())
