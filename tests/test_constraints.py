"""Tests for optimizer, room inventory and headcount validation."""

from __future__ import annotations

import pytest

from trip_pricing.domain.categories import normalize_participants
from trip_pricing.domain.constraints import (
    OptimizerConfig,
    validate_non_negative,
    validate_optimizer_config,
    validate_room_types,
)
from trip_pricing.domain.errors import PricingValidationError
from trip_pricing.domain.models import ParticipantCategoryId, RoomTypeConfig, TripType


def valid_config(**overrides) -> OptimizerConfig:
    """Return a valid baseline OptimizerConfig, optionally overriding fields."""
    defaults = {
        "max_time_seconds": 2.0,
        "max_conflicts": 100000,
        "random_seed": 42,
        "objective_scale": 100,
        "workers": 1,
    }
    defaults.update(overrides)
    return OptimizerConfig(**defaults)


# --- Optimizer config ---

def test_valid_config_passes() -> None:
    validate_optimizer_config(valid_config())


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_time_seconds": 0},
        {"max_conflicts": 0},
        {"random_seed": -1},
        {"objective_scale": 0},
        {"workers": 0},
    ],
)
def test_invalid_optimizer_config_raises(overrides) -> None:
    with pytest.raises(ValueError):
        validate_optimizer_config(valid_config(**overrides))


# --- Room inventory ---

def test_capacity_below_one_is_rejected() -> None:
    with pytest.raises(PricingValidationError, match='Invalid capacity for room type "Dorm"'):
        validate_room_types([RoomTypeConfig("Dorm", 0, 500.0)])


def test_negative_room_cost_is_rejected() -> None:
    with pytest.raises(PricingValidationError, match='Invalid cost for room type "Double"'):
        validate_room_types([RoomTypeConfig("Double", 2, -1.0)])


def test_blank_label_is_rejected() -> None:
    with pytest.raises(PricingValidationError):
        validate_room_types([RoomTypeConfig("  ", 2, 100.0)])


def test_duplicate_labels_compare_case_insensitively() -> None:
    with pytest.raises(PricingValidationError, match="Duplicate"):
        validate_room_types(
            [RoomTypeConfig("Double", 2, 100.0), RoomTypeConfig("double", 2, 120.0)]
        )


def test_validate_non_negative_allows_zero() -> None:
    validate_non_negative("profit", 0)
    with pytest.raises(PricingValidationError, match="profit must be >= 0"):
        validate_non_negative("profit", -0.01)


# --- Headcounts ---

def test_missing_categories_default_to_zero() -> None:
    normalized = normalize_participants({ParticipantCategoryId.BOYS: 4}, TripType.INSTITUTE)

    assert normalized[ParticipantCategoryId.BOYS] == 4
    assert normalized[ParticipantCategoryId.GIRLS] == 0
    assert ParticipantCategoryId.COMMERCIAL_MALE not in normalized
    assert len(normalized) == 6


def test_negative_headcount_is_rejected() -> None:
    with pytest.raises(PricingValidationError):
        normalize_participants({ParticipantCategoryId.GIRLS: -1}, TripType.INSTITUTE)


def test_non_integer_headcount_is_rejected() -> None:
    with pytest.raises(PricingValidationError):
        normalize_participants({ParticipantCategoryId.GIRLS: 2.5}, TripType.INSTITUTE)


def test_category_of_other_trip_type_is_rejected() -> None:
    with pytest.raises(PricingValidationError, match="not valid for commercial trips"):
        normalize_participants({ParticipantCategoryId.BOYS: 3}, TripType.COMMERCIAL)


def test_zero_count_for_other_trip_type_is_ignored() -> None:
    normalized = normalize_participants(
        {ParticipantCategoryId.BOYS: 0, ParticipantCategoryId.COMMERCIAL_OTHER: 2},
        TripType.COMMERCIAL,
    )
    assert normalized[ParticipantCategoryId.COMMERCIAL_OTHER] == 2
    assert ParticipantCategoryId.BOYS not in normalized
