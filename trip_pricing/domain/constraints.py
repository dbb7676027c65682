"""Domain-level validation rules for room allocation and pricing inputs."""

from __future__ import annotations

from dataclasses import dataclass

from trip_pricing.domain.errors import PricingValidationError
from trip_pricing.domain.models import RoomTypeConfig


@dataclass(frozen=True)
class OptimizerConfig:
    max_time_seconds: float
    max_conflicts: int
    random_seed: int
    objective_scale: int
    workers: int


def validate_optimizer_config(config: OptimizerConfig) -> None:
    if config.max_time_seconds <= 0:
        raise PricingValidationError("max_time_seconds must be > 0")
    if config.max_conflicts <= 0:
        raise PricingValidationError("max_conflicts must be > 0")
    if config.random_seed < 0:
        raise PricingValidationError("random_seed must be >= 0")
    if config.objective_scale <= 0:
        raise PricingValidationError("objective_scale must be > 0")
    if config.workers <= 0:
        raise PricingValidationError("workers must be > 0")


def validate_room_types(room_types: list[RoomTypeConfig]) -> None:
    """Reject malformed inventories before any allocation starts."""
    seen_labels: set[str] = set()
    for room_type in room_types:
        label = room_type.room_type.strip()
        if not label:
            raise PricingValidationError("Room type label must not be blank")
        if room_type.capacity_per_room < 1:
            raise PricingValidationError(f"Invalid capacity for room type \"{label}\"")
        if room_type.cost_per_room < 0:
            raise PricingValidationError(f"Invalid cost for room type \"{label}\"")
        key = label.lower()
        if key in seen_labels:
            raise PricingValidationError(f"Duplicate room type \"{label}\"")
        seen_labels.add(key)


def validate_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise PricingValidationError(f"{name} must be >= 0, got {value}")
