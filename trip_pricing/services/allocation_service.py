"""Participant-to-room allocation using greedy packing or CP-SAT cost search."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from ortools.sat.python import cp_model

from trip_pricing.domain.categories import categories_for_trip_type, normalize_participants
from trip_pricing.domain.constraints import (
    OptimizerConfig,
    validate_optimizer_config,
    validate_room_types,
)
from trip_pricing.domain.errors import (
    AllocationInfeasibleError,
    PricingValidationError,
    RoomConfigurationError,
)
from trip_pricing.domain.models import (
    AllocationMethod,
    AllocationStrategy,
    CategoryAllocation,
    ParticipantCategory,
    ParticipantCategoryId,
    PreferenceGroup,
    RoomAllocationResult,
    RoomTypeBreakdown,
    RoomTypeConfig,
    TripType,
)
from trip_pricing.utils.config import Settings, get_settings
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)

SINGLE_ROOM_LABEL = "single"


@dataclass(frozen=True)
class BuildArtifacts:
    model: Any
    variables: dict[str, Any]
    scaled_costs: dict[str, int]
    upper_bound: int


@dataclass(frozen=True)
class SolveOutcome:
    status_name: str
    breakdown: Optional[list[RoomTypeBreakdown]]

    @property
    def is_optimal(self) -> bool:
        return self.breakdown is not None


def resolve_candidate_room_types(
    room_types: list[RoomTypeConfig],
    preferences: Optional[list[str]] = None,
) -> list[RoomTypeConfig]:
    """Return room types in allocation priority order.

    With preferences, only the preferred types are used, in preference order.
    Without, every type is used from largest to smallest capacity.
    """
    if not room_types:
        raise RoomConfigurationError("No room types available")

    if preferences:
        by_label = {room_type.room_type.strip().lower(): room_type for room_type in room_types}
        ordered: list[RoomTypeConfig] = []
        for preference in preferences:
            room_type = by_label.get(preference.strip().lower())
            if room_type is not None and room_type not in ordered:
                ordered.append(room_type)
        if not ordered:
            raise RoomConfigurationError("No valid room types found matching preferences")
        return ordered

    return sorted(room_types, key=lambda room_type: room_type.capacity_per_room, reverse=True)


def _build_breakdown(
    room_counts: list[tuple[RoomTypeConfig, int]],
    headcount: int,
) -> list[RoomTypeBreakdown]:
    breakdown: list[RoomTypeBreakdown] = []
    remaining = headcount
    for room_type, number_of_rooms in room_counts:
        if number_of_rooms <= 0:
            continue
        beds = number_of_rooms * room_type.capacity_per_room
        occupants = min(remaining, beds)
        remaining -= occupants
        breakdown.append(
            RoomTypeBreakdown(
                room_type=room_type.room_type,
                capacity_per_room=room_type.capacity_per_room,
                number_of_rooms=number_of_rooms,
                people_accommodated=beds,
                cost_per_room=room_type.cost_per_room,
                occupants=occupants,
            )
        )
    return breakdown


def breakdown_cost(breakdown: list[RoomTypeBreakdown]) -> float:
    return math.fsum(entry.total_cost for entry in breakdown)


def allocate_greedy(
    headcount: int,
    room_types: list[RoomTypeConfig],
    preferences: Optional[list[str]] = None,
) -> list[RoomTypeBreakdown]:
    """Whole rooms in priority order, then one extra room of the smallest type."""
    if headcount == 0:
        return []

    candidates = resolve_candidate_room_types(room_types, preferences)
    room_counts: dict[str, int] = {}
    used_types: list[RoomTypeConfig] = []
    remaining = headcount

    for room_type in candidates:
        if remaining == 0:
            break
        rooms_needed = remaining // room_type.capacity_per_room
        if rooms_needed > 0:
            room_counts[room_type.room_type] = rooms_needed
            used_types.append(room_type)
            remaining -= rooms_needed * room_type.capacity_per_room

    if remaining > 0:
        # remaining is below every candidate capacity here, so one room suffices
        smallest = min(candidates, key=lambda room_type: room_type.capacity_per_room)
        if smallest not in used_types:
            used_types.append(smallest)
        room_counts[smallest.room_type] = room_counts.get(smallest.room_type, 0) + 1

    return _build_breakdown(
        [(room_type, room_counts[room_type.room_type]) for room_type in used_types],
        headcount,
    )


def allocate_single_occupancy(
    headcount: int,
    room_types: list[RoomTypeConfig],
) -> list[RoomTypeBreakdown]:
    """One capacity-1 room per person, preferring a type labelled "single"."""
    if headcount == 0:
        return []

    single_types = [room_type for room_type in room_types if room_type.capacity_per_room == 1]
    if not single_types:
        raise RoomConfigurationError("Single room type is required for faculty allocation")

    chosen = next(
        (
            room_type
            for room_type in single_types
            if room_type.room_type.strip().lower() == SINGLE_ROOM_LABEL
        ),
        single_types[0],
    )
    return _build_breakdown([(chosen, headcount)], headcount)


def build_model(
    *,
    headcount: int,
    candidates: list[RoomTypeConfig],
    config: OptimizerConfig,
) -> BuildArtifacts:
    """Build the CP-SAT room-count model for one category."""
    model = cp_model.CpModel()
    min_capacity = min(room_type.capacity_per_room for room_type in candidates)
    upper_bound = math.ceil(headcount / min_capacity)

    variables: dict[str, cp_model.IntVar] = {}
    scaled_costs: dict[str, int] = {}
    for index, room_type in enumerate(candidates):
        variables[room_type.room_type] = model.NewIntVar(0, upper_bound, f"rooms_{index}")
        scaled_costs[room_type.room_type] = int(round(room_type.cost_per_room * config.objective_scale))

    model.Add(
        sum(
            room_type.capacity_per_room * variables[room_type.room_type]
            for room_type in candidates
        )
        >= headcount
    )

    # Total rooms never reach this weight, so cost dominates and room count breaks ties.
    tie_breaker_weight = upper_bound * len(candidates) + 1
    model.Minimize(
        sum(
            (scaled_costs[label] * tie_breaker_weight + 1) * variable
            for label, variable in variables.items()
        )
    )
    logger.debug(
        "Room model built | headcount=%s | room_types=%s | upper_bound=%s",
        headcount,
        len(candidates),
        upper_bound,
    )
    return BuildArtifacts(
        model=model,
        variables=variables,
        scaled_costs=scaled_costs,
        upper_bound=upper_bound,
    )


def solve_model(
    *,
    artifacts: BuildArtifacts,
    headcount: int,
    candidates: list[RoomTypeConfig],
    config: OptimizerConfig,
) -> SolveOutcome:
    """Solve within the configured budget; only proven optima carry a breakdown."""
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(config.max_time_seconds)
    solver.parameters.max_number_of_conflicts = int(config.max_conflicts)
    solver.parameters.num_workers = config.workers
    solver.parameters.random_seed = config.random_seed

    status = solver.Solve(artifacts.model)
    status_name = solver.StatusName(status)
    if status == cp_model.INFEASIBLE:
        raise AllocationInfeasibleError(
            f"Cannot house {headcount} people with the configured room types"
        )
    if status != cp_model.OPTIMAL:
        return SolveOutcome(status_name=status_name, breakdown=None)

    room_counts = [
        (room_type, int(solver.Value(artifacts.variables[room_type.room_type])))
        for room_type in candidates
    ]
    return SolveOutcome(
        status_name=status_name,
        breakdown=_build_breakdown(room_counts, headcount),
    )


def optimize_with_fallback(
    *,
    headcount: int,
    room_types: list[RoomTypeConfig],
    preferences: Optional[list[str]],
    config: OptimizerConfig,
) -> tuple[list[RoomTypeBreakdown], AllocationMethod]:
    """Cheapest feasible breakdown, or greedy when the search budget runs out."""
    if headcount == 0:
        return [], AllocationMethod.COST_OPTIMIZED

    candidates = resolve_candidate_room_types(room_types, preferences)
    greedy_breakdown = allocate_greedy(headcount, room_types, preferences)

    artifacts = build_model(headcount=headcount, candidates=candidates, config=config)
    outcome = solve_model(
        artifacts=artifacts,
        headcount=headcount,
        candidates=candidates,
        config=config,
    )
    if not outcome.is_optimal:
        logger.warning(
            "Room search budget exhausted, using greedy | status=%s | headcount=%s",
            outcome.status_name,
            headcount,
        )
        return greedy_breakdown, AllocationMethod.GREEDY_FALLBACK

    optimized_breakdown = outcome.breakdown or []
    if breakdown_cost(optimized_breakdown) > breakdown_cost(greedy_breakdown):
        # Only reachable when cost scaling rounds away sub-unit differences.
        logger.warning(
            "Optimized rooms cost more than greedy after rounding | headcount=%s",
            headcount,
        )
        return greedy_breakdown, AllocationMethod.GREEDY_FALLBACK
    return optimized_breakdown, AllocationMethod.COST_OPTIMIZED


def allocate_category(
    *,
    category: ParticipantCategory,
    headcount: int,
    room_types: list[RoomTypeConfig],
    preferences: Optional[list[str]],
    strategy: AllocationStrategy,
    config: OptimizerConfig,
) -> CategoryAllocation:
    if category.always_single_occupancy:
        breakdown = allocate_single_occupancy(headcount, room_types)
        method = AllocationMethod.SINGLE_OCCUPANCY
    elif strategy is AllocationStrategy.COST_OPTIMIZED:
        breakdown, method = optimize_with_fallback(
            headcount=headcount,
            room_types=room_types,
            preferences=preferences,
            config=config,
        )
    else:
        breakdown = allocate_greedy(headcount, room_types, preferences)
        method = AllocationMethod.GREEDY

    return CategoryAllocation(
        category_id=category.category_id,
        headcount=headcount,
        breakdown=breakdown,
        method=method,
    )


def allocate_rooms(
    *,
    participants: Mapping[ParticipantCategoryId, int],
    room_types: list[RoomTypeConfig],
    preferences: Optional[Mapping[PreferenceGroup, list[str]]],
    trip_type: TripType,
    strategy: AllocationStrategy,
    config: OptimizerConfig,
) -> RoomAllocationResult:
    """Allocate every participant category of the trip type independently."""
    headcounts = normalize_participants(participants, trip_type)
    validate_room_types(room_types)
    if strategy is AllocationStrategy.COST_OPTIMIZED:
        validate_optimizer_config(config)
    if not room_types and sum(headcounts.values()) > 0:
        raise RoomConfigurationError("Please add at least one room type configuration")

    resolved_preferences = preferences or {}
    allocations: dict[ParticipantCategoryId, CategoryAllocation] = {}
    for category in categories_for_trip_type(trip_type):
        allocation = allocate_category(
            category=category,
            headcount=headcounts[category.category_id],
            room_types=room_types,
            preferences=resolved_preferences.get(category.preference_group),
            strategy=strategy,
            config=config,
        )
        allocations[category.category_id] = allocation
        if allocation.headcount:
            logger.debug(
                "Category allocated | category=%s | headcount=%s | rooms=%s | method=%s",
                category.category_id.value,
                allocation.headcount,
                allocation.total_rooms,
                allocation.method.value,
            )

    result = RoomAllocationResult(allocations=allocations)
    logger.info(
        "Room allocation completed | trip_type=%s | strategy=%s | total_rooms=%s | fallback=%s",
        trip_type.value,
        strategy.value,
        result.total_rooms,
        result.used_fallback,
    )
    return result


def validate_room_allocation(
    participants: Mapping[ParticipantCategoryId, int],
    result: RoomAllocationResult,
    trip_type: TripType,
) -> list[str]:
    """List human-readable problems with an allocation; empty means consistent."""
    errors: list[str] = []
    for category in categories_for_trip_type(trip_type):
        expected = participants.get(category.category_id, 0)
        allocation = result.allocations.get(category.category_id)
        accommodated = allocation.people_accommodated if allocation is not None else 0
        if expected > 0 and accommodated < expected:
            errors.append(
                f"{category.display_name}: Insufficient rooms "
                f"({expected} people, only {accommodated} can be accommodated)"
            )
        if category.always_single_occupancy and allocation is not None:
            if any(entry.capacity_per_room != 1 for entry in allocation.breakdown):
                errors.append(f"{category.display_name} must have single rooms only")
    return errors


def room_type_presets() -> dict[str, list[RoomTypeConfig]]:
    single = RoomTypeConfig(room_type="Single", capacity_per_room=1, cost_per_room=0.0)
    double = RoomTypeConfig(room_type="Double", capacity_per_room=2, cost_per_room=0.0)
    triple = RoomTypeConfig(room_type="Triple", capacity_per_room=3, cost_per_room=0.0)
    quad = RoomTypeConfig(room_type="Quad", capacity_per_room=4, cost_per_room=0.0)
    return {
        "Single Only": [single],
        "Double Only": [double],
        "Triple Only": [triple],
        "Double + Triple": [double, triple],
        "Single + Double": [single, double],
        "All Types": [single, double, triple, quad],
    }


def default_room_preferences(trip_type: TripType) -> dict[PreferenceGroup, list[str]]:
    if trip_type is TripType.COMMERCIAL:
        return {
            PreferenceGroup.PARTICIPANTS: ["double", "triple"],
            PreferenceGroup.COMMERCIAL_VXPLORERS: ["double", "triple"],
        }
    return {
        PreferenceGroup.STUDENTS: ["double", "triple"],
        PreferenceGroup.FACULTY: ["single"],
        PreferenceGroup.VXPLORERS: ["double", "triple"],
    }


class RoomAllocationService:
    """Settings-aware entry point for the allocation engine."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def optimizer_config(self) -> OptimizerConfig:
        return OptimizerConfig(
            max_time_seconds=self._settings.optimizer_max_time_seconds,
            max_conflicts=self._settings.optimizer_max_conflicts,
            random_seed=self._settings.optimizer_random_seed,
            objective_scale=self._settings.objective_scale,
            workers=self._settings.optimizer_workers,
        )

    def resolve_strategy(self, strategy: Optional[AllocationStrategy | str]) -> AllocationStrategy:
        raw_strategy = strategy if strategy is not None else self._settings.default_allocation_strategy
        try:
            return AllocationStrategy(raw_strategy)
        except ValueError as exc:
            raise PricingValidationError(f"Unknown allocation strategy '{raw_strategy}'") from exc

    def allocate(
        self,
        *,
        participants: Mapping[ParticipantCategoryId, int],
        room_types: list[RoomTypeConfig],
        trip_type: TripType,
        preferences: Optional[Mapping[PreferenceGroup, list[str]]] = None,
        strategy: Optional[AllocationStrategy | str] = None,
    ) -> RoomAllocationResult:
        return allocate_rooms(
            participants=participants,
            room_types=room_types,
            preferences=preferences,
            trip_type=trip_type,
            strategy=self.resolve_strategy(strategy),
            config=self.optimizer_config(),
        )
