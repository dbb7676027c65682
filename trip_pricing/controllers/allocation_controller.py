"""HTTP controller layer for room allocation and room master data."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from trip_pricing.controllers.dependencies import get_allocation_service
from trip_pricing.domain.errors import AllocationInfeasibleError, PricingError
from trip_pricing.domain.models import (
    AllocationMethod,
    AllocationStrategy,
    ParticipantCategoryId,
    PreferenceGroup,
    RoomAllocationResult,
    RoomTypeConfig,
    TripType,
)
from trip_pricing.services.allocation_service import (
    RoomAllocationService,
    default_room_preferences,
    room_type_presets,
    validate_room_allocation,
)
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["allocation"])


class RoomTypeRequest(BaseModel):
    """Room inventory row; range checks are repeated in the domain layer."""

    room_type: str = Field(min_length=1)
    capacity_per_room: int
    cost_per_room: float

    def to_domain(self) -> RoomTypeConfig:
        return RoomTypeConfig(
            room_type=self.room_type,
            capacity_per_room=self.capacity_per_room,
            cost_per_room=self.cost_per_room,
        )


class AllocateRoomsRequest(BaseModel):
    trip_type: TripType
    participants: dict[ParticipantCategoryId, int] = Field(default_factory=dict)
    room_types: list[RoomTypeRequest] = Field(default_factory=list)
    preferences: dict[PreferenceGroup, list[str]] = Field(default_factory=dict)
    strategy: AllocationStrategy | None = None

    @field_validator("preferences")
    @classmethod
    def validate_preference_labels(
        cls,
        value: dict[PreferenceGroup, list[str]],
    ) -> dict[PreferenceGroup, list[str]]:
        for group, labels in value.items():
            if any(not label.strip() for label in labels):
                raise ValueError(f"preferences for '{group.value}' must not contain blank labels")
        return value


class RoomTypeBreakdownResponse(BaseModel):
    room_type: str
    capacity_per_room: int = Field(ge=1)
    number_of_rooms: int = Field(ge=0)
    people_accommodated: int = Field(ge=0)
    occupants: int = Field(ge=0)
    cost_per_room: float = Field(ge=0.0)
    total_cost: float = Field(ge=0.0)


class CategoryAllocationResponse(BaseModel):
    headcount: int = Field(ge=0)
    method: AllocationMethod
    total_rooms: int = Field(ge=0)
    breakdown: list[RoomTypeBreakdownResponse]


class AllocateRoomsResponse(BaseModel):
    allocations: dict[ParticipantCategoryId, CategoryAllocationResponse]
    total_rooms: int = Field(ge=0)
    used_fallback: bool
    warnings: list[str]


class RoomTypePresetResponse(BaseModel):
    room_type: str
    capacity_per_room: int = Field(ge=1)
    cost_per_room: float = Field(ge=0.0)


def to_allocation_response(
    result: RoomAllocationResult,
    warnings: list[str],
) -> AllocateRoomsResponse:
    return AllocateRoomsResponse(
        allocations={
            category_id: CategoryAllocationResponse(
                headcount=allocation.headcount,
                method=allocation.method,
                total_rooms=allocation.total_rooms,
                breakdown=[
                    RoomTypeBreakdownResponse(
                        room_type=entry.room_type,
                        capacity_per_room=entry.capacity_per_room,
                        number_of_rooms=entry.number_of_rooms,
                        people_accommodated=entry.people_accommodated,
                        occupants=entry.occupants,
                        cost_per_room=entry.cost_per_room,
                        total_cost=entry.total_cost,
                    )
                    for entry in allocation.breakdown
                ],
            )
            for category_id, allocation in result.allocations.items()
        },
        total_rooms=result.total_rooms,
        used_fallback=result.used_fallback,
        warnings=warnings,
    )


@router.post(
    "/allocate_rooms",
    response_model=AllocateRoomsResponse,
    status_code=status.HTTP_200_OK,
)
async def allocate_rooms(
    payload: AllocateRoomsRequest,
    service: RoomAllocationService = Depends(get_allocation_service),
) -> AllocateRoomsResponse:
    """Allocate rooms for every participant category of one property."""
    try:
        result = service.allocate(
            participants=payload.participants,
            room_types=[room_type.to_domain() for room_type in payload.room_types],
            trip_type=payload.trip_type,
            preferences=payload.preferences,
            strategy=payload.strategy,
        )
        warnings = validate_room_allocation(payload.participants, result, payload.trip_type)
        return to_allocation_response(result, warnings)
    except AllocationInfeasibleError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except PricingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to allocate rooms",
        ) from exc


@router.get(
    "/room_type_presets",
    response_model=dict[str, list[RoomTypePresetResponse]],
    status_code=status.HTTP_200_OK,
)
async def get_room_type_presets() -> dict[str, list[RoomTypePresetResponse]]:
    return {
        name: [
            RoomTypePresetResponse(
                room_type=room_type.room_type,
                capacity_per_room=room_type.capacity_per_room,
                cost_per_room=room_type.cost_per_room,
            )
            for room_type in room_types
        ]
        for name, room_types in room_type_presets().items()
    }


@router.get(
    "/default_preferences/{trip_type}",
    response_model=dict[PreferenceGroup, list[str]],
    status_code=status.HTTP_200_OK,
)
async def get_default_preferences(trip_type: TripType) -> dict[PreferenceGroup, list[str]]:
    return default_room_preferences(trip_type)
