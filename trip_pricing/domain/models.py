"""Domain models for room allocation and trip cost aggregation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TripType(str, Enum):
    INSTITUTE = "institute"
    COMMERCIAL = "commercial"


class TripCategory(str, Enum):
    DOMESTIC = "domestic"
    INTERNATIONAL = "international"


class ParticipantCategoryId(str, Enum):
    BOYS = "boys"
    GIRLS = "girls"
    MALE_FACULTY = "maleFaculty"
    FEMALE_FACULTY = "femaleFaculty"
    MALE_VXPLORERS = "maleVXplorers"
    FEMALE_VXPLORERS = "femaleVXplorers"
    COMMERCIAL_MALE = "commercialMale"
    COMMERCIAL_FEMALE = "commercialFemale"
    COMMERCIAL_OTHER = "commercialOther"
    COMMERCIAL_MALE_VXPLORERS = "commercialMaleVXplorers"
    COMMERCIAL_FEMALE_VXPLORERS = "commercialFemaleVXplorers"


class PreferenceGroup(str, Enum):
    STUDENTS = "students"
    FACULTY = "faculty"
    VXPLORERS = "vxplorers"
    PARTICIPANTS = "participants"
    COMMERCIAL_VXPLORERS = "commercialVXplorers"


class AllocationStrategy(str, Enum):
    GREEDY = "greedy"
    COST_OPTIMIZED = "cost_optimized"


class AllocationMethod(str, Enum):
    """How a category's breakdown was actually produced."""

    GREEDY = "greedy"
    COST_OPTIMIZED = "cost_optimized"
    GREEDY_FALLBACK = "greedy_fallback"
    SINGLE_OCCUPANCY = "single_occupancy"


class CostCategory(str, Enum):
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    MEALS = "meals"
    ACTIVITIES = "activities"
    EXTRAS = "extras"
    OVERHEADS = "overheads"


@dataclass(frozen=True)
class ParticipantCategory:
    category_id: ParticipantCategoryId
    trip_type: TripType
    preference_group: PreferenceGroup
    display_name: str
    always_single_occupancy: bool = False
    excluded_from_billing: bool = False
    is_faculty: bool = False


@dataclass(frozen=True)
class RoomTypeConfig:
    room_type: str
    capacity_per_room: int
    cost_per_room: float


@dataclass(frozen=True)
class RoomTypeBreakdown:
    room_type: str
    capacity_per_room: int
    number_of_rooms: int
    people_accommodated: int
    cost_per_room: float
    occupants: int

    @property
    def total_cost(self) -> float:
        return self.number_of_rooms * self.cost_per_room


@dataclass(frozen=True)
class CategoryAllocation:
    category_id: ParticipantCategoryId
    headcount: int
    breakdown: list[RoomTypeBreakdown]
    method: AllocationMethod

    @property
    def total_rooms(self) -> int:
        return sum(entry.number_of_rooms for entry in self.breakdown)

    @property
    def people_accommodated(self) -> int:
        return sum(entry.people_accommodated for entry in self.breakdown)

    @property
    def nightly_cost(self) -> float:
        return sum(entry.total_cost for entry in self.breakdown)


@dataclass(frozen=True)
class RoomAllocationResult:
    allocations: dict[ParticipantCategoryId, CategoryAllocation]

    @property
    def breakdown(self) -> dict[ParticipantCategoryId, list[RoomTypeBreakdown]]:
        return {
            category_id: allocation.breakdown
            for category_id, allocation in self.allocations.items()
        }

    @property
    def rooms_by_category(self) -> dict[ParticipantCategoryId, int]:
        return {
            category_id: allocation.total_rooms
            for category_id, allocation in self.allocations.items()
        }

    @property
    def total_rooms(self) -> int:
        return sum(allocation.total_rooms for allocation in self.allocations.values())

    @property
    def used_fallback(self) -> bool:
        return any(
            allocation.method is AllocationMethod.GREEDY_FALLBACK
            for allocation in self.allocations.values()
        )


@dataclass(frozen=True)
class CurrencyRate:
    code: str
    rate_to_reporting_currency: float
    effective_date: Optional[str] = None


@dataclass(frozen=True)
class AccommodationInput:
    hotel_name: str
    city: str
    nights: int
    currency: str
    room_types: list[RoomTypeConfig]
    preferences: dict[PreferenceGroup, list[str]] = field(default_factory=dict)
    breakfast_included: bool = True


@dataclass(frozen=True)
class AccommodationLineItem:
    hotel_name: str
    city: str
    nights: int
    currency: str
    room_types: list[RoomTypeConfig]
    preferences: dict[PreferenceGroup, list[str]]
    breakfast_included: bool
    allocation: RoomAllocationResult
    nightly_cost: float
    total_cost: float
    total_cost_in_reporting_currency: float

    @property
    def total_rooms(self) -> int:
        return self.allocation.total_rooms


@dataclass(frozen=True)
class CostLineItem:
    category: CostCategory
    label: str
    amount: float
    currency: str
    hide_from_client: bool = False


@dataclass(frozen=True)
class TripCostBreakdown:
    transport: float
    accommodation: float
    meals: float
    activities: float
    extras: float
    overheads: float
    client_visible_overheads: float

    @property
    def subtotal(self) -> float:
        return math.fsum(self.by_category().values())

    def by_category(self) -> dict[CostCategory, float]:
        return {
            CostCategory.TRANSPORT: self.transport,
            CostCategory.ACCOMMODATION: self.accommodation,
            CostCategory.MEALS: self.meals,
            CostCategory.ACTIVITIES: self.activities,
            CostCategory.EXTRAS: self.extras,
            CostCategory.OVERHEADS: self.overheads,
        }


@dataclass(frozen=True)
class FareInput:
    """A per-person fare; used for both flights and trains."""

    label: str
    cost_per_person: float
    currency: str


@dataclass(frozen=True)
class BusInput:
    label: str
    cost_per_bus: float
    quantity: int
    number_of_days: int
    currency: str


@dataclass(frozen=True)
class MealsInput:
    lunch_cost_per_person: float
    dinner_cost_per_person: float
    days: int
    currency: str
    breakfast_cost_per_person: float = 0.0


@dataclass(frozen=True)
class ActivityInput:
    label: str
    entry_cost: float
    currency: str
    transport_cost: float = 0.0
    guide_cost: float = 0.0


@dataclass(frozen=True)
class OverheadInput:
    label: str
    amount: float
    currency: str
    hide_from_client: bool = False


@dataclass(frozen=True)
class ExtrasInput:
    visa_cost_per_person: float = 0.0
    visa_currency: str = "INR"
    tips_cost_per_person: float = 0.0
    tips_currency: str = "INR"
    insurance_cost_per_person: float = 0.0
    insurance_currency: str = "INR"


@dataclass(frozen=True)
class TripQuoteRequest:
    trip_type: TripType
    trip_category: TripCategory
    participants: dict[ParticipantCategoryId, int]
    accommodations: list[AccommodationInput] = field(default_factory=list)
    flights: list[FareInput] = field(default_factory=list)
    trains: list[FareInput] = field(default_factory=list)
    buses: list[BusInput] = field(default_factory=list)
    meals: Optional[MealsInput] = None
    activities: list[ActivityInput] = field(default_factory=list)
    overheads: list[OverheadInput] = field(default_factory=list)
    extras: Optional[ExtrasInput] = None
    profit: float = 0.0
    gst_percentage: Optional[float] = None
    tcs_percentage: Optional[float] = None
    strategy: Optional[AllocationStrategy] = None


@dataclass(frozen=True)
class TaxComputation:
    subtotal: float
    profit: float
    admin_subtotal: float
    gst_percentage: float
    gst_amount: float
    tcs_percentage: float
    tcs_amount: float
    grand_total: float


@dataclass(frozen=True)
class TripQuote:
    trip_type: TripType
    trip_category: TripCategory
    accommodations: list[AccommodationLineItem]
    line_items: list[CostLineItem]
    cost_breakdown: TripCostBreakdown
    taxes: TaxComputation
    total_headcount: int
    chargeable_headcount: int
    cost_per_participant: float

    @property
    def used_fallback(self) -> bool:
        return any(item.allocation.used_fallback for item in self.accommodations)


@dataclass(frozen=True)
class ActualExpenses:
    transport: float
    accommodation: float
    meals: float
    activities: float
    extras: float
    overheads: float
    explanation: str = ""

    def by_category(self) -> dict[CostCategory, float]:
        return {
            CostCategory.TRANSPORT: self.transport,
            CostCategory.ACCOMMODATION: self.accommodation,
            CostCategory.MEALS: self.meals,
            CostCategory.ACTIVITIES: self.activities,
            CostCategory.EXTRAS: self.extras,
            CostCategory.OVERHEADS: self.overheads,
        }


@dataclass(frozen=True)
class CategoryVariance:
    category: CostCategory
    expected: float
    actual: float
    difference: float
    variance_percentage: float


@dataclass(frozen=True)
class PostTripAnalysis:
    categories: list[CategoryVariance]
    total_expected: float
    total_actual: float
    profit_loss: float
    profit_loss_percentage: float
    variance_explanation: str
    is_finalized: bool
