"""HTTP controller layer for trip quotes and post-trip analysis."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from trip_pricing.controllers.allocation_controller import (
    AllocateRoomsResponse,
    RoomTypeRequest,
    to_allocation_response,
)
from trip_pricing.controllers.dependencies import get_quote_service
from trip_pricing.domain.errors import AllocationInfeasibleError, PricingError
from trip_pricing.domain.models import (
    AccommodationInput,
    ActivityInput,
    ActualExpenses,
    AllocationStrategy,
    BusInput,
    CostCategory,
    CurrencyRate,
    ExtrasInput,
    FareInput,
    MealsInput,
    OverheadInput,
    ParticipantCategoryId,
    PreferenceGroup,
    TripCategory,
    TripCostBreakdown,
    TripQuote,
    TripQuoteRequest,
    TripType,
)
from trip_pricing.services.analysis_service import analyze_actual_expenses
from trip_pricing.services.currency_service import CurrencyRateTable
from trip_pricing.services.quote_service import TripQuoteService
from trip_pricing.utils.config import get_settings
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["quote"])


class CurrencyRateRequest(BaseModel):
    code: str = Field(min_length=1)
    rate_to_reporting_currency: float
    effective_date: str | None = None


class AccommodationRequest(BaseModel):
    hotel_name: str
    city: str = ""
    nights: int
    currency: str = Field(min_length=1)
    room_types: list[RoomTypeRequest] = Field(default_factory=list)
    preferences: dict[PreferenceGroup, list[str]] = Field(default_factory=dict)
    breakfast_included: bool = True


class FareRequest(BaseModel):
    label: str
    cost_per_person: float
    currency: str = Field(min_length=1)


class BusRequest(BaseModel):
    label: str = "Bus"
    cost_per_bus: float
    quantity: int
    number_of_days: int
    currency: str = Field(min_length=1)


class MealsRequest(BaseModel):
    breakfast_cost_per_person: float = 0.0
    lunch_cost_per_person: float = 0.0
    dinner_cost_per_person: float = 0.0
    days: int
    currency: str = Field(min_length=1)


class ActivityRequest(BaseModel):
    label: str
    entry_cost: float = 0.0
    transport_cost: float = 0.0
    guide_cost: float = 0.0
    currency: str = Field(min_length=1)


class OverheadRequest(BaseModel):
    label: str
    amount: float
    currency: str = Field(min_length=1)
    hide_from_client: bool = False


class ExtrasRequest(BaseModel):
    visa_cost_per_person: float = 0.0
    visa_currency: str = "INR"
    tips_cost_per_person: float = 0.0
    tips_currency: str = "INR"
    insurance_cost_per_person: float = 0.0
    insurance_currency: str = "INR"


class QuoteRequest(BaseModel):
    """Full planner state for one pricing pass."""

    trip_type: TripType
    trip_category: TripCategory
    participants: dict[ParticipantCategoryId, int] = Field(default_factory=dict)
    currency_rates: list[CurrencyRateRequest] = Field(default_factory=list)
    accommodations: list[AccommodationRequest] = Field(default_factory=list)
    flights: list[FareRequest] = Field(default_factory=list)
    trains: list[FareRequest] = Field(default_factory=list)
    buses: list[BusRequest] = Field(default_factory=list)
    meals: MealsRequest | None = None
    activities: list[ActivityRequest] = Field(default_factory=list)
    overheads: list[OverheadRequest] = Field(default_factory=list)
    extras: ExtrasRequest | None = None
    profit: float = 0.0
    gst_percentage: float | None = None
    tcs_percentage: float | None = None
    strategy: AllocationStrategy | None = None

    def to_domain(self) -> TripQuoteRequest:
        return TripQuoteRequest(
            trip_type=self.trip_type,
            trip_category=self.trip_category,
            participants=dict(self.participants),
            accommodations=[
                AccommodationInput(
                    hotel_name=item.hotel_name,
                    city=item.city,
                    nights=item.nights,
                    currency=item.currency,
                    room_types=[room_type.to_domain() for room_type in item.room_types],
                    preferences=dict(item.preferences),
                    breakfast_included=item.breakfast_included,
                )
                for item in self.accommodations
            ],
            flights=[FareInput(**item.model_dump()) for item in self.flights],
            trains=[FareInput(**item.model_dump()) for item in self.trains],
            buses=[BusInput(**item.model_dump()) for item in self.buses],
            meals=MealsInput(**self.meals.model_dump()) if self.meals is not None else None,
            activities=[ActivityInput(**item.model_dump()) for item in self.activities],
            overheads=[OverheadInput(**item.model_dump()) for item in self.overheads],
            extras=ExtrasInput(**self.extras.model_dump()) if self.extras is not None else None,
            profit=self.profit,
            gst_percentage=self.gst_percentage,
            tcs_percentage=self.tcs_percentage,
            strategy=self.strategy,
        )

    def rate_table(self) -> CurrencyRateTable:
        return CurrencyRateTable.from_records(
            CurrencyRate(
                code=item.code,
                rate_to_reporting_currency=item.rate_to_reporting_currency,
                effective_date=item.effective_date,
            )
            for item in self.currency_rates
        )


class CostBreakdownModel(BaseModel):
    transport: float = Field(ge=0.0)
    accommodation: float = Field(ge=0.0)
    meals: float = Field(ge=0.0)
    activities: float = Field(ge=0.0)
    extras: float = Field(ge=0.0)
    overheads: float = Field(ge=0.0)
    client_visible_overheads: float = Field(default=0.0, ge=0.0)
    subtotal: float = Field(default=0.0, ge=0.0)


class AccommodationResponse(BaseModel):
    hotel_name: str
    city: str
    nights: int = Field(ge=0)
    currency: str
    nightly_cost: float = Field(ge=0.0)
    total_cost: float = Field(ge=0.0)
    total_cost_in_reporting_currency: float = Field(ge=0.0)
    allocation: AllocateRoomsResponse


class LineItemResponse(BaseModel):
    category: CostCategory
    label: str
    amount: float = Field(ge=0.0)
    currency: str
    hide_from_client: bool


class TaxResponse(BaseModel):
    subtotal: float = Field(ge=0.0)
    profit: float = Field(ge=0.0)
    admin_subtotal: float = Field(ge=0.0)
    gst_percentage: float = Field(ge=0.0)
    gst_amount: float = Field(ge=0.0)
    tcs_percentage: float = Field(ge=0.0)
    tcs_amount: float = Field(ge=0.0)
    grand_total: float = Field(ge=0.0)


class QuoteResponse(BaseModel):
    trip_type: TripType
    trip_category: TripCategory
    accommodations: list[AccommodationResponse]
    line_items: list[LineItemResponse]
    cost_breakdown: CostBreakdownModel
    taxes: TaxResponse
    total_headcount: int = Field(ge=0)
    chargeable_headcount: int = Field(ge=0)
    cost_per_participant: float = Field(ge=0.0)
    used_fallback: bool


class AnalyzeActualsRequest(BaseModel):
    expected: CostBreakdownModel
    actual: CostBreakdownModel
    explanation: str = ""


class CategoryVarianceResponse(BaseModel):
    category: CostCategory
    expected: float
    actual: float
    difference: float
    variance_percentage: float


class AnalyzeActualsResponse(BaseModel):
    categories: list[CategoryVarianceResponse]
    total_expected: float
    total_actual: float
    profit_loss: float
    profit_loss_percentage: float
    variance_explanation: str
    is_finalized: bool


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str


def to_quote_response(quote: TripQuote) -> QuoteResponse:
    breakdown = quote.cost_breakdown
    return QuoteResponse(
        trip_type=quote.trip_type,
        trip_category=quote.trip_category,
        accommodations=[
            AccommodationResponse(
                hotel_name=line.hotel_name,
                city=line.city,
                nights=line.nights,
                currency=line.currency,
                nightly_cost=line.nightly_cost,
                total_cost=line.total_cost,
                total_cost_in_reporting_currency=line.total_cost_in_reporting_currency,
                allocation=to_allocation_response(line.allocation, warnings=[]),
            )
            for line in quote.accommodations
        ],
        line_items=[
            LineItemResponse(
                category=item.category,
                label=item.label,
                amount=item.amount,
                currency=item.currency,
                hide_from_client=item.hide_from_client,
            )
            for item in quote.line_items
        ],
        cost_breakdown=CostBreakdownModel(
            transport=breakdown.transport,
            accommodation=breakdown.accommodation,
            meals=breakdown.meals,
            activities=breakdown.activities,
            extras=breakdown.extras,
            overheads=breakdown.overheads,
            client_visible_overheads=breakdown.client_visible_overheads,
            subtotal=breakdown.subtotal,
        ),
        taxes=TaxResponse(
            subtotal=quote.taxes.subtotal,
            profit=quote.taxes.profit,
            admin_subtotal=quote.taxes.admin_subtotal,
            gst_percentage=quote.taxes.gst_percentage,
            gst_amount=quote.taxes.gst_amount,
            tcs_percentage=quote.taxes.tcs_percentage,
            tcs_amount=quote.taxes.tcs_amount,
            grand_total=quote.taxes.grand_total,
        ),
        total_headcount=quote.total_headcount,
        chargeable_headcount=quote.chargeable_headcount,
        cost_per_participant=quote.cost_per_participant,
        used_fallback=quote.used_fallback,
    )


@router.post(
    "/quote",
    response_model=QuoteResponse,
    status_code=status.HTTP_200_OK,
)
async def quote_trip(
    payload: QuoteRequest,
    service: TripQuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """Price the whole trip from scratch; nothing is cached between calls."""
    try:
        quote = service.quote(payload.to_domain(), payload.rate_table())
        return to_quote_response(quote)
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
        logger.exception("Unexpected quote failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to price trip",
        ) from exc


@router.post(
    "/analyze_actuals",
    response_model=AnalyzeActualsResponse,
    status_code=status.HTTP_200_OK,
)
async def analyze_actuals(payload: AnalyzeActualsRequest) -> AnalyzeActualsResponse:
    """Compare a finalized trip's quoted breakdown with what was actually spent."""
    expected = TripCostBreakdown(
        transport=payload.expected.transport,
        accommodation=payload.expected.accommodation,
        meals=payload.expected.meals,
        activities=payload.expected.activities,
        extras=payload.expected.extras,
        overheads=payload.expected.overheads,
        client_visible_overheads=payload.expected.client_visible_overheads,
    )
    actuals = ActualExpenses(
        transport=payload.actual.transport,
        accommodation=payload.actual.accommodation,
        meals=payload.actual.meals,
        activities=payload.actual.activities,
        extras=payload.actual.extras,
        overheads=payload.actual.overheads,
        explanation=payload.explanation,
    )
    try:
        analysis = analyze_actual_expenses(expected, actuals)
    except PricingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return AnalyzeActualsResponse(
        categories=[
            CategoryVarianceResponse(
                category=item.category,
                expected=item.expected,
                actual=item.actual,
                difference=item.difference,
                variance_percentage=item.variance_percentage,
            )
            for item in analysis.categories
        ],
        total_expected=analysis.total_expected,
        total_actual=analysis.total_actual,
        profit_loss=analysis.profit_loss,
        profit_loss_percentage=analysis.profit_loss_percentage,
        variance_explanation=analysis.variance_explanation,
        is_finalized=analysis.is_finalized,
    )


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(status="ok", app_name=settings.app_name, app_version=settings.app_version)
