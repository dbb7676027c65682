"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from trip_pricing.services.allocation_service import RoomAllocationService
from trip_pricing.services.quote_service import TripQuoteService
from trip_pricing.utils.config import get_settings


def get_allocation_service(request: Request) -> RoomAllocationService:
    service = getattr(request.app.state, "allocation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Allocation service is not initialized",
        )
    return service


def get_quote_service(request: Request) -> TripQuoteService:
    service = getattr(request.app.state, "quote_service", None)
    if service is None:
        allocation_service = getattr(request.app.state, "allocation_service", None)
        if allocation_service is not None:
            service = TripQuoteService(
                settings=get_settings(),
                allocation_service=allocation_service,
            )
            request.app.state.quote_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quote service is not initialized",
        )
    return service
