"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the pricing services and registers routers.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from trip_pricing.controllers.allocation_controller import router as allocation_router
from trip_pricing.controllers.quote_controller import router as quote_router
from trip_pricing.services.accommodation_service import AccommodationCostService
from trip_pricing.services.allocation_service import RoomAllocationService
from trip_pricing.services.quote_service import TripQuoteService
from trip_pricing.utils.config import Settings, get_settings
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are instantiated here and exposed through app.state; the pricing
    core itself holds no state between requests.
    """
    resolved_settings = settings or get_settings()

    allocation_service = RoomAllocationService(settings=resolved_settings)
    accommodation_service = AccommodationCostService(allocation_service=allocation_service)
    quote_service = TripQuoteService(
        settings=resolved_settings,
        allocation_service=allocation_service,
        accommodation_service=accommodation_service,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log the effective pricing defaults before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=resolved_settings.app_name,
        version=resolved_settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(allocation_router)
    app.include_router(quote_router)

    app.state.settings = resolved_settings
    app.state.allocation_service = allocation_service
    app.state.quote_service = quote_service

    return app


def _startup(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    logger.info(
        (
            "Startup: pricing defaults | reporting_currency=%s | gst=%.2f | tcs=%.2f | "
            "strategy=%s | optimizer_time=%.2fs | optimizer_conflicts=%s"
        ),
        settings.reporting_currency,
        settings.default_gst_percentage,
        settings.default_tcs_percentage,
        settings.default_allocation_strategy,
        settings.optimizer_max_time_seconds,
        settings.optimizer_max_conflicts,
    )
    logger.info("Startup complete, pricing engine ready")


# Module-level app object for uvicorn
app = create_app()
