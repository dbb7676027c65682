"""Profit, GST and TCS applied to the pre-tax subtotal."""

from __future__ import annotations

from typing import Optional

from trip_pricing.domain.constraints import validate_non_negative
from trip_pricing.domain.models import TaxComputation, TripCategory
from trip_pricing.utils.config import get_settings
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def compute_taxes(
    *,
    subtotal: float,
    profit: float,
    trip_category: TripCategory,
    gst_percentage: Optional[float] = None,
    tcs_percentage: Optional[float] = None,
) -> TaxComputation:
    """Apply profit, then GST, then TCS on the GST-inclusive amount.

    TCS is charged on international trips only. The compounding order matches
    the figures already issued to clients and must not be rearranged.
    """
    settings = get_settings()
    resolved_gst = settings.default_gst_percentage if gst_percentage is None else gst_percentage
    resolved_tcs = settings.default_tcs_percentage if tcs_percentage is None else tcs_percentage

    validate_non_negative("subtotal", subtotal)
    validate_non_negative("profit", profit)
    validate_non_negative("gst_percentage", resolved_gst)
    validate_non_negative("tcs_percentage", resolved_tcs)

    admin_subtotal = subtotal + profit
    gst_amount = admin_subtotal * resolved_gst / 100
    if trip_category is TripCategory.INTERNATIONAL:
        tcs_amount = (admin_subtotal + gst_amount) * resolved_tcs / 100
    else:
        tcs_amount = 0.0
    grand_total = admin_subtotal + gst_amount + tcs_amount

    logger.debug(
        (
            "Taxes computed | category=%s | admin_subtotal=%.2f | gst=%.2f | "
            "tcs=%.2f | grand_total=%.2f"
        ),
        trip_category.value,
        admin_subtotal,
        gst_amount,
        tcs_amount,
        grand_total,
    )
    return TaxComputation(
        subtotal=subtotal,
        profit=profit,
        admin_subtotal=admin_subtotal,
        gst_percentage=resolved_gst,
        gst_amount=gst_amount,
        tcs_percentage=resolved_tcs,
        tcs_amount=tcs_amount,
        grand_total=grand_total,
    )
