"""Post-trip comparison of quoted costs against actual spend."""

from __future__ import annotations

import math

from trip_pricing.domain.constraints import validate_non_negative
from trip_pricing.domain.models import (
    ActualExpenses,
    CategoryVariance,
    PostTripAnalysis,
    TripCostBreakdown,
)
from trip_pricing.utils.logger import get_logger


logger = get_logger(__name__)


def _percentage_of(value: float, base: float) -> float:
    if base <= 0:
        return 0.0
    return value / base * 100


def analyze_actual_expenses(
    expected: TripCostBreakdown,
    actuals: ActualExpenses,
) -> PostTripAnalysis:
    """Per-category variance plus overall profit or loss against the quote.

    A positive ``difference`` means the category overran; a positive
    ``profit_loss`` means the trip came in under the quoted cost.
    """
    expected_by_category = expected.by_category()
    actual_by_category = actuals.by_category()

    categories: list[CategoryVariance] = []
    for category, expected_amount in expected_by_category.items():
        actual_amount = actual_by_category[category]
        validate_non_negative(f"actual {category.value}", actual_amount)
        difference = actual_amount - expected_amount
        categories.append(
            CategoryVariance(
                category=category,
                expected=expected_amount,
                actual=actual_amount,
                difference=difference,
                variance_percentage=_percentage_of(difference, expected_amount),
            )
        )

    total_expected = math.fsum(expected_by_category.values())
    total_actual = math.fsum(actual_by_category.values())
    profit_loss = total_expected - total_actual

    logger.info(
        "Post-trip analysis | expected=%.2f | actual=%.2f | profit_loss=%.2f",
        total_expected,
        total_actual,
        profit_loss,
    )
    return PostTripAnalysis(
        categories=categories,
        total_expected=total_expected,
        total_actual=total_actual,
        profit_loss=profit_loss,
        profit_loss_percentage=_percentage_of(profit_loss, total_expected),
        variance_explanation=actuals.explanation,
        is_finalized=True,
    )
