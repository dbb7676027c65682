from __future__ import annotations

import pytest

from trip_pricing.domain.errors import PricingValidationError
from trip_pricing.domain.models import ActualExpenses, CostCategory, TripCostBreakdown
from trip_pricing.services.analysis_service import analyze_actual_expenses


def _build_expected() -> TripCostBreakdown:
    return TripCostBreakdown(
        transport=40000.0,
        accommodation=82400.0,
        meals=24000.0,
        activities=6000.0,
        extras=0.0,
        overheads=7600.0,
        client_visible_overheads=5000.0,
    )


def test_variance_per_category_and_overall_profit() -> None:
    actuals = ActualExpenses(
        transport=44000.0,
        accommodation=82400.0,
        meals=21000.0,
        activities=6000.0,
        extras=500.0,
        overheads=7600.0,
        explanation="Fuel surcharge on the return coach",
    )

    analysis = analyze_actual_expenses(_build_expected(), actuals)
    by_category = {item.category: item for item in analysis.categories}

    assert by_category[CostCategory.TRANSPORT].difference == 4000.0
    assert by_category[CostCategory.TRANSPORT].variance_percentage == pytest.approx(10.0)
    assert by_category[CostCategory.MEALS].difference == -3000.0
    assert by_category[CostCategory.EXTRAS].variance_percentage == 0.0
    assert analysis.total_expected == 160000.0
    assert analysis.total_actual == 161500.0
    assert analysis.profit_loss == -1500.0
    assert analysis.profit_loss_percentage == pytest.approx(-0.9375)
    assert analysis.variance_explanation == "Fuel surcharge on the return coach"
    assert analysis.is_finalized is True


def test_empty_quote_reports_zero_percentages() -> None:
    empty = TripCostBreakdown(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    analysis = analyze_actual_expenses(empty, ActualExpenses(100.0, 0.0, 0.0, 0.0, 0.0, 0.0))

    assert analysis.profit_loss == -100.0
    assert analysis.profit_loss_percentage == 0.0


def test_negative_actuals_are_rejected() -> None:
    with pytest.raises(PricingValidationError):
        analyze_actual_expenses(
            _build_expected(),
            ActualExpenses(-1.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        )
