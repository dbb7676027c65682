from __future__ import annotations

import random

import pytest

from trip_pricing.domain.errors import CurrencyNotFoundError, PricingValidationError
from trip_pricing.domain.models import CostCategory, CostLineItem, TripCategory
from trip_pricing.services.cost_service import (
    activity_item,
    aggregate_costs,
    bus_item,
    extras_items,
    meals_item,
    overhead_item,
    per_person_item,
)
from trip_pricing.services.currency_service import CurrencyRateTable


def _build_rate_table() -> CurrencyRateTable:
    return CurrencyRateTable({"USD": 83.17, "EUR": 90.03, "THB": 2.31}, reporting_currency="INR")


def _build_line_items() -> list[CostLineItem]:
    items = [
        per_person_item(
            category=CostCategory.TRANSPORT,
            label="Flight DEL-BKK",
            cost_per_person=210.55,
            headcount=37,
            currency="USD",
        ),
        bus_item(label="Coach", cost_per_bus=4300.0, quantity=2, number_of_days=4, currency="THB"),
        meals_item(
            breakfast_cost_per_person=150.0,
            lunch_cost_per_person=320.0,
            dinner_cost_per_person=410.0,
            headcount=37,
            days=4,
            currency="THB",
        ),
        activity_item(
            label="Grand Palace",
            entry_cost=500.0,
            transport_cost=1200.0,
            guide_cost=800.0,
            headcount=37,
            currency="THB",
        ),
        overhead_item(label="Coordinator", amount=250.0, currency="EUR"),
        overhead_item(label="Contingency", amount=10000.0, currency="INR", hide_from_client=True),
    ]
    items.extend(
        extras_items(
            trip_category=TripCategory.INTERNATIONAL,
            headcount=37,
            visa_cost_per_person=35.0,
            visa_currency="USD",
            tips_cost_per_person=300.0,
            tips_currency="THB",
            insurance_cost_per_person=450.0,
            insurance_currency="INR",
        )
    )
    return items


def test_line_item_formulas() -> None:
    assert bus_item(
        label="Bus", cost_per_bus=1000.0, quantity=2, number_of_days=3, currency="INR"
    ).amount == 6000.0
    assert activity_item(
        label="Museum",
        entry_cost=100.0,
        transport_cost=500.0,
        guide_cost=300.0,
        headcount=10,
        currency="INR",
    ).amount == 1800.0


def test_breakfast_is_only_charged_when_stay_excludes_it() -> None:
    kwargs = {
        "breakfast_cost_per_person": 100.0,
        "lunch_cost_per_person": 200.0,
        "dinner_cost_per_person": 300.0,
        "headcount": 10,
        "days": 2,
        "currency": "INR",
    }

    assert meals_item(**kwargs).amount == 10000.0
    assert meals_item(**kwargs, breakfast_included_in_stay=False).amount == 12000.0


def test_visa_and_tips_apply_to_international_trips_only() -> None:
    kwargs = {
        "headcount": 10,
        "visa_cost_per_person": 1000.0,
        "visa_currency": "INR",
        "tips_cost_per_person": 200.0,
        "tips_currency": "INR",
        "insurance_cost_per_person": 50.0,
        "insurance_currency": "INR",
    }

    domestic = extras_items(trip_category=TripCategory.DOMESTIC, **kwargs)
    international = extras_items(trip_category=TripCategory.INTERNATIONAL, **kwargs)

    assert [item.label for item in domestic] == ["Insurance"]
    assert [item.label for item in international] == ["Visa", "Tips", "Insurance"]


def test_aggregation_converts_each_item_and_tracks_visible_overheads() -> None:
    breakdown = aggregate_costs(
        [
            overhead_item(label="Coordinator", amount=100.0, currency="USD"),
            overhead_item(label="Margin buffer", amount=5000.0, currency="INR", hide_from_client=True),
            per_person_item(
                category=CostCategory.TRANSPORT,
                label="Train",
                cost_per_person=800.0,
                headcount=5,
                currency="INR",
            ),
        ],
        _build_rate_table(),
    )

    assert breakdown.overheads == pytest.approx(8317.0 + 5000.0)
    assert breakdown.client_visible_overheads == pytest.approx(8317.0)
    assert breakdown.transport == 4000.0
    assert breakdown.accommodation == 0.0
    assert breakdown.subtotal == pytest.approx(4000.0 + 13317.0)


def test_totals_do_not_depend_on_line_item_order() -> None:
    items = _build_line_items()
    rate_table = _build_rate_table()
    baseline = aggregate_costs(items, rate_table)

    shuffler = random.Random(7)
    for _ in range(20):
        shuffled = list(items)
        shuffler.shuffle(shuffled)
        candidate = aggregate_costs(shuffled, rate_table)
        for category, amount in candidate.by_category().items():
            assert amount == pytest.approx(baseline.by_category()[category], abs=1e-6)
        assert candidate.subtotal == pytest.approx(baseline.subtotal, abs=1e-6)


def test_unknown_line_item_currency_raises() -> None:
    with pytest.raises(CurrencyNotFoundError):
        aggregate_costs(
            [overhead_item(label="Permit", amount=10.0, currency="NPR")],
            _build_rate_table(),
        )


def test_negative_amounts_are_rejected() -> None:
    with pytest.raises(PricingValidationError):
        bus_item(label="Bus", cost_per_bus=-1.0, quantity=1, number_of_days=1, currency="INR")
    with pytest.raises(PricingValidationError):
        aggregate_costs(
            [CostLineItem(CostCategory.EXTRAS, "Refund", -5.0, "INR")],
            _build_rate_table(),
        )
