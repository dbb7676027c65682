from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import create_app
from trip_pricing.utils.config import get_settings


def _build_test_settings(**overrides):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        default_allocation_strategy="greedy",
        default_gst_percentage=5.0,
        default_tcs_percentage=5.0,
        optimizer_max_time_seconds=5.0,
        optimizer_workers=1,
        **overrides,
    )


def _build_test_app(**overrides) -> FastAPI:
    return create_app(_build_test_settings(**overrides))


def _quote_payload(**overrides) -> dict:
    payload = {
        "trip_type": "institute",
        "trip_category": "international",
        "participants": {"boys": 6, "girls": 4, "maleFaculty": 1, "maleVXplorers": 1},
        "currency_rates": [{"code": "USD", "rate_to_reporting_currency": 80.0}],
        "accommodations": [
            {
                "hotel_name": "Riverside Inn",
                "city": "Kathmandu",
                "nights": 2,
                "currency": "INR",
                "room_types": [
                    {"room_type": "Single", "capacity_per_room": 1, "cost_per_room": 2000},
                    {"room_type": "Double", "capacity_per_room": 2, "cost_per_room": 2500},
                ],
                "breakfast_included": True,
            }
        ],
        "flights": [{"label": "DEL-KTM", "cost_per_person": 100, "currency": "USD"}],
        "meals": {
            "breakfast_cost_per_person": 100,
            "lunch_cost_per_person": 200,
            "dinner_cost_per_person": 300,
            "days": 2,
            "currency": "INR",
        },
        "overheads": [
            {"label": "Contingency", "amount": 5000, "currency": "INR", "hide_from_client": True}
        ],
        "extras": {
            "visa_cost_per_person": 10,
            "visa_currency": "USD",
            "insurance_cost_per_person": 100,
            "insurance_currency": "INR",
        },
        "profit": 10000,
    }
    payload.update(overrides)
    return payload


def test_quote_runs_full_pipeline() -> None:
    with TestClient(_build_test_app()) as client:
        response = client.post("/quote", json=_quote_payload())

    assert response.status_code == 200
    body = response.json()

    hotel = body["accommodations"][0]
    assert hotel["nightly_cost"] == pytest.approx(16500.0)
    assert hotel["total_cost_in_reporting_currency"] == pytest.approx(33000.0)
    assert hotel["allocation"]["allocations"]["maleFaculty"]["method"] == "single_occupancy"
    assert hotel["allocation"]["total_rooms"] == 7

    breakdown = body["cost_breakdown"]
    assert breakdown["transport"] == pytest.approx(96000.0)
    assert breakdown["meals"] == pytest.approx(12000.0)
    assert breakdown["extras"] == pytest.approx(10800.0)
    assert breakdown["overheads"] == pytest.approx(5000.0)
    assert breakdown["client_visible_overheads"] == 0.0
    assert breakdown["subtotal"] == pytest.approx(156800.0)

    taxes = body["taxes"]
    assert taxes["admin_subtotal"] == pytest.approx(166800.0)
    assert taxes["gst_amount"] == pytest.approx(8340.0)
    assert taxes["tcs_amount"] == pytest.approx(8757.0)
    assert taxes["grand_total"] == pytest.approx(183897.0)

    assert body["total_headcount"] == 12
    assert body["chargeable_headcount"] == 10
    assert body["cost_per_participant"] == pytest.approx(18389.7)
    assert body["used_fallback"] is False


def test_domestic_quote_skips_tcs_visa_and_tips() -> None:
    with TestClient(_build_test_app()) as client:
        response = client.post("/quote", json=_quote_payload(trip_category="domestic"))

    assert response.status_code == 200
    body = response.json()
    assert body["taxes"]["tcs_amount"] == 0.0
    assert body["cost_breakdown"]["extras"] == pytest.approx(1200.0)
    assert "Visa" not in [item["label"] for item in body["line_items"]]


def test_quote_with_unknown_currency_returns_400() -> None:
    payload = _quote_payload(currency_rates=[])

    with TestClient(_build_test_app()) as client:
        response = client.post("/quote", json=payload)

    assert response.status_code == 400
    assert "USD" in response.json()["detail"]


def test_quote_is_recomputed_identically() -> None:
    with TestClient(_build_test_app()) as client:
        first = client.post("/quote", json=_quote_payload())
        second = client.post("/quote", json=_quote_payload())

    assert first.status_code == 200
    assert first.json() == second.json()


def test_allocate_rooms_endpoint_and_configuration_errors() -> None:
    room_types = [
        {"room_type": "Triple", "capacity_per_room": 3, "cost_per_room": 3000},
        {"room_type": "Double", "capacity_per_room": 2, "cost_per_room": 2200},
    ]
    with TestClient(_build_test_app()) as client:
        ok = client.post(
            "/allocate_rooms",
            json={"trip_type": "institute", "participants": {"boys": 40}, "room_types": room_types},
        )
        missing_single = client.post(
            "/allocate_rooms",
            json={
                "trip_type": "institute",
                "participants": {"femaleFaculty": 1},
                "room_types": room_types,
            },
        )
        bad_capacity = client.post(
            "/allocate_rooms",
            json={
                "trip_type": "commercial",
                "participants": {"commercialMale": 2},
                "room_types": [{"room_type": "Dorm", "capacity_per_room": 0, "cost_per_room": 10}],
            },
        )

    assert ok.status_code == 200
    boys = ok.json()["allocations"]["boys"]
    assert boys["total_rooms"] == 14
    assert [entry["occupants"] for entry in boys["breakdown"]] == [39, 1]
    assert ok.json()["warnings"] == []

    assert missing_single.status_code == 400
    assert "Single room type is required" in missing_single.json()["detail"]
    assert bad_capacity.status_code == 400


def test_cost_optimized_strategy_over_http() -> None:
    with TestClient(_build_test_app()) as client:
        response = client.post(
            "/allocate_rooms",
            json={
                "trip_type": "commercial",
                "participants": {"commercialOther": 6},
                "room_types": [
                    {"room_type": "Triple", "capacity_per_room": 3, "cost_per_room": 5000},
                    {"room_type": "Double", "capacity_per_room": 2, "cost_per_room": 2000},
                ],
                "strategy": "cost_optimized",
            },
        )

    assert response.status_code == 200
    other = response.json()["allocations"]["commercialOther"]
    assert other["method"] == "cost_optimized"
    assert sum(entry["total_cost"] for entry in other["breakdown"]) == pytest.approx(6000.0)


def test_master_data_and_health_endpoints() -> None:
    with TestClient(_build_test_app()) as client:
        presets = client.get("/room_type_presets")
        preferences = client.get("/default_preferences/commercial")
        health = client.get("/health")

    assert presets.status_code == 200
    assert "Double + Triple" in presets.json()
    assert preferences.json() == {
        "participants": ["double", "triple"],
        "commercialVXplorers": ["double", "triple"],
    }
    assert health.json()["status"] == "ok"


def test_analyze_actuals_endpoint() -> None:
    expected = {
        "transport": 1000,
        "accommodation": 2000,
        "meals": 500,
        "activities": 0,
        "extras": 0,
        "overheads": 500,
    }
    actual = dict(expected, meals=700)

    with TestClient(_build_test_app()) as client:
        response = client.post(
            "/analyze_actuals",
            json={"expected": expected, "actual": actual, "explanation": "Extra dinner"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["profit_loss"] == pytest.approx(-200.0)
    assert body["is_finalized"] is True
    meals = next(item for item in body["categories"] if item["category"] == "meals")
    assert meals["variance_percentage"] == pytest.approx(40.0)
