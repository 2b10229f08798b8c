from __future__ import annotations

import pytest

from prophet_app.core.errors import CodeBlockedError, InvalidInputError
from prophet_app.pricing.engine import (
    FLAT_MILEAGE_RATE,
    ContractBilling,
    MileageBilling,
    PerTripBilling,
    billing_terms,
    price,
    select_service_code,
)
from prophet_app.schemas.scenario import BillingMethod, TripScenario


def _trip(**overrides) -> TripScenario:
    fields = {
        "trips_per_month": 100,
        "clients": 1,
        "multiplier": 2,
        "avg_miles": 10,
        "base_rate_per_trip": 20,
        "mileage_rate": 1,
    }
    fields.update(overrides)
    return TripScenario(**fields)


def test_medicaid_revenue_and_miles():
    p = price(_trip(billing_method="medicaid"))
    assert p.revenue == pytest.approx(6000)
    assert p.miles == pytest.approx(2000)
    assert p.trip_units == 200
    assert p.billable_trips == 200
    assert p.is_unbillable is False


def test_waiver_share_scales_revenue_not_miles():
    p = price(_trip(billing_method="nmt", requires_waiver=True, percent_with_waiver=50))
    assert p.revenue == pytest.approx(3000)
    assert p.miles == pytest.approx(2000)
    assert p.billable_trips == pytest.approx(100)


def test_waiver_percentage_ignored_without_waiver_requirement():
    p = price(_trip(billing_method="medicaid", requires_waiver=False, percent_with_waiver=0))
    assert p.revenue == pytest.approx(6000)


def test_nmt_zero_waiver_is_unbillable_but_drives():
    p = price(_trip(billing_method="nmt", requires_waiver=True, percent_with_waiver=0))
    assert p.revenue == 0
    assert p.miles > 0
    assert p.is_unbillable is True


def test_contract_revenue_is_flat_fee():
    p = price(_trip(billing_method="contract", contract_fee=4500))
    assert p.revenue == 4500
    assert p.miles == pytest.approx(2000)


def test_contract_without_fee_earns_nothing():
    p = price(_trip(billing_method="contract"))
    assert p.revenue == 0
    assert p.miles == pytest.approx(2000)


def test_mileage_uses_flat_rate_not_trip_rates():
    p = price(_trip(billing_method="mileage", base_rate_per_trip=999, mileage_rate=999))
    assert p.revenue == pytest.approx(100 * 10 * FLAT_MILEAGE_RATE * 2)


def test_clients_multiply_volume():
    p = price(_trip(billing_method="medicaid", clients=3, multiplier=1))
    assert p.revenue == pytest.approx(300 * 30)
    assert p.miles == pytest.approx(3000)


@pytest.mark.parametrize("method", list(BillingMethod))
def test_zero_trips_price_to_zero(method):
    p = price(_trip(trips_per_month=0, billing_method=method, contract_fee=1000, requires_waiver=True))
    assert p.revenue == 0
    assert p.miles == 0
    assert p.is_unbillable is False


def test_billing_terms_variants():
    assert billing_terms(_trip(billing_method="contract", contract_fee=10)) == ContractBilling(fee=10)
    assert billing_terms(_trip(billing_method="mileage")) == MileageBilling()
    terms = billing_terms(_trip(billing_method="nmt", requires_waiver=True, percent_with_waiver=25))
    assert terms == PerTripBilling(base_rate=20, mileage_rate=1, billable_share=0.25)


def test_legacy_round_trip_flag_becomes_multiplier():
    assert TripScenario.parse({"tripsPerMonth": 5, "roundTrip": True}).multiplier == 2
    assert TripScenario.parse({"tripsPerMonth": 5, "roundTrip": False}).multiplier == 1
    assert TripScenario.parse({"tripsPerMonth": 5, "roundTrip": True, "multiplier": 3}).multiplier == 3


def test_missing_clients_default_to_one():
    assert TripScenario.parse({"tripsPerMonth": 5, "clients": 0}).clients == 1
    assert TripScenario.parse({"tripsPerMonth": 5}).clients == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"tripsPerMonth": -1},
        {"avgMiles": -5},
        {"clients": -2},
        {"percentWithWaiver": 101},
        {"percentWithWaiver": -1},
        {"multiplier": 0.25},
        {"multiplier": 11},
    ],
)
def test_invalid_trip_rejected(payload):
    with pytest.raises(InvalidInputError):
        TripScenario.parse(payload)


def test_select_service_code_copies_rates(catalog):
    trip = TripScenario(category="BHST", trips_per_month=10)
    selected = select_service_code(trip, catalog.lookup("bhst-a0999-et"))
    assert selected.selected_code_id == "bhst-a0999-et"
    assert selected.selected_modifier == "ET"
    assert selected.base_rate_per_trip == 267.91
    assert selected.mileage_rate == 6.51
    assert trip.selected_code_id is None


def test_select_service_code_sets_waiver_flag(catalog):
    selected = select_service_code(TripScenario(), catalog.lookup("nmt-t2003-u2"))
    assert selected.requires_waiver is True
    assert selected.mileage_rate == 0


def test_select_blocked_code_raises(catalog):
    with pytest.raises(CodeBlockedError):
        select_service_code(TripScenario(category="NEMT"), catalog.lookup("nemt-a0120"))


def test_select_code_from_other_category_raises(catalog):
    with pytest.raises(InvalidInputError, match="NMT"):
        select_service_code(TripScenario(category="BHST"), catalog.lookup("nmt-t2003-u1"))
