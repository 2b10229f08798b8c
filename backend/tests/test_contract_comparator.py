from __future__ import annotations

from datetime import UTC, datetime

import pytest

from prophet_app.contracts.comparator import (
    RECOMMEND_LIMITED,
    RECOMMEND_MODERATE,
    RECOMMEND_STRONG,
    benefit_level,
    compare,
    facility_pros_cons,
    mutual_benefit_score,
    provider_pros_cons,
    record_comparison,
)
from prophet_app.core.errors import AnalysisNotInitializedError
from prophet_app.scenarios.engine import BusinessScenarioResult
from prophet_app.schemas.facility import BenefitLevel, TreatmentFacility


def _result(revenue: float = 10000, costs: float = 7000, scenario_id: str = "s1") -> BusinessScenarioResult:
    net = revenue - costs
    return BusinessScenarioResult(
        scenario_id=scenario_id,
        scenario_name="Base case",
        total_revenue=revenue,
        total_miles=2000,
        total_trips=200,
        fixed_costs=2000,
        staffing_costs=3000,
        variable_per_mile=1.0,
        variable_costs=costs - 5000,
        total_costs=costs,
        net_income=net,
        margin=net / revenue * 100 if revenue else 0.0,
        contribution_margin_per_trip=40,
        break_even_trips=125,
        trips_gap=0,
    )


def _facility(transport: dict | None = None, terms: dict | None = None, weekly_trips: float = 0) -> TreatmentFacility:
    return TreatmentFacility.parse({
        "id": "fac-1",
        "name": "Aspen Recovery",
        "transport": {"scheduledTripsPerWeek": weekly_trips},
        "contractAnalysis": {
            "overheadCosts": {"transportation": transport or {"staffTimeAllocation": 6000, "vehicleExpenses": 4000}},
            "contractTerms": terms or {"billingMethod": "monthly_fee", "monthlyFee": 6000},
        },
    })


def test_facility_savings_against_monthly_fee():
    c = compare(_facility(), _result())
    assert c.facility_current_costs == pytest.approx(10000)
    assert c.facility_proposed_costs == pytest.approx(6000)
    assert c.facility_savings == pytest.approx(4000)
    assert c.facility_savings_percentage == pytest.approx(40)
    assert c.facility_benefit_level == BenefitLevel.HIGH


def test_provider_side_comes_from_scenario():
    c = compare(_facility(), _result(revenue=10000, costs=7000))
    assert c.provider_revenue == 10000
    assert c.provider_costs == 7000
    assert c.provider_margin == 3000
    assert c.provider_margin_percentage == pytest.approx(30)
    assert c.provider_benefit_level == BenefitLevel.HIGH
    assert c.mutual_benefit_score == pytest.approx(35)
    assert c.recommendation == RECOMMEND_STRONG
    assert "Mutually beneficial arrangement" in c.provider_pros
    assert "Win-win partnership opportunity" in c.facility_pros


def test_per_trip_terms_use_monthly_volume():
    facility = _facility(terms={"billingMethod": "per_trip", "perTripRate": 50}, weekly_trips=20)
    c = compare(facility, _result())
    assert c.facility_proposed_costs == pytest.approx(50 * 20 * 4.33)


def test_hybrid_terms_charge_overage_only():
    terms = {"billingMethod": "hybrid", "monthlyFee": 3000, "includedTrips": 50, "additionalTripRate": 40}
    c = compare(_facility(terms=terms, weekly_trips=20), _result())
    assert c.facility_proposed_costs == pytest.approx(3000 + (86.6 - 50) * 40)
    c = compare(_facility(terms=terms, weekly_trips=10), _result())
    assert c.facility_proposed_costs == pytest.approx(3000)


def test_no_current_costs_means_zero_savings_percentage():
    c = compare(_facility(transport={"staffTimeAllocation": 0}), _result())
    assert c.facility_current_costs == 0
    assert c.facility_savings_percentage == 0
    assert c.facility_benefit_level == BenefitLevel.LOW


def test_unprofitable_contract_flagged():
    c = compare(_facility(), _result(revenue=5000, costs=8000))
    assert c.provider_margin_percentage < 0
    assert c.provider_benefit_level == BenefitLevel.LOW
    assert "Contract is unprofitable at current volume" in c.provider_cons
    assert c.mutual_benefit_score == pytest.approx(20)  # facility side only
    assert c.recommendation == RECOMMEND_LIMITED


def test_moderate_recommendation_when_both_sides_gain_modestly():
    c = compare(_facility(terms={"billingMethod": "monthly_fee", "monthlyFee": 9000}), _result(10000, 9000))
    assert c.provider_benefit_level == BenefitLevel.MEDIUM
    assert c.facility_benefit_level == BenefitLevel.MEDIUM
    assert c.recommendation == RECOMMEND_MODERATE


def test_missing_analysis_raises():
    facility = TreatmentFacility(id="fac-2", name="No analysis yet")
    with pytest.raises(AnalysisNotInitializedError, match="fac-2"):
        compare(facility, _result())


@pytest.mark.parametrize(
    "pct,level",
    [(40, BenefitLevel.HIGH), (20, BenefitLevel.HIGH), (19.99, BenefitLevel.MEDIUM),
     (5, BenefitLevel.MEDIUM), (4.9, BenefitLevel.LOW), (-30, BenefitLevel.LOW)],
)
def test_benefit_level_thresholds(pct, level):
    assert benefit_level(pct) == level


def test_mutual_benefit_score_clamps_each_side():
    assert mutual_benefit_score(150, 150) == 100
    assert mutual_benefit_score(-50, -50) == 0
    assert mutual_benefit_score(100, 0) == 50


def test_thin_margin_flagged_below_five_percent():
    pros, cons = provider_pros_cons(3)
    assert pros == ["Positive margin"]
    assert cons == ["Low margin may limit growth", "Thin margins increase risk"]
    assert "Thin margins increase risk" not in provider_pros_cons(5)[1]


def test_minimal_savings_flagged_below_ten_percent():
    pros, cons = facility_pros_cons(8)
    assert pros == ["Meaningful cost savings", "Reduced administrative burden"]
    assert cons == ["Minimal savings may not offset transition costs"]
    assert facility_pros_cons(10)[1] == []


def test_record_comparison_replaces_same_scenario():
    facility = _facility()
    stamp = datetime(2025, 10, 1, tzinfo=UTC)
    first = record_comparison(facility, compare(facility, _result(costs=7000)), now=stamp)
    second = record_comparison(first, compare(first, _result(costs=9500)), now=stamp)
    comparisons = second.contract_analysis.comparisons
    assert len(comparisons) == 1
    assert comparisons[0].provider_costs == 9500
    assert second.contract_analysis.selected_comparison_id == "s1"
    assert second.updated_at == stamp
    assert facility.contract_analysis.comparisons == []


def test_record_comparison_keeps_other_scenarios():
    facility = _facility()
    facility = record_comparison(facility, compare(facility, _result(scenario_id="a")))
    facility = record_comparison(facility, compare(facility, _result(scenario_id="b")))
    assert [c.scenario_id for c in facility.contract_analysis.comparisons] == ["a", "b"]
    assert facility.contract_analysis.selected_comparison_id == "b"
