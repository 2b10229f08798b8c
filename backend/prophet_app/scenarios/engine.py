from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from prophet_app.costs.aggregator import CostTotals, aggregate
from prophet_app.pricing.engine import TripPrice, price
from prophet_app.schemas.cost_structure import CostStructure
from prophet_app.schemas.scenario import BusinessScenario

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusinessScenarioResult:
    scenario_id: str
    scenario_name: str

    total_revenue: float
    total_miles: float
    total_trips: float

    fixed_costs: float
    staffing_costs: float
    variable_per_mile: float
    variable_costs: float
    total_costs: float

    net_income: float
    margin: float                       # percent of revenue, 0 when there is none
    contribution_margin_per_trip: float
    break_even_trips: float             # math.inf when never profitable at this mix
    trips_gap: float                    # 0 once at or past break-even

    trip_prices: dict[str, TripPrice] = field(default_factory=dict)
    unbillable_trip_ids: tuple[str, ...] = ()

    @property
    def overhead(self) -> float:
        return self.fixed_costs + self.staffing_costs

    @property
    def is_profitable(self) -> bool:
        return self.trips_gap == 0


def break_even(overhead: float, contribution_margin_per_trip: float, total_trips: float) -> tuple[float, float]:
    """Return ``(break_even_trips, trips_gap)``.

    Break-even is rounded up to a whole trip. Both values are infinite when
    there are no trips or each trip loses money.
    """
    if total_trips <= 0 or contribution_margin_per_trip <= 0:
        return math.inf, math.inf
    # round() first so float noise like 200.0000000001 does not add a trip
    trips = math.ceil(round(overhead / contribution_margin_per_trip, 9))
    return float(trips), float(max(0.0, trips - total_trips))


def evaluate(
    scenario: BusinessScenario | Mapping[str, Any],
    cost_structure: CostStructure | Mapping[str, Any],
) -> BusinessScenarioResult:
    """Price every trip, charge costs, and solve for break-even.

    Inputs are validated up front; nothing is returned on failure.
    """
    scenario = BusinessScenario.parse(scenario)
    costs = CostStructure.parse(cost_structure)

    priced = [(trip.id, price(trip)) for trip in scenario.trips]
    total_revenue = sum(p.revenue for _, p in priced)
    total_miles = sum(p.miles for _, p in priced)
    total_trips = sum(p.trip_units for _, p in priced)

    totals: CostTotals = aggregate(costs)
    variable_costs = total_miles * totals.total_variable_per_mile
    total_costs = totals.total_overhead + variable_costs

    net_income = total_revenue - total_costs
    margin = net_income / total_revenue * 100 if total_revenue > 0 else 0.0

    if total_trips > 0:
        revenue_per_trip = total_revenue / total_trips
        miles_per_trip = total_miles / total_trips
        contribution = revenue_per_trip - miles_per_trip * totals.total_variable_per_mile
    else:
        contribution = 0.0
    break_even_trips, trips_gap = break_even(totals.total_overhead, contribution, total_trips)

    if math.isinf(break_even_trips):
        logger.info(
            "Scenario %s never breaks even (trips=%s contribution/trip=%.2f)",
            scenario.id, total_trips, contribution,
        )

    return BusinessScenarioResult(
        scenario_id=scenario.id,
        scenario_name=scenario.name,
        total_revenue=total_revenue,
        total_miles=total_miles,
        total_trips=total_trips,
        fixed_costs=totals.total_fixed,
        staffing_costs=totals.total_staffing,
        variable_per_mile=totals.total_variable_per_mile,
        variable_costs=variable_costs,
        total_costs=total_costs,
        net_income=net_income,
        margin=margin,
        contribution_margin_per_trip=contribution,
        break_even_trips=break_even_trips,
        trips_gap=trips_gap,
        trip_prices=dict(priced),
        unbillable_trip_ids=tuple(trip_id for trip_id, p in priced if p.is_unbillable),
    )
