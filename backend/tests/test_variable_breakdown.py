from __future__ import annotations

import pytest

from prophet_app.core.errors import InvalidInputError
from prophet_app.costs.variable_breakdown import itemize_variable_costs
from prophet_app.schemas.cost_structure import VariableCosts

JUNE = 5
JANUARY = 0


def test_default_breakdown():
    b = itemize_variable_costs(VariableCosts(), miles=1000, trips=100, revenue=5000, month=JUNE)
    assert b.per_mile == pytest.approx(620.0)
    assert b.per_trip == pytest.approx(1350.0)  # cleaning 10 + supplies 3.50
    assert b.operational == pytest.approx(137.5)  # 2.75% card processing
    assert b.driver_staff == 0
    assert b.seasonal == 0
    assert b.total == pytest.approx(2107.5)
    assert b.as_dict()["total"] == pytest.approx(2107.5)


def test_fleet_and_driver_counts_scale_line_items():
    b = itemize_variable_costs(
        VariableCosts(), miles=0, trips=0, revenue=0, month=JUNE, vehicles=2, drivers=3,
    )
    assert b.technology == pytest.approx(50.0)  # GPS 25 per vehicle
    assert b.compliance == pytest.approx(28.5)  # CPR recert 9.50 per driver


def test_winter_operations_only_in_winter_months():
    variable = VariableCosts.parse({"seasonal": {"winterOperationsPerMonth": 300}})
    assert itemize_variable_costs(variable, 0, 0, 0, month=JANUARY).seasonal == 300
    assert itemize_variable_costs(variable, 0, 0, 0, month=JUNE).seasonal == 0


def test_fuel_surcharge_above_threshold():
    variable = VariableCosts(fuel_api_price=5.0)
    b = itemize_variable_costs(variable, miles=1000, trips=0, revenue=0, month=JUNE)
    # 1000 mi * ($5.00 - $4.00) * 5% / 17.5 mpg
    assert b.operational == pytest.approx(1000 * 1.0 * 0.05 / 17.5)


def test_driver_pay_modes():
    per_trip = VariableCosts.parse({"driverStaff": {"perTripDriverPay": 4}})
    per_mile = VariableCosts.parse({"driverStaff": {"perTripDriverPay": 0.5, "perTripDriverPayMode": "per_mile"}})
    assert itemize_variable_costs(per_trip, 200, 10, 0, JUNE).driver_staff == pytest.approx(40)
    assert itemize_variable_costs(per_mile, 200, 10, 0, JUNE).driver_staff == pytest.approx(100)


def test_temporary_driver_hours_are_charged():
    variable = VariableCosts.parse({"driverStaff": {"temporaryDriverHoursPerMonth": 8}})
    assert itemize_variable_costs(variable, 0, 0, 0, JUNE).driver_staff == pytest.approx(300)


def test_percentage_claims_processing():
    variable = VariableCosts.parse({
        "administrative": {"billingClaimsProcessingMode": "percentage", "billingClaimsProcessingPercentage": 4},
        "hybridSpecific": {"medicaidBillingSupportPerClaim": 1.5},
    })
    b = itemize_variable_costs(variable, 0, trips=20, revenue=10000, month=JUNE)
    assert b.administrative == pytest.approx(400)
    assert b.hybrid_specific == pytest.approx(30)


def test_month_out_of_range():
    with pytest.raises(InvalidInputError, match="month"):
        itemize_variable_costs(VariableCosts(), 0, 0, 0, month=12)
