from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from prophet_app.schemas.cost_structure import (
    CostStructure,
    FixedCosts,
    FuelMode,
    StaffingCosts,
    StaffMember,
    VariableCosts,
)


@dataclass(frozen=True)
class CostTotals:
    total_fixed: float          # USD / month
    total_staffing: float       # USD / month
    total_variable_per_mile: float  # USD / mile

    @property
    def total_overhead(self) -> float:
        return self.total_fixed + self.total_staffing


def staff_member_cost(member: StaffMember) -> float:
    """Monthly cost of one role, zero when the role is disabled."""
    if not member.enabled:
        return 0.0
    return member.total_cost


def total_fixed(fixed: FixedCosts) -> float:
    return (
        fixed.insurance_commercial_auto
        + fixed.insurance_general_liability
        + fixed.hcpf_enrollment
        + fixed.county_bhst_license * fixed.county_count
        + fixed.puc_license
        + fixed.vehicle_lease
        + fixed.maintenance_reserve
        + fixed.software
        + fixed.drug_screening
        + fixed.misc_admin
    )


def total_staffing(staffing: StaffingCosts) -> float:
    total = staff_member_cost(staffing.owner) + staff_member_cost(staffing.admin)
    total += staff_member_cost(staffing.driver) * (1 + staffing.additional_drivers)
    return total


def active_fuel_price(variable: VariableCosts) -> float:
    """USD per gallon: the live price in api mode when one is known, else the manual price."""
    if variable.fuel_mode == FuelMode.API and variable.fuel_api_price is not None:
        return variable.fuel_api_price
    return variable.fuel_manual_price


def active_fuel_rate(variable: VariableCosts) -> float:
    return active_fuel_price(variable) / variable.vehicle_mpg


def total_variable_per_mile(variable: VariableCosts) -> float:
    direct = variable.direct_transport
    return (
        active_fuel_rate(variable)
        + variable.maintenance_per_mile
        + variable.insurance_variable_per_mile
        + direct.tires_per_mile
        + direct.repairs_per_mile
        + direct.oil_filter_per_mile
        + variable.vehicle_specific.depreciation_per_mile
    )


def aggregate(cost_structure: CostStructure | Mapping[str, Any]) -> CostTotals:
    costs = CostStructure.parse(cost_structure)
    return CostTotals(
        total_fixed=total_fixed(costs.fixed),
        total_staffing=total_staffing(costs.staffing),
        total_variable_per_mile=total_variable_per_mile(costs.variable),
    )
