from __future__ import annotations

from typing import assert_never

from prophet_app.catalog.service_codes import ServiceCodeCatalog
from prophet_app.core.errors import AnalysisNotInitializedError
from prophet_app.schemas.base import ProphetModel
from prophet_app.schemas.facility import (
    BillingFrequency,
    ContractAnalysis,
    ContractBillingMethod,
    FacilityOverheadCosts,
    ProviderContractTerms,
    TreatmentFacility,
)

WEEKS_PER_MONTH = 4.33

# Billing periods per month.
FREQUENCY_MULTIPLIERS: dict[BillingFrequency, float] = {
    BillingFrequency.DAILY: 22,  # business days
    BillingFrequency.WEEKLY: WEEKS_PER_MONTH,
    BillingFrequency.MONTHLY: 1,
}


def category_total(category: ProphetModel) -> float:
    """Sum every numeric line item of one overhead category."""
    return float(sum(getattr(category, name) for name in type(category).model_fields))


def total_facility_overhead(overhead: FacilityOverheadCosts) -> float:
    return sum(category_total(getattr(overhead, name)) for name in FacilityOverheadCosts.model_fields)


def transportation_burden(overhead: FacilityOverheadCosts) -> float:
    """What the facility pays today to move its own clients."""
    return category_total(overhead.transportation)


def transportation_burden_percentage(overhead: FacilityOverheadCosts) -> float:
    total = total_facility_overhead(overhead)
    if total == 0:
        return 0.0
    return transportation_burden(overhead) / total * 100


def monthly_trip_volume(facility: TreatmentFacility) -> float:
    return facility.transport.scheduled_trips_per_week * WEEKS_PER_MONTH


def proposed_contract_cost(terms: ProviderContractTerms, monthly_trips: float) -> float:
    method = terms.billing_method
    if method == ContractBillingMethod.MONTHLY_FEE:
        return terms.monthly_fee
    if method == ContractBillingMethod.PER_TRIP:
        return terms.per_trip_rate * monthly_trips
    if method == ContractBillingMethod.HYBRID:
        overage = max(0.0, monthly_trips - terms.included_trips)
        return terms.monthly_fee + overage * terms.additional_trip_rate
    assert_never(method)


def require_analysis(facility: TreatmentFacility) -> ContractAnalysis:
    if facility.contract_analysis is None:
        raise AnalysisNotInitializedError(facility.id)
    return facility.contract_analysis


def facility_billing_revenue(facility: TreatmentFacility, catalog: ServiceCodeCatalog) -> float:
    """Monthly revenue the facility bills under its own codes.

    Codes missing from the catalog contribute nothing.
    """
    total = 0.0
    for entry in facility.billing_codes:
        if entry.code_id not in catalog:
            continue
        code = catalog.lookup(entry.code_id)
        total += code.base_rate * entry.estimated_volume * FREQUENCY_MULTIPLIERS[entry.frequency]
    return total
