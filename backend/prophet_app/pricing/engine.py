from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import assert_never

from prophet_app.core.errors import CodeBlockedError, InvalidInputError
from prophet_app.schemas.scenario import BillingMethod, TripScenario
from prophet_app.schemas.service_code import ServiceCode

logger = logging.getLogger(__name__)

# Published per-mile reimbursement for mileage-only billing. Not user-editable.
FLAT_MILEAGE_RATE = 0.49


@dataclass(frozen=True)
class ContractBilling:
    fee: float


@dataclass(frozen=True)
class PerTripBilling:
    """Medicaid and NMT: a per-trip base plus a per-mile add-on."""

    base_rate: float
    mileage_rate: float
    billable_share: float  # 0..1 of trips with a qualifying waiver


@dataclass(frozen=True)
class MileageBilling:
    rate: float = FLAT_MILEAGE_RATE


BillingTerms = ContractBilling | PerTripBilling | MileageBilling


@dataclass(frozen=True)
class TripPrice:
    revenue: float          # USD / month
    miles: float            # driven miles / month
    trip_units: float       # trips x clients x multiplier
    billable_trips: float   # trip units that earn revenue

    @property
    def is_unbillable(self) -> bool:
        """Trips run but none of them can be billed."""
        return self.trip_units > 0 and self.billable_trips == 0


def billing_terms(trip: TripScenario) -> BillingTerms:
    method = trip.billing_method
    if method == BillingMethod.CONTRACT:
        return ContractBilling(fee=trip.contract_fee or 0.0)
    if method == BillingMethod.MEDICAID or method == BillingMethod.NMT:
        share = trip.percent_with_waiver / 100 if trip.requires_waiver else 1.0
        return PerTripBilling(
            base_rate=trip.base_rate_per_trip,
            mileage_rate=trip.mileage_rate,
            billable_share=share,
        )
    if method == BillingMethod.MILEAGE:
        return MileageBilling()
    assert_never(method)


def price(trip: TripScenario) -> TripPrice:
    """Monthly revenue and driven miles for one trip line.

    Miles accrue for every trip that runs, billable or not.
    """
    if trip.trips_per_month == 0:
        return TripPrice(revenue=0.0, miles=0.0, trip_units=0.0, billable_trips=0.0)

    runs = trip.trips_per_month * trip.clients
    units = runs * trip.multiplier
    miles = units * trip.avg_miles

    terms = billing_terms(trip)
    if isinstance(terms, ContractBilling):
        revenue = terms.fee
        billable = units
    elif isinstance(terms, PerTripBilling):
        effective = runs * terms.billable_share
        revenue = effective * (terms.base_rate + trip.avg_miles * terms.mileage_rate) * trip.multiplier
        billable = effective * trip.multiplier
    elif isinstance(terms, MileageBilling):
        revenue = miles * terms.rate
        billable = units
    else:
        assert_never(terms)

    result = TripPrice(revenue=revenue, miles=miles, trip_units=units, billable_trips=billable)
    if result.is_unbillable:
        logger.debug("Trip %s runs %.1f units with no billable trips (waiver share 0)", trip.id, units)
    return result


def select_service_code(trip: TripScenario, code: ServiceCode) -> TripScenario:
    """Return a copy of ``trip`` billed under ``code``'s current rates."""
    if code.is_blocked:
        raise CodeBlockedError(code.id, code.block_reason or "")
    if trip.category is not None and trip.category != code.category:
        raise InvalidInputError(
            f"Service code {code.display_code} is {code.category.value}, trip is {trip.category.value}",
            details={"code_id": code.id, "trip_id": trip.id},
        )
    return trip.model_copy(
        update={
            "category": code.category,
            "selected_code_id": code.id,
            "selected_modifier": code.modifier,
            "base_rate_per_trip": code.base_rate,
            "mileage_rate": code.mileage_rate or 0.0,
            "requires_waiver": code.requires_waiver,
        }
    )
