from __future__ import annotations

from dataclasses import dataclass, fields

from prophet_app.core.errors import InvalidInputError
from prophet_app.costs.aggregator import active_fuel_price, total_variable_per_mile
from prophet_app.schemas.cost_structure import (
    PerClaimMode,
    PerTripMode,
    SoftwareBillingMode,
    VariableCosts,
)

HOURS_PER_SHIFT = 8
DEFAULT_DRIVER_RATE = 25.0


@dataclass(frozen=True)
class VariableCostBreakdown:
    """Monthly variable spend by group, for the cost sheet.

    Scenario evaluation only charges ``per_mile``; the remaining groups are a
    projection the host shows alongside it.
    """

    per_mile: float
    per_trip: float
    driver_staff: float
    patient_client: float
    operational: float
    administrative: float
    marketing: float
    compliance: float
    technology: float
    vehicle_specific: float
    hybrid_specific: float
    seasonal: float

    @property
    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, float]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["total"] = self.total
        return out


def itemize_variable_costs(
    variable: VariableCosts,
    miles: float,
    trips: float,
    revenue: float,
    month: int,
    vehicles: int = 0,
    drivers: int = 0,
    base_driver_rate: float = DEFAULT_DRIVER_RATE,
) -> VariableCostBreakdown:
    """Itemize one month of variable costs.

    ``month`` is 0-indexed (0 = January) and only decides whether winter
    operations apply. ``vehicles`` and ``drivers`` scale the per-vehicle and
    per-driver line items.
    """
    if not 0 <= month <= 11:
        raise InvalidInputError(f"month must be 0-11, got {month}")

    direct = variable.direct_transport
    patient = variable.patient_client
    staff = variable.driver_staff
    ops = variable.operational
    admin = variable.administrative
    mkt = variable.marketing
    comp = variable.compliance
    tech = variable.technology
    veh = variable.vehicle_specific
    hyb = variable.hybrid_specific
    season = variable.seasonal

    per_mile = miles * total_variable_per_mile(variable)

    per_trip = trips * (
        direct.vehicle_cleaning_per_trip
        + direct.disposable_supplies_per_trip
        + patient.trip_specific_supplies_per_trip
        + patient.patient_meals_per_trip
        + patient.accommodation_costs_per_trip
    )

    if staff.per_trip_driver_pay_mode == PerTripMode.PER_TRIP:
        driver_pay = staff.per_trip_driver_pay * trips
    else:
        driver_pay = staff.per_trip_driver_pay * miles
    driver_staff = (
        driver_pay
        + staff.overtime_hours_per_month * base_driver_rate * staff.overtime_rate_multiplier
        + staff.driver_bonuses_per_month
        + staff.additional_shifts_per_month * base_driver_rate * HOURS_PER_SHIFT
        + staff.temporary_driver_fee_per_hour * staff.temporary_driver_hours_per_month
        + staff.training_hours_per_month * staff.training_rate_per_hour
    )

    patient_client = patient.tolls_parking_per_month + (
        patient.wait_time_compensation_per_hour * patient.avg_wait_time_hours_per_month
    )

    fuel_price = active_fuel_price(variable)
    fuel_surcharge = 0.0
    if fuel_price > ops.fuel_surcharge_threshold:
        fuel_surcharge = (
            miles
            * (fuel_price - ops.fuel_surcharge_threshold)
            * (ops.fuel_surcharge_percentage / 100)
            / variable.vehicle_mpg
        )
    card_processing = revenue * ops.credit_card_processing_percentage / 100 if revenue > 0 else 0.0
    operational = (
        ops.dispatch_overtime_hours_per_month * ops.dispatch_overtime_rate
        + ops.phone_communication_overage_per_month
        + card_processing
        + fuel_surcharge
        + ops.subcontractor_payments_per_month
        + ops.emergency_roadside_per_month
    )

    # One claim per trip.
    if admin.billing_claims_processing_mode == PerClaimMode.PER_CLAIM:
        claims = admin.billing_claims_processing_per_claim * trips
    else:
        claims = revenue * admin.billing_claims_processing_percentage / 100
    administrative = (
        claims
        + admin.collections_agency_recovered_amount * admin.collections_agency_percentage / 100
        + admin.licensing_permit_renewals_per_month
        + admin.insurance_audit_fees_per_month
    )

    marketing = (
        mkt.referral_commissions_per_client * mkt.referral_commissions_count
        + mkt.facility_partnership_fee_per_month
        + mkt.digital_advertising_per_month
        + mkt.crm_lists_per_month
    )

    compliance = (
        comp.random_drug_tests_per_month * comp.random_drug_test_cost
        + (comp.background_check_renewals_per_driver + comp.cpr_first_aid_recert_per_driver) * drivers
        + comp.vehicle_inspection_fees_per_month
    )

    if tech.ride_management_software_mode == SoftwareBillingMode.PER_TRIP:
        ride_software = tech.ride_management_software_per_trip * trips
    else:
        ride_software = tech.ride_management_software_monthly
    technology = (
        tech.gps_telematics_per_vehicle * vehicles
        + ride_software
        + tech.data_overage_per_month
        + tech.software_addons_per_month
    )

    vehicle_specific = vehicles * (
        veh.registration_fees_per_vehicle + veh.personal_property_tax_per_vehicle + veh.parking_storage_per_vehicle
    )

    if hyb.medicaid_billing_support_mode == PerClaimMode.PER_CLAIM:
        billing_support = hyb.medicaid_billing_support_per_claim * trips
    else:
        billing_support = revenue * hyb.medicaid_billing_support_percentage / 100
    hybrid_specific = (
        billing_support
        + hyb.prior_authorization_per_request * hyb.prior_authorization_count_per_month
        + hyb.hcbs_waiver_coordination_hours_per_month * hyb.hcbs_waiver_coordination_rate
        + hyb.private_pay_collection_hours_per_month * hyb.private_pay_collection_rate
        + hyb.dual_billing_system_maintenance_per_month
    )

    winter = season.winter_operations_per_month if month in season.winter_operations_months else 0.0
    seasonal = (
        winter
        + season.extreme_weather_costs_per_month
        + season.event_based_demand_per_month
        + season.vehicle_downtime_replacement_per_month
    )

    return VariableCostBreakdown(
        per_mile=per_mile,
        per_trip=per_trip,
        driver_staff=driver_staff,
        patient_client=patient_client,
        operational=operational,
        administrative=administrative,
        marketing=marketing,
        compliance=compliance,
        technology=technology,
        vehicle_specific=vehicle_specific,
        hybrid_specific=hybrid_specific,
        seasonal=seasonal,
    )
