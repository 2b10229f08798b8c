from __future__ import annotations

import enum

from pydantic import Field, computed_field

from prophet_app.schemas.base import ProphetModel


# ---------------------------------------------------------------------------
# Fixed
# ---------------------------------------------------------------------------

class FixedCosts(ProphetModel):
    insurance_commercial_auto: float = Field(default=450.0, ge=0)
    insurance_general_liability: float = Field(default=150.0, ge=0)

    hcpf_enrollment: float = Field(default=100.0, ge=0)
    # Licensed per county; multiplied by county_count when totalled.
    county_bhst_license: float = Field(default=50.0, ge=0, alias="countyBHSTLicense")
    county_count: int = Field(default=1, ge=0)
    puc_license: float = Field(default=0.0, ge=0)

    vehicle_lease: float = Field(default=400.0, ge=0)
    maintenance_reserve: float = Field(default=200.0, ge=0)

    software: float = Field(default=69.0, ge=0)
    drug_screening: float = Field(default=30.0, ge=0)
    misc_admin: float = Field(default=100.0, ge=0)


# ---------------------------------------------------------------------------
# Variable
# ---------------------------------------------------------------------------

class FuelMode(str, enum.Enum):
    API = "api"
    MANUAL = "manual"
    COMPARE = "compare"


class PerTripMode(str, enum.Enum):
    PER_TRIP = "per_trip"
    PER_MILE = "per_mile"


class PerClaimMode(str, enum.Enum):
    PER_CLAIM = "per_claim"
    PERCENTAGE = "percentage"


class SoftwareBillingMode(str, enum.Enum):
    PER_TRIP = "per_trip"
    PER_MONTH = "per_month"


class DirectTransportCosts(ProphetModel):
    tires_per_mile: float = Field(default=0.03, ge=0)
    repairs_per_mile: float = Field(default=0.075, ge=0)
    oil_filter_per_mile: float = Field(default=0.015, ge=0)
    vehicle_cleaning_per_trip: float = Field(default=10.0, ge=0)
    disposable_supplies_per_trip: float = Field(default=3.5, ge=0)


class DriverStaffCosts(ProphetModel):
    per_trip_driver_pay: float = Field(default=0.0, ge=0)
    per_trip_driver_pay_mode: PerTripMode = PerTripMode.PER_TRIP
    overtime_hours_per_month: float = Field(default=0.0, ge=0)
    overtime_rate_multiplier: float = Field(default=1.5, ge=0)
    driver_bonuses_per_month: float = Field(default=0.0, ge=0)
    additional_shifts_per_month: float = Field(default=0.0, ge=0)
    temporary_driver_fee_per_hour: float = Field(default=37.5, ge=0)
    temporary_driver_hours_per_month: float = Field(default=0.0, ge=0)
    training_hours_per_month: float = Field(default=0.0, ge=0)
    training_rate_per_hour: float = Field(default=25.0, ge=0)


class PatientClientCosts(ProphetModel):
    trip_specific_supplies_per_trip: float = Field(default=0.0, ge=0)
    patient_meals_per_trip: float = Field(default=0.0, ge=0)
    accommodation_costs_per_trip: float = Field(default=0.0, ge=0)
    tolls_parking_per_month: float = Field(default=0.0, ge=0)
    wait_time_compensation_per_hour: float = Field(default=20.0, ge=0)
    avg_wait_time_hours_per_month: float = Field(default=0.0, ge=0)


class OperationalCosts(ProphetModel):
    dispatch_overtime_hours_per_month: float = Field(default=0.0, ge=0)
    dispatch_overtime_rate: float = Field(default=30.0, ge=0)
    phone_communication_overage_per_month: float = Field(default=0.0, ge=0)
    credit_card_processing_percentage: float = Field(default=2.75, ge=0, le=100)
    fuel_surcharge_threshold: float = Field(default=4.0, ge=0)
    fuel_surcharge_percentage: float = Field(default=5.0, ge=0, le=100)
    subcontractor_payments_per_month: float = Field(default=0.0, ge=0)
    emergency_roadside_per_month: float = Field(default=0.0, ge=0)


class AdministrativeCosts(ProphetModel):
    billing_claims_processing_per_claim: float = Field(default=0.0, ge=0)
    billing_claims_processing_percentage: float = Field(default=0.0, ge=0, le=100)
    billing_claims_processing_mode: PerClaimMode = PerClaimMode.PER_CLAIM
    collections_agency_percentage: float = Field(default=25.0, ge=0, le=100)
    collections_agency_recovered_amount: float = Field(default=0.0, ge=0)
    licensing_permit_renewals_per_month: float = Field(default=0.0, ge=0)
    insurance_audit_fees_per_month: float = Field(default=0.0, ge=0)


class MarketingCosts(ProphetModel):
    referral_commissions_per_client: float = Field(default=50.0, ge=0)
    referral_commissions_count: int = Field(default=0, ge=0)
    facility_partnership_fee_per_month: float = Field(default=0.0, ge=0)
    digital_advertising_per_month: float = Field(default=0.0, ge=0)
    crm_lists_per_month: float = Field(default=0.0, ge=0)


class ComplianceCosts(ProphetModel):
    random_drug_tests_per_month: int = Field(default=0, ge=0)
    random_drug_test_cost: float = Field(default=75.0, ge=0)
    background_check_renewals_per_driver: float = Field(default=0.0, ge=0)
    cpr_first_aid_recert_per_driver: float = Field(default=9.5, ge=0)
    vehicle_inspection_fees_per_month: float = Field(default=0.0, ge=0)


class TechnologyCosts(ProphetModel):
    gps_telematics_per_vehicle: float = Field(default=25.0, ge=0)
    ride_management_software_per_trip: float = Field(default=0.0, ge=0)
    ride_management_software_mode: SoftwareBillingMode = SoftwareBillingMode.PER_MONTH
    ride_management_software_monthly: float = Field(default=0.0, ge=0)
    data_overage_per_month: float = Field(default=0.0, ge=0)
    software_addons_per_month: float = Field(default=0.0, ge=0)


class VehicleSpecificCosts(ProphetModel):
    depreciation_per_mile: float = Field(default=0.10, ge=0)
    registration_fees_per_vehicle: float = Field(default=0.0, ge=0)
    personal_property_tax_per_vehicle: float = Field(default=0.0, ge=0)
    parking_storage_per_vehicle: float = Field(default=0.0, ge=0)


class HybridSpecificCosts(ProphetModel):
    medicaid_billing_support_per_claim: float = Field(default=0.0, ge=0)
    medicaid_billing_support_percentage: float = Field(default=0.0, ge=0, le=100)
    medicaid_billing_support_mode: PerClaimMode = PerClaimMode.PER_CLAIM
    prior_authorization_per_request: float = Field(default=0.0, ge=0)
    prior_authorization_count_per_month: int = Field(default=0, ge=0)
    hcbs_waiver_coordination_hours_per_month: float = Field(default=0.0, ge=0)
    hcbs_waiver_coordination_rate: float = Field(default=30.0, ge=0)
    private_pay_collection_hours_per_month: float = Field(default=0.0, ge=0)
    private_pay_collection_rate: float = Field(default=30.0, ge=0)
    dual_billing_system_maintenance_per_month: float = Field(default=0.0, ge=0)


class SeasonalCosts(ProphetModel):
    winter_operations_per_month: float = Field(default=0.0, ge=0)
    # 0-indexed months: Nov, Dec, Jan, Feb, Mar
    winter_operations_months: list[int] = Field(default_factory=lambda: [10, 11, 0, 1, 2])
    extreme_weather_costs_per_month: float = Field(default=0.0, ge=0)
    event_based_demand_per_month: float = Field(default=0.0, ge=0)
    vehicle_downtime_replacement_per_month: float = Field(default=0.0, ge=0)


class VariableCosts(ProphetModel):
    fuel_per_mile: float = Field(default=0.20, ge=0)
    maintenance_per_mile: float = Field(default=0.15, ge=0)
    insurance_variable_per_mile: float = Field(default=0.05, ge=0)

    fuel_mode: FuelMode = FuelMode.API
    fuel_api_price: float | None = Field(default=None, ge=0)
    fuel_manual_price: float = Field(default=3.50, ge=0)
    vehicle_mpg: float = Field(default=17.5, gt=0)

    direct_transport: DirectTransportCosts = Field(default_factory=DirectTransportCosts)
    driver_staff: DriverStaffCosts = Field(default_factory=DriverStaffCosts)
    patient_client: PatientClientCosts = Field(default_factory=PatientClientCosts)
    operational: OperationalCosts = Field(default_factory=OperationalCosts)
    administrative: AdministrativeCosts = Field(default_factory=AdministrativeCosts)
    marketing: MarketingCosts = Field(default_factory=MarketingCosts)
    compliance: ComplianceCosts = Field(default_factory=ComplianceCosts)
    technology: TechnologyCosts = Field(default_factory=TechnologyCosts)
    vehicle_specific: VehicleSpecificCosts = Field(default_factory=VehicleSpecificCosts)
    hybrid_specific: HybridSpecificCosts = Field(default_factory=HybridSpecificCosts)
    seasonal: SeasonalCosts = Field(default_factory=SeasonalCosts)


# ---------------------------------------------------------------------------
# Staffing
# ---------------------------------------------------------------------------

class StaffMember(ProphetModel):
    enabled: bool = False
    hourly_rate: float = Field(default=0.0, ge=0)
    hours_per_month: float = Field(default=0.0, ge=0, le=240)
    benefits_percentage: float = Field(default=0.0, ge=0, le=100)

    @computed_field
    @property
    def base_pay(self) -> float:
        return self.hourly_rate * self.hours_per_month

    @computed_field
    @property
    def total_cost(self) -> float:
        return self.base_pay * (1 + self.benefits_percentage / 100)


class StaffingCosts(ProphetModel):
    owner: StaffMember = Field(
        default_factory=lambda: StaffMember(enabled=True, hourly_rate=50, hours_per_month=160, benefits_percentage=15)
    )
    driver: StaffMember = Field(
        default_factory=lambda: StaffMember(enabled=False, hourly_rate=25, hours_per_month=160, benefits_percentage=25)
    )
    admin: StaffMember = Field(
        default_factory=lambda: StaffMember(enabled=False, hourly_rate=20, hours_per_month=40, benefits_percentage=15)
    )
    additional_drivers: int = Field(default=0, ge=0)


class CostStructure(ProphetModel):
    fixed: FixedCosts = Field(default_factory=FixedCosts)
    variable: VariableCosts = Field(default_factory=VariableCosts)
    staffing: StaffingCosts = Field(default_factory=StaffingCosts)
