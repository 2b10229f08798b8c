from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from pydantic import Field, computed_field, model_validator

from prophet_app.schemas.base import ProphetModel
from prophet_app.schemas.service_code import WaiverType


class FacilityType(str, enum.Enum):
    MENTAL_BEHAVIORAL = "mental_behavioral"
    SOBER_LIVING = "sober_living"
    MEDICAL_DETOX = "medical_detox"
    TRANSITIONAL_LIVING = "transitional_living"


class BillingFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ContractBillingMethod(str, enum.Enum):
    MONTHLY_FEE = "monthly_fee"
    PER_TRIP = "per_trip"
    HYBRID = "hybrid"


class BenefitLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Facility profile
# ---------------------------------------------------------------------------

class FacilityCensus(ProphetModel):
    bed_capacity: int = Field(default=0, ge=0)
    current_population: int = Field(default=0, ge=0)

    @computed_field
    @property
    def occupancy_rate(self) -> float:
        if self.bed_capacity == 0:
            return 0.0
        return self.current_population / self.bed_capacity * 100


class PaymentStructure(ProphetModel):
    accepts_cash: bool = False
    accepts_medicaid: bool = False
    accepts_private_insurance: bool = False


class FacilityWaivers(ProphetModel):
    has_waivers: bool = False
    types: list[WaiverType] = Field(default_factory=list)
    clients_with_waivers: int = Field(default=0, ge=0)


class OperatingHours(ProphetModel):
    open: str = "06:00"
    close: str = "22:00"


class FacilityLocation(ProphetModel):
    address: str = ""
    city: str = ""
    zip_code: str = ""
    avg_miles_to_destinations: float = Field(default=0.0, ge=0)


class FacilityOperations(ProphetModel):
    hours: OperatingHours = Field(default_factory=OperatingHours)
    location: FacilityLocation = Field(default_factory=FacilityLocation)


class TripDistribution(ProphetModel):
    medical: float = Field(default=0.0, ge=0, le=100)
    therapy: float = Field(default=0.0, ge=0, le=100)
    community: float = Field(default=0.0, ge=0, le=100)
    legal: float = Field(default=0.0, ge=0, le=100)


class FacilityTransport(ProphetModel):
    scheduled_trips_per_week: float = Field(default=0.0, ge=0)
    trips_per_client: float = Field(default=0.0, ge=0)
    peak_hours: list[str] = Field(default_factory=list)
    distribution: TripDistribution = Field(default_factory=TripDistribution)


class FacilityBillingCode(ProphetModel):
    code_id: str
    frequency: BillingFrequency = BillingFrequency.MONTHLY
    estimated_volume: float = Field(default=0.0, ge=0)


# ---------------------------------------------------------------------------
# Overhead breakdown (monthly $)
# ---------------------------------------------------------------------------

class PersonnelOverhead(ProphetModel):
    direct_care_staff: float = Field(default=0.0, ge=0)
    indirect_care_staff: float = Field(default=0.0, ge=0)
    clinical_supervision: float = Field(default=0.0, ge=0)
    payroll_taxes_benefits: float = Field(default=0.0, ge=0)
    benefits_package: float = Field(default=0.0, ge=0)
    training_credentialing: float = Field(default=0.0, ge=0)
    recruitment_retention: float = Field(default=0.0, ge=0)


class FacilityPropertyOverhead(ProphetModel):
    lease_mortgage: float = Field(default=0.0, ge=0)
    property_insurance: float = Field(default=0.0, ge=0)
    utilities: float = Field(default=0.0, ge=0)
    repair_maintenance: float = Field(default=0.0, ge=0)
    janitorial_housekeeping: float = Field(default=0.0, ge=0)
    security_systems: float = Field(default=0.0, ge=0)
    ada_compliance: float = Field(default=0.0, ge=0)


class AdministrativeOverhead(ProphetModel):
    office_equipment: float = Field(default=0.0, ge=0)
    software_licensing: float = Field(default=0.0, ge=0)
    office_supplies: float = Field(default=0.0, ge=0)
    technology_infrastructure: float = Field(default=0.0, ge=0)
    legal_accounting: float = Field(default=0.0, ge=0)
    licensing_accreditation: float = Field(default=0.0, ge=0)


class ClinicalOverhead(ProphetModel):
    medical_equipment: float = Field(default=0.0, ge=0)
    clinical_supplies: float = Field(default=0.0, ge=0)
    lab_testing_services: float = Field(default=0.0, ge=0)
    credentialing_costs: float = Field(default=0.0, ge=0)


class TransportationOverhead(ProphetModel):
    """What the facility spends moving its own clients today."""

    staff_time_allocation: float = Field(default=0.0, ge=0)
    vehicle_expenses: float = Field(default=0.0, ge=0)
    liability_coverage: float = Field(default=0.0, ge=0)
    opportunity_cost: float = Field(default=0.0, ge=0)
    scheduling_inefficiencies: float = Field(default=0.0, ge=0)
    compliance_risk: float = Field(default=0.0, ge=0)


class InsuranceOverhead(ProphetModel):
    general_liability: float = Field(default=0.0, ge=0)
    professional_liability: float = Field(default=0.0, ge=0)
    auto_liability: float = Field(default=0.0, ge=0)
    workers_compensation: float = Field(default=0.0, ge=0)
    cyber_liability: float = Field(default=0.0, ge=0)
    director_officer_insurance: float = Field(default=0.0, ge=0)


class ComplianceOverhead(ProphetModel):
    bha_licensing: float = Field(default=0.0, ge=0)
    quality_assurance: float = Field(default=0.0, ge=0)
    background_checks: float = Field(default=0.0, ge=0)
    hipaa_compliance: float = Field(default=0.0, ge=0)
    medicaid_audits: float = Field(default=0.0, ge=0)


class ProgramSpecificOverhead(ProphetModel):
    client_supplies: float = Field(default=0.0, ge=0)
    food_services: float = Field(default=0.0, ge=0)
    activities_programming: float = Field(default=0.0, ge=0)
    community_integration: float = Field(default=0.0, ge=0)


class CapitalOverhead(ProphetModel):
    it_equipment: float = Field(default=0.0, ge=0)
    furniture_fixtures: float = Field(default=0.0, ge=0)
    specialized_equipment: float = Field(default=0.0, ge=0)
    building_improvements: float = Field(default=0.0, ge=0)


class FacilityOverheadCosts(ProphetModel):
    personnel: PersonnelOverhead = Field(default_factory=PersonnelOverhead)
    facility: FacilityPropertyOverhead = Field(default_factory=FacilityPropertyOverhead)
    administrative: AdministrativeOverhead = Field(default_factory=AdministrativeOverhead)
    clinical: ClinicalOverhead = Field(default_factory=ClinicalOverhead)
    transportation: TransportationOverhead = Field(default_factory=TransportationOverhead)
    insurance: InsuranceOverhead = Field(default_factory=InsuranceOverhead)
    compliance: ComplianceOverhead = Field(default_factory=ComplianceOverhead)
    program_specific: ProgramSpecificOverhead = Field(default_factory=ProgramSpecificOverhead)
    capital: CapitalOverhead = Field(default_factory=CapitalOverhead)


# ---------------------------------------------------------------------------
# Contract analysis
# ---------------------------------------------------------------------------

class ProviderContractTerms(ProphetModel):
    billing_method: ContractBillingMethod = ContractBillingMethod.MONTHLY_FEE
    monthly_fee: float = Field(default=0.0, ge=0)
    per_trip_rate: float = Field(default=0.0, ge=0)
    included_trips: float = Field(default=0.0, ge=0)
    additional_trip_rate: float = Field(default=0.0, ge=0)
    contract_term: int = Field(default=12, ge=1)


class ContractComparison(ProphetModel):
    """Stored outcome of comparing one scenario against this facility."""

    scenario_id: str
    scenario_name: str = ""

    provider_revenue: float
    provider_costs: float
    provider_margin: float
    provider_margin_percentage: float
    provider_benefit_level: BenefitLevel
    provider_pros: list[str] = Field(default_factory=list)
    provider_cons: list[str] = Field(default_factory=list)

    facility_current_costs: float
    facility_proposed_costs: float
    facility_savings: float
    facility_savings_percentage: float
    facility_benefit_level: BenefitLevel
    facility_pros: list[str] = Field(default_factory=list)
    facility_cons: list[str] = Field(default_factory=list)

    mutual_benefit_score: float = Field(ge=0, le=100)
    recommendation: str = ""


class ContractAnalysis(ProphetModel):
    overhead_costs: FacilityOverheadCosts = Field(default_factory=FacilityOverheadCosts)
    contract_terms: ProviderContractTerms = Field(default_factory=ProviderContractTerms)
    comparisons: list[ContractComparison] = Field(default_factory=list)
    selected_comparison_id: str | None = None
    notes: str = ""


# ---------------------------------------------------------------------------
# Facility
# ---------------------------------------------------------------------------

class TreatmentFacility(ProphetModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    slot: int = Field(default=1, ge=1, le=3)
    name: str
    type: FacilityType = FacilityType.MENTAL_BEHAVIORAL

    census: FacilityCensus = Field(default_factory=FacilityCensus)
    payment_structure: PaymentStructure = Field(default_factory=PaymentStructure)
    waivers: FacilityWaivers = Field(default_factory=FacilityWaivers)
    operations: FacilityOperations = Field(default_factory=FacilityOperations)
    transport: FacilityTransport = Field(default_factory=FacilityTransport)
    billing_codes: list[FacilityBillingCode] = Field(default_factory=list)

    contract_analysis: ContractAnalysis | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _waiver_clients_within_census(self) -> "TreatmentFacility":
        population = self.census.current_population
        if population and self.waivers.clients_with_waivers > population:
            raise ValueError("clients_with_waivers cannot exceed the current population")
        return self

    @computed_field
    @property
    def waiver_percentage(self) -> float:
        if self.census.current_population == 0:
            return 0.0
        return self.waivers.clients_with_waivers / self.census.current_population * 100
