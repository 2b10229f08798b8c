from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from prophet_app.contracts.overhead import (
    monthly_trip_volume,
    proposed_contract_cost,
    require_analysis,
    transportation_burden,
)
from prophet_app.scenarios.engine import BusinessScenarioResult
from prophet_app.schemas.facility import BenefitLevel, ContractComparison, TreatmentFacility

logger = logging.getLogger(__name__)

HIGH_BENEFIT_THRESHOLD = 20.0
MEDIUM_BENEFIT_THRESHOLD = 5.0
THIN_MARGIN_THRESHOLD = 5.0
MINIMAL_SAVINGS_THRESHOLD = 10.0

RECOMMEND_STRONG = "Strong mutual benefit - Recommended contract"
RECOMMEND_MODERATE = "Moderate benefit - Consider negotiation"
RECOMMEND_LIMITED = "Limited benefit - Needs adjustment"


def benefit_level(percentage: float) -> BenefitLevel:
    if percentage >= HIGH_BENEFIT_THRESHOLD:
        return BenefitLevel.HIGH
    if percentage >= MEDIUM_BENEFIT_THRESHOLD:
        return BenefitLevel.MEDIUM
    return BenefitLevel.LOW


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def mutual_benefit_score(provider_margin_percentage: float, facility_savings_percentage: float) -> float:
    """0-100; one side benefiting alone caps the score at 50."""
    return 0.5 * _clamp_pct(provider_margin_percentage) + 0.5 * _clamp_pct(facility_savings_percentage)


def provider_pros_cons(margin_percentage: float) -> tuple[list[str], list[str]]:
    pros: list[str] = []
    cons: list[str] = []
    if margin_percentage >= HIGH_BENEFIT_THRESHOLD:
        pros += ["Excellent profit margin", "Strong financial viability"]
    elif margin_percentage >= MEDIUM_BENEFIT_THRESHOLD:
        pros += ["Healthy profit margin", "Sustainable business model"]
    elif margin_percentage > 0:
        pros.append("Positive margin")
        cons.append("Low margin may limit growth")
    else:
        cons.append("Requires cost reduction or fee increase")
    if margin_percentage < 0:
        cons.insert(0, "Contract is unprofitable at current volume")
    if margin_percentage < THIN_MARGIN_THRESHOLD:
        cons.append("Thin margins increase risk")
    return pros, cons


def facility_pros_cons(savings_percentage: float) -> tuple[list[str], list[str]]:
    pros: list[str] = []
    cons: list[str] = []
    if savings_percentage >= HIGH_BENEFIT_THRESHOLD:
        pros += ["Significant cost savings", "Major reduction in transportation burden"]
    elif savings_percentage >= MEDIUM_BENEFIT_THRESHOLD:
        pros += ["Meaningful cost savings", "Reduced administrative burden"]
    elif savings_percentage > 0:
        pros.append("Some cost savings")
        cons.append("Limited savings may not justify change")
    else:
        cons += ["No cost savings", "Contract fee exceeds current costs"]
    if savings_percentage < MINIMAL_SAVINGS_THRESHOLD:
        cons.append("Minimal savings may not offset transition costs")
    return pros, cons


def recommendation(provider_level: BenefitLevel, facility_level: BenefitLevel,
                   provider_margin_percentage: float, facility_savings_percentage: float) -> str:
    if provider_level == BenefitLevel.HIGH and facility_level == BenefitLevel.HIGH:
        return RECOMMEND_STRONG
    if provider_margin_percentage > 0 and facility_savings_percentage > 0:
        return RECOMMEND_MODERATE
    return RECOMMEND_LIMITED


@dataclass(frozen=True)
class ComparisonResult:
    scenario_id: str
    scenario_name: str

    provider_revenue: float
    provider_costs: float
    provider_margin: float
    provider_margin_percentage: float
    provider_benefit_level: BenefitLevel
    provider_pros: tuple[str, ...]
    provider_cons: tuple[str, ...]

    facility_current_costs: float
    facility_proposed_costs: float
    facility_savings: float
    facility_savings_percentage: float
    facility_benefit_level: BenefitLevel
    facility_pros: tuple[str, ...]
    facility_cons: tuple[str, ...]

    mutual_benefit_score: float
    recommendation: str

    def to_record(self) -> ContractComparison:
        return ContractComparison.model_validate(asdict(self))


def compare(facility: TreatmentFacility, scenario: BusinessScenarioResult) -> ComparisonResult:
    analysis = require_analysis(facility)

    provider_pct = scenario.margin
    provider_level = benefit_level(provider_pct)
    p_pros, p_cons = provider_pros_cons(provider_pct)

    current = transportation_burden(analysis.overhead_costs)
    proposed = proposed_contract_cost(analysis.contract_terms, monthly_trip_volume(facility))
    savings = current - proposed
    savings_pct = savings / current * 100 if current > 0 else 0.0
    facility_level = benefit_level(savings_pct)
    f_pros, f_cons = facility_pros_cons(savings_pct)

    if provider_pct > 0 and savings_pct > 0:
        p_pros.append("Mutually beneficial arrangement")
        f_pros.append("Win-win partnership opportunity")

    result = ComparisonResult(
        scenario_id=scenario.scenario_id,
        scenario_name=scenario.scenario_name,
        provider_revenue=scenario.total_revenue,
        provider_costs=scenario.total_costs,
        provider_margin=scenario.net_income,
        provider_margin_percentage=provider_pct,
        provider_benefit_level=provider_level,
        provider_pros=tuple(p_pros),
        provider_cons=tuple(p_cons),
        facility_current_costs=current,
        facility_proposed_costs=proposed,
        facility_savings=savings,
        facility_savings_percentage=savings_pct,
        facility_benefit_level=facility_level,
        facility_pros=tuple(f_pros),
        facility_cons=tuple(f_cons),
        mutual_benefit_score=mutual_benefit_score(provider_pct, savings_pct),
        recommendation=recommendation(provider_level, facility_level, provider_pct, savings_pct),
    )
    logger.debug(
        "Compared scenario %s with facility %s: score=%.1f",
        scenario.scenario_id, facility.id, result.mutual_benefit_score,
    )
    return result


def record_comparison(
    facility: TreatmentFacility, result: ComparisonResult, now: datetime | None = None
) -> TreatmentFacility:
    """Return a copy of ``facility`` with ``result`` stored and selected."""
    analysis = require_analysis(facility)
    record = result.to_record()
    comparisons = [c for c in analysis.comparisons if c.scenario_id != record.scenario_id]
    comparisons.append(record)
    updated_analysis = analysis.model_copy(
        update={"comparisons": comparisons, "selected_comparison_id": record.scenario_id}
    )
    return facility.model_copy(
        update={"contract_analysis": updated_analysis, "updated_at": now or datetime.now(UTC)}
    )
