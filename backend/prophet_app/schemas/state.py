from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from prophet_app.core.errors import InvalidInputError
from prophet_app.schemas.base import ProphetModel
from prophet_app.schemas.cost_structure import CostStructure, VariableCosts
from prophet_app.schemas.facility import TreatmentFacility
from prophet_app.schemas.scenario import BusinessScenario
from prophet_app.schemas.service_code import ServiceCode

logger = logging.getLogger(__name__)

STATE_VERSION = 2
MAX_FACILITIES = 3

# Grouped variable-cost sections introduced in version 2.
_VARIABLE_GROUPS = (
    "direct_transport",
    "driver_staff",
    "patient_client",
    "operational",
    "administrative",
    "marketing",
    "compliance",
    "technology",
    "vehicle_specific",
    "hybrid_specific",
    "seasonal",
)


class ProphetState(ProphetModel):
    """Snapshot the host persists between sessions."""

    service_codes: list[ServiceCode] = Field(default_factory=list)
    facilities: list[TreatmentFacility] = Field(default_factory=list, max_length=MAX_FACILITIES)
    cost_structure: CostStructure = Field(default_factory=CostStructure)
    scenarios: list[BusinessScenario] = Field(default_factory=list)
    active_scenario_id: str | None = None
    last_synced_at: datetime | None = None

    @field_validator("facilities")
    @classmethod
    def _unique_slots(cls, facilities: list[TreatmentFacility]) -> list[TreatmentFacility]:
        slots = [f.slot for f in facilities]
        if len(slots) != len(set(slots)):
            raise ValueError("each facility must occupy a distinct slot")
        return facilities

    def active_scenario(self) -> BusinessScenario | None:
        if self.active_scenario_id is None:
            return None
        return next((s for s in self.scenarios if s.id == self.active_scenario_id), None)


def _has_groups(variable: Mapping[str, Any]) -> bool:
    def present(name: str) -> bool:
        return name in variable or VariableCosts.model_fields[name].alias in variable

    return present("direct_transport") and present("driver_staff")


def _migrate_variable_costs(variable: Mapping[str, Any]) -> dict[str, Any]:
    """Version 1 stored only the flat per-mile fields; groups start from defaults."""
    if _has_groups(variable):
        return dict(variable)
    group_keys = set(_VARIABLE_GROUPS) | {VariableCosts.model_fields[g].alias for g in _VARIABLE_GROUPS}
    return {k: v for k, v in variable.items() if k not in group_keys}


def _migrate_cost_structure(costs: Mapping[str, Any] | None) -> dict[str, Any]:
    costs = dict(costs or {})
    costs["variable"] = _migrate_variable_costs(costs.get("variable") or {})
    return costs


def migrate_persisted_state(payload: Mapping[str, Any], version: int) -> ProphetState:
    """Upgrade a stored snapshot written at ``version`` and validate it.

    Trip-level legacy fields (``roundTrip``, ``serviceType``) are normalized by
    the trip model itself.
    """
    if version > STATE_VERSION:
        raise InvalidInputError(
            f"Persisted state version {version} is newer than supported version {STATE_VERSION}",
            details={"version": version},
        )
    data = dict(payload)
    if version < 2:
        cost_key = "costStructure" if "costStructure" in data else "cost_structure"
        if data.get(cost_key) is not None:
            data[cost_key] = _migrate_cost_structure(data[cost_key])
        if data.get("scenarios"):
            data["scenarios"] = [
                {**scenario, "costs": _migrate_cost_structure(scenario.get("costs"))}
                for scenario in data["scenarios"]
            ]
        logger.info("Migrated persisted state from version %d to %d", version, STATE_VERSION)
    return ProphetState.parse(data)
