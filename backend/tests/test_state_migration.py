from __future__ import annotations

import pytest

from prophet_app.core.errors import InvalidInputError
from prophet_app.schemas.state import STATE_VERSION, ProphetState, migrate_persisted_state


def _v1_payload() -> dict:
    return {
        "costStructure": {
            "variable": {
                "fuelPerMile": 0.25,
                "fuelManualPrice": 3.9,
                "vehicleMpg": 20,
                "directTransport": {"tiresPerMile": 9},  # partial v1 write, discarded
            },
        },
        "scenarios": [
            {
                "id": "s1",
                "name": "Weekday runs",
                "costs": {"variable": {"maintenancePerMile": 0.2}},
                "trips": [{"id": "t1", "tripsPerMonth": 40, "roundTrip": True, "serviceType": "NMT"}],
            },
        ],
        "activeScenarioId": "s1",
    }


def test_v1_state_gets_default_variable_groups():
    state = migrate_persisted_state(_v1_payload(), version=1)
    variable = state.cost_structure.variable
    assert variable.fuel_per_mile == 0.25
    assert variable.fuel_manual_price == 3.9
    assert variable.vehicle_mpg == 20
    assert variable.direct_transport.tires_per_mile == 0.03
    assert variable.seasonal.winter_operations_months == [10, 11, 0, 1, 2]


def test_v1_scenarios_migrated():
    state = migrate_persisted_state(_v1_payload(), version=1)
    scenario = state.active_scenario()
    assert scenario is not None and scenario.id == "s1"
    assert scenario.costs.variable.maintenance_per_mile == 0.2
    trip = scenario.trips[0]
    assert trip.multiplier == 2
    assert trip.category == "NMT"


def test_current_version_kept_as_is():
    payload = _v1_payload()
    state = migrate_persisted_state(payload, version=STATE_VERSION)
    assert state.cost_structure.variable.direct_transport.tires_per_mile == 9


def test_newer_version_rejected():
    with pytest.raises(InvalidInputError, match="newer"):
        migrate_persisted_state({}, version=STATE_VERSION + 1)


def test_active_scenario_missing_or_unset():
    assert ProphetState().active_scenario() is None
    assert ProphetState(active_scenario_id="gone").active_scenario() is None


def test_at_most_three_facilities_in_distinct_slots():
    facilities = [{"name": f"F{i}", "slot": i} for i in (1, 2, 3)]
    assert len(ProphetState.parse({"facilities": facilities}).facilities) == 3
    with pytest.raises(InvalidInputError):
        ProphetState.parse({"facilities": facilities + [{"name": "F4", "slot": 1}]})
    with pytest.raises(InvalidInputError):
        ProphetState.parse({"facilities": [{"name": "A", "slot": 2}, {"name": "B", "slot": 2}]})
