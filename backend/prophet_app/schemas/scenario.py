from __future__ import annotations

import enum
import uuid
from collections import Counter
from typing import Any

from pydantic import Field, field_validator, model_validator

from prophet_app.schemas.base import ProphetModel
from prophet_app.schemas.cost_structure import CostStructure
from prophet_app.schemas.service_code import TRANSPORT_CATEGORIES, ServiceCategory

MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 10.0


class BillingMethod(str, enum.Enum):
    MEDICAID = "medicaid"
    NMT = "nmt"
    CONTRACT = "contract"
    MILEAGE = "mileage"


def _new_id() -> str:
    return uuid.uuid4().hex


class TripScenario(ProphetModel):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    category: ServiceCategory | None = None
    selected_code_id: str | None = None
    selected_modifier: str | None = None

    trips_per_month: int = Field(default=0, ge=0)
    clients: int = Field(default=1, ge=1)
    multiplier: float = Field(default=1.0, ge=MIN_MULTIPLIER, le=MAX_MULTIPLIER)
    avg_miles: float = Field(default=10.0, ge=1)

    billing_method: BillingMethod = BillingMethod.MEDICAID
    base_rate_per_trip: float = Field(default=0.0, ge=0)
    mileage_rate: float = Field(default=0.0, ge=0)
    contract_fee: float | None = Field(default=None, ge=0)

    requires_waiver: bool = False
    percent_with_waiver: float = Field(default=100.0, ge=0, le=100)

    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_fields(cls, data: Any) -> Any:
        """One-time migration of stored trips written by older clients.

        ``roundTrip`` collapses into ``multiplier``; a missing or zero client
        count means a single client; ``serviceType`` names a category when it is
        one of the transport classes.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)

        round_trip = data.pop("roundTrip", data.pop("round_trip", None))
        if "multiplier" not in data or data["multiplier"] is None:
            data["multiplier"] = 2 if round_trip else 1

        if not data.get("clients"):
            data["clients"] = 1

        service_type = data.pop("serviceType", data.pop("service_type", None))
        if data.get("category") is None and service_type is not None:
            try:
                category = ServiceCategory(service_type)
            except ValueError:
                category = None
            if category in TRANSPORT_CATEGORIES:
                data["category"] = category
        return data

    @property
    def trip_units(self) -> float:
        """Billable trip legs per month before waiver eligibility is applied."""
        return self.trips_per_month * self.clients * self.multiplier


class BusinessScenario(ProphetModel):
    id: str = Field(default_factory=_new_id)
    name: str
    description: str | None = None

    facility_ids: list[str] = Field(default_factory=list)
    trips: list[TripScenario] = Field(default_factory=list)

    vehicles: int = Field(default=1, ge=0)
    drivers: int = Field(default=1, ge=0)

    costs: CostStructure | None = None

    @field_validator("trips")
    @classmethod
    def _unique_trip_ids(cls, trips: list[TripScenario]) -> list[TripScenario]:
        counts = Counter(t.id for t in trips)
        duplicates = sorted(trip_id for trip_id, n in counts.items() if n > 1)
        if duplicates:
            raise ValueError(f"trip ids must be unique, repeated: {', '.join(duplicates)}")
        return trips

    @property
    def total_trip_units(self) -> float:
        return sum(trip.trip_units for trip in self.trips)
