from __future__ import annotations

import enum
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from prophet_app.schemas.base import ProphetModel


class ServiceCategory(str, enum.Enum):
    BHST = "BHST"
    NEMT = "NEMT"
    NMT = "NMT"
    BEHAVIORAL = "Behavioral"
    OTHER = "Other"


TRANSPORT_CATEGORIES = frozenset({ServiceCategory.BHST, ServiceCategory.NEMT, ServiceCategory.NMT})

CATEGORY_CYCLE: list[ServiceCategory] = [
    ServiceCategory.BHST,
    ServiceCategory.NEMT,
    ServiceCategory.NMT,
    ServiceCategory.BEHAVIORAL,
    ServiceCategory.OTHER,
]

CATEGORY_LABELS: dict[ServiceCategory, str] = {
    ServiceCategory.BHST: "Behavioral Health Secure Transport",
    ServiceCategory.NEMT: "Non-Emergency Medical Transport",
    ServiceCategory.NMT: "Non-Medical Transport",
    ServiceCategory.BEHAVIORAL: "Behavioral Services",
    ServiceCategory.OTHER: "Other",
}


class RateType(str, enum.Enum):
    PER_MILE = "per_mile"
    PER_15_MIN = "per_15min"
    PER_30_MIN = "per_30min"
    PER_HOUR = "per_hour"
    PER_TRIP = "per_trip"
    PER_DIEM = "per_diem"


RATE_TYPE_CYCLE: list[RateType] = [
    RateType.PER_MILE,
    RateType.PER_15_MIN,
    RateType.PER_30_MIN,
    RateType.PER_HOUR,
    RateType.PER_TRIP,
    RateType.PER_DIEM,
]

RATE_TYPE_UNITS: dict[RateType, str] = {
    RateType.PER_MILE: "mile",
    RateType.PER_15_MIN: "15 min",
    RateType.PER_30_MIN: "30 min",
    RateType.PER_HOUR: "hour",
    RateType.PER_TRIP: "trip",
    RateType.PER_DIEM: "day",
}


class WaiverType(str, enum.Enum):
    CMHS = "CMHS"
    DD = "DD"
    SLS = "SLS"
    OTHER = "Other"


class AllowableLimits(ProphetModel):
    units_per_person: float | None = Field(default=None, ge=0)
    per_day: float | None = Field(default=None, ge=0)
    per_month: float | None = Field(default=None, ge=0)
    per_year: float | None = Field(default=None, ge=0)


class ServiceCodeRestrictions(ProphetModel):
    requires_waiver: bool = False
    requires_crisis: bool = False
    waiver_types: list[WaiverType] = Field(default_factory=list)
    provider_types: list[str] = Field(default_factory=list)
    max_trips_per_day: int | None = Field(default=None, ge=0)
    notes: str | None = None


class ServiceCode(ProphetModel):
    # Catalog records are replaced whole, never edited in place.
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    code: str
    modifier: str | None = None
    category: ServiceCategory
    description: str = ""

    rate_type: RateType
    base_rate: float = Field(ge=0)
    mileage_rate: float | None = Field(default=None, ge=0)
    mileage_code: str | None = None
    unit: str = ""

    allowable: AllowableLimits = Field(default_factory=AllowableLimits)
    restrictions: ServiceCodeRestrictions | None = None

    effective_date: date | None = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))

    notes: str | None = None
    is_custom: bool = False
    is_blocked: bool = False
    block_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_unit(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("unit"):
            rate_type = data.get("rate_type", data.get("rateType"))
            try:
                data = {**data, "unit": RATE_TYPE_UNITS[RateType(rate_type)]}
            except ValueError:
                pass
        return data

    @model_validator(mode="after")
    def _blocked_needs_reason(self) -> "ServiceCode":
        if self.is_blocked and not (self.block_reason or "").strip():
            raise ValueError("a blocked service code must carry a block_reason")
        return self

    @property
    def display_code(self) -> str:
        return f"{self.code}-{self.modifier}" if self.modifier else self.code

    @property
    def requires_waiver(self) -> bool:
        return bool(self.restrictions and self.restrictions.requires_waiver)
