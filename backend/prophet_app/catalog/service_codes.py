from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from prophet_app.core.config import get_settings
from prophet_app.core.errors import CodeBlockedError, InvalidInputError, ServiceCodeNotFoundError
from prophet_app.schemas.base import field_name_for
from prophet_app.schemas.service_code import (
    CATEGORY_CYCLE,
    RATE_TYPE_CYCLE,
    RATE_TYPE_UNITS,
    RateType,
    ServiceCategory,
    ServiceCode,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_SEED_FILE = DATA_DIR / "colorado_medicaid_codes.json"

# Locked while a code is blocked (e.g. an enrollment moratorium).
PROTECTED_FIELDS = frozenset(
    {"base_rate", "mileage_rate", "mileage_code", "rate_type", "unit", "allowable", "category"}
)
IMMUTABLE_FIELDS = frozenset({"id", "is_custom", "last_updated"})

_BOOL = TypeAdapter(bool)


@dataclass(frozen=True)
class MileageBand:
    code_id: str
    modifier: str
    min_miles: float
    max_miles: float | None  # None = unlimited
    rate: float
    description: str


# T2003 non-medical transport, one-way distance bands.
NMT_MILEAGE_BANDS: tuple[MileageBand, ...] = (
    MileageBand("nmt-t2003-u1", "U1", 0, 10, 22.28, "Band 1: 0-10 miles"),
    MileageBand("nmt-t2003-u2", "U2", 11, 25, 33.42, "Band 2: 11-25 miles"),
    MileageBand("nmt-t2003-u3", "U3", 26, 50, 55.70, "Band 3: 26-50 miles"),
    MileageBand("nmt-t2003-u4", "U4", 51, None, 78.00, "Band 4: 51+ miles"),
)


def mileage_band_for(miles: float) -> MileageBand | None:
    if miles < 0:
        return None
    for band in NMT_MILEAGE_BANDS:
        if band.max_miles is None or miles <= band.max_miles:
            return band
    return None


def load_seed_codes(path: Path | str | None = None) -> list[ServiceCode]:
    if path is None:
        configured = get_settings().service_code_seed_path
        path = Path(configured) if configured else DEFAULT_SEED_FILE
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        rows = json.load(f)
    codes = [ServiceCode.parse(r) for r in rows]
    logger.debug("Loaded %d service codes from %s", len(codes), path)
    return codes


def _coerce_flag(name: str, value: Any) -> bool:
    try:
        return _BOOL.validate_python(value)
    except ValidationError as exc:
        raise InvalidInputError(f"Service code field {name} must be a boolean, got {value!r}") from exc


def _next_in_cycle(cycle: list, current: Any) -> Any:
    try:
        idx = cycle.index(current)
    except ValueError:
        return cycle[0]
    return cycle[(idx + 1) % len(cycle)]


class ServiceCodeCatalog:
    """In-memory billing-code library.

    Seeded from reference data; edits replace whole ServiceCode records and
    stamp ``last_updated``. Codes are never deleted, ``reset_to_seed`` is the
    only way to discard edits and custom codes.
    """

    def __init__(
        self,
        seed: Iterable[ServiceCode] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._seed: tuple[ServiceCode, ...] = tuple(seed) if seed is not None else tuple(load_seed_codes())
        self._clock = clock or (lambda: datetime.now(UTC))
        self._codes: dict[str, ServiceCode] = {}
        self._load_seed()

    def _load_seed(self) -> None:
        self._codes = {c.id: c.model_copy(deep=True) for c in self._seed}

    def __len__(self) -> int:
        return len(self._codes)

    def __contains__(self, code_id: object) -> bool:
        return code_id in self._codes

    @property
    def codes(self) -> list[ServiceCode]:
        return list(self._codes.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, code_id: str) -> ServiceCode:
        code = self._codes.get(code_id)
        if code is None:
            raise ServiceCodeNotFoundError(code_id)
        return code

    def list_by_category(
        self, category: ServiceCategory | str | None, include_blocked: bool = False
    ) -> list[ServiceCode]:
        wanted = None
        if category is not None:
            try:
                wanted = ServiceCategory(category)
            except ValueError as exc:
                raise InvalidInputError(f"Unknown service category: {category!r}") from exc
        return [
            c
            for c in self._codes.values()
            if (wanted is None or c.category == wanted) and (include_blocked or not c.is_blocked)
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(self, code_id: str, changes: Mapping[str, Any]) -> ServiceCode:
        current = self.lookup(code_id)
        normalized = self._normalize_changes(changes)

        if "is_blocked" in normalized:
            normalized["is_blocked"] = _coerce_flag("is_blocked", normalized["is_blocked"])
        unblocking = current.is_blocked and normalized.get("is_blocked") is False
        if current.is_blocked and not unblocking:
            touched = PROTECTED_FIELDS & normalized.keys()
            if touched:
                logger.info("Rejected edit of blocked code %s fields=%s", code_id, sorted(touched))
                raise CodeBlockedError(code_id, current.block_reason or "")
        if unblocking:
            normalized["block_reason"] = None

        if "rate_type" in normalized and "unit" not in normalized:
            try:
                normalized["unit"] = RATE_TYPE_UNITS[RateType(normalized["rate_type"])]
            except ValueError:
                pass  # rejected by validation below

        return self._replace(current, normalized)

    def cycle_rate_type(self, code_id: str) -> ServiceCode:
        current = self._require_unblocked(code_id)
        rate_type = _next_in_cycle(RATE_TYPE_CYCLE, current.rate_type)
        return self._replace(current, {"rate_type": rate_type, "unit": RATE_TYPE_UNITS[rate_type]})

    def cycle_category(self, code_id: str) -> ServiceCode:
        current = self._require_unblocked(code_id)
        return self._replace(current, {"category": _next_in_cycle(CATEGORY_CYCLE, current.category)})

    def add_custom_code(self, fields: Mapping[str, Any]) -> ServiceCode:
        normalized = self._normalize_changes(fields)
        normalized.setdefault("code", "")
        normalized.setdefault("category", ServiceCategory.OTHER)
        normalized.setdefault("rate_type", RateType.PER_TRIP)
        normalized.setdefault("base_rate", 0.0)
        payload = {
            **normalized,
            "id": f"custom-{uuid.uuid4().hex[:12]}",
            "is_custom": True,
            "last_updated": self._clock(),
        }
        code = ServiceCode.parse(payload)
        self._codes[code.id] = code
        logger.info("Added custom service code %s (%s)", code.id, code.display_code)
        return code

    def reset_to_seed(self) -> None:
        custom = sum(1 for c in self._codes.values() if c.is_custom)
        self._load_seed()
        logger.info("Service codes reset to seed (%d codes, %d custom discarded)", len(self._codes), custom)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_unblocked(self, code_id: str) -> ServiceCode:
        current = self.lookup(code_id)
        if current.is_blocked:
            raise CodeBlockedError(code_id, current.block_reason or "")
        return current

    def _normalize_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        normalized: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in changes.items():
            name = field_name_for(ServiceCode, key)
            if name is None:
                unknown.append(key)
                continue
            normalized[name] = value
        if unknown:
            raise InvalidInputError(f"Unknown service code field(s): {', '.join(sorted(unknown))}")
        immutable = IMMUTABLE_FIELDS & normalized.keys()
        if immutable:
            raise InvalidInputError(f"Service code field(s) cannot be edited: {', '.join(sorted(immutable))}")
        return normalized

    def _replace(self, current: ServiceCode, changes: Mapping[str, Any]) -> ServiceCode:
        payload = {**current.model_dump(), **changes, "last_updated": self._clock()}
        updated = ServiceCode.parse(payload)
        self._codes[updated.id] = updated
        logger.debug("Service code %s updated fields=%s", updated.id, sorted(changes))
        return updated
