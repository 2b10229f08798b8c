from __future__ import annotations

from datetime import UTC, datetime

import pytest

from prophet_app.catalog.service_codes import ServiceCodeCatalog, load_seed_codes
from prophet_app.core.config import get_settings

FIXED_NOW = datetime(2025, 9, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog() -> ServiceCodeCatalog:
    return ServiceCodeCatalog(load_seed_codes(), clock=lambda: FIXED_NOW)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
