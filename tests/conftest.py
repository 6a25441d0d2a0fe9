"""Shared fixtures for the safeplate test suite."""

from datetime import date, datetime

import pytest

from safeplate.common.param_models import DateRange
from tests.utils import FIXED_NOW


@pytest.fixture
def date_range() -> DateRange:
    """The search window used by crawl tests."""
    return DateRange(start=date(2023, 12, 1), end=date(2024, 12, 1))


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
