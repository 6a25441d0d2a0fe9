"""Run configuration.

A ``ScrapeConfig`` can be loaded from a JSON file and then overridden field
by field from command-line options::

    {
        "city": "Ankeny",
        "dateRange": {"start": "2024-01-01", "end": "2024-12-31"},
        "maxPages": 200
    }

Keys may be given in camelCase or snake_case.
"""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from safeplate.common.exceptions import DataFormatAssumptionException
from safeplate.common.param_models import DateRange
from safeplate.pagination import (
    DEFAULT_ADVANCE_TIMEOUT_MS,
    DEFAULT_MAX_DUPLICATE_PAGES,
    DEFAULT_MAX_PAGES,
    DEFAULT_VERIFICATION_TIMEOUT_MS,
)

DEFAULT_BASE_URL = (
    "https://iowa.safefoodinspection.com/Inspection/PublicInspectionSearch.aspx"
)


def default_date_range(today: date | None = None) -> DateRange:
    """One year of inspections ending today."""
    end = today or date.today()
    return DateRange(start=end - timedelta(days=365), end=end)


class ScrapeConfig(BaseModel):
    """Settings for one scrape run."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    base_url: str = Field(DEFAULT_BASE_URL, description="Search page URL")
    city: str = Field("Des Moines", min_length=1, description="City searched")
    date_range: DateRange = Field(
        default_factory=default_date_range,
        description="Inspection date window, both ends inclusive",
    )
    county: str = Field("Polk", description="County stamped on every record")
    output: Path = Field(
        Path("raw-data.json"), description="Dataset file read and rewritten"
    )
    headless: bool = Field(True, description="Run the browser without a window")
    timeout_ms: int = Field(60_000, gt=0, description="Default browser timeout")
    max_pages: int = Field(
        DEFAULT_MAX_PAGES, gt=0, description="Hard ceiling on pages crawled"
    )
    max_duplicate_pages: int = Field(
        DEFAULT_MAX_DUPLICATE_PAGES,
        gt=0,
        description="Consecutive all-duplicate pages that halt the crawl",
    )
    advance_timeout_ms: int = Field(
        DEFAULT_ADVANCE_TIMEOUT_MS,
        gt=0,
        description="Soft wait after clicking a page link",
    )
    verification_timeout_ms: int = Field(
        DEFAULT_VERIFICATION_TIMEOUT_MS,
        gt=0,
        description="Hard wait for the next page after an ellipsis click",
    )

    def with_overrides(self, **overrides: Any) -> ScrapeConfig:
        """Return a copy with every non-None override applied and validated."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return _validate(data, source="command-line options")


def _validate(data: dict[str, Any], source: str) -> ScrapeConfig:
    try:
        return ScrapeConfig.model_validate(data)
    except ValidationError as e:
        raise DataFormatAssumptionException(
            errors=[dict(err) for err in e.errors()],
            failed_doc=data,
            model_name="ScrapeConfig",
            source=source,
        ) from e


def load_config(path: Path | None = None) -> ScrapeConfig:
    """Load a config file, or the defaults when *path* is None.

    Raises:
        DataFormatAssumptionException: If the file holds invalid settings.
    """
    if path is None:
        return ScrapeConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataFormatAssumptionException(
            errors=[{"loc": (), "msg": f"invalid JSON at line {e.lineno}: {e.msg}"}],
            failed_doc={"path": str(path)},
            model_name="ScrapeConfig",
            source=str(path),
        ) from e
    return _validate(data, source=str(path))
