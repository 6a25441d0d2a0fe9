"""Tests for ScrapeConfig loading and overrides."""

import json
from datetime import date
from pathlib import Path

import pytest

from safeplate.common.exceptions import DataFormatAssumptionException
from safeplate.config import (
    DEFAULT_BASE_URL,
    ScrapeConfig,
    default_date_range,
    load_config,
)


class TestDefaults:
    def test_defaults(self) -> None:
        """Defaults shall target Des Moines in Polk county with the crawl limits."""
        config = load_config(None)

        assert config.base_url == DEFAULT_BASE_URL
        assert config.city == "Des Moines"
        assert config.county == "Polk"
        assert config.output == Path("raw-data.json")
        assert config.headless is True
        assert config.timeout_ms == 60_000
        assert config.max_pages == 1000
        assert config.max_duplicate_pages == 3
        assert config.advance_timeout_ms == 10_000
        assert config.verification_timeout_ms == 10_000

    def test_default_window_is_one_year(self) -> None:
        window = default_date_range(date(2024, 12, 1))

        assert window.start == date(2023, 12, 2)
        assert window.end == date(2024, 12, 1)


class TestLoadConfig:
    def test_camel_case_file(self, tmp_path: Path) -> None:
        path = tmp_path / "run.json"
        path.write_text(
            json.dumps(
                {
                    "city": "Ankeny",
                    "dateRange": {"start": "2024-01-01", "end": "2024-12-31"},
                    "maxPages": 200,
                }
            )
        )

        config = load_config(path)

        assert config.city == "Ankeny"
        assert config.date_range.start == date(2024, 1, 1)
        assert config.max_pages == 200

    def test_snake_case_file(self, tmp_path: Path) -> None:
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"max_duplicate_pages": 5}))

        assert load_config(path).max_duplicate_pages == 5

    @pytest.mark.parametrize(
        "data",
        [
            {"dateRange": {"start": "2024-12-31", "end": "2024-01-01"}},
            {"maxPages": 0},
            {"unknownSetting": True},
        ],
    )
    def test_invalid_file_raises(self, tmp_path: Path, data: dict) -> None:
        """Invalid settings shall raise DataFormatAssumptionException."""
        path = tmp_path / "run.json"
        path.write_text(json.dumps(data))

        with pytest.raises(DataFormatAssumptionException) as exc_info:
            load_config(path)

        assert exc_info.value.model_name == "ScrapeConfig"

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "run.json"
        path.write_text("{city: Ankeny")

        with pytest.raises(DataFormatAssumptionException):
            load_config(path)


class TestOverrides:
    def test_none_values_are_ignored(self) -> None:
        config = ScrapeConfig(city="Clive").with_overrides(city=None, max_pages=7)

        assert config.city == "Clive"
        assert config.max_pages == 7

    def test_date_range_override(self) -> None:
        config = ScrapeConfig().with_overrides(
            date_range={"start": date(2024, 1, 1), "end": date(2024, 2, 1)}
        )

        assert config.date_range.end == date(2024, 2, 1)

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(DataFormatAssumptionException):
            ScrapeConfig().with_overrides(max_duplicate_pages=-1)
