"""Tests for loading and saving the JSON dataset."""

import json
from pathlib import Path

import pytest

from safeplate.common.exceptions import DataFormatAssumptionException
from safeplate.models import RiskLevel, Tier
from safeplate.severity import classify_violation
from safeplate.store import load_records, save_records
from tests.utils import make_record


class TestLoadRecords:
    """Tests for load_records()."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_records(tmp_path / "absent.json") == []

    def test_legacy_keys(self, tmp_path: Path) -> None:
        """Datasets written with the older key names shall load."""
        path = tmp_path / "raw-data.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "name": "Joe's Diner",
                        "addr": "123 Main St",
                        "inspectionDate": "11/26/2024",
                        "violations": [
                            {
                                "violationCode": "2-301.14",
                                "codeExplanation": "Handwashing",
                                "inspectorComments": "Not washed",
                                "section": "critical",
                            }
                        ],
                        "riskScore": 15,
                        "riskLevel": "MEDIUM",
                        "color": "orange",
                    }
                ]
            )
        )

        [record] = load_records(path)

        assert record.address == "123 Main St"
        assert record.violations[0].code == "2-301.14"
        assert record.violations[0].tier is Tier.CRITICAL
        assert record.risk_level is RiskLevel.MEDIUM
        assert record.facility_type == ""

    def test_invalid_dataset_raises(self, tmp_path: Path) -> None:
        """A record violating the schema shall raise DataFormatAssumptionException."""
        path = tmp_path / "raw-data.json"
        path.write_text(json.dumps([{"name": "X", "riskScore": 250}]))

        with pytest.raises(DataFormatAssumptionException) as exc_info:
            load_records(path)

        assert exc_info.value.model_name == "InspectionRecord"
        assert str(path) in str(exc_info.value)

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """A file that isn't JSON shall raise DataFormatAssumptionException."""
        path = tmp_path / "raw-data.json"
        path.write_text("not json")

        with pytest.raises(DataFormatAssumptionException) as exc_info:
            load_records(path)

        assert "invalid JSON at line 1" in exc_info.value.message


class TestSaveRecords:
    """Tests for save_records()."""

    def test_writes_camel_case_json(self, tmp_path: Path) -> None:
        """Saved records shall use camelCase keys and 2-space indentation."""
        path = tmp_path / "out" / "raw-data.json"
        record = make_record(
            zip_code="50309",
            violations=[classify_violation("6-301.14", "Signage", "No sign")],
        )

        written = save_records(path, [record])

        assert written == path.resolve()
        text = path.read_text(encoding="utf-8")
        assert text.startswith('[\n  {\n    "name"')
        [data] = json.loads(text)
        assert data["zipCode"] == "50309"
        assert data["inspectionDate"] == "11/26/2024"
        assert data["riskLevel"] == "EXCELLENT"
        assert data["violations"][0]["tier"] == "noncritical"
        assert "zip_code" not in data

    def test_overwrites_and_reloads(self, tmp_path: Path) -> None:
        path = tmp_path / "raw-data.json"
        save_records(path, [make_record("Old")])

        save_records(path, [make_record("New"), make_record("Other")])

        assert [r.name for r in load_records(path)] == ["New", "Other"]

    def test_non_ascii_is_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "raw-data.json"

        save_records(path, [make_record("Café Diem")])

        assert "Café Diem" in path.read_text(encoding="utf-8")
