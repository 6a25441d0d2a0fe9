"""Load and save the flat JSON record dataset.

The dataset is a single JSON array of records. Saving always rewrites the
whole file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from safeplate.common.exceptions import DataFormatAssumptionException
from safeplate.models import InspectionRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[InspectionRecord])


def load_records(path: Path) -> list[InspectionRecord]:
    """Read a dataset; a missing file is an empty dataset.

    Raises:
        DataFormatAssumptionException: If the file isn't a valid record array.
    """
    if not path.exists():
        logger.info(f"No existing data file at {path}")
        return []

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataFormatAssumptionException(
            errors=[{"loc": (), "msg": f"invalid JSON at line {e.lineno}: {e.msg}"}],
            failed_doc={"path": str(path)},
            model_name="InspectionRecord",
            source=str(path),
        ) from e

    try:
        records = _RECORDS.validate_python(raw)
    except ValidationError as e:
        raise DataFormatAssumptionException(
            errors=[dict(err) for err in e.errors()],
            failed_doc={"path": str(path)},
            model_name="InspectionRecord",
            source=str(path),
        ) from e

    logger.info(
        f"Loaded {len(records)} records from {path}",
        extra={"path": str(path), "count": len(records)},
    )
    return records


def save_records(path: Path, records: Sequence[InspectionRecord]) -> Path:
    """Overwrite the dataset at *path* and return its absolute path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.to_json_dict() for record in records]
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    size_kb = path.stat().st_size / 1024
    logger.info(
        f"Saved {len(records)} records to {path.resolve()} ({size_kb:.2f} KB)",
        extra={"path": str(path), "count": len(records)},
    )
    return path.resolve()
