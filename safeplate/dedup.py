"""Deduplication keys and most-recent-inspection merging.

Two different keys identify an establishment at two different stages and
must not be unified:

- ``crawl_key`` (name, address and inspection date, exact text) feeds the
  pagination controller's loop detection only.
- ``establishment_key`` (trimmed, lowercased name and address, no date)
  collapses records into one per establishment for the persisted dataset.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from safeplate.models import InspectionRecord

logger = logging.getLogger(__name__)


def crawl_key(record: InspectionRecord) -> str:
    """Within-run key: case-sensitive, untrimmed, date-qualified."""
    return f"{record.name}|{record.address}|{record.inspection_date}"


def establishment_key(record: InspectionRecord) -> str:
    """Cross-record key: case-insensitive, trimmed, date-free."""
    return f"{record.name.strip().lower()}|{record.address.strip().lower()}"


def _is_newer(candidate: InspectionRecord, kept: InspectionRecord) -> bool:
    candidate_day = candidate.inspection_day
    kept_day = kept.inspection_day
    if candidate_day is None or kept_day is None:
        return False
    return candidate_day > kept_day


def keep_most_recent(
    records: Iterable[InspectionRecord],
) -> list[InspectionRecord]:
    """Collapse records to one per establishment, keeping the latest inspection.

    Records are visited in order. For each later record sharing a key with
    the kept one, two steps run in this order:

    1. Backfill: if the kept record has no facility type and the new one
       does, the facility type is copied onto the kept record in place.
    2. Replace: if the new record's inspection date is strictly later, it
       replaces the kept record wholesale, backfill included.

    Records whose dates can't be parsed never replace a kept record.
    Output order follows the first appearance of each key.
    """
    by_establishment: dict[str, InspectionRecord] = {}
    total = 0

    for record in records:
        total += 1
        key = establishment_key(record)
        existing = by_establishment.get(key)
        if existing is None:
            by_establishment[key] = record
            continue

        if record.facility_type and not existing.facility_type:
            existing.facility_type = record.facility_type
            logger.debug(
                f"Updated facilityType for {record.name}: {record.facility_type}"
            )

        if _is_newer(record, existing):
            logger.debug(
                f"Replacing {record.name}: {existing.inspection_date} -> "
                f"{record.inspection_date}"
            )
            by_establishment[key] = record

    kept = list(by_establishment.values())
    logger.info(
        f"Kept {len(kept)} unique (from {total} total)",
        extra={"unique": len(kept), "total": total},
    )
    return kept


def merge_datasets(
    prior: Iterable[InspectionRecord], new: Iterable[InspectionRecord]
) -> list[InspectionRecord]:
    """Merge a new run into a prior dataset, prior records first."""
    prior = list(prior)
    new = list(new)
    logger.info(
        f"Merging {len(new)} new records into {len(prior)} existing records",
        extra={"existing": len(prior), "new": len(new)},
    )
    return keep_most_recent([*prior, *new])
