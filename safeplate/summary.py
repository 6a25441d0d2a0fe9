"""Risk distribution and city breakdown of a dataset."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from safeplate.models import InspectionRecord, RiskLevel

UNKNOWN_CITY = "Unknown"


@dataclass(frozen=True)
class RunSummary:
    total: int
    by_level: tuple[tuple[RiskLevel, int], ...]
    by_city: tuple[tuple[str, int], ...]


def summarize(records: Iterable[InspectionRecord]) -> RunSummary:
    """Count records per risk level (in level order) and per city.

    Cities are sorted by count, largest first; ties keep first-seen order.
    Records with no city are counted under "Unknown".
    """
    records = list(records)
    levels = Counter(record.risk_level for record in records)
    cities = Counter(record.city or UNKNOWN_CITY for record in records)
    return RunSummary(
        total=len(records),
        by_level=tuple((level, levels[level]) for level in RiskLevel),
        by_city=tuple(cities.most_common()),
    )


def format_summary(summary: RunSummary) -> list[str]:
    lines = [f"Total establishments: {summary.total}", "", "Risk distribution:"]
    lines.extend(
        f"  {level.value}: {count}" for level, count in summary.by_level
    )
    lines.extend(["", "City breakdown:"])
    lines.extend(f"  {city}: {count}" for city, count in summary.by_city)
    return lines
