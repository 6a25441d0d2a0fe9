"""Shared parameter models.

Example::

    from safeplate.common.param_models import DateRange

    controller.crawl("Des Moines", DateRange(start=..., end=...))
"""

from datetime import date

from pydantic import BaseModel, model_validator


class DateRange(BaseModel):
    """Date range with start and end bounds.

    Both bounds are inclusive. Used for the inspection-date search filter.

    Attributes:
        start: Start date (inclusive).
        end: End date (inclusive).
    """

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(
                f"start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )
        return self

    def as_search_dates(self) -> tuple[str, str]:
        """Format both bounds the way the search form expects (MM/DD/YYYY)."""
        return (
            self.start.strftime("%m/%d/%Y"),
            self.end.strftime("%m/%d/%Y"),
        )
