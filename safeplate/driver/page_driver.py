"""PageDriver protocol: the crawl's only view of the rendered results page.

Everything that locates DOM elements, clicks controls or waits on the
network lives behind this protocol. The pagination controller and the
extractor only see snapshots (RawRow, RevealedViolations) and opaque
pagination-control handles.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import date
from typing import Any, Protocol

from safeplate.data_types import RawRow, RevealedViolations


class PageDriver(Protocol):
    """Capability the pagination controller needs from a browser session."""

    def submit_search(self, city: str, start_date: date, end_date: date) -> bool:
        """Run the search. Returns False when the site reports no records."""
        ...

    def current_rows(self) -> Sequence[RawRow]:
        """Snapshot every establishment row on the visible page."""
        ...

    def reveal_violations(self, row: RawRow) -> RevealedViolations | None:
        """Open a row's violation detail view and snapshot its content.

        Returns None when the detail view doesn't appear.

        Raises:
            TransientException: If the interaction fails part-way.
        """
        ...

    def close_reveal(self) -> None:
        """Close any open detail view. Must be safe to call at any time."""
        ...

    def find_main_pagination(self) -> Any | None:
        """Locate the pagination control that belongs to the main grid.

        Other pagination controls on the page (for example inside a detail
        view) must be ignored.
        """
        ...

    def current_page_number(self, control: Any) -> int:
        """Read the page number the control currently displays."""
        ...

    def click_next(self, control: Any, target_page: int) -> bool:
        """Click the direct link to *target_page*; False if none is visible."""
        ...

    def click_ellipsis(self, control: Any) -> bool:
        """Click the "more pages" control; False if none is visible.

        On this grid the ellipsis both loads the next block of page links
        and navigates to the following page.
        """
        ...

    def wait_until(self, predicate: Callable[[], bool], timeout_ms: int) -> bool:
        """Poll *predicate* until it is true or the timeout elapses."""
        ...


@contextmanager
def violation_reveal(
    driver: PageDriver, row: RawRow
) -> Iterator[RevealedViolations | None]:
    """Open a row's detail view for the duration of the block.

    ``close_reveal()`` runs on every exit path, including a failed reveal or
    an exception raised while the caller reads the result, so an open
    detail view never leaks into the next row.

    Example::

        with violation_reveal(driver, row) as revealed:
            if revealed is not None:
                violations = revealed.violations
    """
    try:
        yield driver.reveal_violations(row)
    finally:
        driver.close_reveal()
