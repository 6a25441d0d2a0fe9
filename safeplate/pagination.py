"""Pagination controller: drives a search through every page of results.

The controller is an explicit state machine::

    SUBMITTING -> PAGE_READY -> SCRAPING -> ADVANCING -> PAGE_READY | STOPPED

It owns the accumulated records, the crawl-wide set of seen ``crawl_key``
values and the expected page counter. The results grid is known to
misbehave after its "more pages" control is used: it can jump back to an
earlier page or replay the same page. Three guards catch that:

- a page whose records were all seen before counts as a duplicate page, and
  too many consecutive duplicate pages halt the crawl;
- the page number the grid displays must equal the expected counter before
  every advance;
- after an ellipsis click the grid must reach exactly the next page within
  a hard timeout.

Crawl halts never escape ``crawl()``. They are logged and attached to the
returned ``CrawlResult`` together with everything scraped so far.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from typing_extensions import assert_never

from safeplate.common.exceptions import (
    CrawlHaltException,
    DriverFailure,
    NavigationVerificationFailed,
    PageLimitReached,
    PageMismatch,
    PaginationLoop,
    ScraperAssumptionException,
    TransientException,
)
from safeplate.common.param_models import DateRange
from safeplate.data_types import EstablishmentRow, RawRow
from safeplate.dedup import crawl_key
from safeplate.driver.page_driver import PageDriver, violation_reveal
from safeplate.extractor import build_record, extract_row
from safeplate.models import InspectionRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000
DEFAULT_MAX_DUPLICATE_PAGES = 3
DEFAULT_ADVANCE_TIMEOUT_MS = 10_000
DEFAULT_VERIFICATION_TIMEOUT_MS = 10_000


class CrawlState(Enum):
    SUBMITTING = "submitting"
    PAGE_READY = "page_ready"
    SCRAPING = "scraping"
    ADVANCING = "advancing"
    STOPPED = "stopped"


class StopReason(str, Enum):
    """Why a crawl stopped."""

    COMPLETED = "completed"
    NO_RECORDS = "no_records"
    NO_PAGINATION = "no_pagination"
    PAGINATION_LOOP = "pagination_loop"
    PAGE_MISMATCH = "page_mismatch"
    NAVIGATION_VERIFICATION_FAILED = "navigation_verification_failed"
    PAGE_LIMIT = "page_limit"
    DRIVER_ERROR = "driver_error"
    CANCELLED = "cancelled"


def _halt_reason(error: CrawlHaltException) -> StopReason:
    match error:
        case PaginationLoop():
            return StopReason.PAGINATION_LOOP
        case PageMismatch():
            return StopReason.PAGE_MISMATCH
        case NavigationVerificationFailed():
            return StopReason.NAVIGATION_VERIFICATION_FAILED
        case PageLimitReached():
            return StopReason.PAGE_LIMIT
        case DriverFailure():
            return StopReason.DRIVER_ERROR
        case _:
            raise ValueError(f"Unknown crawl halt: {type(error).__name__}")


@dataclass
class CrawlResult:
    """Outcome of one crawl.

    Attributes:
        records: Every record scraped, in page order. Records repeated across
            pages are kept; collapsing them is the merge engine's job.
        stop_reason: Why the crawl stopped.
        failure: The halt that stopped the crawl, or None for a normal stop.
        pages_scraped: Number of pages whose rows were extracted.
        unique_keys: Number of distinct ``crawl_key`` values seen.
    """

    records: list[InspectionRecord] = field(default_factory=list)
    stop_reason: StopReason = StopReason.COMPLETED
    failure: CrawlHaltException | None = None
    pages_scraped: int = 0
    unique_keys: int = 0

    @property
    def halted(self) -> bool:
        return self.failure is not None


@dataclass
class _PageOutcome:
    scraped: int = 0
    duplicates: int = 0


class PaginationController:
    """Runs one search and walks its result pages through a PageDriver.

    Example::

        controller = PaginationController(driver, county="Polk")
        result = controller.crawl("Des Moines", DateRange(start=..., end=...))
        if result.halted:
            print(result.failure)
    """

    def __init__(
        self,
        driver: PageDriver,
        county: str = "Polk",
        max_pages: int = DEFAULT_MAX_PAGES,
        max_duplicate_pages: int = DEFAULT_MAX_DUPLICATE_PAGES,
        advance_timeout_ms: int = DEFAULT_ADVANCE_TIMEOUT_MS,
        verification_timeout_ms: int = DEFAULT_VERIFICATION_TIMEOUT_MS,
        on_data: Callable[[InspectionRecord], None] | None = None,
        stop_event: threading.Event | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the controller.

        Args:
            driver: Browser session implementing PageDriver.
            county: County stamped on every record.
            max_pages: Hard ceiling on the expected page counter.
            max_duplicate_pages: Consecutive all-duplicate pages that halt
                the crawl.
            advance_timeout_ms: Soft wait after a direct page-link click.
            verification_timeout_ms: Hard wait after an ellipsis click.
            on_data: Optional callback invoked with each record as it is
                scraped.
            stop_event: Optional threading.Event. When set, the crawl stops
                before the next page and returns what it has.
            now: Clock used for the ``scraped_at`` timestamp.
        """
        self.driver = driver
        self.county = county
        self.max_pages = max_pages
        self.max_duplicate_pages = max_duplicate_pages
        self.advance_timeout_ms = advance_timeout_ms
        self.verification_timeout_ms = verification_timeout_ms
        self.on_data = on_data
        self.stop_event = stop_event
        self.now = now

    def crawl(self, city: str, date_range: DateRange) -> CrawlResult:
        """Submit the search and scrape every reachable result page."""
        result = CrawlResult()
        seen: set[str] = set()
        consecutive_duplicate_pages = 0
        page_num = 1
        state = CrawlState.SUBMITTING

        try:
            while state is not CrawlState.STOPPED:
                match state:
                    case CrawlState.SUBMITTING:
                        logger.info(
                            f"Searching {city} from {date_range.start} "
                            f"to {date_range.end}",
                            extra={"state": state.value, "action": "submit"},
                        )
                        if self.driver.submit_search(
                            city, date_range.start, date_range.end
                        ):
                            state = CrawlState.PAGE_READY
                        else:
                            logger.warning("No results found for this search")
                            result.stop_reason = StopReason.NO_RECORDS
                            state = CrawlState.STOPPED

                    case CrawlState.PAGE_READY:
                        if self.stop_event and self.stop_event.is_set():
                            logger.info(
                                f"Stop requested before page {page_num}",
                                extra={
                                    "state": state.value,
                                    "page_num": page_num,
                                    "action": "cancel",
                                },
                            )
                            result.stop_reason = StopReason.CANCELLED
                            state = CrawlState.STOPPED
                        elif page_num > self.max_pages:
                            raise PageLimitReached(page_num, self.max_pages)
                        else:
                            state = CrawlState.SCRAPING

                    case CrawlState.SCRAPING:
                        outcome = self._scrape_page(page_num, seen, result.records)
                        result.pages_scraped += 1
                        result.unique_keys = len(seen)
                        logger.info(
                            f"Page {page_num}: scraped {outcome.scraped} "
                            f"establishments ({outcome.duplicates} duplicates, "
                            f"total: {len(result.records)}, unique: {len(seen)})",
                            extra={
                                "state": state.value,
                                "page_num": page_num,
                                "action": "scrape",
                                "duplicates": outcome.duplicates,
                            },
                        )

                        if outcome.scraped and outcome.duplicates == outcome.scraped:
                            consecutive_duplicate_pages += 1
                            logger.warning(
                                f"Page {page_num} is 100% duplicates "
                                f"({consecutive_duplicate_pages}/"
                                f"{self.max_duplicate_pages})",
                                extra={
                                    "page_num": page_num,
                                    "duplicates": consecutive_duplicate_pages,
                                },
                            )
                            if (
                                consecutive_duplicate_pages
                                >= self.max_duplicate_pages
                            ):
                                raise PaginationLoop(
                                    page_num,
                                    consecutive_duplicate_pages,
                                    outcome.scraped,
                                )
                        else:
                            consecutive_duplicate_pages = 0
                        state = CrawlState.ADVANCING

                    case CrawlState.ADVANCING:
                        end_reason = self._advance(page_num)
                        if end_reason is None:
                            page_num += 1
                            state = CrawlState.PAGE_READY
                        else:
                            result.stop_reason = end_reason
                            state = CrawlState.STOPPED

                    case CrawlState.STOPPED:
                        pass

                    case _:
                        assert_never(state)

        except CrawlHaltException as e:
            self._halt(result, e, consecutive_duplicate_pages, len(seen))
        except Exception as e:
            self._halt(
                result,
                DriverFailure(page_num, state.value, e),
                consecutive_duplicate_pages,
                len(seen),
            )

        logger.info(
            f"Crawl stopped ({result.stop_reason.value}): "
            f"{len(result.records)} records from {result.pages_scraped} pages",
            extra={
                "state": CrawlState.STOPPED.value,
                "page_num": page_num,
                "action": "stop",
            },
        )
        return result

    def _halt(
        self,
        result: CrawlResult,
        error: CrawlHaltException,
        duplicates: int,
        unique_keys: int,
    ) -> None:
        """Attach a halt to *result*. Called from inside the except block."""
        result.failure = error
        result.stop_reason = _halt_reason(error)
        result.unique_keys = unique_keys
        logger.error(
            f"Crawl halted: {error.message}",
            exc_info=isinstance(error, DriverFailure),
            extra={
                "state": CrawlState.STOPPED.value,
                "page_num": error.page_num,
                "action": "halt",
                "duplicates": duplicates,
                **error.context,
            },
        )

    def _scrape_page(
        self, page_num: int, seen: set[str], into: list[InspectionRecord]
    ) -> _PageOutcome:
        """Extract every row on the current page, appending records to *into*.

        Keys are added to *seen* as they are encountered, so a record that
        repeats within the same page also counts as a duplicate. Records are
        appended as they are built, so a driver failure part-way through the
        page keeps the rows finished before it.
        """
        outcome = _PageOutcome()
        rows = self.driver.current_rows()
        logger.debug(
            f"Page {page_num}: {len(rows)} rows",
            extra={"page_num": page_num, "row_count": len(rows)},
        )

        for raw in rows:
            try:
                row = extract_row(raw)
                if row is None:
                    continue
                record = self._record_for(row, raw)
            except ScraperAssumptionException as e:
                logger.warning(
                    f"Skipping row {raw.index} on page {page_num}: {e.message}",
                    extra={"page_num": page_num, "row_index": raw.index},
                )
                continue

            key = crawl_key(record)
            if key in seen:
                outcome.duplicates += 1
            else:
                seen.add(key)
            into.append(record)
            outcome.scraped += 1
            if self.on_data:
                self.on_data(record)

        return outcome

    def _record_for(self, row: EstablishmentRow, raw: RawRow) -> InspectionRecord:
        scraped_at = self.now()
        if not row.has_violations:
            return build_record(row, None, self.county, scraped_at)

        try:
            with violation_reveal(self.driver, raw) as revealed:
                if revealed is None:
                    logger.debug(
                        f"Row {raw.index}: violation detail did not open",
                        extra={"row_index": raw.index},
                    )
                return build_record(row, revealed, self.county, scraped_at)
        except TransientException as e:
            logger.warning(
                f"Row {raw.index}: recording {row.name} without violations: {e}",
                extra={"row_index": raw.index},
            )
            return build_record(row, None, self.county, scraped_at)

    def _advance(self, page_num: int) -> StopReason | None:
        """Move the grid from *page_num* to the next page.

        Returns None when the grid moved on, or the reason the results ended
        normally.

        Raises:
            PageMismatch: If the grid doesn't show *page_num*.
            NavigationVerificationFailed: If an ellipsis click doesn't land
                on the next page in time.
        """
        control = self.driver.find_main_pagination()
        if control is None:
            logger.info(
                "No pagination control on the main grid; single page of results",
                extra={"page_num": page_num, "action": "no_pagination"},
            )
            return StopReason.NO_PAGINATION

        displayed = self.driver.current_page_number(control)
        if displayed != page_num:
            raise PageMismatch(expected=page_num, actual=displayed)

        next_page = page_num + 1
        if self.driver.click_next(control, next_page):
            logger.info(
                f"Navigating to page {next_page}",
                extra={"page_num": page_num, "action": "click_next"},
            )
            if not self.driver.wait_until(
                lambda: self._displayed_page() not in (None, page_num),
                self.advance_timeout_ms,
            ):
                logger.warning(
                    f"Page number didn't update after clicking page {next_page}; "
                    f"continuing",
                    extra={"page_num": page_num, "action": "click_next"},
                )
            return None

        if self.driver.click_ellipsis(control):
            logger.info(
                "Clicking ellipsis to load more pages",
                extra={"page_num": page_num, "action": "click_ellipsis"},
            )
            if not self.driver.wait_until(
                lambda: self._displayed_page() == next_page,
                self.verification_timeout_ms,
            ):
                raise NavigationVerificationFailed(
                    page_num, next_page, self.verification_timeout_ms
                )
            logger.info(
                f"Loaded page {next_page} via ellipsis",
                extra={"page_num": next_page, "action": "click_ellipsis"},
            )
            return None

        logger.info(
            "No more pages",
            extra={"page_num": page_num, "action": "complete"},
        )
        return StopReason.COMPLETED

    def _displayed_page(self) -> int | None:
        """Page number the main pager shows, or None while it is missing."""
        control = self.driver.find_main_pagination()
        if control is None:
            return None
        return self.driver.current_page_number(control)
