"""Playwright page driver for the Iowa food inspection search site.

The public search is an ASP.NET WebForms page: the results grid, its pager
and the violation detail view are all rebuilt by postbacks, so every
element is re-located right before it is used. Rows and detail views leave
this module as DOM snapshots; no live handle reaches the extractor.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date

from playwright.sync_api import (
    Error as PlaywrightError,
)
from playwright.sync_api import (
    Locator,
    Page,
    sync_playwright,
)
from playwright.sync_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from safeplate.common.exceptions import (
    RevealTimeoutException,
    TransientException,
)
from safeplate.common.param_models import DateRange
from safeplate.config import DEFAULT_BASE_URL
from safeplate.data_types import RawRow, RevealedViolations
from safeplate.extractor import parse_violation_details

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)
DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}
LEADING_NUMBER = re.compile(r"\s*(\d+)")


@dataclass(frozen=True)
class SiteLayout:
    """Selectors and form values for the search page."""

    base_url: str = DEFAULT_BASE_URL
    state_select: str = "#MainContent_wucStateCountiesFS_ddlState"
    state_value: str = "82"
    county_group_select: str = "#MainContent_wucStateCountiesFS_ddlCountyGroup"
    county_group_value: str = "1"
    city_input: str = "#MainContent_txtCity"
    begin_date_input: str = "#MainContent_dteInspectionBeginDate_txtDate"
    end_date_input: str = "#MainContent_dteInspectionEndDate_txtDate"
    search_button: str = "#MainContent_btnSearch"
    no_results: str = "text=No records found"
    grid_table_id: str = "MainContent_gvInspections"
    grid_rows: str = (
        "#MainContent_gvInspections > tbody > tr.GridItem, "
        "#MainContent_gvInspections > tbody > tr.GridAltItem"
    )
    violations_cell_index: int = 4
    detail_view: str = "#tbPublicInspectionMain"
    pager_rows: str = "tr.GridPager"
    ellipsis_link: str = 'a:has-text("...")'
    close_button: str = 'input[value="Close"]'
    overlay: str = "#cboxOverlay"


class PlaywrightPageDriver:
    """PageDriver backed by a synchronous Playwright page.

    Use ``open()`` to own the browser lifecycle::

        with PlaywrightPageDriver.open(headless=True) as driver:
            result = PaginationController(driver).crawl(city, date_range)
    """

    def __init__(
        self,
        page: Page,
        layout: SiteLayout | None = None,
        link_timeout_ms: int = 10_000,
        detail_timeout_ms: int = 5_000,
        settle_ms: int = 2_000,
        poll_interval_ms: int = 250,
    ) -> None:
        self.page = page
        self.layout = layout or SiteLayout()
        self.link_timeout_ms = link_timeout_ms
        self.detail_timeout_ms = detail_timeout_ms
        self.settle_ms = settle_ms
        self.poll_interval_ms = poll_interval_ms

    @classmethod
    @contextmanager
    def open(
        cls,
        headless: bool = True,
        timeout_ms: int = 60_000,
        layout: SiteLayout | None = None,
        viewport: dict[str, int] | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> Iterator[PlaywrightPageDriver]:
        """Launch Chromium and yield a driver bound to a fresh page.

        Args:
            headless: Run the browser without a window.
            timeout_ms: Default timeout for every Playwright action.
            layout: Site selectors (default: the live Iowa layout).
            viewport: Browser viewport size (default: 1920x1080).
            user_agent: User agent string sent with every request.
        """
        with sync_playwright() as playwright:
            try:
                browser = playwright.chromium.launch(
                    headless=headless,
                    args=["--disable-blink-features=AutomationControlled"],
                )
            except PlaywrightError as e:
                raise TransientException(f"Browser launch failed: {e}") from e
            try:
                context = browser.new_context(
                    viewport=viewport or DEFAULT_VIEWPORT,
                    user_agent=user_agent,
                )
                page = context.new_page()
                page.set_default_timeout(timeout_ms)
                logger.info(
                    f"Browser launched (headless={headless})",
                    extra={"headless": headless, "timeout_ms": timeout_ms},
                )
                yield cls(page, layout)
            finally:
                browser.close()
                logger.info("Browser closed")

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def submit_search(self, city: str, start_date: date, end_date: date) -> bool:
        layout = self.layout
        page = self.page
        start, end = DateRange(start=start_date, end=end_date).as_search_dates()

        try:
            page.goto(layout.base_url, wait_until="networkidle")
            page.wait_for_timeout(self.settle_ms)

            logger.debug("Selecting state and region")
            page.select_option(layout.state_select, value=layout.state_value)
            page.wait_for_timeout(1500)
            page.select_option(
                layout.county_group_select, value=layout.county_group_value
            )
            page.wait_for_timeout(1500)

            logger.debug(f"Entering city {city} and dates {start} to {end}")
            page.fill(layout.city_input, city)
            page.fill(layout.begin_date_input, start)
            page.fill(layout.end_date_input, end)

            page.click(layout.search_button)
            page.wait_for_timeout(3000)
            no_results = page.locator(layout.no_results).first.is_visible()
        except PlaywrightError as e:
            raise TransientException(f"Search submission failed: {e}") from e

        if no_results:
            return False
        logger.info("Results loaded")
        return True

    def current_rows(self) -> Sequence[RawRow]:
        try:
            rows = self.page.locator(self.layout.grid_rows).all()
            return [
                RawRow(index, row.evaluate("el => el.outerHTML"))
                for index, row in enumerate(rows)
            ]
        except PlaywrightError as e:
            raise TransientException(f"Reading result rows failed: {e}") from e

    # ------------------------------------------------------------------
    # Violation detail view
    # ------------------------------------------------------------------

    def reveal_violations(self, row: RawRow) -> RevealedViolations | None:
        live_row = self.page.locator(self.layout.grid_rows).nth(row.index)
        link = (
            live_row.locator("td")
            .nth(self.layout.violations_cell_index)
            .locator("a")
            .first
        )
        try:
            link.click(timeout=self.link_timeout_ms)
            self.page.wait_for_timeout(1500)
        except PlaywrightTimeoutError as e:
            raise RevealTimeoutException(row.index, self.link_timeout_ms) from e
        except PlaywrightError as e:
            raise TransientException(
                f"Violations link for row {row.index} failed: {e}"
            ) from e

        try:
            self.page.wait_for_selector(
                self.layout.detail_view,
                state="visible",
                timeout=self.detail_timeout_ms,
            )
        except PlaywrightTimeoutError:
            logger.debug(f"Row {row.index}: detail view did not appear")
            return None
        except PlaywrightError as e:
            raise TransientException(
                f"Detail view for row {row.index} failed: {e}"
            ) from e

        try:
            self.page.wait_for_timeout(500)
            content = self.page.content()
        except PlaywrightError as e:
            raise TransientException(
                f"Snapshot of row {row.index} detail view failed: {e}"
            ) from e
        return parse_violation_details(content)

    def close_reveal(self) -> None:
        page = self.page
        try:
            page.keyboard.press("Escape")
            page.wait_for_timeout(500)

            for selector in (self.layout.close_button, self.layout.overlay):
                target = page.locator(selector).first
                if target.is_visible():
                    target.click(timeout=2000)
                    page.wait_for_timeout(500)
        except PlaywrightError as e:
            logger.debug(f"Detail view close attempt: {e}")

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def find_main_pagination(self) -> Locator | None:
        try:
            for pager in self.page.locator(self.layout.pager_rows).all():
                table_id = pager.evaluate(
                    "el => { const t = el.closest('table'); return t ? t.id : null; }"
                )
                if table_id == self.layout.grid_table_id:
                    return pager
        except PlaywrightError as e:
            raise TransientException(f"Locating the pager failed: {e}") from e
        return None

    def current_page_number(self, control: Locator) -> int:
        try:
            text = control.locator("span").first.inner_text(
                timeout=self.detail_timeout_ms
            )
        except PlaywrightError:
            text = ""
        match = LEADING_NUMBER.match(text)
        return int(match.group(1)) if match else 1

    def click_next(self, control: Locator, target_page: int) -> bool:
        # Exact text match: a has-text locator for "2" would also hit "12".
        link = control.locator(
            f"xpath=.//a[normalize-space(.)='{target_page}']"
        ).first
        try:
            if not link.is_visible():
                return False
            link.click()
            self.page.wait_for_timeout(self.settle_ms)
        except PlaywrightError as e:
            raise TransientException(
                f"Clicking the link to page {target_page} failed: {e}"
            ) from e
        return True

    def click_ellipsis(self, control: Locator) -> bool:
        link = control.locator(self.layout.ellipsis_link).first
        try:
            if not link.is_visible():
                return False
            link.click()
            self.page.wait_for_timeout(3000)
        except PlaywrightError as e:
            raise TransientException(f"Clicking the ellipsis failed: {e}") from e
        return True

    def wait_until(self, predicate: Callable[[], bool], timeout_ms: int) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000
        while True:
            try:
                if predicate():
                    return True
            except PlaywrightError as e:
                logger.debug(f"Wait predicate failed, retrying: {e}")
            if time.monotonic() >= deadline:
                return False
            self.page.wait_for_timeout(self.poll_interval_ms)
