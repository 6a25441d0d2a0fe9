"""Exception types for scraper and crawl errors.

Two families live here:

- Assumption exceptions describe a single row or detail view that did not
  look the way the extractor expected. They are local: the crawl loop logs
  them and moves on to the next row.
- Crawl-halt exceptions describe pagination that can no longer be trusted,
  or a page driver that failed outright. They stop the crawl, and the
  controller returns whatever was accumulated.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    The extractor makes assumptions about the results grid markup and the
    shape of the values it reads. When these assumptions are violated it
    raises a subclass with enough context to diagnose the issue.
    """

    def __init__(
        self,
        message: str,
        source: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            source: Where the offending markup came from (row, detail view).
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.source = source
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"Source: {self.source}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    This exception is raised when XPath or CSS selectors return a different
    number of elements than expected. This usually indicates that the
    inspection site's markup has changed.

    Attributes:
        selector: The XPath or CSS selector that was used.
        selector_type: Type of selector ("xpath" or "css").
        is_element_query: True if querying for elements, False for strings.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        source: str,
        is_element_query: bool = True,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count
        self.is_element_query = is_element_query

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
            "is_element_query": is_element_query,
        }

        super().__init__(message, source, context)


class DataFormatAssumptionException(ScraperAssumptionException):
    """Raised when an extracted record doesn't match the expected schema.

    Raised from deferred validation when the values pulled out of a row
    don't conform to the record model.
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        failed_doc: dict[str, Any],
        model_name: str,
        source: str,
    ) -> None:
        """Initialize the exception.

        Args:
            errors: List of Pydantic validation errors.
            failed_doc: The document that failed validation.
            model_name: Name of the Pydantic model that was being validated against.
            source: Where the data was extracted from.
        """
        self.errors = errors
        self.failed_doc = failed_doc
        self.model_name = model_name

        error_summary = ", ".join(
            f"{err['loc'][0] if err['loc'] else '<root>'}: {err['msg']}"
            for err in errors
        )

        message = (
            f"Data validation failed for model '{model_name}': {error_summary}"
        )

        context = {
            "model": model_name,
            "error_count": len(errors),
            "errors": errors,
            "failed_doc": failed_doc,
        }

        super().__init__(message, source, context)


class TransientException(Exception):
    """Base class for transient errors in browser interaction.

    Timeouts and detached elements while revealing a row's violations are
    transient: the row is still recorded, only without violation detail.
    Navigation is never retried on a transient error.
    """

    pass


class RevealTimeoutException(TransientException):
    """Raised when a row's violation detail view does not open in time.

    Attributes:
        row_index: Position of the row on the current page.
        timeout_ms: The timeout that elapsed, in milliseconds.
    """

    def __init__(self, row_index: int, timeout_ms: int) -> None:
        self.row_index = row_index
        self.timeout_ms = timeout_ms
        self.message = (
            f"Violation detail for row {row_index} did not open "
            f"within {timeout_ms}ms"
        )
        super().__init__(self.message)


# =============================================================================
# Crawl halts
# =============================================================================


class CrawlHaltException(Exception):
    """Base class for conditions that stop the whole crawl.

    The pagination controller raises these internally and converts them into
    a stopped ``CrawlResult``; they never escape ``PaginationController.crawl``.

    Attributes:
        page_num: The expected page number when the crawl halted.
        context: Diagnostic values (expected/actual page, duplicate counts).
    """

    def __init__(
        self,
        message: str,
        page_num: int,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.page_num = page_num
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message, f"Page: {self.page_num}"]
        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)


class PaginationLoop(CrawlHaltException):
    """Raised after too many consecutive pages made only of seen records."""

    def __init__(
        self, page_num: int, duplicate_pages: int, page_size: int
    ) -> None:
        self.duplicate_pages = duplicate_pages
        self.page_size = page_size
        super().__init__(
            f"Pagination loop detected: {duplicate_pages} consecutive "
            f"pages contained only previously seen records",
            page_num,
            {
                "consecutive_duplicate_pages": duplicate_pages,
                "records_on_page": page_size,
            },
        )


class PageMismatch(CrawlHaltException):
    """Raised when the results grid shows a page other than the expected one."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Page mismatch: expected page {expected}, "
            f"but the grid shows page {actual}",
            expected,
            {"expected_page": expected, "actual_page": actual},
        )


class NavigationVerificationFailed(CrawlHaltException):
    """Raised when the grid doesn't reach the next page after an ellipsis click."""

    def __init__(
        self, page_num: int, expected_page: int, timeout_ms: int
    ) -> None:
        self.expected_page = expected_page
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Navigation verification failed: expected page "
            f"{expected_page} after loading more pages, timed out "
            f"after {timeout_ms}ms",
            page_num,
            {"expected_page": expected_page, "timeout_ms": timeout_ms},
        )


class PageLimitReached(CrawlHaltException):
    """Raised when the expected page counter passes the hard ceiling."""

    def __init__(self, page_num: int, max_pages: int) -> None:
        self.max_pages = max_pages
        super().__init__(
            f"Page limit reached: page {page_num} exceeds {max_pages}",
            page_num,
            {"max_pages": max_pages},
        )


class DriverFailure(CrawlHaltException):
    """Raised when the page driver fails in a way no row can absorb.

    Wraps whatever the driver raised (a detached page, a closed browser)
    so the crawl can stop and return what it has.

    Attributes:
        state: Crawl state the controller was in when the driver failed.
        cause: The original exception.
    """

    def __init__(self, page_num: int, state: str, cause: BaseException) -> None:
        self.state = state
        self.cause = cause
        super().__init__(
            f"Browser interaction failed while {state}: "
            f"{type(cause).__name__}: {cause}",
            page_num,
            {"crawl_state": state, "error_type": type(cause).__name__},
        )
