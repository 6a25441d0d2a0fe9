"""Checked HTML element wrapper for safe XPath/CSS querying.

This module provides CheckedHtmlElement, a wrapper around lxml.html.HtmlElement
that validates selector results against expected counts. Grid rows and
violation detail views are queried through it so that a markup change shows
up as a clear structural error instead of a silently empty field.
"""

from __future__ import annotations

from typing import overload

from lxml.cssselect import SelectorError
from lxml.html import HtmlElement

from safeplate.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_xpath() and checked_css() validate the number of results against
    expected min/max counts and raise HTMLStructuralAssumptionException with
    the selector and counts when they don't match.
    """

    def __init__(self, element: HtmlElement, source: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            source: Optional description of where the markup came from.
        """
        self._element = element
        self._source = source

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str],
    ) -> list[str]: ...

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]: ...

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str] | None = None,
    ) -> list[CheckedHtmlElement] | list[str]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).
            type: Pass `str` to return only string results (text/attributes).
                If omitted, returns only CheckedHtmlElements.

        Returns:
            List of matching results filtered by type.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            row = CheckedHtmlElement(lxml.html.fromstring(markup))
            cells = row.checked_xpath(".//td", "grid cells", min_count=6)
            labels = row.checked_xpath(".//a/text()", "links", type=str)
        """
        results = self._element.xpath(xpath)

        if type is str:
            filtered: list[str] = [str(r) for r in results if isinstance(r, str)]
            self._check_count(
                xpath,
                "xpath",
                description,
                min_count,
                max_count,
                len(filtered),
                is_element_query=False,
            )
            return filtered

        wrapped: list[CheckedHtmlElement] = [
            CheckedHtmlElement(r, self._source)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        self._check_count(
            xpath, "xpath", description, min_count, max_count, len(wrapped)
        )
        return wrapped

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        try:
            results = self._element.cssselect(selector)
        except SelectorError as e:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                source=self._source,
            ) from e

        self._check_count(
            selector, "css", description, min_count, max_count, len(results)
        )
        return [CheckedHtmlElement(result, self._source) for result in results]

    def _check_count(
        self,
        selector: str,
        selector_type: str,
        description: str,
        min_count: int,
        max_count: int | None,
        actual_count: int,
        is_element_query: bool = True,
    ) -> None:
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type=selector_type,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                source=self._source,
                is_element_query=is_element_query,
            )

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element."""
        return getattr(self._element, name)
