"""LxmlPageElement: count-checked queries over lxml snapshots.

This module provides the element wrapper the extractor queries row and
detail-view snapshots through, and from_markup() to build one.
"""

from __future__ import annotations

from lxml import etree, html

from safeplate.common.checked_html import CheckedHtmlElement
from safeplate.common.exceptions import (
    HTMLStructuralAssumptionException,
)


def from_markup(
    markup: str, source: str = "", table_fragment: bool = False
) -> LxmlPageElement:
    """Parse a DOM snapshot into an LxmlPageElement.

    Args:
        markup: HTML snapshot (a full document or a fragment).
        source: Description of where the markup came from, for errors.
        table_fragment: Wrap the markup in a ``<table>`` first. Grid rows are
            snapshotted as bare ``<tr>`` elements, which the HTML parser
            would otherwise discard outside of a table.

    Raises:
        HTMLStructuralAssumptionException: If the markup is empty.
    """
    if table_fragment:
        markup = f"<table>{markup}</table>"
    try:
        root = html.fromstring(markup)
    except etree.ParserError as e:
        raise HTMLStructuralAssumptionException(
            selector="/",
            selector_type="document",
            description="snapshot root element",
            expected_min=1,
            expected_max=1,
            actual_count=0,
            source=source,
        ) from e
    return LxmlPageElement(CheckedHtmlElement(root, source), source)


class LxmlPageElement:
    """Count-checked query interface over a snapshot, wrapping CheckedHtmlElement.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _source: Description of the snapshot, carried into nested elements.
    """

    def __init__(self, element: CheckedHtmlElement, source: str = ""):
        self._element = element
        self._source = source

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_xpath(
            selector, description, min_count, max_count
        )
        return [
            LxmlPageElement(elem, self._source) for elem in checked_elements
        ]

    def query_xpath_strings(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[str]:
        """Query string values by XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        return self._element.checked_xpath(
            selector, description, min_count, max_count, type=str
        )

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by CSS selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_css(
            selector, description, min_count, max_count
        )
        return [
            LxmlPageElement(elem, self._source) for elem in checked_elements
        ]

    def text_content(self) -> str:
        return self._element.text_content()

