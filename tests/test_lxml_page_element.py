"""Tests for LxmlPageElement, CheckedHtmlElement and DeferredValidation.

These are the layers the extractor queries row and detail-view snapshots
through.
"""

import pytest
from lxml import html

from safeplate.common.checked_html import CheckedHtmlElement
from safeplate.common.exceptions import (
    DataFormatAssumptionException,
    HTMLStructuralAssumptionException,
)
from safeplate.common.lxml_page_element import LxmlPageElement, from_markup
from safeplate.models import InspectionRecord, Violation
from tests.utils import grid_row


@pytest.fixture
def simple_page():
    """Simple HTML page for testing."""
    html_content = """
    <html>
    <body>
        <div id="main">
            <h1>Test Page</h1>
            <table>
                <tr class="row"><td>Cell 1</td><td>Cell 2</td></tr>
                <tr class="row"><td>Cell 3</td><td>Cell 4</td></tr>
            </table>
        </div>
    </body>
    </html>
    """
    doc = html.fromstring(html_content)
    checked = CheckedHtmlElement(doc, "detail view")
    return LxmlPageElement(checked, "detail view")


class TestQueries:
    def test_query_xpath_wraps_results(self, simple_page) -> None:
        rows = simple_page.query_xpath("//tr[@class='row']", "rows", min_count=2)

        assert len(rows) == 2
        assert all(isinstance(row, LxmlPageElement) for row in rows)
        assert rows[1].text_content() == "Cell 3Cell 4"

    def test_query_xpath_strings(self, simple_page) -> None:
        cells = simple_page.query_xpath_strings("//td/text()", "cell text", min_count=4)

        assert cells == ["Cell 1", "Cell 2", "Cell 3", "Cell 4"]

    def test_query_css(self, simple_page) -> None:
        [heading] = simple_page.query_css("#main h1", "heading", max_count=1)

        assert heading.text_content() == "Test Page"


class TestCountValidation:
    """Selector counts outside the expected range shall raise."""

    def test_too_few(self, simple_page) -> None:
        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            simple_page.query_xpath("//span", "spans")

        error = exc_info.value
        assert error.expected_min == 1
        assert error.actual_count == 0
        assert error.selector == "//span"
        assert error.source == "detail view"
        assert "at least 1" in str(error)

    def test_too_many(self, simple_page) -> None:
        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            simple_page.query_css("td", "cells", min_count=1, max_count=2)

        assert exc_info.value.actual_count == 4
        assert "between 1 and 2" in str(exc_info.value)

    def test_zero_allowed(self, simple_page) -> None:
        assert simple_page.query_xpath("//span", "spans", min_count=0) == []

    def test_string_query_flagged(self, simple_page) -> None:
        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            simple_page.query_xpath_strings("//h1/@title", "heading title")

        assert exc_info.value.is_element_query is False

    def test_invalid_css_raises_structural_error(self, simple_page) -> None:
        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            simple_page.query_css("td[[", "broken selector")

        assert exc_info.value.selector_type == "css"


class TestFromMarkup:
    def test_table_fragment_keeps_row_cells(self) -> None:
        """A bare grid row snapshot shall parse with its cells intact."""
        row = from_markup(grid_row("Joe's Diner"), "row 0", table_fragment=True)

        cells = row.query_xpath(".//td", "grid cells", min_count=6, max_count=6)

        assert cells[0].text_content().startswith("Joe's Diner")

    def test_empty_markup_raises(self) -> None:
        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            from_markup("", "row 3")

        assert exc_info.value.source == "row 3"


class TestDeferredValidation:
    def test_confirm_returns_model(self) -> None:
        deferred = InspectionRecord.raw(source="row 1", name="Joe's Diner")

        record = deferred.confirm()

        assert record.name == "Joe's Diner"
        assert deferred.model_name == "InspectionRecord"

    def test_confirm_raises_with_context(self) -> None:
        """Invalid raw values shall raise DataFormatAssumptionException on confirm."""
        deferred = Violation.raw(source="detail row 2", code="3-501.16", tier="severe")

        with pytest.raises(DataFormatAssumptionException) as exc_info:
            deferred.confirm()

        error = exc_info.value
        assert error.model_name == "Violation"
        assert error.source == "detail row 2"
        assert error.failed_doc == {"code": "3-501.16", "tier": "severe"}
        assert "tier" in error.message

    def test_raw_data_is_a_copy(self) -> None:
        deferred = InspectionRecord.raw(name="A")

        deferred.raw_data["name"] = "B"

        assert deferred.confirm().name == "A"
