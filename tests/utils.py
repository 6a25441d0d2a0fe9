"""Test utilities shared across the suite.

Builders here produce markup shaped like the live search site: grid rows
whose first cell packs name, address and phone, and violation detail views
whose rows carry ``lblRegulatorCodeType`` labels.
"""

import html
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from safeplate.models import InspectionRecord

FIXED_NOW = datetime(2024, 12, 1, 12, 0, 0)


def collect_results() -> tuple[Callable[[Any], None], list[Any]]:
    """Create a callback that collects results in a list.

    Example:
        callback, results = collect_results()
        controller = PaginationController(driver, on_data=callback)
        controller.crawl("Des Moines", date_range)
        assert len(results) > 0
    """
    results: list[Any] = []

    def callback(data: Any) -> None:
        results.append(data)

    return callback, results


def grid_row(
    name: str,
    address: str = "123 Main St, Des Moines, IA 50309 1234",
    phone: str = "515-555-0100 (Primary)",
    inspection_date: str = "11/26/2024",
    inspection_type: str = "Routine",
    violations_label: str = "",
    row_class: str = "GridItem",
) -> str:
    """Outer HTML of one results-grid row."""
    link = (
        f'<a href="javascript:void(0)">{html.escape(violations_label)}</a>'
        if violations_label
        else ""
    )
    phone_div = (
        f'<div style="font-style: italic">{html.escape(phone)}</div>'
        if phone
        else ""
    )
    return (
        f'<tr class="{row_class}">'
        f"<td>{html.escape(name)}<br />"
        f'<div style="font-style: italic">{html.escape(address)}</div>'
        f"{phone_div}</td>"
        f"<td>{inspection_date}</td>"
        f"<td>{html.escape(inspection_type)}</td>"
        f"<td>Polk County</td>"
        f"<td>{link}</td>"
        f"<td>&nbsp;</td>"
        f"</tr>"
    )


def detail_view(
    violations: Sequence[tuple[str, str, str]],
    header_date: str = "11/26/2024",
) -> str:
    """Full-page snapshot with an open violation detail view."""
    rows = "".join(
        f"<tr><td>"
        f'<span id="MainContent_wucPublicInspectionViolations_rptViolations_'
        f'lblRegulatorCodeType_{i}">{html.escape(code)}</span>'
        f'<div id="MainContent_wucPublicInspectionViolations_rptViolations_'
        f'pnlCodeExplanation_{i}">Code Explanation {html.escape(explanation)}</div>'
        f'<div id="MainContent_wucPublicInspectionViolations_rptViolations_'
        f'pnlComments_{i}">Inspector Comments --Observation: '
        f"{html.escape(comments)}</div>"
        f"</td></tr>"
        for i, (code, explanation, comments) in enumerate(violations)
    )
    return (
        "<html><body>"
        '<table id="tbPublicInspectionMain"><tr><td>'
        '<span id="MainContent_wucPublicInspectionViolations_lblHeader">'
        f"Routine Inspection {header_date}</span>"
        f"<table>{rows}</table>"
        "</td></tr></table>"
        "</body></html>"
    )


def make_record(
    name: str = "Joe's Diner",
    address: str = "123 Main St",
    inspection_date: str = "11/26/2024",
    **overrides: Any,
) -> InspectionRecord:
    """Build a valid record with sensible defaults."""
    data: dict[str, Any] = {
        "name": name,
        "address": address,
        "city": "Des Moines",
        "inspection_date": inspection_date,
        "inspection_type": "Routine",
        "county": "Polk",
        "scraped_at": FIXED_NOW,
    }
    data.update(overrides)
    return InspectionRecord(**data)
