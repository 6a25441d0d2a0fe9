"""Record extraction from results-grid rows and violation detail views.

The grid's first cell packs the establishment's identity into loose markup:
the name comes before a line break, the address sits in an italic-styled
``<div>`` and the phone number, when present, in a second one. Missing
markers leave fields empty rather than failing the row.

Only routine inspections are kept. Rows of any other inspection type are
skipped.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from safeplate.common.lxml_page_element import (
    LxmlPageElement,
    from_markup,
)
from safeplate.data_types import (
    EstablishmentRow,
    RawRow,
    RawViolation,
    RevealedViolations,
)
from safeplate.facility import categorize_facility
from safeplate.models import InspectionRecord
from safeplate.severity import assess, classify_violation

logger = logging.getLogger(__name__)

MIN_ROW_CELLS = 6

NAME_CELL = 0
DATE_CELL = 1
TYPE_CELL = 2
VIOLATIONS_CELL = 4

ITALIC_DIV_XPATH = (
    ".//div[contains(translate(@style, ' ', ''), 'font-style:italic')]"
)

ZIP_PLUS_FOUR_SUFFIX = re.compile(r"(\d{5})\s+\d{4}\s*$")
TRAILING_NON_PHONE = re.compile(r"[^\d-]+$")
STATE_ZIP = re.compile(r"\bIA\s+(\d{5})\b")
ANY_ZIP = re.compile(r"\b(\d{5})\b")
CITY_STATE_ZIP = re.compile(r"([A-Z][A-Za-z\s]+),\s*IA\s+\d{5}")
STREET_SUFFIX = re.compile(
    r"\b(ST|AVE|AVENUE|RD|ROAD|BLVD|BOULEVARD|DR|DRIVE|LN|LANE|WAY|PKWY|PARKWAY)\s*",
    re.IGNORECASE,
)
HEADER_DATE = re.compile(r"(\d{1,2}/\d{1,2}/\d{4})")

# Longer names first so "West Des Moines" isn't read as "Des Moines".
KNOWN_CITIES = (
    "West Des Moines",
    "Windsor Heights",
    "Pleasant Hill",
    "Des Moines",
    "Urbandale",
    "Polk City",
    "Johnston",
    "Altoona",
    "Ankeny",
    "Clive",
)

VIOLATION_ROW_XPATH = (
    "//tr[td//*[contains(@id, 'lblRegulatorCodeType')]]"
    "[not(.//tr[td//*[contains(@id, 'lblRegulatorCodeType')]])]"
)
CODE_LABEL_CSS = '[id*="lblRegulatorCodeType"]'
EXPLANATION_CSS = '[id*="pnlCodeExplanation"]'
COMMENTS_CSS = '[id*="pnlComments"]'
HEADER_CSS = "#MainContent_wucPublicInspectionViolations_lblHeader"

EXPLANATION_PREFIX = re.compile(r"Code Explanation\s*", re.IGNORECASE)
COMMENTS_PREFIX = re.compile(r"Inspector Comments\s*", re.IGNORECASE)
OBSERVATION_PREFIX = re.compile(r"--Observation:\s*", re.IGNORECASE)


def _clean(text: str) -> str:
    return " ".join(text.split())


def normalize_address(address: str) -> str:
    """Drop the ZIP+4 extension the grid appends after the 5-digit ZIP."""
    return ZIP_PLUS_FOUR_SUFFIX.sub(r"\1", address.strip()).strip()


def normalize_phone(phone: str) -> str:
    return TRAILING_NON_PHONE.sub("", phone.strip()).strip()


def extract_zip(address: str) -> str:
    match = STATE_ZIP.search(address) or ANY_ZIP.search(address)
    return match.group(1) if match else ""


def extract_city(address: str) -> str:
    """Derive the city from an address, or "" when it can't be resolved."""
    if not address:
        return ""

    match = CITY_STATE_ZIP.search(address)
    if match:
        return STREET_SUFFIX.sub("", match.group(1).strip()).strip()

    lowered = address.lower()
    for city in KNOWN_CITIES:
        if city.lower() in lowered:
            return city
    return ""


def inspection_flags(inspection_type: str) -> tuple[bool, bool]:
    """Return (closure_flag, reinspection_flag) for an inspection type."""
    lowered = inspection_type.lower()
    closure = "closure" in lowered
    reinspection = "follow" in lowered or "reinspection" in lowered
    return closure, reinspection


def is_routine(inspection_type: str) -> bool:
    return "routine" in inspection_type.lower()


def _split_identity_cell(cell: LxmlPageElement) -> tuple[str, str, str]:
    """Split the name/address cell into (name, address, phone)."""
    name = ""
    if cell.query_xpath("./br", "name/address line break", min_count=0):
        name = _clean(
            "".join(
                cell.query_xpath_strings(
                    "./br[1]/preceding-sibling::node()"
                    "/descendant-or-self::text()",
                    "establishment name text",
                    min_count=0,
                )
            )
        )

    italic_blocks = cell.query_xpath(
        ITALIC_DIV_XPATH, "italic address/phone blocks", min_count=0
    )
    address = _clean(italic_blocks[0].text_content()) if italic_blocks else ""
    phone = (
        _clean(italic_blocks[1].text_content())
        if len(italic_blocks) > 1
        else ""
    )
    return name, address, phone


def extract_row(row: RawRow) -> EstablishmentRow | None:
    """Extract a record skeleton from one grid row snapshot.

    Returns:
        The skeleton, or None when the row is skipped (too few cells or a
        non-routine inspection).

    Raises:
        HTMLStructuralAssumptionException: If the snapshot holds no row.
    """
    page = from_markup(row.html, f"grid row {row.index}", table_fragment=True)
    tr = page.query_xpath("(.//tr)[1]", "grid row", min_count=1, max_count=1)[0]
    cells = tr.query_xpath("./td", "grid cells", min_count=0)

    if len(cells) < MIN_ROW_CELLS:
        logger.debug(
            f"Row {row.index}: skipping, {len(cells)} cells",
            extra={"row_index": row.index, "cell_count": len(cells)},
        )
        return None

    name, address, phone = _split_identity_cell(cells[NAME_CELL])
    address = normalize_address(address)
    phone = normalize_phone(phone)

    inspection_date = _clean(cells[DATE_CELL].text_content())
    inspection_type = _clean(cells[TYPE_CELL].text_content())

    if not is_routine(inspection_type):
        logger.debug(
            f"Row {row.index}: skipping {name} ({inspection_type})",
            extra={"row_index": row.index, "inspection_type": inspection_type},
        )
        return None

    violations_label = _clean(
        "".join(
            cells[VIOLATIONS_CELL].query_xpath_strings(
                "(.//a)[1]//text()", "violations link label", min_count=0
            )
        )
    )
    closure_flag, reinspection_flag = inspection_flags(inspection_type)

    extracted = EstablishmentRow(
        row_ref=row,
        name=name,
        address=address,
        phone=phone,
        city=extract_city(address),
        zip_code=extract_zip(address),
        inspection_date=inspection_date,
        inspection_type=inspection_type,
        violations_label=violations_label,
        closure_flag=closure_flag,
        reinspection_flag=reinspection_flag,
    )
    logger.debug(
        f"Row {row.index}: {name} | {address} | city={extracted.city or 'NOT EXTRACTED'} "
        f"| {inspection_date} | {inspection_type} | violations={extracted.has_violations}"
    )
    return extracted


def _first_text(row: LxmlPageElement, selector: str, description: str) -> str:
    matches = row.query_css(selector, description, min_count=0)
    return _clean(matches[0].text_content()) if matches else ""


def parse_violation_details(markup: str) -> RevealedViolations:
    """Parse a snapshot of an open violation detail view.

    Violations repeating an earlier (code, explanation, comments) triple are
    dropped; the first occurrence is kept. Rows without a code are ignored.
    """
    page = from_markup(markup, "violation detail view")

    headers = page.query_css(
        HEADER_CSS, "detail view header", min_count=0, max_count=1
    )
    header_text = headers[0].text_content() if headers else ""
    date_match = HEADER_DATE.search(header_text)
    inspection_date = date_match.group(1) if date_match else ""

    rows = page.query_xpath(VIOLATION_ROW_XPATH, "violation rows", min_count=0)
    logger.debug(f"Found {len(rows)} violation row(s)")

    violations: list[RawViolation] = []
    seen: set[tuple[str, str, str]] = set()
    for row in rows:
        code = _first_text(row, CODE_LABEL_CSS, "regulator code label")
        if not code:
            continue
        explanation = EXPLANATION_PREFIX.sub(
            "", _first_text(row, EXPLANATION_CSS, "code explanation"), count=1
        ).strip()
        comments = _first_text(row, COMMENTS_CSS, "inspector comments")
        comments = COMMENTS_PREFIX.sub("", comments, count=1)
        comments = OBSERVATION_PREFIX.sub("", comments, count=1).strip()

        violation = RawViolation(code, explanation, comments)
        if violation.identity in seen:
            logger.debug(f"Duplicate violation skipped: {code}")
            continue
        seen.add(violation.identity)
        violations.append(violation)

    return RevealedViolations(tuple(violations), inspection_date)


def build_record(
    row: EstablishmentRow,
    revealed: RevealedViolations | None,
    county: str,
    scraped_at: datetime,
) -> InspectionRecord:
    """Classify, score and categorize a skeleton into a validated record.

    Raises:
        DataFormatAssumptionException: If the assembled record is invalid.
    """
    raw_violations = revealed.violations if revealed else ()
    violations = [
        classify_violation(v.code, v.explanation, v.comments)
        for v in raw_violations
    ]
    assessment = assess(violations, row.closure_flag, row.reinspection_flag)
    inspection_date = row.inspection_date or (
        revealed.inspection_date if revealed else ""
    )

    return InspectionRecord.raw(
        source=f"grid row {row.row_ref.index}",
        name=row.name,
        address=row.address,
        phone=row.phone,
        city=row.city,
        zip_code=row.zip_code,
        facility_type=categorize_facility(row.name, row.address),
        inspection_date=inspection_date,
        inspection_type=row.inspection_type,
        violations=violations,
        closure_flag=row.closure_flag,
        reinspection_flag=row.reinspection_flag,
        critical_count=assessment.critical_count,
        noncritical_count=assessment.noncritical_count,
        total_violations=assessment.total_violations,
        risk_score=assessment.score,
        risk_level=assessment.level,
        color=assessment.color,
        county=county,
        scraped_at=scraped_at,
    ).confirm()
