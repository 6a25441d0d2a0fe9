"""Data types exchanged between the page driver and the extractor.

The driver never hands live browser handles to the extractor. Grid rows and
detail views cross the boundary as DOM snapshots (outer HTML), and the
extractor's results come back as plain frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawRow:
    """Snapshot of one results-grid row.

    Attributes:
        index: Position of the row on the current page. The driver uses it
            to find the live row again when revealing its violations.
        html: Outer HTML of the ``<tr>`` element.
    """

    index: int
    html: str


@dataclass(frozen=True)
class RawViolation:
    """A violation as read from the detail view, before classification."""

    code: str
    explanation: str = ""
    comments: str = ""

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.code, self.explanation, self.comments)


@dataclass(frozen=True)
class RevealedViolations:
    """Content of one row's violation detail view.

    Attributes:
        violations: Violations with duplicate triples already dropped.
        inspection_date: Date shown in the detail view header, or "".
    """

    violations: tuple[RawViolation, ...] = field(default_factory=tuple)
    inspection_date: str = ""


@dataclass(frozen=True)
class EstablishmentRow:
    """Record skeleton extracted from one routine-inspection grid row.

    Attributes:
        row_ref: The row snapshot this skeleton came from.
        violations_label: Text of the row's violations link; non-empty when
            the inspection has violations to reveal.
    """

    row_ref: RawRow
    name: str
    address: str
    phone: str
    city: str
    zip_code: str
    inspection_date: str
    inspection_type: str
    violations_label: str
    closure_flag: bool
    reinspection_flag: bool

    @property
    def has_violations(self) -> bool:
        return bool(self.violations_label.strip())
