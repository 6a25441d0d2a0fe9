"""Pydantic data models for scored inspection records."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import AliasChoices, Field

from safeplate.common.data_models import ScrapedData

# Formats the results grid and older datasets use for inspection dates.
INSPECTION_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y")


class Tier(Enum):
    """Critical/noncritical tag of a violation, independent of its points."""

    CRITICAL = "critical"
    NONCRITICAL = "noncritical"


class RiskLevel(Enum):
    """Risk band of a record's capped score, lowest first."""

    EXCELLENT = "EXCELLENT"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def parse_inspection_date(value: str) -> date | None:
    """Parse an inspection date as shown by the grid.

    Returns None for empty or unrecognized text.
    """
    value = value.strip()
    for fmt in INSPECTION_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


class Violation(ScrapedData):
    """One violation listed in an inspection's detail view."""

    code: str = Field(
        ...,
        validation_alias=AliasChoices("code", "violationCode"),
        description="Regulator code, e.g. 3-501.16(A)(2)",
    )
    explanation: str = Field(
        "",
        validation_alias=AliasChoices("explanation", "codeExplanation"),
        description="Code explanation text",
    )
    comments: str = Field(
        "",
        validation_alias=AliasChoices("comments", "inspectorComments"),
        description="Inspector observation",
    )
    tier: Tier = Field(
        ...,
        validation_alias=AliasChoices("tier", "section"),
        description="critical or noncritical",
    )

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.code, self.explanation, self.comments)


class InspectionRecord(ScrapedData):
    """A scored routine inspection of one food-service establishment."""

    name: str = Field(..., description="Establishment name")
    address: str = Field(
        "",
        validation_alias=AliasChoices("address", "addr"),
        description="Street address with 5-digit ZIP",
    )
    phone: str = ""
    city: str = ""
    zip_code: str = ""
    facility_type: str = Field(
        "", description="Facility category; empty in older datasets"
    )
    inspection_date: str = Field(
        "", description="Inspection date as displayed, e.g. 11/26/2024"
    )
    inspection_type: str = ""
    violations: list[Violation] = Field(default_factory=list)
    closure_flag: bool = False
    reinspection_flag: bool = False
    critical_count: int = Field(0, ge=0)
    noncritical_count: int = Field(0, ge=0)
    total_violations: int = Field(0, ge=0)
    risk_score: int = Field(0, ge=0, le=100)
    risk_level: RiskLevel = RiskLevel.EXCELLENT
    color: str = "green"
    county: str = ""
    scraped_at: datetime | None = None

    @property
    def inspection_day(self) -> date | None:
        return parse_inspection_date(self.inspection_date)
