"""Violation severity classification and risk scoring.

Each violation code is checked against four ordered severity tables. The
first table holding a code that the violation code starts with or contains
decides the violation's tier and points. Codes no table knows fall back to
a prefix rule.

Note that HIGH, MEDIUM and LOW all yield the ``critical`` tier; only CORE
codes are ``noncritical``. Point values still tell the tables apart.

The per-record score is the sum of points plus closure and reinspection
penalties, clamped to 100. Risk level and display color are two separate
scales over that capped score and intentionally use different bands.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from safeplate.models import RiskLevel, Tier, Violation

MAX_RISK_SCORE = 100
CLOSURE_PENALTY = 50
REINSPECTION_PENALTY = 10

FALLBACK_CRITICAL_PREFIXES = ("2-", "3-", "4-", "5-")
FALLBACK_CRITICAL_POINTS = 8
FALLBACK_NONCRITICAL_POINTS = 1


@dataclass(frozen=True)
class SeverityTable:
    """Ordered list of code prefixes sharing a point value and tier."""

    name: str
    codes: tuple[str, ...]
    points: int
    tier: Tier

    def matches(self, code: str) -> bool:
        return any(
            code.startswith(known) or known in code for known in self.codes
        )


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one violation code.

    Attributes:
        tier: critical or noncritical.
        points: Points the violation adds to the risk score.
        table: Name of the matching severity table, or None for the
            prefix fallback.
    """

    tier: Tier
    points: int
    table: str | None


HIGH = SeverityTable(
    name="HIGH",
    codes=(
        "3-501.16(A)(2)",
        "3-501.16(A)(1)",
        "3-401.11",
        "3-501.14",
        "3-302.11(A)(1)",
        "3-302.11(A)(2)",
        "4-601.11(A)",
        "2-301.14",
        "3-201.11",
        "3-202.15",
    ),
    points=15,
    tier=Tier.CRITICAL,
)

MEDIUM = SeverityTable(
    name="MEDIUM",
    codes=(
        "3-501.17",
        "2-501.11",
        "2-401.11",
        "4-702.11",
        "4-501.114",
        "3-603.11",
        "3-305.11",
    ),
    points=8,
    tier=Tier.CRITICAL,
)

LOW = SeverityTable(
    name="LOW",
    codes=(
        "2-102.12(A)",
        "2-103.11(O)",
        "5-205.11",
        "5-202.12(A)",
        "4-501.11",
        "4-903.11",
    ),
    points=3,
    tier=Tier.CRITICAL,
)

CORE = SeverityTable(
    name="CORE",
    codes=(
        "7-102.11",
        "6-301.14",
        "6-301.12",
        "7-204.11",
        "6-301.11",
        "7-207.11(B)",
        "7-202.11",
        "7-201.11",
    ),
    points=1,
    tier=Tier.NONCRITICAL,
)

# Evaluation order is part of the contract: the first match wins.
SEVERITY_TABLES: tuple[SeverityTable, ...] = (HIGH, MEDIUM, LOW, CORE)

# (minimum score, level), checked from the top.
RISK_LEVEL_BANDS: tuple[tuple[int, RiskLevel], ...] = (
    (41, RiskLevel.CRITICAL),
    (21, RiskLevel.HIGH),
    (6, RiskLevel.MEDIUM),
    (1, RiskLevel.LOW),
    (0, RiskLevel.EXCELLENT),
)

# (minimum score, color), checked from the top.
COLOR_BANDS: tuple[tuple[int, str], ...] = (
    (50, "crimson"),
    (30, "red"),
    (15, "orange"),
    (1, "yellow"),
    (0, "green"),
)


def classify_code(code: str) -> Classification:
    """Classify a violation code by table membership, then by prefix."""
    normalized = code.strip()
    for table in SEVERITY_TABLES:
        if table.matches(normalized):
            return Classification(table.tier, table.points, table.name)

    if normalized.startswith(FALLBACK_CRITICAL_PREFIXES):
        return Classification(Tier.CRITICAL, FALLBACK_CRITICAL_POINTS, None)
    return Classification(Tier.NONCRITICAL, FALLBACK_NONCRITICAL_POINTS, None)


def violation_points(code: str) -> int:
    return classify_code(code).points


def classify_violation(
    code: str, explanation: str = "", comments: str = ""
) -> Violation:
    """Build a tiered Violation from the raw detail-view values."""
    return Violation(
        code=code,
        explanation=explanation,
        comments=comments,
        tier=classify_code(code).tier,
    )


def risk_score(
    violations: Iterable[Violation],
    closure_flag: bool = False,
    reinspection_flag: bool = False,
) -> int:
    """Sum violation points plus penalties, clamped to MAX_RISK_SCORE.

    Points are derived from each violation's code, not from its stored tier.
    """
    score = sum(violation_points(v.code) for v in violations)
    if closure_flag:
        score += CLOSURE_PENALTY
    if reinspection_flag:
        score += REINSPECTION_PENALTY
    return min(score, MAX_RISK_SCORE)


def risk_level(score: int) -> RiskLevel:
    for minimum, level in RISK_LEVEL_BANDS:
        if score >= minimum:
            return level
    return RiskLevel.EXCELLENT


def risk_color(score: int) -> str:
    for minimum, color in COLOR_BANDS:
        if score >= minimum:
            return color
    return "green"


@dataclass(frozen=True)
class RiskAssessment:
    """Aggregate scoring of one inspection's violations."""

    score: int
    level: RiskLevel
    color: str
    critical_count: int
    noncritical_count: int
    total_violations: int


def assess(
    violations: list[Violation],
    closure_flag: bool = False,
    reinspection_flag: bool = False,
) -> RiskAssessment:
    """Score a record's violations and derive its level, color and counts."""
    score = risk_score(violations, closure_flag, reinspection_flag)
    critical = sum(1 for v in violations if v.tier is Tier.CRITICAL)
    return RiskAssessment(
        score=score,
        level=risk_level(score),
        color=risk_color(score),
        critical_count=critical,
        noncritical_count=len(violations) - critical,
        total_violations=len(violations),
    )
