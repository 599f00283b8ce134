"""Data quality validation for fetched bars."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date

from marketseries.models.bar import Bar


@dataclass
class ValidationCheck:
    """Single validation check result."""

    name: str
    passed: bool
    message: str = ""


@dataclass
class ValidationResult:
    """Aggregate validation result."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


def validate_bars(bars: list[Bar], today: date | None = None) -> ValidationResult:
    """Run quality checks on freshly fetched bars before they are merged.

    Checks:
        1. No NaN/Inf prices
        2. Price positivity
        3. Volume sanity (non-negative)
        4. No bars dated after ``today`` (when given)

    An empty list passes: zero new rows is a no-op, not a failure.
    """
    result = ValidationResult()

    # 1. No NaN/Inf
    non_finite = sum(1 for b in bars if math.isnan(b.adj) or math.isinf(b.adj))
    if non_finite:
        result.checks.append(ValidationCheck("no_nulls", False, f"{non_finite} NaN/Inf prices"))
    else:
        result.checks.append(ValidationCheck("no_nulls", True))

    # 2. Positive prices
    non_positive = sum(1 for b in bars if b.adj <= 0)
    if non_positive:
        result.checks.append(
            ValidationCheck("positive_price", False, f"{non_positive} bars with price <= 0")
        )
    else:
        result.checks.append(ValidationCheck("positive_price", True))

    # 3. Volume sanity
    neg_vol = sum(1 for b in bars if b.vol < 0)
    if neg_vol:
        result.checks.append(
            ValidationCheck("volume_sanity", False, f"{neg_vol} bars with negative volume")
        )
    else:
        result.checks.append(ValidationCheck("volume_sanity", True))

    # 4. Future dates
    if today is not None:
        future = sum(1 for b in bars if b.date > today)
        result.checks.append(ValidationCheck(
            "no_future_dates",
            future == 0,
            f"{future} bars dated after {today}" if future else "",
        ))

    return result
