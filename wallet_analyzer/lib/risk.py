"""
Allowance risk classification for token approvals.

Allowances arrive as decimal strings and are compared with Decimal so values
near the unlimited threshold are not rounded across it.
"""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .models import TokenApproval, parse_decimal


RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"

# Allowances at or above this are treated as unlimited spend permission
UNLIMITED_ALLOWANCE = Decimal(10) ** 18
MEDIUM_RISK_FLOOR = Decimal(1000)


@dataclass(frozen=True)
class RiskSummary:
    """Approval counts per risk tier."""

    total: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0


def classify_allowance(allowance: str) -> str:
    """
    Classify an approval allowance into a risk tier.

    Args:
        allowance: Allowance as a decimal string

    Returns:
        "high" for >= 10^18, "medium" for > 1000, otherwise "low".
        Unparseable allowances are "low".
    """
    value = parse_decimal(allowance)
    if value is None:
        return RISK_LOW
    if value >= UNLIMITED_ALLOWANCE:
        return RISK_HIGH
    if value > MEDIUM_RISK_FLOOR:
        return RISK_MEDIUM
    return RISK_LOW


def summarize_risk(approvals: Iterable[TokenApproval]) -> RiskSummary:
    """Count approvals per risk tier, recomputed from the full list."""
    approvals = list(approvals)
    counts = Counter(classify_allowance(a.allowance) for a in approvals)
    return RiskSummary(
        total=len(approvals),
        low=counts[RISK_LOW],
        medium=counts[RISK_MEDIUM],
        high=counts[RISK_HIGH],
    )
