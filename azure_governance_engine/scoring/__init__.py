"""Scoring package — weighted CIS compliance score calculation."""

from .engine import calculate_compliance_score, risk_rating_for
from .models import ComplianceScore, ControlResult

__all__ = [
    "calculate_compliance_score",
    "risk_rating_for",
    "ComplianceScore",
    "ControlResult",
]
