"""
Scoring data models — Control results consumed by the scorer and the score it produces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


STATUS_PASS = "PASS"
STATUS_FAIL = "FAIL"
STATUS_ERROR = "ERROR"
STATUS_SKIPPED = "SKIPPED"

SCORABLE_STATUSES = {STATUS_PASS, STATUS_FAIL}


@dataclass
class ControlResult:
    """
    The outcome of evaluating one CIS control against one resource (or scope).
    Only PASS/FAIL results participate in scoring.
    """
    control_id: str                     # Dotted CIS reference (e.g. "6.2")
    category: str = ""                  # Grouping key (e.g. "Networking")
    severity: str = "Medium"            # Critical, High, Medium, Low
    cis_level: str = "L1"               # L1 or L2
    status: str = STATUS_FAIL           # PASS, FAIL, ERROR, SKIPPED
    title: str = ""
    resource_id: str = ""
    resource_name: str = ""
    subscription_id: str = ""
    details: str = ""
    remediation: str = ""

    @property
    def section(self) -> str:
        """CIS section — the first segment of the dotted control id."""
        head = (self.control_id or "").strip().split(".", 1)[0]
        return head or "Unknown"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ControlResult":
        """Build from an exported record; accepts snake_case or PascalCase keys."""
        def pick(*keys, default=""):
            for key in keys:
                if data.get(key) is not None:
                    return str(data[key])
            return default

        return cls(
            control_id=pick("control_id", "ControlId"),
            category=pick("category", "Category"),
            severity=pick("severity", "Severity"),
            cis_level=pick("cis_level", "CisLevel"),
            status=pick("status", "Status"),
            title=pick("title", "Title"),
            resource_id=pick("resource_id", "ResourceId"),
            resource_name=pick("resource_name", "ResourceName"),
            subscription_id=pick("subscription_id", "SubscriptionId"),
            details=pick("details", "Details"),
            remediation=pick("remediation", "Remediation"),
        )

    def to_dict(self) -> dict:
        return {
            "control_id": self.control_id,
            "category": self.category,
            "severity": self.severity,
            "cis_level": self.cis_level,
            "status": self.status,
            "title": self.title,
            "resource_id": self.resource_id,
            "resource_name": self.resource_name,
            "subscription_id": self.subscription_id,
            "details": self.details,
            "remediation": self.remediation,
        }


@dataclass
class ComplianceScore:
    """
    Weighted compliance result.

    l2_score is None when no L2 control was evaluated, which is distinct
    from L2 controls evaluated and fully compliant (100.0).
    """
    overall_score: float = 100.0
    l1_score: float = 100.0
    l2_score: Optional[float] = None
    scores_by_category: dict[str, float] = field(default_factory=dict)
    scores_by_section: dict[str, float] = field(default_factory=dict)
    total_checks: int = 0
    passed_checks: int = 0
    failed_checks: int = 0
    risk_rating: str = "Excellent"

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "l1_score": self.l1_score,
            "l2_score": self.l2_score,
            "risk_rating": self.risk_rating,
            "total_checks": self.total_checks,
            "passed_checks": self.passed_checks,
            "failed_checks": self.failed_checks,
            "scores_by_category": dict(self.scores_by_category),
            "scores_by_section": dict(self.scores_by_section),
        }
