"""
Scoring Engine — Computes the weighted CIS compliance score from control results.

Scoring model:
  - Only PASS/FAIL results are scorable; L2 controls are dropped for L1-only runs.
  - Each result weighs severity_weight × level_multiplier (injected via ScoringConfig).
  - Score = passed weight / total weight × 100, rounded to 2 places, or 100 when
    nothing weighs anything.
  - Overall, per-level, per-category and per-section scores accumulate in parallel.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from ..config import ScoringConfig
from .models import SCORABLE_STATUSES, STATUS_PASS, ComplianceScore, ControlResult

logger = logging.getLogger("azure_governance_engine.scoring")

# Risk rating thresholds
RISK_THRESHOLDS = [
    (90, "Excellent"),
    (80, "Good"),
    (65, "Moderate"),
    (50, "Concerning"),
    (35, "Poor"),
    ( 0, "Critical"),
]


class _Tally:
    """Passed/total weight accumulator for one scoring scope."""

    def __init__(self):
        self.passed: list[float] = []
        self.total: list[float] = []

    def add(self, weight: float, passed: bool):
        self.total.append(weight)
        if passed:
            self.passed.append(weight)

    def score(self) -> float:
        # fsum keeps the result independent of input order
        total = math.fsum(self.total)
        if total <= 0:
            return 100.0
        return round(math.fsum(self.passed) / total * 100, 2)


def risk_rating_for(score: float) -> str:
    for threshold, rating in RISK_THRESHOLDS:
        if score >= threshold:
            return rating
    return "Critical"


def calculate_compliance_score(
    findings: Iterable[ControlResult],
    include_level2: bool = True,
    config: Optional[ScoringConfig] = None,
) -> ComplianceScore:
    """
    Compute the weighted compliance score for a set of control results.

    Args:
        findings: Control results from the analyzers (or an offline export).
        include_level2: When False, L2 controls are excluded entirely.
        config: Severity weights and level multipliers; defaults apply if None.

    Returns:
        ComplianceScore. No scorable input yields the perfect-score default.
    """
    config = config or ScoringConfig()

    scorable = []
    for f in findings:
        status = (f.status or "").strip().upper()
        if status not in SCORABLE_STATUSES:
            continue
        level = (f.cis_level or "").strip().lower()
        if level == "l2" and not include_level2:
            continue
        scorable.append((f, status == STATUS_PASS, level))

    result = ComplianceScore()
    if not scorable:
        return result

    overall = _Tally()
    levels = {"l1": _Tally(), "l2": _Tally()}
    categories: dict[str, _Tally] = {}
    sections: dict[str, _Tally] = {}
    unknown_values: set[tuple[str, str]] = set()

    for f, passed, level in scorable:
        weight = _weight_for(f, level, config, unknown_values)

        overall.add(weight, passed)
        if level in levels:
            levels[level].add(weight, passed)
        category = (f.category or "").strip() or "Unknown"
        categories.setdefault(category, _Tally()).add(weight, passed)
        sections.setdefault(f.section, _Tally()).add(weight, passed)

        result.total_checks += 1
        if passed:
            result.passed_checks += 1
        else:
            result.failed_checks += 1

    result.overall_score = overall.score()
    result.l1_score = levels["l1"].score()
    result.l2_score = levels["l2"].score() if levels["l2"].total else None
    result.scores_by_category = {k: categories[k].score() for k in sorted(categories)}
    result.scores_by_section = {k: sections[k].score() for k in sorted(sections, key=_section_key)}
    result.risk_rating = risk_rating_for(result.overall_score)

    logger.info(
        f"Compliance score {result.overall_score} — "
        f"{result.passed_checks}/{result.total_checks} checks passed"
    )
    return result


def _weight_for(
    finding: ControlResult,
    level: str,
    config: ScoringConfig,
    unknown_values: set[tuple[str, str]],
) -> float:
    """severity weight × level multiplier; unknown values weigh nothing."""
    severity = (finding.severity or "").strip().lower()
    sev_weight = config.severity_weights.get(severity)
    if sev_weight is None:
        if ("severity", severity) not in unknown_values:
            unknown_values.add(("severity", severity))
            logger.warning(
                f"Unknown severity '{finding.severity}' on control {finding.control_id} — weight 0"
            )
        return 0.0

    multiplier = config.level_multipliers.get(level)
    if multiplier is None:
        if ("level", level) not in unknown_values:
            unknown_values.add(("level", level))
            logger.warning(
                f"Unknown CIS level '{finding.cis_level}' on control {finding.control_id} — weight 0"
            )
        return 0.0

    return sev_weight * multiplier


def _section_key(section: str):
    """Numeric sections sort numerically, everything else after them."""
    return (0, int(section), "") if section.isdigit() else (1, 0, section)
