"""
CSV exporter — Produces structured CSV files of control results, NSG risks and scores.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

CONTROL_FIELDS = [
    "control_id", "category", "severity", "cis_level", "status", "title",
    "subscription_id", "resource_name", "resource_id", "details", "remediation",
]

RISK_FIELDS = [
    "severity", "subscription_id", "resource_group", "nsg_name", "rule_name",
    "priority", "direction", "protocol", "port", "port_name", "source",
    "destination", "description",
]


def export_csv(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    output_dir: Path,
    scan_id: str,
) -> list[Path]:
    """
    Write CSV files for control results, NSG risks and category scores.

    Returns:
        List of created CSV file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    created = []

    controls_path = output_dir / f"control_results_{scan_id}.csv"
    with open(controls_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=CONTROL_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for r in control_results:
            writer.writerow(r.to_dict())
    created.append(controls_path)

    risks_path = output_dir / f"nsg_risks_{scan_id}.csv"
    with open(risks_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=RISK_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for f in risk_findings:
            writer.writerow(f.to_dict())
    created.append(risks_path)

    scores_path = output_dir / f"compliance_scores_{scan_id}.csv"
    with open(scores_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.writer(fh)
        writer.writerow(["scope", "name", "score"])
        writer.writerow(["overall", "overall", compliance_score.overall_score])
        writer.writerow(["level", "L1", compliance_score.l1_score])
        # Blank, not 0, when no L2 control was evaluated
        writer.writerow(["level", "L2", "" if compliance_score.l2_score is None else compliance_score.l2_score])
        for category, score in compliance_score.scores_by_category.items():
            writer.writerow(["category", category, score])
        for section, score in compliance_score.scores_by_section.items():
            writer.writerow(["section", section, score])
    created.append(scores_path)

    return created
