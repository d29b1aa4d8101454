"""
Markdown and HTML reports — rendered from the Jinja2 templates shipped with the package.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

_SEVERITY_ICONS = {
    "critical": "🔴",
    "high":     "🟠",
    "medium":   "🟡",
    "low":      "🟢",
}

_SEVERITY_COLOURS = {
    "critical": "#dc2626",
    "high":     "#ea580c",
    "medium":   "#d97706",
    "low":      "#2563eb",
}

_SCORE_COLOUR_MAP = [
    (0,  40, "#dc2626"),   # red
    (40, 60, "#ea580c"),   # orange
    (60, 75, "#d97706"),   # amber
    (75, 90, "#16a34a"),   # green
    (90, 101, "#059669"),  # emerald
]


def _score_colour(score: float) -> str:
    for lo, hi, colour in _SCORE_COLOUR_MAP:
        if lo <= score < hi:
            return colour
    return "#6b7280"


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("azure_governance_engine", "reporting/templates"),
        autoescape=select_autoescape(["html", "html.j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["score_colour"] = _score_colour
    env.filters["severity_icon"] = lambda sev: _SEVERITY_ICONS.get((sev or "").lower(), "⚪")
    env.filters["severity_colour"] = lambda sev: _SEVERITY_COLOURS.get((sev or "").lower(), "#6b7280")
    env.filters["pct"] = lambda v: "n/a" if v is None else f"{v:.2f}%"
    return env


def _context(compliance_score, control_results, risk_findings, scan_id, scope_name) -> dict:
    failed = [r for r in control_results if (r.status or "").upper() == "FAIL"]
    not_scored = [r for r in control_results if (r.status or "").upper() not in ("PASS", "FAIL")]
    return {
        "scan_id": scan_id,
        "scope_name": scope_name,
        "generated_utc": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
        "score": compliance_score,
        "failed_controls": failed,
        "not_scored": not_scored,
        "risk_findings": risk_findings,
    }


def render_markdown(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    scan_id: str,
    scope_name: str = "All subscriptions",
) -> str:
    template = _environment().get_template("technical_report.md.j2")
    return template.render(**_context(compliance_score, control_results, risk_findings, scan_id, scope_name))


def render_html(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    scan_id: str,
    scope_name: str = "All subscriptions",
) -> str:
    template = _environment().get_template("report.html.j2")
    return template.render(**_context(compliance_score, control_results, risk_findings, scan_id, scope_name))


def export_markdown(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    output_dir: Path,
    scan_id: str,
    scope_name: str = "All subscriptions",
) -> Path:
    """Generate the Markdown technical report."""
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / f"technical_report_{scan_id}.md"
    content = render_markdown(compliance_score, control_results, risk_findings, scan_id, scope_name)
    with open(filepath, "w", encoding="utf-8") as fh:
        fh.write(content)
    return filepath


def export_html(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    output_dir: Path,
    scan_id: str,
    scope_name: str = "All subscriptions",
) -> Path:
    """Generate the self-contained HTML report (inline CSS, no external assets)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / f"governance_report_{scan_id}.html"
    content = render_html(compliance_score, control_results, risk_findings, scan_id, scope_name)
    with open(filepath, "w", encoding="utf-8") as fh:
        fh.write(content)
    return filepath
