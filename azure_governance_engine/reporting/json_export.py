"""
JSON exporter — Produces the full machine-readable output of the scan.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .. import __version__


def export_json(
    compliance_score: Any,
    control_results: list,
    risk_findings: list,
    collector_results: dict,
    output_dir: Path,
    scan_id: str,
    safety_audit: Optional[dict] = None,
) -> Path:
    """
    Write full scan results to a JSON file.

    Returns:
        Path to the created JSON file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "metadata": {
            "engine": "Azure Governance Engine",
            "version": __version__,
            "scan_id": scan_id,
            "generated_utc": datetime.now(timezone.utc).isoformat(),
            "mode": "READ-ONLY",
        },
        "compliance": compliance_score.to_dict(),
        "control_results": [r.to_dict() for r in control_results],
        "nsg_risk_findings": [f.to_dict() for f in risk_findings],
        "collection_summary": _summarize_raw(collector_results),
    }
    if safety_audit:
        payload.update(safety_audit)

    filepath = output_dir / f"azure_governance_scan_{scan_id}.json"
    with open(filepath, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, default=str, ensure_ascii=False)

    return filepath


def _summarize_raw(collector_results: dict) -> dict:
    """Produce a compact summary of raw collection without dumping everything."""
    summary = {}
    for name, result in collector_results.items():
        data = result.data if hasattr(result, "data") else result
        section = {}
        for key, value in (data.items() if isinstance(data, dict) else []):
            if isinstance(value, list):
                section[key] = {"count": len(value), "type": "list"}
            elif isinstance(value, dict):
                section[key] = {"keys": list(value.keys())[:20], "type": "dict"}
            else:
                section[key] = {"value": str(value)[:200], "type": type(value).__name__}
        if hasattr(result, "metadata"):
            section["_errors"] = len(result.metadata.get("errors", []))
            section["_warnings"] = len(result.metadata.get("warnings", []))
        summary[name] = section
    return summary
