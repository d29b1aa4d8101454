"""Network package — NSG rule exposure classification."""

from .classifier import analyze_rule, analyze_rules, exposes_port, parse_port_spec, rank_findings
from .models import RiskFinding, SecurityRule

__all__ = [
    "analyze_rule",
    "analyze_rules",
    "exposes_port",
    "parse_port_spec",
    "rank_findings",
    "RiskFinding",
    "SecurityRule",
]
