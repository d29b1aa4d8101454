"""
NSG Risk Classifier — flags inbound Allow rules that expose watch-listed ports to the internet.

Per rule:
  - Only Allow + Inbound rules are considered.
  - The rule is flagged when at least one source token is internet-exposed,
    even if the others are private.
  - "*" ports yield a single Critical "All Ports" finding; ranges and single
    ports are evaluated against the watch list, one finding per (rule, port).

Output is ordered Critical → High → Medium, then by ascending NSG priority.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .addresses import is_internet_exposed, split_prefixes
from .models import RiskFinding, SecurityRule
from .ports import (
    ALL_PORTS_DESCRIPTION,
    ALL_PORTS_NAME,
    CRITICAL,
    SEVERITY_RANK,
    WATCHED_PORT_NUMBERS,
    classify_port,
    describe,
)

logger = logging.getLogger("azure_governance_engine.network")

MAX_PORT = 65535


def analyze_rules(rules: Iterable[SecurityRule]) -> list[RiskFinding]:
    """
    Classify a set of security rules and return ranked risk findings.
    A malformed rule is logged and skipped; it never aborts the others.
    """
    findings: list[RiskFinding] = []
    evaluated = 0
    for rule in rules:
        evaluated += 1
        try:
            findings.extend(analyze_rule(rule))
        except Exception as e:
            logger.exception(f"Skipping rule {getattr(rule, 'name', '?')!r}: {e}")

    rank_findings(findings)
    logger.debug(f"Evaluated {evaluated} rules — {len(findings)} risk findings")
    return findings


def rank_findings(findings: list[RiskFinding]) -> list[RiskFinding]:
    """Order in place: Critical, High, Medium, then ascending NSG priority."""
    findings.sort(key=lambda f: (SEVERITY_RANK.get(f.severity, len(SEVERITY_RANK) + 1), f.priority))
    return findings


def analyze_rule(rule: SecurityRule) -> list[RiskFinding]:
    """Risk findings for one rule, in port-spec order."""
    if (rule.access or "").strip().lower() != "allow":
        return []
    if (rule.direction or "").strip().lower() != "inbound":
        return []

    sources = split_prefixes(rule.source_address_prefixes)
    if not sources:
        logger.debug(f"Rule {rule.name!r} has no source prefixes — skipped")
        return []
    if not any(is_internet_exposed(token) for token in sources):
        return []

    source = ", ".join(sources)
    destination = ", ".join(split_prefixes(rule.destination_address_prefixes)) or "Any"

    def finding(severity: str, port: str, port_name: str, description: str) -> RiskFinding:
        return RiskFinding(
            severity=severity,
            rule_name=rule.name,
            direction=rule.direction,
            port=port,
            port_name=port_name,
            source=source,
            destination=destination,
            protocol=rule.protocol,
            priority=rule.priority,
            description=description,
            nsg_name=rule.nsg_name,
            resource_group=rule.resource_group,
            subscription_id=rule.subscription_id,
        )

    results: list[RiskFinding] = []
    seen: set[str] = set()

    for spec in split_prefixes(rule.destination_port_ranges):
        if spec == "*":
            if "*" not in seen:
                seen.add("*")
                results.append(finding(CRITICAL, "*", ALL_PORTS_NAME, ALL_PORTS_DESCRIPTION))
            continue

        bounds = parse_port_spec(spec)
        if bounds is None:
            logger.warning(f"Rule {rule.name!r}: unparseable port spec {spec!r} — skipped")
            continue

        low, high = bounds
        for port in WATCHED_PORT_NUMBERS:
            if port < low:
                continue
            if port > high:
                break
            key = str(port)
            if key in seen:
                continue
            seen.add(key)
            risk = classify_port(port)
            results.append(finding(risk.severity, key, risk.name, describe(risk)))

    return results


def exposes_port(rule: SecurityRule, port: int) -> bool:
    """True when an inbound Allow rule opens `port` (watch-listed or not) to the internet."""
    if (rule.access or "").strip().lower() != "allow":
        return False
    if (rule.direction or "").strip().lower() != "inbound":
        return False
    if not any(is_internet_exposed(t) for t in split_prefixes(rule.source_address_prefixes)):
        return False
    for spec in split_prefixes(rule.destination_port_ranges):
        if spec == "*":
            return True
        bounds = parse_port_spec(spec)
        if bounds and bounds[0] <= port <= bounds[1]:
            return True
    return False


def parse_port_spec(spec: str) -> Optional[tuple[int, int]]:
    """
    Parse "443" or "1000-2000" into inclusive bounds.
    Returns None for anything else, including inverted or out-of-range specs.
    """
    text = spec.strip()
    low_text, sep, high_text = text.partition("-")
    try:
        low = int(low_text)
        high = int(high_text) if sep else low
    except ValueError:
        return None
    if low < 0 or high > MAX_PORT or low > high:
        return None
    return low, high
