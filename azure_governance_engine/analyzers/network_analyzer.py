"""
Network Analyzer
Analyzes: NSG inbound exposure of remote access, management and web ports.
"""

from __future__ import annotations

import logging
from typing import Any

from ..network import RiskFinding, SecurityRule, analyze_rules, exposes_port, rank_findings
from ..network.ports import CRITICAL
from .base import BaseAnalyzer, Control

logger = logging.getLogger("azure_governance_engine.analyzers.network")

RDP_FROM_INTERNET = Control(
    control_id="6.1",
    title="Ensure that RDP access from the Internet is evaluated and restricted",
    severity="Critical",
    remediation="Remove inbound Allow rules for 3389 from Internet/Any sources; use Bastion or JIT.",
)
SSH_FROM_INTERNET = Control(
    control_id="6.2",
    title="Ensure that SSH access from the Internet is evaluated and restricted",
    severity="Critical",
    remediation="Remove inbound Allow rules for 22 from Internet/Any sources; use Bastion or JIT.",
)
HTTP_FROM_INTERNET = Control(
    control_id="6.4",
    title="Ensure that HTTP(S) access from the Internet is evaluated and restricted",
    severity="Medium",
    cis_level="L2",
    remediation="Front public web workloads with Application Gateway/Front Door instead of open NSG rules.",
)
SERVICE_PORTS_FROM_INTERNET = Control(
    control_id="AZ-NET.1",
    title="Ensure management and data service ports are not exposed to the Internet",
    severity="High",
    remediation="Restrict SMB, WinRM, RPC and database ports to private address ranges.",
)

WEB_PORTS = (80, 443)


class NetworkAnalyzer(BaseAnalyzer):
    name = "network_analyzer"
    category = "Networking"
    description = "NSG internet exposure analysis"
    controls = (RDP_FROM_INTERNET, SSH_FROM_INTERNET, HTTP_FROM_INTERNET, SERVICE_PORTS_FROM_INTERNET)

    def _analyze(self, data: dict[str, Any]):
        nsgs = self.get_safe(data, "network", "network_security_groups", default=[]) or []
        if not nsgs:
            self.skip_all("No network security groups in scope")
            return

        risks: list[RiskFinding] = []
        for nsg in nsgs:
            risks.extend(self._analyze_nsg(nsg))

        # Ranked across every NSG, not just within one
        self.risk_findings = rank_findings(risks)

    def _rules(self, nsgs: list[dict]) -> list[SecurityRule]:
        rules = []
        for nsg in nsgs:
            for raw in nsg.get("security_rules", []) or []:
                try:
                    rules.append(SecurityRule.from_arm(
                        raw,
                        nsg_name=nsg.get("name", ""),
                        resource_group=nsg.get("resource_group", ""),
                        subscription_id=nsg.get("subscription_id", ""),
                    ))
                except (AttributeError, TypeError) as e:
                    logger.warning(f"Malformed rule on NSG {nsg.get('name')}: {e}")
        return rules

    def _analyze_nsg(self, nsg: dict) -> list[RiskFinding]:
        rules = self._rules([nsg])
        risks = analyze_rules(rules)
        exposed_ports = {r.port for r in risks}
        all_ports_open = "*" in exposed_ports

        def offending(ports: set[str]) -> str:
            names = sorted({r.rule_name for r in risks if r.port in ports or r.port == "*"})
            return ", ".join(names)

        rdp_open = all_ports_open or "3389" in exposed_ports
        self.record(
            RDP_FROM_INTERNET, not rdp_open, nsg,
            details=f"Rules: {offending({'3389'})}" if rdp_open else "No internet-exposed RDP rules",
        )

        ssh_open = all_ports_open or "22" in exposed_ports
        self.record(
            SSH_FROM_INTERNET, not ssh_open, nsg,
            details=f"Rules: {offending({'22'})}" if ssh_open else "No internet-exposed SSH rules",
        )

        web_rules = sorted({
            rule.name for rule in rules
            if any(exposes_port(rule, port) for port in WEB_PORTS)
        })
        self.record(
            HTTP_FROM_INTERNET, not web_rules, nsg,
            details=f"Rules: {', '.join(web_rules)}" if web_rules else "No internet-exposed HTTP(S) rules",
        )

        service_risks = [r for r in risks if r.severity != CRITICAL or r.port == "*"]
        self.record(
            SERVICE_PORTS_FROM_INTERNET, not service_risks, nsg,
            details=(
                "Exposed: " + ", ".join(sorted({f"{r.port_name} ({r.port})" for r in service_risks}))
                if service_risks else "No internet-exposed service ports"
            ),
        )
        return risks
