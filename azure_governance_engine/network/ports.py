"""
Watch-listed ports and the risk tier each one carries when reachable from the internet.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

CRITICAL = "Critical"
HIGH = "High"
MEDIUM = "Medium"

SEVERITY_RANK = {CRITICAL: 1, HIGH: 2, MEDIUM: 3}

# Remote shell / desktop
CRITICAL_PORTS = {
    22: "SSH",
    3389: "RDP",
}

# Management and legacy Windows protocols
HIGH_RISK_PORTS = {
    23: "Telnet",
    445: "SMB",
    5985: "WinRM HTTP",
    5986: "WinRM HTTPS",
    135: "RPC",
    139: "NetBIOS",
}

# Data stores and service endpoints
MEDIUM_RISK_PORTS = {
    1433: "SQL Server",
    3306: "MySQL",
    5432: "PostgreSQL",
    27017: "MongoDB",
    6379: "Redis",
    9200: "Elasticsearch",
    5601: "Kibana",
    8080: "HTTP Alt",
    21: "FTP",
    25: "SMTP",
}

RISK_PHRASES = {
    CRITICAL: "high risk of unauthorized access",
    HIGH: "management port exposed",
    MEDIUM: "service port exposed",
}

ALL_PORTS_NAME = "All Ports"
ALL_PORTS_DESCRIPTION = "All ports open to internet - extremely dangerous"


class PortRisk(NamedTuple):
    port: int
    name: str
    severity: str


WATCHED_PORTS: dict[int, PortRisk] = {
    port: PortRisk(port, name, severity)
    for severity, table in (
        (CRITICAL, CRITICAL_PORTS),
        (HIGH, HIGH_RISK_PORTS),
        (MEDIUM, MEDIUM_RISK_PORTS),
    )
    for port, name in table.items()
}

# Ascending, so range evaluation emits ports in numeric order
WATCHED_PORT_NUMBERS = sorted(WATCHED_PORTS)


def classify_port(port: int) -> Optional[PortRisk]:
    """Return the risk tier of a port, or None when it is not watch-listed."""
    return WATCHED_PORTS.get(port)


def describe(risk: PortRisk) -> str:
    return f"{risk.name} ({risk.port}) open to internet - {RISK_PHRASES[risk.severity]}"
