"""Shared fixtures and builders for the governance engine tests."""

import json
from pathlib import Path

import pytest

from azure_governance_engine.network.models import SecurityRule
from azure_governance_engine.scoring.models import ControlResult


def make_result(
    control_id: str = "6.1",
    category: str = "Networking",
    severity: str = "High",
    cis_level: str = "L1",
    status: str = "PASS",
    **kwargs,
) -> ControlResult:
    return ControlResult(
        control_id=control_id,
        category=category,
        severity=severity,
        cis_level=cis_level,
        status=status,
        **kwargs,
    )


def make_rule(
    name: str = "rule",
    sources=("*",),
    ports=("22",),
    access: str = "Allow",
    direction: str = "Inbound",
    priority: int = 100,
    **kwargs,
) -> SecurityRule:
    return SecurityRule(
        name=name,
        access=access,
        direction=direction,
        source_address_prefixes=list(sources),
        destination_port_ranges=list(ports),
        priority=priority,
        **kwargs,
    )


def arm_rule(name: str, source: str = "*", port: str = "3389", access: str = "Allow",
             direction: str = "Inbound", priority: int = 100) -> dict:
    """An NSG securityRules entry as ARM returns it."""
    return {
        "name": name,
        "properties": {
            "access": access,
            "direction": direction,
            "protocol": "Tcp",
            "priority": priority,
            "sourceAddressPrefix": source,
            "sourceAddressPrefixes": [],
            "destinationAddressPrefix": "*",
            "destinationPortRange": port,
            "destinationPortRanges": [],
        },
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Write a JSON document into tmp_path and return its path."""
    def _write(name: str, payload) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path
    return _write
