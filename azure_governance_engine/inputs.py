"""
Offline input loader — reads control results and NSG rules exported by another scanner.

Accepted shape:
    {
      "findings":       [ {ControlId, Category, Severity, CisLevel, Status, ...}, ... ],
      "security_rules": [ {Name, Access, Direction, SourceAddressPrefix, ...}, ... ]
    }

Keys may be snake_case or PascalCase; security rules may also be raw ARM
securityRules objects, or whole NSGs under "network_security_groups".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import ConfigError
from .network.models import SecurityRule
from .scoring.models import ControlResult

logger = logging.getLogger("azure_governance_engine.inputs")


def load_offline_input(path: str | Path) -> tuple[list[ControlResult], list[SecurityRule]]:
    """Load control results and security rules; malformed records are logged and skipped."""
    try:
        with open(path, "r", encoding="utf-8-sig") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read input {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Input {path} must be a JSON object")

    findings = _load_records(data.get("findings", data.get("Findings", [])), ControlResult.from_dict, "finding")

    rules = _load_records(
        data.get("security_rules", data.get("SecurityRules", [])), SecurityRule.from_dict, "security rule"
    )
    for nsg in data.get("network_security_groups", []) or []:
        if not isinstance(nsg, dict):
            continue
        props = nsg.get("properties", nsg)
        for raw in props.get("securityRules", props.get("security_rules", [])) or []:
            try:
                rules.append(SecurityRule.from_arm(
                    raw,
                    nsg_name=nsg.get("name", ""),
                    resource_group=nsg.get("resource_group", ""),
                    subscription_id=nsg.get("subscription_id", ""),
                ))
            except (AttributeError, TypeError) as e:
                logger.warning(f"Skipping malformed rule on NSG {nsg.get('name')}: {e}")

    logger.info(f"Loaded {len(findings)} findings and {len(rules)} security rules from {path}")
    return findings, rules


def _load_records(records: Any, factory, label: str) -> list:
    if not isinstance(records, list):
        logger.warning(f"Expected a list of {label} records, got {type(records).__name__}")
        return []
    loaded = []
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(f"Skipping {label} #{idx}: not an object")
            continue
        try:
            loaded.append(factory(record))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping {label} #{idx}: {e}")
    return loaded
