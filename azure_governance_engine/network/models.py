"""
NSG data models — security rules as read from ARM and the risk findings derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

PrefixField = Union[str, list, None]


def _as_list(value: PrefixField) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


@dataclass
class SecurityRule:
    """
    One NSG security rule.

    Address and port fields hold every raw value ARM reported: the singular
    property and the plural property are merged, and a single entry may still
    pack several comma/space-delimited values.
    """
    name: str
    access: str = ""                    # Allow / Deny
    direction: str = ""                 # Inbound / Outbound
    source_address_prefixes: list[str] = field(default_factory=list)
    destination_address_prefixes: list[str] = field(default_factory=list)
    destination_port_ranges: list[str] = field(default_factory=list)
    protocol: str = "*"
    priority: int = 4096
    nsg_name: str = ""
    resource_group: str = ""
    subscription_id: str = ""

    def __post_init__(self):
        self.source_address_prefixes = _as_list(self.source_address_prefixes)
        self.destination_address_prefixes = _as_list(self.destination_address_prefixes)
        self.destination_port_ranges = _as_list(self.destination_port_ranges)
        self.priority = _priority(self.priority)

    @classmethod
    def from_arm(cls, rule: dict[str, Any], nsg_name: str = "", resource_group: str = "",
                 subscription_id: str = "") -> "SecurityRule":
        """Build from an ARM securityRules entry (properties may be nested or flattened)."""
        props = rule.get("properties", rule)
        return cls(
            name=rule.get("name", "") or "",
            access=props.get("access", "") or "",
            direction=props.get("direction", "") or "",
            source_address_prefixes=(
                _as_list(props.get("sourceAddressPrefix"))
                + _as_list(props.get("sourceAddressPrefixes"))
            ),
            destination_address_prefixes=(
                _as_list(props.get("destinationAddressPrefix"))
                + _as_list(props.get("destinationAddressPrefixes"))
            ),
            destination_port_ranges=(
                _as_list(props.get("destinationPortRange"))
                + _as_list(props.get("destinationPortRanges"))
            ),
            protocol=props.get("protocol", "*") or "*",
            priority=_priority(props.get("priority")),
            nsg_name=nsg_name,
            resource_group=resource_group,
            subscription_id=subscription_id,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecurityRule":
        """Build from an exported record; accepts snake_case, PascalCase or ARM keys."""
        if "properties" in data or "sourceAddressPrefix" in data or "sourceAddressPrefixes" in data:
            return cls.from_arm(
                data,
                nsg_name=data.get("nsg_name", ""),
                resource_group=data.get("resource_group", ""),
                subscription_id=data.get("subscription_id", ""),
            )

        def pick(*keys):
            return [data[k] for k in keys if data.get(k) is not None]

        def first(*keys, default=""):
            values = pick(*keys)
            return values[0] if values else default

        def merged(*keys):
            out: list[str] = []
            for value in pick(*keys):
                out.extend(_as_list(value))
            return out

        return cls(
            name=str(first("name", "Name")),
            access=str(first("access", "Access")),
            direction=str(first("direction", "Direction")),
            source_address_prefixes=merged(
                "source_address_prefixes", "SourceAddressPrefix", "SourceAddressPrefixes"
            ),
            destination_address_prefixes=merged(
                "destination_address_prefixes", "DestinationAddressPrefix",
                "DestinationAddressPrefixes",
            ),
            destination_port_ranges=merged(
                "destination_port_ranges", "DestinationPortRange", "DestinationPortRanges"
            ),
            protocol=str(first("protocol", "Protocol", default="*")),
            priority=_priority(first("priority", "Priority", default=None)),
            nsg_name=str(first("nsg_name", "NsgName")),
            resource_group=str(first("resource_group", "ResourceGroup")),
            subscription_id=str(first("subscription_id", "SubscriptionId")),
        )


def _priority(value: Any) -> int:
    """ARM priorities are 100-4096; anything unreadable sorts last."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 4096


@dataclass
class RiskFinding:
    """An inbound rule exposing a watch-listed port (or every port) to the internet."""
    severity: str                       # Critical, High, Medium
    rule_name: str
    direction: str
    port: str                           # "22" or "*"
    port_name: str
    source: str
    destination: str
    protocol: str
    priority: int
    description: str
    nsg_name: str = ""
    resource_group: str = ""
    subscription_id: str = ""

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "rule_name": self.rule_name,
            "direction": self.direction,
            "port": self.port,
            "port_name": self.port_name,
            "source": self.source,
            "destination": self.destination,
            "protocol": self.protocol,
            "priority": self.priority,
            "description": self.description,
            "nsg_name": self.nsg_name,
            "resource_group": self.resource_group,
            "subscription_id": self.subscription_id,
        }
