"""
Source address classification for NSG rules.

A token is internet-exposed when it is an explicit "anywhere" indicator, or
when it is not recognisably private. Private ranges are tested numerically
with ipaddress, never by string prefix: 172.9.0.0 is public, 172.16.0.0 to
172.31.255.255 is private.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Iterable

INTERNET_INDICATORS = {"*", "0.0.0.0/0", "internet", "any"}

PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),       # loopback
    ipaddress.ip_network("169.254.0.0/16"),    # link-local
]

# Azure service tags that only ever describe in-VNet / platform traffic
PRIVATE_TAG_PREFIXES = ("virtualnetwork", "azureloadbalancer")

_DELIMITERS = re.compile(r"\s+")


def split_prefixes(values: Iterable[str]) -> list[str]:
    """Flatten packed prefix values: split on commas, then whitespace, drop empties."""
    tokens = []
    for value in values:
        for part in str(value).split(","):
            tokens.extend(t for t in _DELIMITERS.split(part.strip()) if t)
    return tokens


def is_internet_indicator(token: str) -> bool:
    return token.strip().lower() in INTERNET_INDICATORS


def is_private(token: str) -> bool:
    """True for RFC1918, loopback and link-local addresses and in-VNet service tags."""
    lowered = token.strip().lower()
    if lowered.startswith(PRIVATE_TAG_PREFIXES):
        return True

    # The address part of a CIDR decides membership
    address_part = lowered.split("/", 1)[0]
    try:
        address = ipaddress.ip_address(address_part)
    except ValueError:
        return False
    if address.version != 4:
        return False
    return any(address in network for network in PRIVATE_NETWORKS)


def is_internet_exposed(token: str) -> bool:
    """Explicit indicators and anything not recognisably private count as internet."""
    if is_internet_indicator(token):
        return True
    return not is_private(token)
