"""
Network Collector
Collects Network Security Groups and their custom security rules per subscription.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult, resource_group_of

logger = logging.getLogger("azure_governance_engine.collectors.network")


class NetworkCollector(BaseCollector):
    name = "network"
    description = "Network Security Groups and security rules"

    async def collect(self, result: CollectorResult):
        result.add_data("network_security_groups", [])
        await asyncio.gather(*(self._collect_subscription(sub, result) for sub in self.subscriptions))

    async def _collect_subscription(self, sub: dict, result: CollectorResult):
        nsgs = await self.safe_list(
            f"/subscriptions/{sub['id']}/providers/Microsoft.Network/networkSecurityGroups",
            API_VERSIONS["network"],
            result,
        )
        summaries = []
        for nsg in nsgs:
            props = nsg.get("properties", {})
            summaries.append({
                "id": nsg.get("id", ""),
                "name": nsg.get("name", ""),
                "location": nsg.get("location", ""),
                "resource_group": resource_group_of(nsg.get("id", "")),
                "subscription_id": sub["id"],
                "subscription_name": sub.get("name", ""),
                # Default rules are fixed by the platform; only custom rules are audited
                "security_rules": props.get("securityRules", []),
                "attached_subnets": len(props.get("subnets", []) or []),
                "attached_interfaces": len(props.get("networkInterfaces", []) or []),
            })
        result.extend_data("network_security_groups", summaries)
        logger.debug(f"{sub['id']}: {len(summaries)} NSGs")
