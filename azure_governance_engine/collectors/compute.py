"""
Compute Collector
Collects the agent extensions installed on virtual machines and scale sets.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult, resource_group_of

logger = logging.getLogger("azure_governance_engine.collectors.compute")

MACHINE_TYPES = {
    "VM": "Microsoft.Compute/virtualMachines",
    "VMSS": "Microsoft.Compute/virtualMachineScaleSets",
}


class ComputeCollector(BaseCollector):
    name = "compute"
    description = "Virtual machines, scale sets and their monitoring agent extensions"

    async def collect(self, result: CollectorResult):
        result.add_data("virtual_machines", [])
        await asyncio.gather(*(self._collect_subscription(sub, result) for sub in self.subscriptions))

    async def _collect_subscription(self, sub: dict, result: CollectorResult):
        for vm_type, provider in MACHINE_TYPES.items():
            machines = await self.safe_list(
                f"/subscriptions/{sub['id']}/providers/{provider}",
                API_VERSIONS["compute"],
                result,
            )
            summaries = await asyncio.gather(
                *(self._machine(machine, vm_type, sub, result) for machine in machines)
            )
            result.extend_data("virtual_machines", list(summaries))
            logger.debug(f"{sub['id']}: {len(summaries)} {vm_type}")

    async def _machine(self, machine: dict, vm_type: str, sub: dict, result: CollectorResult) -> dict:
        machine_id = machine.get("id", "")
        extensions = await self.safe_list(f"{machine_id}/extensions", API_VERSIONS["compute"], result)
        return {
            "id": machine_id,
            "name": machine.get("name", ""),
            "vm_type": vm_type,
            "resource_group": resource_group_of(machine_id),
            "subscription_id": sub["id"],
            "subscription_name": sub.get("name", ""),
            "extensions": [_extension(ext) for ext in extensions],
        }


def _extension(ext: dict) -> dict:
    props = ext.get("properties", {}) or {}
    # Resource-list views name extensions "<machine>/<extension>"
    name = (ext.get("name") or "").rsplit("/", 1)[-1]
    return {
        "name": name,
        "publisher": props.get("publisher", ""),
        "type": props.get("type", ""),
        "version": props.get("typeHandlerVersion", ""),
    }
