"""
Compute Analyzer
Analyzes: monitoring agents on VMs and scale sets (legacy Log Analytics agent vs Azure Monitor Agent).
"""

from __future__ import annotations

import logging
from typing import Any

from .base import BaseAnalyzer, Control

logger = logging.getLogger("azure_governance_engine.analyzers.compute")

NO_LEGACY_AGENT = Control(
    control_id="AZ-MON.1",
    title="Ensure VMs and scale sets do not run the retired Log Analytics (MMA/OMS) agent",
    severity="Medium",
    remediation="Migrate data collection to Azure Monitor Agent with a DCR, then remove the MMA/OMS extension.",
)
AZURE_MONITOR_AGENT = Control(
    control_id="AZ-MON.2",
    title="Ensure VMs and scale sets have the Azure Monitor Agent installed",
    severity="Low",
    cis_level="L2",
    remediation="Install AzureMonitorWindowsAgent / AzureMonitorLinuxAgent and associate a data collection rule.",
)

LEGACY_AGENT_TYPES = {
    "omsagentforlinux",
    "microsoftmonitoringagent",
    "mmaextension",
    "microsoft.enterprisecloud.monitoring",
}
AZURE_MONITOR_AGENT_TYPES = {"azuremonitorlinuxagent", "azuremonitorwindowsagent"}


def agent_types(machine: dict, known: set[str]) -> list[str]:
    """Extension types on the machine that appear in `known` (case-insensitive)."""
    found = []
    for ext in machine.get("extensions", []) or []:
        ext_type = ext.get("type") or ""
        if ext_type.lower() in known:
            found.append(ext_type)
    return sorted(set(found))


class ComputeAnalyzer(BaseAnalyzer):
    name = "compute_analyzer"
    category = "Monitoring"
    description = "VM and scale set monitoring agent inventory"
    controls = (NO_LEGACY_AGENT, AZURE_MONITOR_AGENT)

    def _analyze(self, data: dict[str, Any]):
        machines = self.get_safe(data, "compute", "virtual_machines", default=[]) or []
        if not machines:
            self.skip_all("No virtual machines or scale sets in scope")
            return

        for machine in machines:
            legacy = agent_types(machine, LEGACY_AGENT_TYPES)
            self.record(
                NO_LEGACY_AGENT, not legacy, machine,
                details=f"{machine.get('vm_type', 'VM')} legacy agents: {', '.join(legacy)}"
                if legacy else "No legacy Log Analytics agent",
            )
            ama = agent_types(machine, AZURE_MONITOR_AGENT_TYPES)
            self.record(
                AZURE_MONITOR_AGENT, bool(ama), machine,
                details=f"Installed: {', '.join(ama)}" if ama else "Azure Monitor Agent not installed",
            )
