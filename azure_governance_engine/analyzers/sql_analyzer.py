"""
SQL Analyzer
Analyzes: minimal TLS version and public network access on Azure SQL servers.
"""

from __future__ import annotations

import logging
from typing import Any

from .base import BaseAnalyzer, Control, tls_at_least_12

logger = logging.getLogger("azure_governance_engine.analyzers.sql")

PUBLIC_NETWORK_ACCESS = Control(
    control_id="4.1.2",
    title="Ensure no Azure SQL server allows ingress from the public network",
    severity="High",
    remediation="Disable public network access and use private endpoints.",
)
MINIMAL_TLS = Control(
    control_id="AZ-SQL.1",
    title="Ensure Azure SQL servers enforce a minimal TLS version of 1.2",
    severity="Medium",
    remediation="Set minimalTlsVersion=1.2 on the logical server.",
)


class SqlAnalyzer(BaseAnalyzer):
    name = "sql_analyzer"
    category = "Database"
    description = "Azure SQL transport and network exposure"
    controls = (PUBLIC_NETWORK_ACCESS, MINIMAL_TLS)

    def _analyze(self, data: dict[str, Any]):
        servers = self.get_safe(data, "sql", "sql_servers", default=[]) or []
        if not servers:
            self.skip_all("No SQL servers in scope")
            return

        for srv in servers:
            access = srv.get("public_network_access") or "Enabled"
            self.record(
                PUBLIC_NETWORK_ACCESS, access.lower() == "disabled", srv,
                details=f"publicNetworkAccess={access}",
            )
            tls = srv.get("minimal_tls_version")
            self.record(
                MINIMAL_TLS, tls_at_least_12(tls), srv,
                details=f"minimalTlsVersion={tls or 'null'}",
            )
