"""
SQL Collector
Collects Azure SQL logical servers with their minimal TLS version and public network access.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult, resource_group_of

logger = logging.getLogger("azure_governance_engine.collectors.sql")


class SqlCollector(BaseCollector):
    name = "sql"
    description = "Azure SQL servers"

    async def collect(self, result: CollectorResult):
        result.add_data("sql_servers", [])
        await asyncio.gather(*(self._collect_subscription(sub, result) for sub in self.subscriptions))

    async def _collect_subscription(self, sub: dict, result: CollectorResult):
        servers = await self.safe_list(
            f"/subscriptions/{sub['id']}/providers/Microsoft.Sql/servers",
            API_VERSIONS["sql"],
            result,
        )
        result.extend_data("sql_servers", [
            {
                "id": srv.get("id", ""),
                "name": srv.get("name", ""),
                "resource_group": resource_group_of(srv.get("id", "")),
                "subscription_id": sub["id"],
                "minimal_tls_version": srv.get("properties", {}).get("minimalTlsVersion"),
                "public_network_access": srv.get("properties", {}).get("publicNetworkAccess"),
            }
            for srv in servers
        ])
