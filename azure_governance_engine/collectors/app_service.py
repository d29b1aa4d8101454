"""
App Service Collector
Collects web apps and their site configuration (HTTPS only, TLS floor, FTP state).
"""

from __future__ import annotations

import asyncio
import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult, resource_group_of

logger = logging.getLogger("azure_governance_engine.collectors.app_service")


class AppServiceCollector(BaseCollector):
    name = "app_service"
    description = "App Service web apps and site configuration"

    async def collect(self, result: CollectorResult):
        result.add_data("web_apps", [])
        await asyncio.gather(*(self._collect_subscription(sub, result) for sub in self.subscriptions))

    async def _collect_subscription(self, sub: dict, result: CollectorResult):
        sites = await self.safe_list(
            f"/subscriptions/{sub['id']}/providers/Microsoft.Web/sites",
            API_VERSIONS["web"],
            result,
        )
        # The list call omits siteConfig details; one GET per app fills them in
        configs = await asyncio.gather(*(
            self.safe_get(f"{site.get('id', '')}/config/web", API_VERSIONS["web"], result)
            for site in sites
        ))

        apps = []
        for site, site_config in zip(sites, configs):
            cfg = site_config.get("properties", {})
            apps.append({
                "id": site.get("id", ""),
                "name": site.get("name", ""),
                "kind": site.get("kind", ""),
                "resource_group": resource_group_of(site.get("id", "")),
                "subscription_id": sub["id"],
                "https_only": site.get("properties", {}).get("httpsOnly"),
                "min_tls_version": cfg.get("minTlsVersion"),
                "ftps_state": cfg.get("ftpsState"),
            })
        result.extend_data("web_apps", apps)
