"""
Storage Collector
Collects storage account kind, TLS floor, secure transfer and public blob access settings.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult, resource_group_of

logger = logging.getLogger("azure_governance_engine.collectors.storage")


class StorageCollector(BaseCollector):
    name = "storage"
    description = "Storage accounts and their transport/public-access settings"

    async def collect(self, result: CollectorResult):
        result.add_data("storage_accounts", [])
        await asyncio.gather(*(self._collect_subscription(sub, result) for sub in self.subscriptions))

    async def _collect_subscription(self, sub: dict, result: CollectorResult):
        accounts = await self.safe_list(
            f"/subscriptions/{sub['id']}/providers/Microsoft.Storage/storageAccounts",
            API_VERSIONS["storage"],
            result,
        )
        result.extend_data("storage_accounts", [
            {
                "id": acct.get("id", ""),
                "name": acct.get("name", ""),
                "kind": acct.get("kind", ""),
                "resource_group": resource_group_of(acct.get("id", "")),
                "subscription_id": sub["id"],
                "minimum_tls_version": acct.get("properties", {}).get("minimumTlsVersion"),
                "https_only": acct.get("properties", {}).get("supportsHttpsTrafficOnly"),
                "allow_blob_public_access": acct.get("properties", {}).get("allowBlobPublicAccess"),
            }
            for acct in accounts
        ])
