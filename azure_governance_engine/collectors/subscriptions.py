"""
Subscription Collector
Enumerates the subscriptions the service principal can read; everything else is scoped by them.
"""

from __future__ import annotations

import logging

from ..config import API_VERSIONS
from .base import BaseCollector, CollectorResult

logger = logging.getLogger("azure_governance_engine.collectors.subscriptions")


class SubscriptionCollector(BaseCollector):
    name = "subscriptions"
    description = "Enabled subscriptions in scope for the scan"

    async def collect(self, result: CollectorResult):
        subs = await self.safe_list("/subscriptions", API_VERSIONS["subscriptions"], result)

        allow_list = {s.lower() for s in self.config.subscriptions}
        in_scope = []
        for sub in subs:
            sub_id = sub.get("subscriptionId", "")
            if allow_list and sub_id.lower() not in allow_list:
                continue
            if sub.get("state") != "Enabled":
                result.add_warning(
                    f"Skipping subscription {sub.get('displayName', sub_id)} (state={sub.get('state')})"
                )
                continue
            in_scope.append({
                "id": sub_id,
                "name": sub.get("displayName", sub_id),
                "tenant_id": sub.get("tenantId", ""),
            })

        missing = allow_list - {s["id"].lower() for s in in_scope}
        for sub_id in sorted(missing):
            result.add_warning(f"Requested subscription {sub_id} is not visible or not enabled")

        result.add_data("subscriptions", in_scope)
