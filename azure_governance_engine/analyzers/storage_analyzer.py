"""
Storage Analyzer
Analyzes: secure transfer, public blob access, TLS floor, and legacy account kinds.
"""

from __future__ import annotations

import logging
from typing import Any

from .base import BaseAnalyzer, Control, tls_at_least_12

logger = logging.getLogger("azure_governance_engine.analyzers.storage")

SECURE_TRANSFER = Control(
    control_id="3.1",
    title="Ensure that 'Secure transfer required' is set to 'Enabled'",
    severity="High",
    remediation="Set supportsHttpsTrafficOnly=true on the storage account.",
)
PUBLIC_BLOB_ACCESS = Control(
    control_id="3.7",
    title="Ensure that 'Public access level' is disabled for storage accounts with blob containers",
    severity="High",
    remediation="Set allowBlobPublicAccess=false on the storage account.",
)
MINIMUM_TLS = Control(
    control_id="3.15",
    title="Ensure the 'Minimum TLS version' for storage accounts is set to 'Version 1.2'",
    severity="Medium",
    remediation="Set minimumTlsVersion=TLS1_2 on the storage account.",
)
LEGACY_KIND = Control(
    control_id="AZ-STG.1",
    title="Ensure storage accounts are not legacy general-purpose v1 or BlobStorage kinds",
    severity="Low",
    cis_level="L2",
    remediation="Upgrade the account to StorageV2 (general-purpose v2) before the retirement date.",
)

# Kinds affected by the general-purpose v1 / legacy blob account retirement
LEGACY_KINDS = {"storage", "blobstorage"}


class StorageAnalyzer(BaseAnalyzer):
    name = "storage_analyzer"
    category = "Storage"
    description = "Storage account transport and exposure settings"
    controls = (SECURE_TRANSFER, PUBLIC_BLOB_ACCESS, MINIMUM_TLS, LEGACY_KIND)

    def _analyze(self, data: dict[str, Any]):
        accounts = self.get_safe(data, "storage", "storage_accounts", default=[]) or []
        if not accounts:
            self.skip_all("No storage accounts in scope")
            return

        for acct in accounts:
            self.record(
                SECURE_TRANSFER, acct.get("https_only") is True, acct,
                details=f"supportsHttpsTrafficOnly={acct.get('https_only')}",
            )
            # ARM omits allowBlobPublicAccess on older accounts, where it defaults to allowed
            self.record(
                PUBLIC_BLOB_ACCESS, acct.get("allow_blob_public_access") is False, acct,
                details=f"allowBlobPublicAccess={acct.get('allow_blob_public_access')}",
            )
            tls = acct.get("minimum_tls_version")
            self.record(
                MINIMUM_TLS, tls_at_least_12(tls), acct,
                details=f"minimumTlsVersion={tls or 'null'}",
            )
            kind = acct.get("kind") or ""
            self.record(
                LEGACY_KIND, kind.lower() not in LEGACY_KINDS, acct,
                details=f"kind={kind or 'unknown'}",
            )
