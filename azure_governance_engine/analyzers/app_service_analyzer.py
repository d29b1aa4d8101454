"""
App Service Analyzer
Analyzes: HTTPS-only redirection, TLS floor, and FTP deployment state on web apps.
"""

from __future__ import annotations

import logging
from typing import Any

from .base import BaseAnalyzer, Control, tls_at_least_12

logger = logging.getLogger("azure_governance_engine.analyzers.app_service")

HTTPS_ONLY = Control(
    control_id="9.2",
    title="Ensure Web App redirects all HTTP traffic to HTTPS",
    severity="High",
    remediation="Enable 'HTTPS Only' on the web app.",
)
MINIMUM_TLS = Control(
    control_id="9.3",
    title="Ensure Web App is using the latest version of TLS encryption",
    severity="Medium",
    remediation="Set minTlsVersion to 1.2 in the site configuration.",
)
FTP_DISABLED = Control(
    control_id="9.10",
    title="Ensure FTP deployments are disabled",
    severity="Medium",
    remediation="Set ftpsState to 'Disabled' (or 'FtpsOnly' where FTP is unavoidable).",
)

FTP_ACCEPTED_STATES = {"disabled", "ftpsonly"}


class AppServiceAnalyzer(BaseAnalyzer):
    name = "app_service_analyzer"
    category = "App Service"
    description = "Web app transport security settings"
    controls = (HTTPS_ONLY, MINIMUM_TLS, FTP_DISABLED)

    def _analyze(self, data: dict[str, Any]):
        apps = self.get_safe(data, "app_service", "web_apps", default=[]) or []
        if not apps:
            self.skip_all("No web apps in scope")
            return

        for app in apps:
            self.record(
                HTTPS_ONLY, app.get("https_only") is True, app,
                details=f"httpsOnly={app.get('https_only')}",
            )
            tls = app.get("min_tls_version")
            self.record(
                MINIMUM_TLS, tls_at_least_12(tls), app,
                details=f"minTlsVersion={tls or 'null'}",
            )
            ftps = app.get("ftps_state") or "AllAllowed"
            self.record(
                FTP_DISABLED, ftps.lower() in FTP_ACCEPTED_STATES, app,
                details=f"ftpsState={ftps}",
            )
