"""
Safety Guardian — read-only enforcement for every Azure Resource Manager request.

ARM reads are GETs. A handful of provider actions are GET/POST but either return
secrets (listKeys, listConnectionStrings, publishing credentials) or change
resource state (start/stop/restart/deallocate); those are refused regardless of
method. The only POST let through is the Resource Graph query endpoint.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger("azure_governance_engine.safety")

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Query-only POST endpoints
READ_ONLY_POST_PATHS = [
    re.compile(r"/providers/Microsoft\.ResourceGraph/resources$", re.IGNORECASE),
]

# Provider actions that disclose secrets or change state
FORBIDDEN_ACTIONS = {
    "listkeys": "secret disclosure",
    "regeneratekey": "key rotation",
    "listconnectionstrings": "secret disclosure",
    "list": "secret disclosure",
    "start": "state change",
    "stop": "state change",
    "restart": "state change",
    "deallocate": "state change",
}

# App Service config sections whose /list action returns secrets
SENSITIVE_CONFIG_LISTS = frozenset({"publishingcredentials", "appsettings", "connectionstrings"})


class SafetyViolation(Exception):
    """Raised when a request would read secrets or modify Azure resources."""
    pass


class SafetyGuardian:
    """
    Gatekeeper consulted by ArmClient before each request goes on the wire.
    Keeps a count of checks and every refusal for the scan's audit trail.
    """

    def __init__(self):
        self.violations: list[dict] = []
        self.checks_performed: int = 0
        self.started_at: str = _utc_now()

    def validate_request(self, method: str, url: str, body: Optional[dict] = None) -> bool:
        """Return True when the request is read-only; raise SafetyViolation otherwise."""
        self.checks_performed += 1
        verb = method.upper()
        path = urlsplit(url).path.rstrip("/")

        action = _forbidden_action(path)
        if action:
            self._refuse(verb, url, f"Forbidden ARM action ({action})")

        if verb in READ_METHODS:
            return True
        if verb == "POST" and any(p.search(path) for p in READ_ONLY_POST_PATHS):
            return True
        if verb in MUTATING_METHODS:
            self._refuse(verb, url, "Mutating HTTP method")
        self._refuse(verb, url, "Unrecognised HTTP method")

    def _refuse(self, method: str, url: str, reason: str):
        self.violations.append({
            "timestamp": _utc_now(),
            "method": method,
            "url": url,
            "reason": reason,
        })
        logger.critical(f"SAFETY VIOLATION: {reason}: {method} {url}")
        raise SafetyViolation(f"SAFETY VIOLATION: {reason}: {method} {url}")

    def get_audit_record(self) -> dict:
        """Audit block embedded in the JSON report."""
        return {
            "safety_guardian": {
                "mode": "READ-ONLY",
                "started_at": self.started_at,
                "checks_performed": self.checks_performed,
                "violations_detected": len(self.violations),
                "violations": list(self.violations),
                "status": "VIOLATIONS_DETECTED" if self.violations else "CLEAN",
            }
        }

    @staticmethod
    def print_banner():
        print("=" * 75)
        print("  READ-ONLY AZURE GOVERNANCE SCAN -- NO CHANGES WILL BE MADE")
        print("  * Subscriptions, NSGs, storage, SQL and web apps are only listed")
        print("  * Key listing and start/stop style actions are refused")
        print("=" * 75)


def _forbidden_action(path: str) -> Optional[str]:
    """The category of a secret-reading or state-changing action at the end of `path`."""
    segments = path.lower().split("/")
    last = segments[-1] if segments else ""
    if last == "list":
        parent = segments[-2] if len(segments) > 1 else ""
        return FORBIDDEN_ACTIONS["list"] if parent in SENSITIVE_CONFIG_LISTS else None
    return FORBIDDEN_ACTIONS.get(last)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
