"""
Configuration module for the Azure Governance Engine.
Defines all tunable parameters, ARM endpoints, scoring weights and output settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Raised when a configuration file cannot be used."""
    pass


# ─── Service Principal Authentication ────────────────────────────────────────

@dataclass
class CertificateAuth:
    """Certificate-based service principal credentials."""
    certificate_path: str          # Path to base64-encoded PFX
    certificate_password: str = "" # Falls back to AZURE_CERT_PASSWORD


@dataclass
class AuthConfig:
    """Authentication configuration — client secret or certificate."""
    tenant_id: str = ""
    client_id: str = ""
    mode: str = "secret"  # "secret" or "certificate"
    client_secret: str = ""         # Falls back to AZURE_CLIENT_SECRET
    certificate: Optional[CertificateAuth] = None

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Build credentials from the conventional AZURE_* environment variables."""
        auth = cls(
            tenant_id=os.environ.get("AZURE_TENANT_ID", ""),
            client_id=os.environ.get("AZURE_CLIENT_ID", ""),
            client_secret=os.environ.get("AZURE_CLIENT_SECRET", ""),
        )
        cert_path = os.environ.get("AZURE_CLIENT_CERTIFICATE_PATH", "")
        if cert_path and not auth.client_secret:
            auth.mode = "certificate"
            auth.certificate = CertificateAuth(certificate_path=cert_path)
        return auth


# ─── Azure Resource Manager Settings ────────────────────────────────────────

ARM_BASE_URL = "https://management.azure.com"
ARM_SCOPE = "https://management.azure.com/.default"
AUTHORITY_HOST = "https://login.microsoftonline.com"

API_VERSIONS = {
    "subscriptions": "2022-12-01",
    "network": "2023-09-01",
    "storage": "2023-01-01",
    "sql": "2021-11-01",
    "web": "2022-09-01",
    "compute": "2023-09-01",
}

# Rate limiting / throttling
MAX_CONCURRENT_REQUESTS = 4       # Parallel requests to ARM
MAX_RETRIES = 5                   # Retry count for throttled requests
INITIAL_BACKOFF_SECONDS = 2.0     # First retry delay
MAX_BACKOFF_SECONDS = 120.0       # Cap on exponential backoff
BACKOFF_MULTIPLIER = 2.0          # Exponential factor

# Pagination
MAX_PAGES_PER_ENDPOINT = 1000     # Safety cap on nextLink loops


# ─── Collection Settings ────────────────────────────────────────────────────

@dataclass
class CollectionConfig:
    """Controls for data collection behavior."""
    subscriptions: list[str] = field(default_factory=list)  # Empty = all enabled
    max_pages: int = MAX_PAGES_PER_ENDPOINT
    enable_network: bool = True
    enable_storage: bool = True
    enable_sql: bool = True
    enable_app_service: bool = True
    enable_compute: bool = True


# ─── Scoring Weights ────────────────────────────────────────────────────────

SEVERITY_WEIGHTS = {
    "critical": 10.0,
    "high": 7.0,
    "medium": 4.0,
    "low": 1.0,
}

LEVEL_MULTIPLIERS = {
    "l1": 1.0,
    "l2": 0.8,
}


@dataclass
class ScoringConfig:
    """Weights injected into the compliance scorer."""
    severity_weights: dict[str, float] = field(default_factory=lambda: dict(SEVERITY_WEIGHTS))
    level_multipliers: dict[str, float] = field(default_factory=lambda: dict(LEVEL_MULTIPLIERS))
    include_level2: bool = True

    def __post_init__(self):
        # Lookups are case-insensitive
        self.severity_weights = {k.lower(): float(v) for k, v in self.severity_weights.items()}
        self.level_multipliers = {k.lower(): float(v) for k, v in self.level_multipliers.items()}


# ─── Output Configuration ───────────────────────────────────────────────────

REPORT_FORMATS = ["json", "csv", "markdown", "html"]


@dataclass
class OutputConfig:
    """Output directory and format settings."""
    base_dir: str = ""
    timestamp: str = ""
    formats: list[str] = field(default_factory=lambda: list(REPORT_FORMATS))

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        if not self.base_dir:
            self.base_dir = os.path.join(
                os.getcwd(),
                f"azure_governance_scan_{self.timestamp}"
            )

    @property
    def scan_dir(self) -> Path:
        return Path(self.base_dir)


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class EngineConfig:
    """Top-level configuration for the entire engine."""
    auth: AuthConfig = field(default_factory=AuthConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "EngineConfig":
        """Load configuration from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read configuration {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration {path} must be a JSON object")

        try:
            return cls._from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration {path}: {e}") from e

    @classmethod
    def _from_dict(cls, data: dict) -> "EngineConfig":
        config = cls()
        if "auth" in data:
            a = data["auth"]
            config.auth = AuthConfig(
                tenant_id=a.get("tenant_id", ""),
                client_id=a.get("client_id", ""),
                mode=a.get("mode", "secret"),
                client_secret=a.get("client_secret", ""),
            )
            if "certificate" in a:
                c = a["certificate"]
                config.auth.certificate = CertificateAuth(
                    certificate_path=c.get("certificate_path", "./base64.txt"),
                    certificate_password=c.get("certificate_password", ""),
                )
        if "collection" in data:
            for k, v in data["collection"].items():
                if hasattr(config.collection, k):
                    setattr(config.collection, k, v)
        if "scoring" in data:
            s = data["scoring"]
            config.scoring = ScoringConfig(
                severity_weights=s.get("severity_weights", SEVERITY_WEIGHTS),
                level_multipliers=s.get("level_multipliers", LEVEL_MULTIPLIERS),
                include_level2=s.get("include_level2", True),
            )
        if "output" in data:
            for k, v in data["output"].items():
                if hasattr(config.output, k):
                    setattr(config.output, k, v)
        config.verbose = data.get("verbose", False)
        return config
