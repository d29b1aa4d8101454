"""
Authentication module — Service principal auth for Azure Resource Manager.
Uses MSAL client-credentials flow with either a client secret or a PFX certificate.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Optional

import msal
from cryptography.hazmat.primitives.hashes import SHA1
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)

from ..config import ARM_SCOPE, AUTHORITY_HOST, AuthConfig

logger = logging.getLogger("azure_governance_engine.auth")


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class Authenticator:
    """
    Acquires ARM access tokens for a service principal.
    Supports:
      - Client secret credentials
      - Certificate credentials (base64-encoded PFX)
    """

    def __init__(self, config: AuthConfig):
        self.config = config
        self._access_token: Optional[str] = None

    def acquire_token(self) -> str:
        """Acquire an access token based on configured auth mode."""
        if not self.config.tenant_id or not self.config.client_id:
            raise AuthenticationError("tenant_id and client_id are required.")

        if self.config.mode == "secret":
            credential = self._secret_credential()
        elif self.config.mode == "certificate":
            credential = self._certificate_credential()
        else:
            raise AuthenticationError(f"Unknown auth mode: {self.config.mode}")

        app = msal.ConfidentialClientApplication(
            client_id=self.config.client_id,
            authority=f"{AUTHORITY_HOST}/{self.config.tenant_id}",
            client_credential=credential,
        )
        result = app.acquire_token_for_client(scopes=[ARM_SCOPE])

        if "access_token" in result:
            self._access_token = result["access_token"]
            logger.info(f"Authenticated as {self.config.client_id} ({self.config.mode}).")
            return self._access_token
        error = result.get("error_description", result.get("error", "Unknown"))
        raise AuthenticationError(f"Token acquisition failed: {error}")

    def _secret_credential(self) -> str:
        secret = self.config.client_secret or os.environ.get("AZURE_CLIENT_SECRET", "")
        if not secret:
            raise AuthenticationError(
                "No client secret configured (set auth.client_secret or AZURE_CLIENT_SECRET)."
            )
        return secret

    def _certificate_credential(self) -> dict:
        """Decode the PFX into the PEM key + thumbprint MSAL expects."""
        cert_config = self.config.certificate
        if not cert_config:
            raise AuthenticationError("Certificate auth config not provided.")

        cert_path = cert_config.certificate_path
        password = cert_config.certificate_password or os.environ.get("AZURE_CERT_PASSWORD", "")

        try:
            with open(cert_path, "r") as f:
                cert_bytes = base64.b64decode(f.read().strip())
            private_key, certificate, _ = pkcs12.load_key_and_certificates(
                cert_bytes, password.encode("utf-8") if password else None
            )
        except FileNotFoundError:
            raise AuthenticationError(f"Certificate file not found: {cert_path}")
        except ValueError as e:
            raise AuthenticationError(f"Failed to load certificate: {e}")

        if private_key is None or certificate is None:
            raise AuthenticationError(f"Certificate {cert_path} has no key/certificate pair")

        thumbprint = certificate.fingerprint(SHA1()).hex()
        logger.info(f"Certificate loaded. Thumbprint: {thumbprint}")
        return {
            "thumbprint": thumbprint,
            "private_key": private_key.private_bytes(
                Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
            ).decode("utf-8"),
        }

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token
