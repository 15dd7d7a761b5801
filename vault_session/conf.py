"""
Vault Session Configuration — connection and session settings.

Connection settings use the same environment variables as the Vault CLI:
    VAULT_ADDR, VAULT_CACERT, VAULT_CAPATH, VAULT_CLIENT_CERT,
    VAULT_CLIENT_KEY, VAULT_CLIENT_TIMEOUT, VAULT_SKIP_VERIFY,
    VAULT_TLS_SERVER_NAME, VAULT_PROXY_ADDR, VAULT_NAMESPACE

Nothing reads the environment implicitly: call ``from_env()`` to build a
config from it, or construct the models directly.

Security Note:
    The configuration never holds tokens or secret ids.
"""
import os
import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("vault.session")

DEFAULT_RETRY_ATTEMPTS = 12
DEFAULT_RETRY_INTERVAL = 5
DEFAULT_CLIENT_TIMEOUT = 60
APPROLE_PATH = "approle"


def _env(name: str) -> Optional[str]:
    """Return an environment variable, treating empty values as unset."""
    value = os.environ.get(name)
    return value if value else None


class VaultConfig(BaseModel):
    """Validated connection settings for a Vault server.

    Attributes:
        address: Vault URL, e.g. ``https://vault.example.com:8200``.
        ca_cert: PEM bundle used to verify the server certificate.
        ca_path: Directory of CA certificates, used when ``ca_cert`` is unset.
        client_cert: Client certificate for mutual TLS.
        client_key: Private key matching ``client_cert``.
        client_timeout: Per-request timeout in seconds.
        skip_verify: Disable server certificate verification entirely.
        tls_server_name: Name sent as SNI and checked against the certificate,
            instead of the host part of ``address``.
        proxy_address: HTTP(S) proxy every request goes through.
        namespace: Vault Enterprise namespace.
    """

    address: str
    ca_cert: Optional[str] = None
    ca_path: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None
    client_timeout: float = Field(default=DEFAULT_CLIENT_TIMEOUT, gt=0)
    skip_verify: bool = False
    tls_server_name: Optional[str] = None
    proxy_address: Optional[str] = None
    namespace: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Vault address must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_client_pair(self) -> "VaultConfig":
        """Client certificate and key must be configured together."""
        if bool(self.client_cert) != bool(self.client_key):
            raise ValueError(
                "client_cert and client_key must be set together"
            )
        return self

    def requests_kwargs(self) -> dict[str, Any]:
        """Translate the TLS, timeout and proxy options for requests/hvac."""
        if self.skip_verify:
            verify: Any = False
        elif self.ca_cert:
            verify = self.ca_cert
        elif self.ca_path:
            verify = self.ca_path
        else:
            verify = True
        kwargs: dict[str, Any] = {
            "verify": verify,
            "timeout": self.client_timeout,
        }
        if self.client_cert:
            kwargs["cert"] = (self.client_cert, self.client_key)
        if self.proxy_address:
            kwargs["proxies"] = {
                "http": self.proxy_address,
                "https": self.proxy_address,
            }
        return kwargs

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig from the VAULT_* environment variables.

        Raises:
            RuntimeError: If VAULT_ADDR is not set.
        """
        address = _env("VAULT_ADDR")
        if address is None:
            raise RuntimeError("missing environment variable VAULT_ADDR")
        values: dict[str, Any] = {"address": address}
        for field, name in (
            ("ca_cert", "VAULT_CACERT"),
            ("ca_path", "VAULT_CAPATH"),
            ("client_cert", "VAULT_CLIENT_CERT"),
            ("client_key", "VAULT_CLIENT_KEY"),
            ("client_timeout", "VAULT_CLIENT_TIMEOUT"),
            ("skip_verify", "VAULT_SKIP_VERIFY"),
            ("tls_server_name", "VAULT_TLS_SERVER_NAME"),
            ("proxy_address", "VAULT_PROXY_ADDR"),
            ("namespace", "VAULT_NAMESPACE"),
        ):
            value = _env(name)
            if value is not None:
                values[field] = value
        logger.debug("Loaded Vault connection settings for %s", address)
        return cls(**values)


class SessionConfig(BaseModel):
    """Immutable settings of a session: store prefix and readiness polling."""

    store: str
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    retry_interval: float = Field(default=DEFAULT_RETRY_INTERVAL, ge=0)

    model_config = {"frozen": True}

    @field_validator("store")
    @classmethod
    def validate_store(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("missing vault path")
        return v

    @classmethod
    def from_env(cls, store: Optional[str] = None) -> "SessionConfig":
        """Create SessionConfig from VAULT_SESSION_* environment variables."""
        values: dict[str, Any] = {
            "store": store or _env("VAULT_SESSION_STORE") or "",
        }
        attempts = _env("VAULT_SESSION_RETRY_ATTEMPTS")
        if attempts is not None:
            values["retry_attempts"] = attempts
        interval = _env("VAULT_SESSION_RETRY_INTERVAL")
        if interval is not None:
            values["retry_interval"] = interval
        return cls(**values)
