"""Vault Session — self-renewing key/value sessions on HashiCorp Vault.

Security Note (Threat Model):
    Tokens and secret ids live in process memory for as long as the
    credential provider needs them; single-use unwrap tokens are dropped as
    soon as they are redeemed. Nothing is written to disk or to logs.
"""

from .version import __version__
from .auth import AppRoleAuth, Credential, CredentialProvider, TokenAuth
from .backend import HvacBackend, VaultBackend
from .conf import SessionConfig, VaultConfig
from .data import VaultData
from .exceptions import (
    CredentialError,
    MissingFieldError,
    MissingKeyError,
    MissingListPathError,
    VaultError,
    VaultSealedError,
    VaultUnavailableError,
)
from .readiness import ReadinessGate
from .session import VaultSession

__all__ = [
    "__version__",
    "AppRoleAuth",
    "Credential",
    "CredentialProvider",
    "TokenAuth",
    "HvacBackend",
    "VaultBackend",
    "SessionConfig",
    "VaultConfig",
    "VaultData",
    "CredentialError",
    "MissingFieldError",
    "MissingKeyError",
    "MissingListPathError",
    "VaultError",
    "VaultSealedError",
    "VaultUnavailableError",
    "ReadinessGate",
    "VaultSession",
]
