"""Credential providers: standing tokens and AppRole logins."""

from .base import Credential, CredentialProvider, lease_expiry
from .token import TokenAuth
from .approle import AppRoleAuth

__all__ = [
    "Credential",
    "CredentialProvider",
    "lease_expiry",
    "TokenAuth",
    "AppRoleAuth",
]
