"""
Token Auth — a pre-issued Vault token, renewed in place.

The token's lifetime is learned by looking it up the first time it is
used; once that expiry passes the token is renewed with ``renew-self``.
A standing token has nothing to log in again with, so a failed renewal
is final.

When a token file is configured, an external agent (e.g. Vault Agent)
owns the token lifecycle: the file is read on every call and its content
returned as-is.
"""
import logging
from pathlib import Path
from typing import Any, Optional, Union

from ..backend import BACKEND_ERRORS, VaultBackend
from ..exceptions import CredentialError
from .base import (
    NEVER_EXPIRES,
    Clock,
    Credential,
    CredentialProvider,
    lease_expiry,
)

logger = logging.getLogger("vault.auth")

LOOKUP_SELF_PATH = "auth/token/lookup-self"
RENEW_SELF_PATH = "auth/token/renew-self"


def _seconds(value: Any, field: str, operation: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise CredentialError(operation, f"invalid {field} {value!r}") from err


class TokenAuth(CredentialProvider):
    """Credential provider for a standing Vault token.

    Args:
        token: The Vault token.
        token_file: Optional file holding the current token; takes
            precedence over ``token`` when set.
        clock: Time source, for tests.
    """

    def __init__(
        self,
        token: str = "",
        token_file: Optional[Union[str, Path]] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(clock=clock)
        self._credential = Credential(token=token)
        self._token_file: Optional[Path] = Path(token_file) if token_file else None

    def set_token(self, token: str) -> None:
        """Replace the token; its expiry is looked up again on next use."""
        with self._lock:
            self._credential = Credential(token=token)

    def set_token_file(self, token_file: Union[str, Path]) -> None:
        with self._lock:
            self._token_file = Path(token_file)

    def get_token(self, backend: VaultBackend) -> str:
        with self._lock:
            if self._token_file is not None:
                try:
                    return self._token_file.read_text()
                except OSError as err:
                    raise CredentialError("gettoken", err) from err

            credential = self._credential
            if not credential.token:
                raise CredentialError("gettoken", "missing 'token'")

            if credential.valid_at(self.now()):
                return credential.token

            if credential.expires_at is None:
                self._credential = self._lookup(backend, credential.token)
            else:
                self._credential = self._renew(backend, credential.token)
            return self._credential.token

    def _lookup(self, backend: VaultBackend, token: str) -> Credential:
        """Learn the remaining lifetime of the token."""
        try:
            secret = backend.read(LOOKUP_SELF_PATH, token=token)
        except BACKEND_ERRORS as err:
            raise CredentialError("lookup", err) from err
        data = (secret or {}).get("data")
        if not data:
            raise CredentialError("lookup", "token lookup returned no data")

        now = self.now()
        if data.get("expire_time") is None:
            logger.info("Vault token has no expiry, no renewal needed")
            return Credential(token=token, expires_at=now + NEVER_EXPIRES)

        if data.get("ttl") is not None:
            ttl = _seconds(data["ttl"], "ttl", "lookup")
        else:
            ttl = _seconds(data.get("creation_ttl"), "creation_ttl", "lookup")
        logger.info("Vault token looked up, ttl=%ds", ttl)
        return Credential(token=token, expires_at=lease_expiry(ttl, now))

    def _renew(self, backend: VaultBackend, token: str) -> Credential:
        try:
            secret = backend.write(RENEW_SELF_PATH, None, token=token)
        except BACKEND_ERRORS as err:
            raise CredentialError("renew", err) from err
        auth = (secret or {}).get("auth")
        if not auth:
            raise CredentialError("renew", "renewal returned no auth block")
        lease = _seconds(auth.get("lease_duration"), "lease_duration", "renew")
        logger.info("Vault token renewed, lease=%ds", lease)
        return Credential(
            token=auth.get("client_token") or token,
            expires_at=lease_expiry(lease, self.now()),
        )
