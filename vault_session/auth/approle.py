"""
AppRole Auth — role id + secret id exchanged for short-lived tokens.

Lifecycle of the token held by an ``AppRoleAuth``:

1. no token: log in at ``auth/<mount>/login`` with role id and secret id;
2. token valid: returned with no call to Vault;
3. token expired: renewed with ``renew-self``; when renewal fails for any
   reason, log in again with the stored role id and secret id.

The secret id may be delivered response-wrapped. An unwrap token takes
priority over a configured secret id and is single-use: it is forgotten as
soon as it has been redeemed successfully.

Use counts and maximum TTLs are left to Vault; an exhausted token simply
fails to renew and triggers a fresh login.
"""
import logging
from typing import Optional

from ..backend import BACKEND_ERRORS, VaultBackend
from ..conf import APPROLE_PATH
from ..exceptions import CredentialError
from .base import Clock, Credential, CredentialProvider, lease_expiry
from .token import RENEW_SELF_PATH

logger = logging.getLogger("vault.auth")

UNWRAP_PATH = "sys/wrapping/unwrap"


class AppRoleAuth(CredentialProvider):
    """Credential provider for the AppRole auth method.

    Args:
        role_id: AppRole role id.
        mount: Mount path of the AppRole auth method (without ``auth/``).
        secret_id: Secret id, if known up front.
        clock: Time source, for tests.
    """

    def __init__(
        self,
        role_id: str,
        mount: str = APPROLE_PATH,
        secret_id: str = "",
        clock: Optional[Clock] = None,
    ):
        super().__init__(clock=clock)
        self._role_id = role_id
        self._secret_id = secret_id
        self._unwrap_token = ""
        self._path = f"auth/{mount.strip('/')}"

    @property
    def login_path(self) -> str:
        return f"{self._path}/login"

    @property
    def has_unwrap_token(self) -> bool:
        return bool(self._unwrap_token)

    def set_secret_id(self, secret_id: str) -> None:
        with self._lock:
            self._secret_id = secret_id

    def set_unwrap_token(self, unwrap_token: str) -> None:
        """Set a wrapping token whose payload is the secret id."""
        with self._lock:
            self._unwrap_token = unwrap_token

    def get_token(self, backend: VaultBackend) -> str:
        with self._lock:
            credential = self._credential
            if credential.token:
                if credential.valid_at(self.now()):
                    return credential.token
                try:
                    self._credential = self._renew(backend, credential.token)
                    return self._credential.token
                except CredentialError as err:
                    logger.warning(
                        "Vault token renewal failed, logging in again at %s: %s",
                        self.login_path, err,
                    )

            if self._unwrap_token:
                try:
                    self._secret_id = self._unwrap(backend, self._unwrap_token)
                except CredentialError as err:
                    raise CredentialError("gettoken", err) from err
                self._unwrap_token = ""

            if not self._secret_id:
                raise CredentialError(
                    "gettoken",
                    "missing 'secret_id' to get a valid token from Vault",
                )
            try:
                self._credential = self._login(backend)
            except CredentialError as err:
                raise CredentialError("gettoken", err) from err
            return self._credential.token

    def _unwrap(self, backend: VaultBackend, unwrap_token: str) -> str:
        """Redeem the wrapping token and return the secret id it carries."""
        try:
            secret = backend.write(UNWRAP_PATH, None, token=unwrap_token)
        except BACKEND_ERRORS as err:
            raise CredentialError("unwrap", err) from err
        data = (secret or {}).get("data") or {}
        secret_id = data.get("secret_id")
        if not secret_id:
            raise CredentialError("unwrap", "wrapped response carries no secret_id")
        logger.info("Unwrapped AppRole secret id for %s", self._path)
        return secret_id

    def _login(self, backend: VaultBackend) -> Credential:
        if not self._role_id:
            raise CredentialError("login", "missing 'role_id' to get a new token")
        payload = {"role_id": self._role_id, "secret_id": self._secret_id}
        try:
            secret = backend.write(self.login_path, payload, token="")
        except BACKEND_ERRORS as err:
            raise CredentialError("login", err) from err
        return self._credential_from(secret, "login")

    def _renew(self, backend: VaultBackend, token: str) -> Credential:
        try:
            secret = backend.write(RENEW_SELF_PATH, None, token=token)
        except BACKEND_ERRORS as err:
            raise CredentialError("renew", err) from err
        return self._credential_from(secret, "renew")

    def _credential_from(self, secret: Optional[dict], operation: str) -> Credential:
        auth = (secret or {}).get("auth") or {}
        token = auth.get("client_token")
        if not token:
            raise CredentialError(operation, "response carries no client token")
        try:
            lease = int(auth.get("lease_duration", 0))
        except (TypeError, ValueError) as err:
            raise CredentialError(operation, "invalid lease_duration") from err
        logger.info("Vault %s at %s succeeded, lease=%ds", operation, self._path, lease)
        return Credential(token=token, expires_at=lease_expiry(lease, self.now()))
