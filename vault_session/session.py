"""
VaultSession — key/value access to one Vault store.

Provides the public API of vault_session:
- ``write(path, data)`` — replace every field stored at a path
- ``read(path)`` / ``read_key(path, field)`` — fetch a record or one field
- ``write_key(path, field, value)`` — update one field (read-modify-write)
- ``delete(path)`` — remove a path; deleting a missing path succeeds
- ``list(path)`` — child keys under a path

Each call checks the seal status (failing fast when sealed), asks the
credential provider for a current token and issues one RPC under
``<store>/<path>``. The provider lock only covers getting the token.

Security Note:
    Never log field values or tokens. Only log paths and operations.
"""
import logging
import threading
from typing import Any, Callable, Optional

from .auth.base import CredentialProvider
from .backend import BACKEND_ERRORS, HvacBackend, VaultBackend
from .conf import SessionConfig, VaultConfig
from .data import VaultData
from .exceptions import (
    CredentialError,
    MissingFieldError,
    MissingKeyError,
    MissingListPathError,
    VaultError,
)
from .readiness import ReadinessGate

logger = logging.getLogger("vault.session")


class VaultSession:
    """Authenticated key/value session on a Vault store.

    Construction blocks until Vault is reachable and unsealed (see
    :class:`~vault_session.readiness.ReadinessGate`).

    Args:
        auth: Credential provider handing out tokens.
        config: Store prefix and readiness polling settings.
        backend: RPC backend; built from ``vault_config`` when omitted.
        vault_config: Connection settings; read from the environment when
            neither ``backend`` nor ``vault_config`` is given.
        cancel: Event aborting the startup wait for unseal.
        sleep: Sleep function used while polling, for tests.
    """

    def __init__(
        self,
        auth: CredentialProvider,
        config: SessionConfig,
        backend: Optional[VaultBackend] = None,
        vault_config: Optional[VaultConfig] = None,
        cancel: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if backend is None:
            backend = HvacBackend(vault_config or VaultConfig.from_env())
        self._auth = auth
        self._config = config
        self._backend = backend
        gate_kwargs: dict[str, Any] = {
            "attempts": config.retry_attempts,
            "interval": config.retry_interval,
        }
        if sleep is not None:
            gate_kwargs["sleep"] = sleep
        self._gate = ReadinessGate(backend, **gate_kwargs)
        self._gate.wait_until_ready(cancel=cancel)
        logger.info("Vault session ready on store %s", config.store)

    def __repr__(self) -> str:
        return f'<VaultSession store={self.store!r}>'

    @property
    def store(self) -> str:
        return self._config.store

    @property
    def auth(self) -> CredentialProvider:
        return self._auth

    def _path(self, path: str) -> str:
        return f"{self._config.store}/{path}"

    def _prepare(self, operation: str) -> str:
        """Check the seal status and return a token for one operation."""
        self._gate.ensure_unsealed(operation)
        try:
            return self._auth.get_token(self._backend)
        except CredentialError as err:
            raise CredentialError(operation, err) from err

    def is_sealed(self) -> bool:
        """Return whether Vault is currently sealed."""
        return self._gate.is_sealed()

    def write(self, path: str, data: VaultData) -> VaultData:
        """Write the given fields to path, **completely** replacing what was there.

        Returns:
            Data echoed back by Vault, usually empty.
        """
        token = self._prepare("write")
        payload = data.to_dict() if isinstance(data, VaultData) else dict(data)
        try:
            secret = self._backend.write(self._path(path), payload, token=token)
        except BACKEND_ERRORS as err:
            raise VaultError("write", err) from err
        logger.debug("Vault session write: %s", path)
        return VaultData((secret or {}).get("data") or {})

    def write_key(self, path: str, field: str, value: str) -> VaultData:
        """Set one string field at path, keeping the other fields.

        Not atomic: a concurrent write to the same path between the read
        and the write is overwritten (last write wins).

        Raises:
            MissingKeyError: path does not exist yet.
        """
        data = self.read(path)
        data.set_string(field, value)
        return self.write(path, data)

    def read(self, path: str) -> VaultData:
        """Read every field stored at path.

        Raises:
            MissingKeyError: no secret exists at path.
        """
        token = self._prepare("read")
        try:
            secret = self._backend.read(self._path(path), token=token)
        except BACKEND_ERRORS as err:
            raise VaultError("read", err) from err
        if secret is None:
            raise MissingKeyError(path)
        return VaultData(secret.get("data") or {})

    def read_key(self, path: str, field: str) -> str:
        """Read one string field at path.

        Raises:
            MissingKeyError: no secret exists at path.
            MissingFieldError: the field is missing or empty.
        """
        value = self.read(path).get_string(field)
        if not value:
            raise MissingFieldError(field)
        return value

    def delete(self, path: str) -> VaultData:
        """Delete path. Deleting a path that does not exist is not an error."""
        token = self._prepare("delete")
        try:
            secret = self._backend.delete(self._path(path), token=token)
        except BACKEND_ERRORS as err:
            raise VaultError("delete", err) from err
        logger.debug("Vault session delete: %s", path)
        if secret is None:
            return VaultData()
        return VaultData(secret.get("data") or {})

    def list(self, path: str) -> list[str]:
        """List the keys directly under path.

        Raises:
            MissingListPathError: Vault has nothing listed under path.
        """
        token = self._prepare("list")
        try:
            secret = self._backend.list(self._path(path), token=token)
        except BACKEND_ERRORS as err:
            raise VaultError("list", err) from err
        if secret is None:
            raise MissingListPathError(self._config.store, path)
        keys = (secret.get("data") or {}).get("keys") or []
        return [str(key) for key in keys]

    def close(self) -> None:
        self._backend.close()

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
