"""
Vault Backend — the RPC boundary between a session and the Vault server.

A backend exposes exactly the calls the session and the credential
providers need: seal status, and generic read/write/delete/list on a
logical path under an explicit token. ``HvacBackend`` implements them on
top of ``hvac``; tests use an in-memory fake with the same methods.

Every data call takes the token to use. ``HvacBackend`` keeps one
``hvac.Client`` per thread, all sharing one ``requests.Session``, so a
token set for one call is never picked up by a request from another thread.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

import hvac
from hvac import exceptions as hvac_exceptions
import requests
from requests.adapters import HTTPAdapter

from .conf import VaultConfig
from .exceptions import VaultUnavailableError

logger = logging.getLogger("vault.session")

# errors a backend call may raise; wrapped by callers with the operation name
BACKEND_ERRORS = (hvac_exceptions.VaultError, requests.exceptions.RequestException)

_UNAVAILABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    hvac_exceptions.VaultDown,
)


class VaultBackend(ABC):
    """Capabilities required from the remote Vault service."""

    @abstractmethod
    def seal_status(self) -> Optional[dict]:
        """Return the seal status (``{"sealed": bool, ...}``), or None.

        Raises:
            VaultUnavailableError: the service could not be reached.
        """

    @abstractmethod
    def read(self, path: str, token: str) -> Optional[dict]:
        """Read a path; None when nothing exists there."""

    @abstractmethod
    def write(self, path: str, data: Optional[dict], token: str) -> Optional[dict]:
        """Write to a path; returns the response body (``data``/``auth``) or None."""

    @abstractmethod
    def delete(self, path: str, token: str) -> Optional[dict]:
        """Delete a path; None when the server returns no body."""

    @abstractmethod
    def list(self, path: str, token: str) -> Optional[dict]:
        """List child keys; None when there is no envelope for the path."""

    def close(self) -> None:
        """Release connections held by the backend."""


class ServerNameAdapter(HTTPAdapter):
    """HTTPAdapter sending a fixed TLS server name (SNI) and checking it."""

    def __init__(self, server_name: str, **kwargs):
        self.server_name = server_name
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["server_hostname"] = self.server_name
        kwargs["assert_hostname"] = self.server_name
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        proxy_kwargs["server_hostname"] = self.server_name
        proxy_kwargs["assert_hostname"] = self.server_name
        return super().proxy_manager_for(proxy, **proxy_kwargs)


def _as_body(response: Any) -> Optional[dict]:
    """hvac returns the raw Response for bodiless (204) replies."""
    return response if isinstance(response, dict) else None


class HvacBackend(VaultBackend):
    """Vault backend on top of ``hvac``.

    Args:
        config: Connection settings (address, TLS material, timeout, proxy).
        session: Optional ``requests.Session`` to reuse.
    """

    def __init__(self, config: VaultConfig, session: Optional[requests.Session] = None):
        self._config = config
        self._session = session or requests.Session()
        if config.tls_server_name:
            self._session.mount("https://", ServerNameAdapter(config.tls_server_name))
        self._local = threading.local()

    @property
    def address(self) -> str:
        return self._config.address

    def _client(self, token: Optional[str] = None) -> hvac.Client:
        """Return this thread's hvac client, set to use ``token``."""
        client = getattr(self._local, "client", None)
        if client is None:
            client = hvac.Client(
                url=self._config.address,
                namespace=self._config.namespace,
                session=self._session,
                **self._config.requests_kwargs(),
            )
            self._local.client = client
        client.token = token
        return client

    def seal_status(self) -> Optional[dict]:
        try:
            status = self._client().sys.read_seal_status()
        except _UNAVAILABLE_ERRORS as err:
            raise VaultUnavailableError("sealstatus", err) from err
        return _as_body(status)

    def read(self, path: str, token: str) -> Optional[dict]:
        logger.debug("Vault read: %s", path)
        return _as_body(self._client(token).read(path))

    def write(self, path: str, data: Optional[dict], token: str) -> Optional[dict]:
        logger.debug("Vault write: %s", path)
        return _as_body(self._client(token).write_data(path, data=data))

    def delete(self, path: str, token: str) -> Optional[dict]:
        logger.debug("Vault delete: %s", path)
        return _as_body(self._client(token).delete(path))

    def list(self, path: str, token: str) -> Optional[dict]:
        logger.debug("Vault list: %s", path)
        return _as_body(self._client(token).list(path))

    def close(self) -> None:
        self._session.close()
