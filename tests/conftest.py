"""
Shared fixtures: an in-memory Vault backend and a controllable clock.
"""
import itertools
import threading
from datetime import datetime, timedelta, timezone

import pytest

from vault_session.backend import VaultBackend
from vault_session.conf import SessionConfig


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeVault(VaultBackend):
    """In-memory stand-in for a Vault server.

    Secrets live in ``self.secrets`` keyed by full path. Calls are recorded
    in ``self.calls`` as ``(method, path, token)``. Special paths (auth
    endpoints, slow paths) are served by handlers registered with
    ``on_read`` / ``on_write``.
    """

    def __init__(self, sealed: bool = False):
        self.sealed = sealed
        self.secrets: dict[str, dict] = {}
        self.envelopes: dict[str, list] = {}
        self.statuses: list = []
        self.calls: list[tuple] = []
        self._read_handlers = {}
        self._write_handlers = {}
        self._lock = threading.Lock()

    def _record(self, method, path, token):
        with self._lock:
            self.calls.append((method, path, token))

    def on_read(self, path, handler):
        self._read_handlers[path] = handler

    def on_write(self, path, handler):
        self._write_handlers[path] = handler

    def count(self, method, path=None) -> int:
        with self._lock:
            return sum(
                1 for m, p, _ in self.calls
                if m == method and (path is None or p == path)
            )

    def tokens_for(self, method, path) -> list:
        with self._lock:
            return [t for m, p, t in self.calls if m == method and p == path]

    def seal_status(self):
        self._record("seal_status", None, None)
        if self.statuses:
            status = self.statuses.pop(0)
            if isinstance(status, BaseException):
                raise status
            return status
        return {"sealed": self.sealed, "t": 1, "n": 1}

    def read(self, path, token):
        self._record("read", path, token)
        if path in self._read_handlers:
            return self._read_handlers[path](token)
        if path not in self.secrets:
            return None
        return {"data": dict(self.secrets[path])}

    def write(self, path, data, token):
        self._record("write", path, token)
        if path in self._write_handlers:
            return self._write_handlers[path](data, token)
        self.secrets[path] = dict(data or {})
        return None

    def delete(self, path, token):
        self._record("delete", path, token)
        self.secrets.pop(path, None)
        return None

    def list(self, path, token):
        self._record("list", path, token)
        if path in self.envelopes:
            return {"data": {"keys": list(self.envelopes[path])}}
        prefix = path.rstrip("/") + "/"
        keys = set()
        for key in self.secrets:
            if key.startswith(prefix):
                head, sep, _ = key[len(prefix):].partition("/")
                keys.add(head + sep)
        if not keys:
            return None
        return {"data": {"keys": sorted(keys)}}


def token_lookup(ttl=3600, expire_time="2024-01-01T01:00:00.000000000Z"):
    """Handler answering auth/token/lookup-self."""
    def handler(token):
        return {
            "data": {
                "ttl": ttl,
                "creation_ttl": ttl,
                "expire_time": expire_time,
                "renewable": True,
            }
        }
    return handler


def token_issuer(lease=3600, prefix="s.token"):
    """Handler answering logins and renewals with numbered tokens."""
    counter = itertools.count(1)

    def handler(data, token):
        issued = token if token else f"{prefix}-{next(counter)}"
        return {
            "auth": {
                "client_token": issued,
                "lease_duration": lease,
                "renewable": True,
            }
        }
    return handler


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def vault():
    return FakeVault()


@pytest.fixture
def session_config():
    return SessionConfig(store="secret", retry_attempts=3, retry_interval=0)


@pytest.fixture
def no_sleep():
    return lambda seconds: None
