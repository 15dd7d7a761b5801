"""
Credential Providers — the contract shared by every auth strategy.

A provider owns one ``Credential`` (token + expiry) and hands out a token
that is valid right now. Refreshing is serialized by a per-provider lock:
concurrent callers hitting an expired token cause a single renewal or
login, and all of them get its result.

Security Note:
    Never log tokens, secret ids or unwrap tokens. Only log mounts,
    paths and lease durations.
"""
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..backend import VaultBackend

logger = logging.getLogger("vault.auth")

RENEW_MARGIN = 10  # seconds taken off a lease so we renew before Vault expires it
RENEW_MARGIN_THRESHOLD = 20  # leases this short are used in full

# expiry given to tokens Vault reports as never expiring
NEVER_EXPIRES = timedelta(days=365 * 1000)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def lease_expiry(lease_duration: int, now: datetime) -> datetime:
    """Compute when a token with the given lease must be treated as expired.

    Leases longer than 20 seconds are shortened by 10 so the token gets
    renewed before Vault expires it.

    Args:
        lease_duration: Lease (TTL) in seconds, as reported by Vault.
        now: Current time.

    Returns:
        Absolute expiry time.
    """
    if lease_duration > RENEW_MARGIN_THRESHOLD:
        lease_duration -= RENEW_MARGIN
    return now + timedelta(seconds=lease_duration)


@dataclass(frozen=True)
class Credential:
    """A token and the time it stops being usable.

    ``expires_at`` is None while the expiry has not been determined yet.
    """

    token: str = ""
    expires_at: Optional[datetime] = None

    def valid_at(self, now: datetime) -> bool:
        return bool(self.token) and self.expires_at is not None and now < self.expires_at


class CredentialProvider(ABC):
    """Produces a token valid for immediate use.

    Subclasses keep their state in ``self._credential`` and only change it
    while holding ``self._lock``.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._lock = threading.Lock()
        self._credential = Credential()
        self._clock = clock or utcnow

    @property
    def credential(self) -> Credential:
        """Current (token, expiry) pair, replaced as a whole on refresh."""
        return self._credential

    def now(self) -> datetime:
        return self._clock()

    @abstractmethod
    def get_token(self, backend: VaultBackend) -> str:
        """Return a token valid for immediate use.

        Raises:
            CredentialError: no valid token could be produced.
        """
