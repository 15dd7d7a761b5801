"""
Readiness Gate — block until Vault is reachable and unsealed.

At startup the seal status is polled a bounded number of times until Vault
answers. If it answers sealed, polling continues at the same interval with
no bound: unsealing is an operator action and the session cannot do
anything useful before it happens. Pass a ``threading.Event`` to abandon
either wait from another thread (shutdown, host-imposed timeout).

After startup every data operation checks the seal status again and fails
at once with ``VaultSealedError`` instead of waiting.
"""
import time
import logging
import threading
from typing import Callable, Optional

from tenacity import (
    Retrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_when_event_set,
    wait_fixed,
)

from .backend import BACKEND_ERRORS, VaultBackend
from .conf import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_INTERVAL
from .exceptions import VaultError, VaultSealedError, VaultUnavailableError

logger = logging.getLogger("vault.session")


class ReadinessGate:
    """Seal-status checks for one backend.

    Args:
        backend: Backend to query.
        attempts: Startup attempts to obtain a seal status.
        interval: Seconds between attempts, and between sealed polls.
        sleep: Sleep function, for tests.
    """

    def __init__(
        self,
        backend: VaultBackend,
        attempts: int = DEFAULT_RETRY_ATTEMPTS,
        interval: float = DEFAULT_RETRY_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._backend = backend
        self._attempts = attempts
        self._interval = interval
        self._sleep = sleep

    def _log_attempt(self, retry_state: RetryCallState) -> None:
        logger.info(
            "sleeping %s seconds to check vault status, attempt %d of %d",
            self._interval, retry_state.attempt_number, self._attempts,
        )

    def _first_status(self, cancel: Optional[threading.Event] = None) -> Optional[dict]:
        """Poll until Vault reports a seal status.

        Returns None when attempts run out or ``cancel`` is set.
        """
        stop = stop_after_attempt(self._attempts)
        sleep = self._sleep
        if cancel is not None:
            stop = stop | stop_when_event_set(cancel)
            sleep = cancel.wait
        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(self._interval),
            retry=(
                retry_if_result(lambda status: status is None)
                | retry_if_exception_type(VaultUnavailableError)
            ),
            before_sleep=self._log_attempt,
            retry_error_callback=lambda retry_state: None,
            sleep=sleep,
        )
        try:
            return retrying(self._backend.seal_status)
        except BACKEND_ERRORS as err:
            raise VaultError("new", f"seal status: {err}") from err

    def _pause(self, cancel: Optional[threading.Event]) -> bool:
        """Wait one interval; True when the wait was cancelled."""
        if cancel is not None:
            return cancel.wait(self._interval)
        self._sleep(self._interval)
        return False

    def wait_until_ready(self, cancel: Optional[threading.Event] = None) -> None:
        """Block until Vault is reachable and unsealed.

        Args:
            cancel: Event that, once set, aborts the wait.

        Raises:
            VaultError: no seal status within the attempt budget, a seal
                status query failed, or the wait was cancelled.
        """
        status = self._first_status(cancel)
        if status is None:
            if cancel is not None and cancel.is_set():
                raise VaultError(
                    "new", "cancelled while waiting for Vault seal status"
                )
            raise VaultError("new", "unable to obtain seal status of Vault")

        while status is None or status.get("sealed"):
            logger.info("vault is sealed, waiting for it to be unsealed")
            if self._pause(cancel):
                raise VaultError(
                    "new", "cancelled while waiting for Vault to be unsealed"
                )
            try:
                status = self._backend.seal_status()
            except (VaultUnavailableError, *BACKEND_ERRORS) as err:
                raise VaultError("new", f"seal status: {err}") from err
        logger.debug("Vault is unsealed")

    def is_sealed(self) -> bool:
        """Query the current seal status.

        Raises:
            VaultError: the status could not be obtained.
        """
        try:
            status = self._backend.seal_status()
        except (VaultUnavailableError, *BACKEND_ERRORS) as err:
            raise VaultError("issealed", f"seal status: {err}") from err
        if status is None:
            raise VaultError("issealed", "seal status: no status returned")
        return bool(status.get("sealed"))

    def ensure_unsealed(self, operation: str) -> None:
        """Fail fast with VaultSealedError when Vault is sealed."""
        if self.is_sealed():
            raise VaultSealedError(operation)
