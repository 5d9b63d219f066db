from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class CancelToken:
    """Cancellation and deadline context handed to a single HTTP call.

    The transport reads ``remaining()`` to size its own timeout and registers
    ``add_callback`` hooks (e.g. closing a streaming response) so ``cancel()``
    aborts an in-flight read instead of waiting for it to unblock.
    """

    def __init__(self, deadline: float | None = None) -> None:
        # deadline is a time.monotonic() instant
        self.deadline = deadline
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._callbacks: list[Callable[[], None]] = []

    @classmethod
    def with_timeout(cls, timeout_seconds: float) -> "CancelToken":
        return cls(deadline=time.monotonic() + timeout_seconds)

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until canceled or ``timeout`` elapses. Returns True if canceled."""
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancel (immediately if already canceled).

        Returns a function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove(callback)
        self._run(callback)
        return lambda: None

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run(callback)

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cancel callback failed")
