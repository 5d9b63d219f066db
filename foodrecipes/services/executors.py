from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 3


class AppExecutors:
    """Worker pool for blocking network calls plus an independent timer facility.

    Timers run on their own daemon threads so a deadline fires even when every
    worker is blocked on a socket.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        *,
        thread_name_prefix: str = "foodrecipes_network",
    ) -> None:
        self._network_io = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._closed = False
        logger.info("Created ThreadPoolExecutor with %d workers", max_workers)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        return self._network_io.submit(fn, *args, **kwargs)

    def schedule(self, delay_seconds: float, fn: Callable[[], Any]) -> threading.Timer:
        """Run ``fn`` once after ``delay_seconds`` on a timer thread."""
        timer: threading.Timer

        def _fire() -> None:
            with self._lock:
                self._timers.discard(timer)
            try:
                fn()
            except Exception:
                logger.exception("Scheduled callback failed")

        timer = threading.Timer(delay_seconds, _fire)
        timer.daemon = True
        with self._lock:
            if self._closed:
                raise RuntimeError("AppExecutors is shut down")
            self._timers.add(timer)
        timer.start()
        return timer

    @property
    def pending_timers(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            timers, self._timers = self._timers, set()
        for timer in timers:
            timer.cancel()
        self._network_io.shutdown(wait=wait, cancel_futures=True)
