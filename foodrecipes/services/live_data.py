"""Observable single-value holder shared between worker threads and consumers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Observer = Callable[[T], None]



class LiveData(Generic[T]):
    """Holds the latest value and notifies observers on every write.

    Last write wins and no history is kept. Writes may come from any thread.
    Observers run outside the holder's lock on whichever writing thread is
    currently delivering, one delivery at a time and in write order. A writer
    that finds a delivery in progress returns at once and leaves its value to
    the delivering thread, so observers may skip intermediate values but their
    last notification is always the current value.
    """

    def __init__(self, value: T) -> None:
        self._cond = threading.Condition()
        self._value = value
        self._version = 0
        self._delivered = 0
        self._delivering = False
        self._observers: list[Observer[T]] = []

    @property
    def value(self) -> T:
        with self._cond:
            return self._value

    @property
    def version(self) -> int:
        """Number of writes so far."""
        with self._cond:
            return self._version

    def observe(self, observer: Observer[T]) -> Callable[[], None]:
        """Register ``observer``; returns a function that removes it."""
        with self._cond:
            self._observers.append(observer)

        def _remove() -> None:
            with self._cond:
                self._observers = [o for o in self._observers if o is not observer]

        return _remove

    def post_value(self, value: T) -> None:
        with self._cond:
            self._value = value
            self._version += 1
            self._cond.notify_all()
        self._deliver()

    # Same semantics; kept for call sites that read better as a plain setter.
    set_value = post_value

    def update(self, fn: Callable[[T], T]) -> T:
        """Atomically replace the value with ``fn(current)`` and publish it."""
        with self._cond:
            value = fn(self._value)
            self._value = value
            self._version += 1
            self._cond.notify_all()
        self._deliver()
        return value

    def wait_for(self, predicate: Callable[[T], bool], timeout: float | None = None) -> bool:
        """Block until ``predicate(value)`` holds or ``timeout`` elapses."""
        with self._cond:
            return self._cond.wait_for(lambda: predicate(self._value), timeout)

    def _deliver(self) -> None:
        with self._cond:
            if self._delivering:
                return
            self._delivering = True
        try:
            while True:
                with self._cond:
                    if self._delivered == self._version:
                        self._delivering = False
                        return
                    value = self._value
                    self._delivered = self._version
                    observers = list(self._observers)
                self._dispatch(observers, value)
        except BaseException:
            with self._cond:
                self._delivering = False
            raise

    @staticmethod
    def _dispatch(observers: list[Observer[T]], value: T) -> None:
        for observer in observers:
            try:
                observer(value)
            except Exception:
                # A broken observer must not take down the worker that published
                logger.exception("LiveData observer failed")
