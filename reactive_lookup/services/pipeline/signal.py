"""
Observable values: a current value plus subscribers notified on change.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Generic, Iterator, TypeVar

from reactive_lookup.utils.logger import get_logger

logger = get_logger()

T = TypeVar("T")

_MISSING = object()


class Signal(Generic[T]):
    """
    Holds a value and notifies subscribers whenever a new value is sent.

    New subscribers receive the current value immediately. With
    remove_duplicates=True a send equal to the current value is ignored.
    A subscriber that raises is logged and does not stop the others.
    """

    def __init__(self, initial: Any = _MISSING, *, remove_duplicates: bool = False, name: str = "signal") -> None:
        self._value = initial
        self._remove_duplicates = remove_duplicates
        self._subscribers: list[Callable[[T], Any]] = []
        self._lock = threading.RLock()
        self.name = name

    @property
    def value(self) -> T | None:
        with self._lock:
            return None if self._value is _MISSING else self._value

    @property
    def has_value(self) -> bool:
        return self._value is not _MISSING

    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
            current = self._value
        if current is not _MISSING:
            self._notify_one(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def send(self, value: T) -> bool:
        """Publish value. Returns False when suppressed as a duplicate."""
        with self._lock:
            if self._remove_duplicates and self._value is not _MISSING and self._value == value:
                return False
            self._value = value
            subscribers = list(self._subscribers)
        for cb in subscribers:
            self._notify_one(cb, value)
        return True

    def _notify_one(self, callback: Callable[[T], Any], value: T) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.exception("Subscriber of %s failed: %s", self.name, e)


class ActivityIndicator(Signal[bool]):
    """
    Boolean "network activity" signal driven by an in-flight counter.

    Publishes True when the first tracked call starts and False when the last
    one finishes, so overlapping requests do not make the indicator flicker.
    """

    def __init__(self, name: str = "activity") -> None:
        super().__init__(False, remove_duplicates=True, name=name)
        self._count = 0
        self._count_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._count > 0

    def begin(self) -> None:
        with self._count_lock:
            self._count += 1
            first = self._count == 1
        if first:
            self.send(True)

    def end(self) -> None:
        with self._count_lock:
            if self._count == 0:
                return
            self._count -= 1
            last = self._count == 0
        if last:
            self.send(False)

    @contextmanager
    def track(self) -> Iterator[None]:
        self.begin()
        try:
            yield
        finally:
            self.end()
