"""
Delivery of pipeline results to the context that owns UI-visible state.

Workers never mutate UI state directly; they post a callable to a dispatcher.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable

from reactive_lookup.utils.logger import get_logger

logger = get_logger()


class ImmediateDispatcher:
    """Runs posted callables right away on the posting thread."""

    def post(self, fn: Callable[[], Any]) -> None:
        fn()


class QueueDispatcher:
    """
    Collects posted callables until the owning thread calls drain().

    Streamlit runs the page script on its own thread; the script drains the
    queue before rendering so every state change happens on that thread.
    """

    def __init__(self) -> None:
        self._queue: deque[Callable[[], Any]] = deque()
        self._lock = threading.Lock()

    def post(self, fn: Callable[[], Any]) -> None:
        with self._lock:
            self._queue.append(fn)

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def drain(self) -> int:
        """Run queued callables in FIFO order. Returns how many ran."""
        ran = 0
        while True:
            with self._lock:
                if not self._queue:
                    return ran
                fn = self._queue.popleft()
            try:
                fn()
            except Exception as e:
                logger.exception("Dispatched callback failed: %s", e)
            ran += 1

