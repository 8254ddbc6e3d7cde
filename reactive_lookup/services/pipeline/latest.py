"""
Latest-wins derived stage.

A stage turns each upstream value into background work. Submitting a new value
supersedes whatever the stage was doing: the previous job is cancelled (or, if
already running, told to stop through its CancelToken) and its eventual result
is dropped. Only the result of the most recent submission is ever delivered.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from typing import Any, Callable, Generic, TypeVar

from reactive_lookup.domains.retry.retry_policy import RetryCancelledError
from reactive_lookup.services.pipeline.dispatch import ImmediateDispatcher
from reactive_lookup.utils.logger import get_logger

logger = get_logger()

T = TypeVar("T")
R = TypeVar("R")


class CancelToken:
    """Cooperative cancellation flag handed to each job."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to seconds. Returns True if cancelled meanwhile (drop-in retry sleep)."""
        return self._event.wait(max(seconds, 0.0))


class LatestStage(Generic[T, R]):
    """
    Runs work(value, token) on an executor, delivering only the newest result.

    Args:
        work: Job body. Long waits inside it should go through token.wait so a
            superseded job stops early.
        executor: Where jobs run.
        on_result: Receives the result of the current job, via dispatcher.
        on_error: Receives the exception of the current job, via dispatcher.
            When None, job failures are only logged.
        dispatcher: Context that runs deliveries. Defaults to the worker thread.
        settle_seconds: Quiet period before the job starts; a submission
            within that window replaces the pending one without running it.
        name: Used in log messages.
    """

    def __init__(
        self,
        work: Callable[[T, CancelToken], R],
        *,
        executor: Executor,
        on_result: Callable[[R], Any],
        on_error: Callable[[Exception], Any] | None = None,
        dispatcher: Any = None,
        settle_seconds: float = 0.0,
        name: str = "stage",
    ) -> None:
        self._work = work
        self._executor = executor
        self._on_result = on_result
        self._on_error = on_error
        self._dispatcher = dispatcher or ImmediateDispatcher()
        self._settle = max(settle_seconds, 0.0)
        self.name = name
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._generation = 0
        self._token: CancelToken | None = None
        self._future: Future | None = None
        self._pending = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> int:
        """Jobs submitted and not yet finished (including superseded ones still unwinding)."""
        return self._pending

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def submit(self, value: T) -> int:
        """Supersede the in-flight job with one for value. Returns the new generation."""
        with self._lock:
            self._supersede()
            gen = self._generation
            token = CancelToken()
            self._token = token
            self._pending += 1
        try:
            future = self._executor.submit(self._run, gen, value, token)
        except RuntimeError:
            self._job_finished(None)
            raise
        with self._lock:
            if self.is_current(gen):
                self._future = future
        future.add_done_callback(self._job_finished)
        return gen

    def cancel(self) -> None:
        """Abandon the in-flight job; nothing is delivered until the next submit."""
        with self._lock:
            self._supersede()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no job is pending. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def _supersede(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._future is not None:
            # A job that has not started yet never runs
            self._future.cancel()
            self._future = None
        self._generation += 1

    def _job_finished(self, _future: Future | None) -> None:
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    def _run(self, gen: int, value: T, token: CancelToken) -> None:
        if self._settle and token.wait(self._settle):
            logger.debug("%s: generation %d superseded while settling", self.name, gen)
            return
        if token.cancelled:
            return
        try:
            result = self._work(value, token)
        except RetryCancelledError:
            logger.debug("%s: generation %d cancelled during retry wait", self.name, gen)
            return
        except Exception as e:
            if self._on_error is None:
                logger.exception("%s: generation %d failed: %s", self.name, gen, e)
                return
            self._deliver(gen, self._on_error, e)
            return
        self._deliver(gen, self._on_result, result)

    def _deliver(self, gen: int, fn: Callable[[Any], Any], payload: Any) -> None:
        def deliver() -> None:
            with self._lock:
                if not self.is_current(gen):
                    logger.debug("%s: dropping stale result of generation %d", self.name, gen)
                    return
                fn(payload)

        if not self.is_current(gen):
            logger.debug("%s: dropping stale result of generation %d", self.name, gen)
            return
        self._dispatcher.post(deliver)
