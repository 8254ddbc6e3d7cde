"""
Bounded retry with a randomized pre-attempt delay.

Every attempt, including the first, is preceded by a pause drawn uniformly from
the policy's jitter range. A failing operation is invoked at most
``max_retries + 1`` times; after that the last failure is surfaced wrapped in
RetryExhaustedError.

Retried operations may run more than once, so anything with side effects
(POST, PUT, sending a message) must be idempotent before it is wrapped here.

Example:
    >>> policy = RetryPolicy(max_retries=3, jitter=(1.0, 5.0))
    >>> response = retry_with_delay(lambda: requests.get(url, timeout=10), policy)
"""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from reactive_lookup.utils.logger import get_logger

logger = get_logger()

T = TypeVar("T")


class RetryExhaustedError(RuntimeError):
    """Raised when every allowed attempt failed. Chained from the last failure."""

    def __init__(self, message: str, attempts: int, original: Exception) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.original = original


class RetryCancelledError(RuntimeError):
    """Raised when the pre-attempt wait was interrupted by cancellation."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Retry cancelled after {attempts} attempt(s)")
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to retry and how long to wait before each attempt.

    Attributes:
        max_retries: Retries after the first attempt. Required; there is no
            "retry forever" value, since an unbounded retry can stall a caller
            indefinitely.
        jitter: (min, max) seconds; each pre-attempt delay is drawn uniformly
            from this range.
    """

    max_retries: int
    jitter: tuple[float, float] = (1.0, 5.0)

    def __post_init__(self) -> None:
        n = self.max_retries
        if n is None or isinstance(n, bool) or not isinstance(n, int):
            if isinstance(n, float) and math.isinf(n):
                raise ValueError("Unlimited retries are not allowed; pass a finite max_retries")
            raise ValueError(f"max_retries must be an int >= 0, got {n!r}")
        if n < 0:
            raise ValueError(f"max_retries must be >= 0, got {n}")
        try:
            lo, hi = (float(v) for v in self.jitter)
        except (TypeError, ValueError) as e:
            raise ValueError(f"jitter must be a (min, max) pair, got {self.jitter!r}") from e
        # nan compares False both ways, so finiteness is checked first
        if not (math.isfinite(lo) and math.isfinite(hi)) or lo < 0 or hi < lo:
            raise ValueError(f"jitter must satisfy 0 <= min <= max < inf, got {self.jitter!r}")
        object.__setattr__(self, "jitter", (lo, hi))

    @property
    def attempts_allowed(self) -> int:
        return self.max_retries + 1

    def next_delay(self, rng: Any = random) -> float:
        lo, hi = self.jitter
        return rng.uniform(lo, hi)


def retry_with_delay(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Any] = time.sleep,
    rng: Any = random,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """
    Run operation under policy.

    Args:
        operation: Zero-argument callable; invoked once per attempt.
        policy: Retry bound and jitter range.
        sleep: Called with each pre-attempt delay. A sleep that returns True
            (e.g. CancelToken.wait) signals cancellation and stops the loop.
        rng: Source of uniform delays; anything with ``uniform(a, b)``.
        retry_on: Exception types that consume a retry. Anything else
            propagates after the attempt that raised it.
        on_retry: Called with (attempt_number, error) before each retry.

    Returns:
        The first successful result.

    Raises:
        RetryExhaustedError: If all ``policy.attempts_allowed`` attempts failed.
        RetryCancelledError: If a pre-attempt wait was cancelled.
    """
    attempt = 0
    while True:
        if sleep(policy.next_delay(rng)) is True:
            raise RetryCancelledError(attempt)
        attempt += 1
        try:
            return operation()
        except retry_on as e:
            if attempt >= policy.attempts_allowed:
                logger.warning("Attempt %d/%d failed, giving up: %s", attempt, policy.attempts_allowed, e)
                raise RetryExhaustedError(
                    f"Operation failed after {attempt} attempt(s): {e}",
                    attempts=attempt,
                    original=e,
                ) from e
            logger.warning("Attempt %d/%d failed: %s", attempt, policy.attempts_allowed, e)
            if on_retry is not None:
                on_retry(attempt, e)
