"""
Deadlines and bounded retries for collaborator calls.

A Deadline is created by the caller and passed down through every
collaborator call as a per-call timeout. Retry loops check it before each
attempt and never sleep past it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from core.schemas.errors import DeadlineExceededException


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """
    Absolute point in time after which work must stop.

    Usage:
        deadline = Deadline.after(30.0)
        store.put(payload, timeout=deadline.timeout(default=10.0))
    """

    def __init__(
        self,
        expires_at: Optional[float],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(clock() + seconds, clock=clock)

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self, stage: str) -> None:
        """Raise DeadlineExceededException if the deadline has passed."""
        if self.expired:
            raise DeadlineExceededException(stage)

    def at_least(self, seconds: float) -> "Deadline":
        """A deadline no earlier than `seconds` from now."""
        if self._expires_at is None:
            return self
        return Deadline(max(self._expires_at, self._clock() + seconds), clock=self._clock)

    def timeout(self, default: Optional[float] = None) -> Optional[float]:
        """Per-call timeout: the smaller of `default` and the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return default
        if default is None:
            return remaining
        return min(default, remaining)


def call_with_retry(
    fn: Callable[[Optional[float]], T],
    *,
    stage: str,
    attempts: int,
    deadline: Deadline,
    retry_on: tuple[type[BaseException], ...],
    retry_delay: float = 0.0,
    call_timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fn(timeout)` up to `attempts` times.

    Only exceptions in `retry_on` are retried; anything else, or one whose
    `retryable` flag is False, propagates immediately. The last retryable
    exception is re-raised once attempts are exhausted. Backoff doubles after each failed attempt.

    Raises:
        DeadlineExceededException: If the deadline passes before an attempt
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    last_error: Optional[BaseException] = None
    delay = retry_delay

    for attempt in range(1, attempts + 1):
        deadline.check(stage)
        try:
            return fn(deadline.timeout(call_timeout))
        except retry_on as e:
            if not getattr(e, "retryable", True):
                logger.warning(f"{stage}: attempt {attempt}/{attempts} failed permanently: {e}")
                raise
            last_error = e
            logger.warning(f"{stage}: attempt {attempt}/{attempts} failed: {e}")

        if attempt < attempts and delay > 0:
            remaining = deadline.remaining()
            pause = delay if remaining is None else min(delay, remaining)
            if pause > 0:
                sleep(pause)
            delay *= 2

    assert last_error is not None
    raise last_error


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry settings for one collaborator call."""
    attempts: int = 3
    retry_delay: float = 0.5
    call_timeout: Optional[float] = None
