"""Bounded retry with linear backoff for outbound calls."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import AppError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleeper = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """Run an async operation up to ``max_attempts`` times.

    After failed attempt ``n`` (numbered from 1) the policy waits
    ``base_delay * n`` seconds before the next one. Errors flagged as not
    retryable are re-raised straight away. When every attempt has failed a
    :class:`RetryExhaustedError` is raised with the last failure chained.

    ``deadline`` optionally caps the total time spent, measured from the first
    attempt: a backoff that would end past it stops the loop early.
    """

    def __init__(
        self,
        max_attempts: int,
        base_delay: float,
        *,
        deadline: Optional[float] = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if int(max_attempts) < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if deadline is not None and deadline <= 0:
            raise ValueError("deadline must be positive")
        self.max_attempts = int(max_attempts)
        self.base_delay = float(base_delay)
        self.deadline = deadline
        self._sleep = sleep
        self._clock = clock

    def backoff(self, attempt: int) -> float:
        return self.base_delay * attempt

    async def execute(self, operation: Operation[T]) -> T:
        started = self._clock()
        last_exc: Optional[BaseException] = None
        attempts = 0
        for attempt in range(1, self.max_attempts + 1):
            attempts = attempt
            try:
                result = await operation()
            except AppError as exc:
                if not exc.retryable:
                    raise
                last_exc = exc
            except Exception as exc:
                last_exc = exc
            else:
                if attempt > 1:
                    logger.info("operation succeeded on attempt %d/%d", attempt, self.max_attempts)
                return result

            if attempt == self.max_attempts:
                break
            delay = self.backoff(attempt)
            if self.deadline is not None and (self._clock() - started) + delay > self.deadline:
                logger.warning("retry deadline of %.2fs reached after %d attempts", self.deadline, attempt)
                break
            logger.warning(
                "attempt %d/%d failed (%s); retrying in %.2fs",
                attempt,
                self.max_attempts,
                last_exc,
                delay,
            )
            await self._sleep(delay)

        logger.error("all %d attempts failed: %s", attempts, last_exc)
        raise RetryExhaustedError(attempts, _describe(last_exc)) from last_exc


def _describe(exc: Optional[BaseException]) -> str:
    if exc is None:
        return "unknown error"
    if isinstance(exc, AppError):
        return exc.message
    return str(exc) or exc.__class__.__name__
