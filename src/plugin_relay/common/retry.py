"""Retry policies for async operations, applied through ``backoff``.

A schedule names the attempt ceiling, which errors are worth another attempt, and
how long to wait after each failure. Server-dictated waits (HTTP 429) and waits
that grow with the attempt number are both plain delay functions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

import backoff

if TYPE_CHECKING:
    from backoff.types import Details

log = getLogger(__name__)

# (attempt, error) -> seconds to wait before the next attempt.
# ``attempt`` is 1-based and refers to the attempt that just failed.
type DelayFunction = Callable[[int, Exception], float]
type RetryPredicate = Callable[[Exception], bool]


def _always(_error: Exception) -> bool:
    return True


@dataclass(frozen=True, slots=True)
class RetrySchedule:
    max_attempts: int
    delay: DelayFunction
    retryable: RetryPredicate = _always


def linear_delay(base_seconds: float) -> DelayFunction:
    """Wait ``base_seconds * attempt`` after any error."""

    def delay(attempt: int, _error: Exception) -> float:
        return base_seconds * attempt

    return delay


def retrying[**P, T](
    schedule: RetrySchedule,
    *,
    description: str = "complete operation",
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate a coroutine function so it is retried according to ``schedule``.

    Errors the schedule does not consider retryable propagate at once. When the
    last allowed attempt fails, its error propagates unchanged.
    """

    def wait_gen() -> Generator[float, Exception, None]:
        # backoff primes the generator, then sends each failure in.
        attempt = 0
        error = yield 0.0
        while True:
            attempt += 1
            error = yield max(0.0, schedule.delay(attempt, error))

    def log_retry(details: Details) -> None:
        log.debug(
            "Retrying %s (attempt %s/%s) after %.2fs: %s",
            description,
            details["tries"] + 1,
            schedule.max_attempts,
            details.get("wait", 0.0),
            details.get("exception"),
        )

    def giveup(error: Exception) -> bool:
        return not schedule.retryable(error)

    return backoff.on_exception(
        wait_gen,
        Exception,
        max_tries=max(1, schedule.max_attempts),
        giveup=giveup,
        jitter=None,
        on_backoff=log_retry,
        logger=None,
    )
