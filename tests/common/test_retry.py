from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from plugin_relay.common.retry import RetrySchedule, linear_delay, retrying

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class TransientError(Exception):
    pass


class FatalError(Exception):
    pass


def _flaky(
    schedule: RetrySchedule, failures: int, error: Exception | None = None
) -> tuple[list[int], Callable[[], Awaitable[str]]]:
    calls: list[int] = []

    @retrying(schedule, description="fetch thing")
    async def operation() -> str:
        calls.append(len(calls) + 1)
        if len(calls) <= failures:
            raise error or TransientError("boom")
        return "ok"

    return calls, operation


def test_linear_schedule_waits_grow_with_attempt(sleeps: list[float]) -> None:
    calls, operation = _flaky(RetrySchedule(max_attempts=5, delay=linear_delay(0.5)), 2)

    assert asyncio.run(operation()) == "ok"
    assert calls == [1, 2, 3]
    assert sleeps == [0.5, 1.0]


def test_delay_sees_the_failure_that_triggered_it(sleeps: list[float]) -> None:
    def delay(attempt: int, error: Exception) -> float:
        return 9.0 if str(error) == "slow down" else float(attempt)

    calls, operation = _flaky(
        RetrySchedule(max_attempts=3, delay=delay), 1, TransientError("slow down")
    )

    asyncio.run(operation())

    assert calls == [1, 2]
    assert sleeps == [9.0]


def test_last_error_propagates_when_attempts_run_out(sleeps: list[float]) -> None:
    calls, operation = _flaky(RetrySchedule(max_attempts=3, delay=linear_delay(1.0)), 10)

    with pytest.raises(TransientError, match="boom"):
        asyncio.run(operation())

    assert calls == [1, 2, 3]
    assert sleeps == [1.0, 2.0]


def test_errors_outside_the_predicate_are_not_retried(sleeps: list[float]) -> None:
    schedule = RetrySchedule(
        max_attempts=5,
        delay=linear_delay(1.0),
        retryable=lambda error: not isinstance(error, FatalError),
    )
    calls, operation = _flaky(schedule, 5, FatalError("nope"))

    with pytest.raises(FatalError):
        asyncio.run(operation())

    assert calls == [1]
    assert sleeps == []


def test_single_attempt_schedule_never_waits(sleeps: list[float]) -> None:
    calls, operation = _flaky(RetrySchedule(max_attempts=1, delay=linear_delay(1.0)), 1)

    with pytest.raises(TransientError):
        asyncio.run(operation())

    assert calls == [1]
    assert sleeps == []
