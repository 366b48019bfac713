"""
Tests for ResilientRateLimiter: loop-change recovery and per-task limiter release.
"""

import asyncio
from typing import Any

import pytest

from epgsync.utils.rate_limiter import ResilientRateLimiter, get_rate_limiter


class _FakeAsyncLimiter:
    """AsyncLimiter test double that counts acquires and releases."""

    def __init__(self, max_rate: int, time_period: float) -> None:
        self.max_rate = max_rate
        self.time_period = time_period
        self.enter_count = 0
        self.exit_count = 0
        self._fail_next = False

    async def __aenter__(self) -> "_FakeAsyncLimiter":
        if self._fail_next:
            self._fail_next = False
            raise RuntimeError("Future attached to a different loop")
        self.enter_count += 1
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.exit_count += 1


@pytest.mark.asyncio
async def test_release_goes_to_the_limiter_that_was_acquired(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    created: list[_FakeAsyncLimiter] = []

    class TrackingLimiter(_FakeAsyncLimiter):
        def __init__(self, max_rate: int, time_period: float) -> None:
            super().__init__(max_rate, time_period)
            created.append(self)

    monkeypatch.setattr("epgsync.utils.rate_limiter.AsyncLimiter", TrackingLimiter)

    limiter = ResilientRateLimiter(5, 1)

    async with limiter:
        original = limiter._limiter  # noqa: SLF001
        assert original is not None
        assert original.exit_count == 0

        # Loop change while the request is in flight
        limiter._limiter = TrackingLimiter(5, 1)  # noqa: SLF001
        limiter._loop_id = id(asyncio.get_running_loop())  # noqa: SLF001

    assert created[0].exit_count == 1
    assert created[-1].exit_count == 0


@pytest.mark.asyncio
async def test_loop_error_recreates_limiter_once(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[_FakeAsyncLimiter] = []

    class FlakyLimiter(_FakeAsyncLimiter):
        fail_calls = 1

        def __init__(self, max_rate: int, time_period: float) -> None:
            super().__init__(max_rate, time_period)
            created.append(self)
            if FlakyLimiter.fail_calls > 0:
                self._fail_next = True
                FlakyLimiter.fail_calls -= 1

    monkeypatch.setattr("epgsync.utils.rate_limiter.AsyncLimiter", FlakyLimiter)

    limiter = ResilientRateLimiter(3, 1)

    async with limiter:
        pass

    assert len(created) == 2
    assert created[-1].enter_count == 1
    assert created[-1].exit_count == 1


@pytest.mark.asyncio
async def test_non_loop_errors_propagate(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenLimiter(_FakeAsyncLimiter):
        async def __aenter__(self) -> "BrokenLimiter":
            raise RuntimeError("limiter exploded")

    monkeypatch.setattr("epgsync.utils.rate_limiter.AsyncLimiter", BrokenLimiter)

    limiter = ResilientRateLimiter(3, 1)

    with pytest.raises(RuntimeError, match="exploded"):
        async with limiter:
            pass


@pytest.mark.asyncio
async def test_get_rate_limiter_is_shared_per_configuration() -> None:
    first = get_rate_limiter(5, 1.0)
    second = get_rate_limiter(5, 1.0)
    other = get_rate_limiter(2, 1.0)

    assert first is second
    assert first is not other
    assert other.max_rate == 2
