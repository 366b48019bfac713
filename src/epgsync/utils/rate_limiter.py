"""
Rate Limiter Utility - Per-event-loop rate limiting for the listings service.

SchedulesDirect throttles and eventually locks accounts that burst requests, so every
outgoing call acquires a token from a limiter shared by all clients with the same
configuration. Limiters are scoped to event loops to prevent
"attached to a different loop" errors.

Usage:
    from epgsync.utils.rate_limiter import get_rate_limiter

    limiter = get_rate_limiter(max_rate=5, time_period=1)

    async with limiter:
        # Make your API request
        pass
"""

from __future__ import annotations

import asyncio
import threading
import weakref
from typing import Any

from aiolimiter import AsyncLimiter

from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)

_lock = threading.Lock()

# Key: (max_rate, time_period, loop_id)
_limiters: dict[tuple[int, float, int], ResilientRateLimiter] = {}


def _current_loop() -> asyncio.AbstractEventLoop:
    # Limiters are only used from inside coroutines
    return asyncio.get_running_loop()


class ResilientRateLimiter:
    """
    Wrapper around AsyncLimiter that survives event loop changes.

    If acquiring fails because the underlying limiter belongs to another loop, a new
    limiter is created for the current loop and the acquire is retried once.
    """

    def __init__(self, max_rate: int, time_period: float):
        self.max_rate = max_rate
        self.time_period = time_period
        self._limiter: AsyncLimiter | None = None
        self._loop_id: int | None = None
        self._token_lock = threading.Lock()
        self._active_tokens: weakref.WeakKeyDictionary[asyncio.Task[Any], AsyncLimiter] = (
            weakref.WeakKeyDictionary()
        )

    def _ensure_limiter(self) -> AsyncLimiter:
        current_loop_id = id(_current_loop())
        if self._limiter is None or self._loop_id != current_loop_id:
            self._limiter = AsyncLimiter(self.max_rate, self.time_period)
            self._loop_id = current_loop_id
            logger.debug(
                f"Created rate limiter for loop {current_loop_id}: "
                f"{self.max_rate} requests per {self.time_period}s"
            )
        return self._limiter

    async def __aenter__(self) -> ResilientRateLimiter:
        max_retries = 2
        for attempt in range(max_retries):
            try:
                limiter = self._ensure_limiter()
                await limiter.__aenter__()
            except RuntimeError as e:
                error_msg = str(e).lower()
                is_loop_error = "loop" in error_msg or "future" in error_msg
                if is_loop_error and attempt < max_retries - 1:
                    logger.warning(
                        f"Rate limiter loop mismatch (attempt {attempt + 1}/{max_retries}): {e}"
                    )
                    self._limiter = None
                    self._loop_id = None
                    continue
                raise

            task = asyncio.current_task()
            if task is not None:
                with self._token_lock:
                    self._active_tokens[task] = limiter
            return self

        raise RuntimeError("Rate limiter could not be acquired")

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        task = asyncio.current_task()
        limiter: AsyncLimiter | None = None
        if task is not None:
            with self._token_lock:
                limiter = self._active_tokens.pop(task, None)

        limiter = limiter or self._limiter
        if limiter is not None:
            try:
                await limiter.__aexit__(exc_type, exc_val, exc_tb)
            except RuntimeError as e:
                logger.warning(f"Error releasing rate limiter: {e}")


def get_rate_limiter(max_rate: int, time_period: float = 1.0) -> ResilientRateLimiter:
    """
    Get or create the rate limiter for a configuration on the current event loop.

    Args:
        max_rate: Maximum number of requests allowed
        time_period: Time period in seconds (default: 1.0)

    Returns:
        ResilientRateLimiter instance shared by all callers on this loop
    """
    cache_key = (max_rate, time_period, id(_current_loop()))

    if cache_key not in _limiters:
        with _lock:
            if cache_key not in _limiters:
                _limiters[cache_key] = ResilientRateLimiter(max_rate, time_period)
                logger.debug(f"Created rate limiter: {max_rate} requests per {time_period}s")

    return _limiters[cache_key]
