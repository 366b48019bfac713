"""
Base API Client - the single-attempt HTTP primitive used by the listings service.

Every call is rate limited and capped in concurrency per event loop. Retry policy is
deliberately absent here: the transport layer owns it.
"""

import asyncio
import json
from typing import Any

import aiohttp

from epgsync.config import RATE_LIMIT_MAX, RATE_LIMIT_PERIOD, REQUEST_TIMEOUT
from epgsync.utils.get_logger import get_logger
from epgsync.utils.rate_limiter import get_rate_limiter

logger = get_logger(__name__)


class BaseAPIClient:
    """
    Base class for API clients with shared request handling.
    Provides rate limiting, concurrency control and JSON decoding.
    """

    _rate_limit_max = RATE_LIMIT_MAX
    _rate_limit_period = RATE_LIMIT_PERIOD
    request_timeout = REQUEST_TIMEOUT

    # Key: (rate_limit_max, rate_limit_period, loop_id)
    # Semaphores are per-event-loop to avoid "bound to different event loop" errors
    _concurrency_semaphores: dict[tuple[int, float, int], asyncio.Semaphore] = {}

    @classmethod
    def _get_concurrency_semaphore(
        cls, rate_limit_max: int, rate_limit_period: float
    ) -> asyncio.Semaphore:
        """
        Get or create the semaphore limiting simultaneous in-flight requests.

        The limit equals rate_limit_max so a burst can never exceed one period's allowance.
        """
        loop = asyncio.get_running_loop()
        cache_key = (rate_limit_max, rate_limit_period, id(loop))
        if cache_key not in cls._concurrency_semaphores:
            cls._concurrency_semaphores[cache_key] = asyncio.Semaphore(rate_limit_max)
        return cls._concurrency_semaphores[cache_key]

    async def _core_async_request(
        self,
        method: str,
        url: str,
        json_body: Any = None,
        headers: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: int | None = None,
    ) -> tuple[Any, int]:
        """
        Perform one HTTP request and decode its JSON body.

        Args:
            method: HTTP method ("GET", "POST", "PUT", "DELETE")
            url: Full URL to request
            json_body: Optional JSON-serializable body
            headers: Optional HTTP headers
            params: Optional query parameters
            timeout: Total request timeout in seconds (default: REQUEST_TIMEOUT)

        Returns:
            tuple: (decoded JSON body | None, status_code)

        Raises:
            aiohttp.ClientError / TimeoutError on network failure.
            asyncio.CancelledError is never swallowed.
        """
        method = method.upper()
        request_timeout = aiohttp.ClientTimeout(total=timeout or self.request_timeout)

        if json_body is not None:
            headers = dict(headers or {})
            headers.setdefault("Content-Type", "application/json")

        rate_limiter = get_rate_limiter(self._rate_limit_max, self._rate_limit_period)
        concurrency_semaphore = self._get_concurrency_semaphore(
            self._rate_limit_max, self._rate_limit_period
        )

        try:
            async with (  # noqa: SIM117
                concurrency_semaphore,
                rate_limiter,
                aiohttp.ClientSession(timeout=request_timeout) as session,
                session.request(
                    method,
                    url,
                    json=json_body,
                    headers=headers,
                    params=params,
                ) as response,
            ):
                status = response.status
                raw = await response.read()
        except (TimeoutError, aiohttp.ClientError) as e:
            logger.warning(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise

        return self._decode_body(raw, url), status

    @staticmethod
    def _decode_body(raw: bytes, url: str) -> Any:
        """Decode a UTF-8 JSON body; empty or undecodable bodies become None."""
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.debug(f"Non-JSON body from {url}: {raw[:200]!r}")
            return None
