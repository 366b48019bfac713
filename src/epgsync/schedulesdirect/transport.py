"""
Authenticated request sending for the SchedulesDirect JSON API.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from epgsync.schedulesdirect.auth import SchedulesDirectAuth
from epgsync.schedulesdirect.models import ListingsProviderInfo, SchedulesDirectTransportError
from epgsync.utils.base_api_client import BaseAPIClient
from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)


class SchedulesDirectTransport(BaseAPIClient):
    """
    Sends one request with the token header attached.

    A 4xx response on a retry-enabled request is treated as a stale token: the token
    cache is cleared, a fresh token acquired and the request sent exactly once more.
    5xx responses and failures of the second attempt are terminal.
    """

    def __init__(self, auth: SchedulesDirectAuth):
        self.auth = auth
        self.base_url = auth.base_url

    async def send(
        self,
        method: str,
        endpoint: str,
        info: ListingsProviderInfo,
        token: str | None,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        retry_allowed: bool = True,
    ) -> Any:
        """
        Universal SchedulesDirect request wrapper.

        Returns:
            The decoded JSON body of the 2xx response (None for an empty body).

        Raises:
            SchedulesDirectTransportError: non-2xx after the retry policy, or a network error.
        """
        url = f"{self.base_url}{endpoint}"
        headers: dict[str, Any] = {"Accept": "application/json"}
        attempts = 2 if retry_allowed else 1
        attempt = 1

        while True:
            if token:
                headers["token"] = token

            try:
                response, status = await self._core_async_request(
                    method, url, json_body=json_body, headers=headers, params=params
                )
            except (TimeoutError, aiohttp.ClientError) as e:
                raise SchedulesDirectTransportError(f"{method} {endpoint} failed: {e}") from e

            if 200 <= status < 300:
                return response

            error = SchedulesDirectTransportError(
                f"{method} {endpoint} failed with status {status}",
                status_code=status,
                code=response.get("code") if isinstance(response, dict) else None,
                raw_response=response,
            )
            if attempt == attempts or status >= 500:
                logger.warning(f"{error} (attempt {attempt}/{attempts})")
                raise error

            logger.warning(f"SD {method} {endpoint} returned {status} → refreshing token and retrying")
            self.auth.store.clear()
            token = await self.auth.get_token(info)
            if not token:
                logger.warning(f"No fresh token available, giving up on {method} {endpoint}")
                raise error

            attempt += 1
