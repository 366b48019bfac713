"""
SchedulesDirect authentication: token cache, cool-down and the POST /token call.
"""

from __future__ import annotations

import asyncio
import hashlib
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import aiohttp
from pydantic import ValidationError

from epgsync.config import AUTH_COOLDOWN, SCHEDULES_DIRECT_API_URL, TOKEN_TTL
from epgsync.schedulesdirect.models import (
    ListingsProviderInfo,
    SchedulesDirectAuthenticationError,
    SchedulesDirectTransportError,
    SDTokenResponse,
)
from epgsync.utils.base_api_client import BaseAPIClient
from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# Only one token request may be in flight per process, whatever thread or loop asks
_PROCESS_REFRESH_LOCK = threading.Lock()
REFRESH_LOCK_POLL_INTERVAL = 0.01


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CachedToken:
    value: str
    issued_at: datetime


class TokenStore:
    """
    Per-username token cache plus the account-wide authentication cool-down.

    Reads and writes are single dict operations, atomic under the GIL. Refreshes are
    serialized by refresh_lock(), a process-wide threading.Lock shared by every event
    loop and thread unless a store is given its own.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        token_ttl: timedelta = TOKEN_TTL,
        cooldown: timedelta = AUTH_COOLDOWN,
        lock: threading.Lock | None = None,
    ):
        self.clock = clock or utc_now
        self.token_ttl = token_ttl
        self.cooldown = cooldown
        self._tokens: dict[str, CachedToken] = {}
        self._last_failure: datetime | None = None
        self._lock = lock or _PROCESS_REFRESH_LOCK

    @asynccontextmanager
    async def refresh_lock(self) -> AsyncIterator[None]:
        """
        Hold the refresh lock without blocking the event loop.

        The lock is polled rather than awaited in a worker thread, so a cancelled waiter
        never ends up owning it.
        """
        while not self._lock.acquire(blocking=False):
            await asyncio.sleep(REFRESH_LOCK_POLL_INTERVAL)
        try:
            yield
        finally:
            self._lock.release()

    @property
    def refresh_in_progress(self) -> bool:
        return self._lock.locked()

    def get(self, username: str) -> CachedToken | None:
        return self._tokens.get(username)

    def get_valid(self, username: str) -> str | None:
        """Return the cached token if it is younger than token_ttl."""
        cached = self._tokens.get(username)
        if cached is None:
            return None
        if self.clock() - cached.issued_at >= self.token_ttl:
            return None
        return cached.value

    def set(self, username: str, token: str) -> CachedToken:
        cached = CachedToken(value=token, issued_at=self.clock())
        self._tokens[username] = cached
        return cached

    def clear(self) -> None:
        self._tokens.clear()

    @property
    def last_failure(self) -> datetime | None:
        return self._last_failure

    def mark_auth_failure(self) -> None:
        self._last_failure = self.clock()

    def in_cooldown(self) -> bool:
        if self._last_failure is None:
            return False
        return self.clock() - self._last_failure < self.cooldown


# Shared by every client in the process unless a store is injected
default_token_store = TokenStore()


class SchedulesDirectAuth(BaseAPIClient):
    """Acquires SchedulesDirect tokens, caching them in a TokenStore."""

    def __init__(self, store: TokenStore | None = None, base_url: str = SCHEDULES_DIRECT_API_URL):
        self.store = store or default_token_store
        self.base_url = base_url

    async def get_token(self, info: ListingsProviderInfo) -> str | None:
        """
        Return a usable token for the account, or None when sync is unavailable.

        None means: no credentials configured, or a recent authentication failure put
        the account in cool-down. A cached token younger than the TTL is reused; otherwise
        one refresh runs at a time and waiters re-check the cache once they get the lock.

        Raises:
            SchedulesDirectAuthenticationError: the service rejected the credentials.
            SchedulesDirectTransportError: network or server failure during the token call.
        """
        if not info.has_credentials:
            return None

        username = info.username
        if self.store.in_cooldown():
            logger.warning("SchedulesDirect authentication cool-down active, skipping token request")
            return None

        token = self.store.get_valid(username)
        if token:
            return token

        async with self.store.refresh_lock():
            if self.store.in_cooldown():
                return None

            token = self.store.get_valid(username)
            if token:
                return token

            try:
                token = await self._request_token(username, info.password)
            except SchedulesDirectTransportError as e:
                if e.status_code == 400:
                    logger.error(f"SchedulesDirect rejected credentials for {username}: {e}")
                    self.store.clear()
                    self.store.mark_auth_failure()
                raise

            self.store.set(username, token)
            logger.info(f"Authenticated with SchedulesDirect as {username} (token {token[:6]}...)")
            return token

    async def _request_token(self, username: str, password: str) -> str:
        """POST /token with the SHA-1 hex of the password."""
        password_hash = hashlib.sha1(password.encode("utf-8")).hexdigest().lower()

        try:
            response, status = await self._core_async_request(
                "POST",
                f"{self.base_url}/token",
                json_body={"username": username, "password": password_hash},
                headers={"Accept": "application/json"},
            )
        except (TimeoutError, aiohttp.ClientError) as e:
            raise SchedulesDirectTransportError(f"Token request failed: {e}") from e

        if not 200 <= status < 300:
            message = response.get("message") if isinstance(response, dict) else None
            # Server failures are transient; only client errors say anything about credentials
            error_type = (
                SchedulesDirectTransportError if status >= 500 else SchedulesDirectAuthenticationError
            )
            raise error_type(
                f"Token request failed with status {status}: {message or 'no message'}",
                status_code=status,
                code=response.get("code") if isinstance(response, dict) else None,
                raw_response=response,
            )

        if not isinstance(response, dict):
            raise SchedulesDirectTransportError(
                "Token response was not a JSON object", status_code=status, raw_response=response
            )

        try:
            token_response = SDTokenResponse.model_validate(response)
        except ValidationError as e:
            raise SchedulesDirectTransportError(
                f"Malformed token response: {e}", status_code=status, raw_response=response
            ) from e
        if token_response.message != "OK" or not token_response.token:
            raise SchedulesDirectAuthenticationError(
                f"Could not authenticate with SchedulesDirect: {token_response.message}",
                status_code=status,
                code=token_response.code,
                raw_response=response,
            )

        return token_response.token
