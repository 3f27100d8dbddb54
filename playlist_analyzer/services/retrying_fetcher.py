"""Bounded retry-with-backoff around single network calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

from playlist_analyzer.core.config import Settings
from playlist_analyzer.core.exceptions import FetchExhaustedError, TransientSourceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """How many attempts a call gets and how long to wait between them."""

    max_attempts: int = 3
    backoff_seconds: float = 0.6

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=max(settings.retry_max_attempts, 1),
            backoff_seconds=max(settings.retry_backoff_ms, 0) / 1000.0,
        )

    def delay_for(self, retry: int) -> float:
        """Return the delay before the given retry (1-based); grows linearly."""

        return self.backoff_seconds * max(retry, 1)


def is_retryable(error: BaseException) -> bool:
    """Server-class failures are retryable; everything else is final."""

    if isinstance(error, TransientSourceError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return False


class RetryingFetcher:
    """Runs awaitable factories, retrying transient failures per the policy."""

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.retries = 0

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await fn()
            except Exception as exc:
                if not is_retryable(exc):
                    raise
                if attempt >= self.policy.max_attempts:
                    logger.error("Giving up after %s attempts: %s", attempt, exc)
                    raise FetchExhaustedError(attempt, exc) from exc

                delay = self.policy.delay_for(attempt)
                self.retries += 1
                logger.warning(
                    "Transient failure, retrying",
                    extra={"attempt": attempt, "delay_seconds": delay, "error": str(exc)},
                )
                await self._sleep(delay)
