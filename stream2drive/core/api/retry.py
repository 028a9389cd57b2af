"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from .config import RetryConfig
from ..exceptions import DriveRequestError


class RetryStrategy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def should_retry(self, error: DriveRequestError, retry_count: int) -> bool:
        """Determines if a failed chunk request should be retried."""
        pass

    @abstractmethod
    async def wait_async(self, retry_count: int):
        """Waits before retry."""
        pass


class NoRetryStrategy(RetryStrategy):
    """Never retries; every failed chunk fails the transfer."""

    def should_retry(self, error: DriveRequestError, retry_count: int) -> bool:
        return False

    async def wait_async(self, retry_count: int):
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """Exponential backoff retry strategy.

    Retries transport failures (no status), 408, 429 and 5xx responses.
    Client errors such as 400 or 404 will not get better by waiting.
    """

    RETRY_STATUSES = (408, 429, 500, 502, 503, 504)

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig(max_retries=4)

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    def should_retry(self, error: DriveRequestError, retry_count: int) -> bool:
        if retry_count >= self._config.max_retries:
            return False
        return error.status is None or error.status in self.RETRY_STATUSES

    async def wait_async(self, retry_count: int):
        """Waits with exponential backoff."""
        await asyncio.sleep(self._config.calculate_delay(retry_count))


def retry_strategy_for(config: RetryConfig) -> RetryStrategy:
    """Build the strategy matching a retry configuration."""
    if not config.enabled:
        return NoRetryStrategy()
    return ExponentialBackoffStrategy(config)
