"""Retry strategies using Strategy Pattern."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from ..config import RetryConfig

T = TypeVar('T')

logger = logging.getLogger('teraboxpy.retry')


class RetryStrategy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        """Determines if the operation should be attempted again."""
        pass

    @abstractmethod
    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed ``attempt`` (zero-based)."""
        pass


class LinearBackoffStrategy(RetryStrategy):
    """
    Linear backoff retry strategy.

    Waits ``initial_delay`` after the first failure and ``delay_increment``
    seconds more after each following one (10s, 15s, 20s, ...).
    Retries only errors flagged ``retryable``.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()

    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        """Retries transport errors and retryable API codes while attempts remain."""
        if attempt + 1 >= max_attempts:
            return False
        return bool(getattr(error, 'retryable', False))

    def delay_for(self, attempt: int) -> float:
        return self._config.calculate_delay(attempt)


class RetryPolicy:
    """
    Wraps a single remote call with bounded retry.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_attempts=3))
        >>> data = await policy.run(lambda: api.get_json(url), description='quota')

    The last error is re-raised unchanged once attempts are exhausted or a
    non-retryable error occurs.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        strategy: Optional[RetryStrategy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize retry policy.

        Args:
            config: Retry configuration (attempt budget and delays)
            strategy: Retry decision strategy (linear backoff by default)
            sleep: Awaitable sleep function, injectable for tests
        """
        self._config = config or RetryConfig()
        self._strategy = strategy or LinearBackoffStrategy(self._config)
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = 'request'
    ) -> T:
        """
        Execute ``operation`` until it succeeds or the budget runs out.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            description: Label used in log messages

        Returns:
            Result of the first successful attempt
        """
        max_attempts = max(1, self._config.max_attempts)
        attempt = 0
        while True:
            try:
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not self._strategy.should_retry(e, attempt, max_attempts):
                    if attempt > 0:
                        logger.error(f"{description} failed after {attempt + 1} attempts: {e}")
                    raise
                delay = self._strategy.delay_for(attempt)
                logger.warning(
                    f"{description} attempt {attempt + 1}/{max_attempts} failed: {e}; "
                    f"retrying in {delay:.0f}s"
                )
                await self._sleep(delay)
                attempt += 1
