"""
Retrying API requests with exponential backoff.

Only opening a request goes through the RetryManager. Once a reply has
started streaming to the terminal it is never replayed, so a retry can
never print the same text twice.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from .errors import ChadLlmError, classify_error, get_retry_delay, is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class RetryConfig:
    """How often and how patiently to retry a request."""
    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 30000
    backoff_multiplier: float = 2.0
    jitter: bool = True
    # Rate-limit responses tell us how long to wait
    respect_retry_after: bool = True

    should_retry_func: Optional[Callable[[ChadLlmError], bool]] = None
    on_retry_func: Optional[Callable[[ChadLlmError, int], Awaitable[None]]] = None

    def backoff_ms(self, retry_number: int) -> int:
        """Delay before the ``retry_number``-th retry (1-based), without jitter."""
        delay = self.initial_delay_ms * self.backoff_multiplier ** (retry_number - 1)
        return int(min(delay, self.max_delay_ms))


@dataclass
class FailedAttempt:
    """One attempt that raised, and how long we waited after it."""
    number: int
    error: ChadLlmError
    delay_ms: int = 0


class RetryManager:
    """Runs a request, retrying transient failures."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()
        self.failures: List[FailedAttempt] = []

    async def retry(self, func: Callable[[], Awaitable[T]], description: str = "request") -> T:
        """
        Await ``func`` until it succeeds or retrying stops making sense.

        Args:
            func: Coroutine function opening the request
            description: What is being attempted, for log messages

        Returns:
            Whatever ``func`` returned

        Raises:
            ChadLlmError: the last failure, classified
        """
        self.failures = []
        attempts = max(1, self.config.max_attempts)

        for number in range(1, attempts + 1):
            try:
                result = await func()
            except Exception as e:
                error = classify_error(e)
                failure = FailedAttempt(number=number, error=error)
                self.failures.append(failure)
                logger.warning(f"{description} failed (attempt {number}/{attempts}): {error}")

                if number == attempts or not self._should_retry(error):
                    raise error from e

                failure.delay_ms = self.delay_for(error, number)
                if failure.delay_ms:
                    logger.info(f"Retrying {description} in {failure.delay_ms}ms")
                    await asyncio.sleep(failure.delay_ms / 1000.0)
                if self.config.on_retry_func:
                    await self.config.on_retry_func(error, number)
                continue

            if self.failures:
                logger.info(f"{description} succeeded after {len(self.failures)} failed attempts")
            return result

    def _should_retry(self, error: ChadLlmError) -> bool:
        if self.config.should_retry_func:
            return self.config.should_retry_func(error)
        return is_retryable_error(error)

    def delay_for(self, error: ChadLlmError, retry_number: int) -> int:
        """Milliseconds to wait before retry ``retry_number``."""
        if self.config.respect_retry_after:
            retry_after = get_retry_delay(error)
            if retry_after:
                return min(retry_after * 1000, self.config.max_delay_ms)

        delay = self.config.backoff_ms(retry_number)
        if self.config.jitter:
            # Spread concurrent clients between half and the full delay
            delay = random.randint(delay // 2, delay)
        return delay
