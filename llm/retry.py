"""
Retry Executor for provider calls.

Bounded retries with linear, attempt-indexed backoff and key rotation on
rate-limit signals.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from openai import RateLimitError

from .key_rotator import ProviderKeyRotator

logger = logging.getLogger(__name__)


RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "rate_limit", "resource_exhausted")


class ProviderError(Exception):
    """Base error for generation/embedding provider failures."""


class ProviderExhaustedError(ProviderError):
    """All retry attempts against the provider failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Provider call failed after {attempts} attempt(s): {last_error}")


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Detect a rate-limit / quota signal in a provider error.

    Timeouts are never treated as rate limits.
    """
    if isinstance(error, asyncio.TimeoutError):
        return False
    if isinstance(error, RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True

    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class RetryExecutor:
    """
    Wraps provider calls with retries.

    Policy per attempt n (1-based):
    - rate-limit error: rotate the key pool first
    - final attempt: raise ProviderExhaustedError
    - otherwise: sleep base_delay * n and retry
    """

    def __init__(
        self,
        key_rotator: ProviderKeyRotator,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        timeout: Optional[float] = 30.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the executor.

        Args:
            key_rotator: Shared key pool, rotated on rate limits
            max_attempts: Default attempt budget
            base_delay: Backoff unit in seconds
            timeout: Per-attempt timeout in seconds (None disables)
            sleep: Awaitable sleep function (injectable for tests)
        """
        self.key_rotator = key_rotator
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self._sleep = sleep

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_attempts: Optional[int] = None,
    ) -> Any:
        """
        Run an async operation with retries.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            max_attempts: Override the default attempt budget

        Returns:
            The operation's result

        Raises:
            ProviderExhaustedError: If every attempt failed
        """
        attempts = max_attempts or self.max_attempts
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                if self.timeout:
                    return await asyncio.wait_for(operation(), timeout=self.timeout)
                return await operation()

            except Exception as e:
                last_error = e

                if is_rate_limit_error(e):
                    logger.warning(
                        f"Rate limited on key index {self.key_rotator.current_index}, rotating..."
                    )
                    self.key_rotator.rotate()
                elif isinstance(e, asyncio.TimeoutError):
                    logger.warning(f"Provider call timed out (attempt {attempt}/{attempts})")
                else:
                    logger.warning(f"Provider call failed (attempt {attempt}/{attempts}): {e}")

                if attempt == attempts:
                    break

                await self._sleep(self.base_delay * attempt)

        logger.error(f"Provider exhausted after {attempts} attempt(s): {last_error}")
        raise ProviderExhaustedError(attempts, last_error) from last_error
