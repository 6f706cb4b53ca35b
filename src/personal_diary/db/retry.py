"""Bounded retry for storage operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from personal_diary.config import get_retry_attempts, get_retry_delay
from personal_diary.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often, and how far apart, a failed storage operation is retried."""

    attempts: int = 3
    delay: float = 1.0

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        """Build from DIARY_RETRY_ATTEMPTS / DIARY_RETRY_DELAY."""
        return cls(attempts=max(1, get_retry_attempts()), delay=max(0.0, get_retry_delay()))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "operation",
) -> T:
    """Run ``operation``, retrying on StorageError with a fixed delay.

    Only StorageError is retried. Any other exception propagates on the
    first occurrence. After the last attempt the StorageError is re-raised.
    """
    attempts = max(1, policy.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except StorageError as e:
            logger.warning("%s failed (attempt %d/%d): %s", description, attempt, attempts, e)
            if attempt == attempts:
                raise
            await asyncio.sleep(policy.delay)
    raise AssertionError("unreachable")
