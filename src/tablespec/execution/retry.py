"""RetryPolicy — backoff for connection acquisition."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff with optional jitter.

    Attributes:
        max_attempts: Connection attempts, including the first one.
        base_delay: Delay in seconds after the first failed attempt.
        max_delay: Cap on any single delay.
        jitter: Scale each delay by a random factor in ``[0.5, 1.5]``.
    """

    max_attempts: int = 3
    base_delay: float = 0.2
    max_delay: float = 5.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        if self.base_delay > self.max_delay:
            raise ValueError("base_delay must be <= max_delay")

    def should_retry(self, attempt: int) -> bool:
        """True if a failure on 1-based ``attempt`` may be followed by another."""
        return 1 <= attempt < self.max_attempts

    def delay_for_attempt(self, attempt: int) -> float:
        if attempt < 1:
            return 0.0
        delay = min(self.base_delay * 2 ** (attempt - 1), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random()  # noqa: S311
        return max(0.0, delay)

    async def wait(self, attempt: int) -> None:
        delay = self.delay_for_attempt(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
