"""
Reliability utilities.

Bounded retry with a fixed delay, used to establish the database connection
without blocking application startup.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


class RetryExhaustedError(Exception):
    """Raised when every attempt of a retried call has failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")


async def retry_with_fixed_delay(
    func: Callable[[], Awaitable[Any]],
    attempts: int,
    delay_seconds: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> Any:
    """
    Call ``func`` up to ``attempts`` times, sleeping ``delay_seconds`` between tries.

    Exceptions outside ``retry_on`` propagate immediately.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    last_error: BaseException = RuntimeError("no attempt made")
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except retry_on as e:
            last_error = e
            logger.warning("%s failed (attempt %d/%d): %s", description, attempt, attempts, e)
            if attempt < attempts:
                await asyncio.sleep(delay_seconds)
    raise RetryExhaustedError(attempts, last_error)
