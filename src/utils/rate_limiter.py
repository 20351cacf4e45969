"""Retry and rate limiting for model requests."""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from src.config.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Markers of transient provider failures
_RETRIABLE_STATUS = re.compile(r"\b(?:429|5\d\d)\b")
_RETRIABLE_PHRASES = re.compile(
    r"rate.?limit|resource_exhausted|timeout|timed out|overloaded|unavailable|"
    r"\bconnect(?:ion)?(?:error)?\b",
    re.IGNORECASE,
)


def is_retriable_error(error: Exception) -> bool:
    """Check if a model call failure is worth retrying.

    Errors carrying an HTTP ``status_code`` (pydantic-ai's ModelHTTPError)
    are judged by it: 429 and 5xx are transient. Other errors are matched
    textually so the check works across providers: Gemini reports quota as
    RESOURCE_EXHAUSTED, OpenAI as 429.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code == 429 or status_code >= 500

    description = f"{type(error).__name__} {error}"
    return bool(
        _RETRIABLE_STATUS.search(description)
        or _RETRIABLE_PHRASES.search(description)
    )


def backoff_delay(attempt: int, initial_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt + 1`` (1s, 2s, 4s, ... capped)."""
    return min(initial_delay * 2**attempt, max_delay)


async def with_exponential_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 5,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying transient failures.

    Args:
        func: Async callable to run
        *args: Positional arguments for func
        max_retries: Total number of attempts (at least one is made)
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        **kwargs: Keyword arguments for func

    Returns:
        Whatever func returns on the first successful attempt

    Raises:
        The error itself if it is not transient, otherwise the error from
        the last attempt
    """
    attempts = max(max_retries, 1)

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retriable_error(e):
                logger.error(f"Model call failed, not retrying: {e}")
                raise

            if attempt == attempts - 1:
                logger.error(f"Model call failed after {attempts} attempts: {e}")
                raise

            delay = backoff_delay(attempt, initial_delay, max_delay)
            logger.warning(
                f"Model call attempt {attempt + 1}/{attempts} failed "
                f"({type(e).__name__}: {e}); retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")


class TokenBucketRateLimiter:
    """
    Token bucket shared by concurrent callers.

    The bucket starts full, so up to ``capacity`` requests go out at once;
    after that requests are spaced to ``rate`` per second on average.
    """

    def __init__(self, rate: float, capacity: float) -> None:
        """
        Args:
            rate: Tokens added per second
            capacity: Bucket size (largest burst)
        """
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(
            self.capacity, self.tokens + (now - self.last_update) * self.rate
        )
        self.last_update = now

    async def acquire(self, tokens: int = 1) -> None:
        """Take ``tokens`` from the bucket, sleeping until they are available."""
        async with self._lock:
            self._refill()
            while self.tokens < tokens:
                wait_time = (tokens - self.tokens) / self.rate
                logger.debug(f"Rate limit: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
                self._refill()
            self.tokens -= tokens


# Shared by every model request in the process
llm_rate_limiter = TokenBucketRateLimiter(
    rate=settings.llm_requests_per_second,
    capacity=settings.llm_burst,
)
