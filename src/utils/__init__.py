"""Utility functions and helpers."""

from .cancellation import CancellationToken, is_cancelled
from .filters import should_review_file
from .logging import setup_observability
from .rate_limiter import (
    TokenBucketRateLimiter,
    llm_rate_limiter,
    with_exponential_backoff,
)
from .review_parser import parse_review

__all__ = [
    "CancellationToken",
    "is_cancelled",
    "parse_review",
    "setup_observability",
    "should_review_file",
    "with_exponential_backoff",
    "TokenBucketRateLimiter",
    "llm_rate_limiter",
]
