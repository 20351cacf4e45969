"""Cooperative cancellation for long-running reviews."""

import logging

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag checked by the review engine before each suspending operation.

    Cancellation is cooperative: requests already in flight finish, and the
    engine stops at its next check (before a model request or before the
    next file).
    """

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "cancelled by user") -> None:
        if not self._cancelled:
            logger.info(f"Cancellation requested: {reason}")
        self._cancelled = True
        self.reason = reason


def is_cancelled(token: CancellationToken | None) -> bool:
    """Return True if ``token`` is set and has been cancelled."""
    return token is not None and token.is_cancelled
