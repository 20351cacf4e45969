"""Exception types raised by the review engine."""


class ReviewerError(Exception):
    """Base class for reviewer errors."""


class ConfigurationError(ReviewerError):
    """Missing credential or unusable model configuration.

    Raised before any review request is sent.
    """


class TransportError(ReviewerError):
    """A model request failed (network, quota, malformed or empty reply)."""


class ToolExecutionError(ReviewerError):
    """A tool call failed.

    Never escapes the tool executor: it is converted into an error result
    and handed back to the model.
    """


class FileChangedError(ReviewerError):
    """The file on disk no longer matches the reviewed text."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"{file_path} changed since it was reviewed; save it and review again"
        )
        self.file_path = file_path


class ReviewInProgressError(ReviewerError):
    """A review is already running; only one may be active at a time."""
