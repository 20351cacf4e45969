"""Data models for AI File Reviewer."""

from .conversation import (
    Conversation,
    FinalText,
    ModelReply,
    ToolCall,
    ToolCallBatch,
    ToolErr,
    ToolExchange,
    ToolOk,
    ToolResult,
)
from .errors import (
    ConfigurationError,
    FileChangedError,
    ReviewerError,
    ReviewInProgressError,
    ToolExecutionError,
    TransportError,
)
from .review import (
    BatchJob,
    BatchReport,
    FixDecision,
    Review,
    ReviewRequest,
    SkippedFile,
)

__all__ = [
    "Conversation",
    "FinalText",
    "ModelReply",
    "ToolCall",
    "ToolCallBatch",
    "ToolErr",
    "ToolExchange",
    "ToolOk",
    "ToolResult",
    "ReviewerError",
    "ConfigurationError",
    "TransportError",
    "ToolExecutionError",
    "FileChangedError",
    "ReviewInProgressError",
    "ReviewRequest",
    "Review",
    "FixDecision",
    "SkippedFile",
    "BatchJob",
    "BatchReport",
]
