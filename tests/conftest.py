"""Pytest configuration and fixtures."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from src.main import app
from src.models.conversation import Conversation, FinalText, ToolCall, ToolCallBatch


class ScriptedTransport:
    """ModelTransport double that answers from a script.

    ``replies`` is either a list consumed in order (exceptions are raised)
    or a callable building each reply from the conversation.
    """

    def __init__(self, replies: list | Callable[[Conversation], object]) -> None:
        self.replies = replies
        self.sent_turn_counts: list[int] = []
        self.sent_tools: list[list[str]] = []
        self.prompts: list[str] = []

    async def send(self, conversation, tools=()):
        self.sent_turn_counts.append(len(conversation.turns))
        self.sent_tools.append([tool.name for tool in tools])
        self.prompts.append(conversation.turns[0].prompt)

        if callable(self.replies):
            reply = self.replies(conversation)
        else:
            reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def send_count(self) -> int:
        return len(self.sent_turn_counts)

    @staticmethod
    def final(text: str) -> FinalText:
        return FinalText(text=text)

    @staticmethod
    def tool_calls(*calls: tuple[str, dict], text: str = "") -> ToolCallBatch:
        return ToolCallBatch(
            calls=[
                ToolCall(name=name, arguments=arguments, call_id=f"call-{index}")
                for index, (name, arguments) in enumerate(calls)
            ],
            text=text,
        )


@pytest.fixture
def client() -> TestClient:
    """Return a FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def scripted_transport() -> type[ScriptedTransport]:
    """Return the scripted transport class for building model doubles."""
    return ScriptedTransport
