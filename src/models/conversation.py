"""Conversation turns and tool-call records exchanged with the model."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

READ_FILE = "read_file"
LIST_DIRECTORY = "list_directory"
FIND_FILE = "find_file"

TOOL_NAMES = (READ_FILE, LIST_DIRECTORY, FIND_FILE)


class ToolCall(BaseModel):
    """A tool invocation requested by the model within one turn.

    ``name`` is kept as a plain string: the model may ask for a function
    that does not exist, and that request still needs an answer.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    call_id: str

    def describe(self) -> str:
        """Short human-readable form for logs, e.g. ``read_file(file_path='a.py')``."""
        args = ", ".join(f"{key}={value!r}" for key, value in self.arguments.items())
        return f"{self.name}({args})"


class ToolOk(BaseModel):
    """Successful tool result."""

    model_config = ConfigDict(frozen=True)

    status: Literal["ok"] = "ok"
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        return {"success": True, **self.payload}


class ToolErr(BaseModel):
    """Failed tool result carrying a human-readable message."""

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    message: str

    def to_response(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


ToolResult = Annotated[ToolOk | ToolErr, Field(discriminator="status")]


class ToolExchange(BaseModel):
    """A tool call paired with the result sent back for it."""

    model_config = ConfigDict(frozen=True)

    call: ToolCall
    result: ToolResult


class FinalText(BaseModel):
    """Model reply that ends the conversation.

    ``provider_message`` holds the transport's raw response so the turn can
    be replayed without losing provider metadata. Only the transport reads it.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["final"] = "final"
    text: str = ""
    provider_message: Any = Field(default=None, exclude=True, repr=False)


class ToolCallBatch(BaseModel):
    """Model reply requesting one or more tool calls."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_calls"] = "tool_calls"
    calls: list[ToolCall]
    text: str = ""
    provider_message: Any = Field(default=None, exclude=True, repr=False)


ModelReply = Annotated[FinalText | ToolCallBatch, Field(discriminator="kind")]


class UserTurn(BaseModel):
    role: Literal["user"] = "user"
    prompt: str


class ModelTurn(BaseModel):
    role: Literal["model"] = "model"
    reply: ModelReply


class ToolTurn(BaseModel):
    role: Literal["tool"] = "tool"
    exchanges: list[ToolExchange]


Turn = Annotated[UserTurn | ModelTurn | ToolTurn, Field(discriminator="role")]


class Conversation(BaseModel):
    """Ordered turns of one review conversation.

    A conversation belongs to a single loop run and is discarded with it;
    nothing is carried over between files.
    """

    turns: list[Turn] = Field(default_factory=list)

    def add_user(self, prompt: str) -> None:
        self.turns.append(UserTurn(prompt=prompt))

    def add_model(self, reply: FinalText | ToolCallBatch) -> None:
        self.turns.append(ModelTurn(reply=reply))

    def add_tool_results(self, exchanges: list[ToolExchange]) -> None:
        self.turns.append(ToolTurn(exchanges=exchanges))

    @property
    def tool_turns(self) -> list[ToolTurn]:
        return [turn for turn in self.turns if isinstance(turn, ToolTurn)]
