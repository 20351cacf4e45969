"""Model transport: the single adapter between the review engine and the LLM API.

The engine only ever sees ``FinalText`` or ``ToolCallBatch``. Everything
about provider message framing (pydantic-ai message parts, tool call ids,
raw provider responses) stays in this module.
"""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition

from src.config.settings import Settings
from src.models.conversation import (
    Conversation,
    FinalText,
    ModelTurn,
    ToolCall,
    ToolCallBatch,
    ToolTurn,
    UserTurn,
)
from src.models.errors import ConfigurationError, TransportError
from src.utils.rate_limiter import (
    TokenBucketRateLimiter,
    llm_rate_limiter,
    with_exponential_backoff,
)

logger = logging.getLogger(__name__)


class ModelTransport(Protocol):
    """Sends a conversation to the model and returns its reply."""

    async def send(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition] = (),
    ) -> FinalText | ToolCallBatch:
        """Send every turn of ``conversation``; return the model's next reply."""
        ...


def build_model(model_name: str, api_key: str) -> Model:
    """Create a pydantic-ai model for ``<provider>:<name>``.

    Args:
        model_name: e.g. "google-gla:gemini-2.5-flash" or "openai:gpt-4.1-mini"
        api_key: Credential for the provider

    Returns:
        Configured pydantic-ai Model

    Raises:
        ConfigurationError: If the provider is not supported
    """
    provider, _, name = model_name.partition(":")
    if not name:
        raise ConfigurationError(
            f"Model must be given as '<provider>:<model>', got: '{model_name}'"
        )

    if provider == "openai":
        from pydantic_ai.models.openai import OpenAIResponsesModel
        from pydantic_ai.providers.openai import OpenAIProvider

        return OpenAIResponsesModel(name, provider=OpenAIProvider(api_key=api_key))

    if provider in ("google-gla", "gemini"):
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(name, provider=GoogleProvider(api_key=api_key))

    raise ConfigurationError(f"Unsupported model provider: '{provider}'")


def _tool_call_arguments(part: ToolCallPart) -> dict[str, Any]:
    try:
        return part.args_as_dict()
    except ValueError:
        logger.warning(f"Model sent malformed arguments for {part.tool_name}")
        return {}


def reply_from_response(response: ModelResponse) -> FinalText | ToolCallBatch:
    """Convert a pydantic-ai response into the engine's reply type."""
    text = "".join(
        part.content for part in response.parts if isinstance(part, TextPart)
    )
    calls = [
        ToolCall(
            name=part.tool_name,
            arguments=_tool_call_arguments(part),
            call_id=part.tool_call_id,
        )
        for part in response.parts
        if isinstance(part, ToolCallPart)
    ]
    if calls:
        return ToolCallBatch(calls=calls, text=text, provider_message=response)
    return FinalText(text=text, provider_message=response)


def _response_from_turn(turn: ModelTurn) -> ModelResponse:
    if isinstance(turn.reply.provider_message, ModelResponse):
        return turn.reply.provider_message

    parts: list[Any] = []
    if turn.reply.text:
        parts.append(TextPart(content=turn.reply.text))
    if isinstance(turn.reply, ToolCallBatch):
        parts.extend(
            ToolCallPart(
                tool_name=call.name, args=call.arguments, tool_call_id=call.call_id
            )
            for call in turn.reply.calls
        )
    return ModelResponse(parts=parts)


def to_model_messages(conversation: Conversation) -> list[ModelMessage]:
    """Frame conversation turns as pydantic-ai messages."""
    messages: list[ModelMessage] = []
    for turn in conversation.turns:
        if isinstance(turn, UserTurn):
            messages.append(
                ModelRequest(parts=[UserPromptPart(content=turn.prompt)])
            )
        elif isinstance(turn, ModelTurn):
            messages.append(_response_from_turn(turn))
        elif isinstance(turn, ToolTurn):
            messages.append(
                ModelRequest(
                    parts=[
                        ToolReturnPart(
                            tool_name=exchange.call.name,
                            content=exchange.result.to_response(),
                            tool_call_id=exchange.call.call_id,
                        )
                        for exchange in turn.exchanges
                    ]
                )
            )
    return messages


class PydanticAITransport:
    """ModelTransport backed by ``pydantic_ai.direct.model_request``.

    Owns the retry and rate-limit policy: every request waits for the shared
    token bucket and transient failures are retried with exponential backoff.
    Whatever still fails is raised as TransportError.
    """

    def __init__(
        self,
        model: Model | str,
        model_settings: ModelSettings | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        max_retries: int = 3,
    ) -> None:
        self.model = model
        self.model_settings = model_settings
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries

    async def send(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition] = (),
    ) -> FinalText | ToolCallBatch:
        messages = to_model_messages(conversation)
        parameters = ModelRequestParameters(function_tools=list(tools))

        try:
            response = await with_exponential_backoff(
                self._request, messages, parameters, max_retries=self.max_retries
            )
        except Exception as e:
            raise TransportError(f"Model request failed: {e}") from e

        return reply_from_response(response)

    async def _request(
        self, messages: list[ModelMessage], parameters: ModelRequestParameters
    ) -> ModelResponse:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()
        return await model_request(
            self.model,
            messages,
            model_settings=self.model_settings,
            model_request_parameters=parameters,
        )


def build_transport(settings: Settings) -> PydanticAITransport:
    """Build the transport configured by ``settings``.

    Raises:
        ConfigurationError: If no credential is configured for the model's
            provider. Raised before any review request is made.
    """
    api_key = settings.api_key_for(settings.review_model)
    if not api_key:
        raise ConfigurationError(
            f"API key not set for model '{settings.review_model}'. "
            "Set GEMINI_API_KEY or OPENAI_API_KEY first."
        )

    model = build_model(settings.review_model, api_key)
    logger.info(f"Using model {settings.review_model}")
    return PydanticAITransport(
        model=model,
        model_settings=ModelSettings(
            temperature=settings.review_temperature,
            max_tokens=settings.max_output_tokens,
        ),
        rate_limiter=llm_rate_limiter,
        max_retries=settings.max_retries,
    )
