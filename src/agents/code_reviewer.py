"""File review agent: the tool-calling conversation behind every review."""

import asyncio
import logging
from enum import Enum
from pathlib import Path

from src.agents.transport import ModelTransport
from src.models.conversation import (
    Conversation,
    FinalText,
    ToolCallBatch,
    ToolExchange,
)
from src.models.review import Review, ReviewRequest
from src.prompts.code_reviewer_prompt import get_review_prompt
from src.tools.file_tools import TOOL_DEFINITIONS, FileTools
from src.utils.cancellation import CancellationToken, is_cancelled
from src.utils.review_parser import parse_review

logger = logging.getLogger(__name__)

MAX_TOOL_ITERATIONS = 6


class LoopState(str, Enum):
    AWAITING_INITIAL_RESPONSE = "awaiting_initial_response"
    PROCESSING_TOOL_CALLS = "processing_tool_calls"
    AWAITING_FOLLOWUP_RESPONSE = "awaiting_followup_response"
    DONE = "done"
    ABORTED = "aborted"


class ToolCallLoop:
    """Drives one review conversation until the model gives a final answer.

    The model may answer with tool calls instead of text. Each batch of calls
    is executed and every result is sent back in a single tool turn, up to
    ``max_iterations`` exchanges. When the model stops calling tools, or the
    cap is reached, the text of the last reply is the review.

    A loop instance serves one file: it owns a fresh Conversation that is
    dropped when the run ends.
    """

    def __init__(
        self,
        transport: ModelTransport,
        tools: FileTools,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ) -> None:
        self.transport = transport
        self.tools = tools
        self.max_iterations = max_iterations
        self.conversation = Conversation()
        self.iterations = 0
        self.state = LoopState.AWAITING_INITIAL_RESPONSE

    async def run(
        self, prompt: str, cancel_token: CancellationToken | None = None
    ) -> str | None:
        """
        Run the conversation.

        Args:
            prompt: Opening review prompt
            cancel_token: Checked before every model request

        Returns:
            Final review text, or None if the run was cancelled

        Raises:
            TransportError: If a model request fails (not retried here)
        """
        if self._abort_if_cancelled(cancel_token):
            return None

        self.conversation.add_user(prompt)
        reply = await self._send()

        while isinstance(reply, ToolCallBatch):
            if self.iterations >= self.max_iterations:
                logger.warning(
                    f"Tool iteration cap ({self.max_iterations}) reached; "
                    f"ignoring {len(reply.calls)} further tool call(s)"
                )
                break

            self.state = LoopState.PROCESSING_TOOL_CALLS
            logger.info(
                f"AI is using tools to analyze the code "
                f"(round {self.iterations + 1}, {len(reply.calls)} call(s))"
            )
            exchanges = await self._execute_calls(reply)
            self.conversation.add_tool_results(exchanges)
            self.iterations += 1

            if self._abort_if_cancelled(cancel_token):
                return None

            self.state = LoopState.AWAITING_FOLLOWUP_RESPONSE
            reply = await self._send()

        self.state = LoopState.DONE
        return reply.text

    async def _send(self) -> FinalText | ToolCallBatch:
        reply = await self.transport.send(self.conversation, TOOL_DEFINITIONS)
        self.conversation.add_model(reply)
        return reply

    async def _execute_calls(self, batch: ToolCallBatch) -> list[ToolExchange]:
        # Calls in one turn are independent reads; gather keeps request order.
        results = await asyncio.gather(
            *(self.tools.execute(call) for call in batch.calls)
        )
        return [
            ToolExchange(call=call, result=result)
            for call, result in zip(batch.calls, results, strict=True)
        ]

    def _abort_if_cancelled(self, cancel_token: CancellationToken | None) -> bool:
        if not is_cancelled(cancel_token):
            return False
        logger.info("Review cancelled before sending to API")
        self.state = LoopState.ABORTED
        return True


class CodeReviewer:
    """Reviews single files: prompt, tool-call loop, then parsing."""

    def __init__(
        self,
        transport: ModelTransport,
        tools: FileTools,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ) -> None:
        self.transport = transport
        self.tools = tools
        self.max_iterations = max_iterations

    async def review(
        self,
        request: ReviewRequest,
        cancel_token: CancellationToken | None = None,
    ) -> Review | None:
        """Review one file.

        Returns:
            The parsed Review, or None if the review was cancelled
        """
        path = Path(request.file_path)
        prompt = get_review_prompt(path.name, path.suffix, request.source_text)

        loop = ToolCallLoop(self.transport, self.tools, self.max_iterations)
        text = await loop.run(prompt, cancel_token)
        if text is None:
            return None

        review = parse_review(text)
        logger.info(
            f"Review of {path.name} complete: {len(review.issues)} issues, "
            f"{len(review.suggestions)} suggestions, "
            f"{loop.iterations} tool round(s)"
        )
        return review
