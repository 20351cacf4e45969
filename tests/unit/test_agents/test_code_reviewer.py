"""Unit tests for the tool-call loop and the file reviewer."""

import pytest

from src.agents.code_reviewer import (
    MAX_TOOL_ITERATIONS,
    CodeReviewer,
    LoopState,
    ToolCallLoop,
)
from src.models.conversation import ToolErr, ToolOk, ToolTurn
from src.models.errors import TransportError
from src.models.review import ReviewRequest
from src.tools.file_tools import FileTools
from src.utils.cancellation import CancellationToken


@pytest.fixture
def tools(tmp_path):
    (tmp_path / "util.js").write_text("export const add = (a, b) => a + b;\n")
    (tmp_path / "app.js").write_text("import { add } from './util';\n")
    return FileTools(tmp_path)


# === LOOP TESTS ===
class TestToolCallLoop:
    """Tests for ToolCallLoop.run()."""

    @pytest.mark.asyncio
    async def test_final_text_without_tools(self, scripted_transport, tools):
        transport = scripted_transport([scripted_transport.final("All good.")])
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this")

        assert result == "All good."
        assert transport.send_count == 1
        assert loop.iterations == 0
        assert loop.state == LoopState.DONE
        assert transport.sent_tools[0] == ["read_file", "list_directory", "find_file"]

    @pytest.mark.asyncio
    async def test_one_result_per_call_in_order(self, scripted_transport, tools):
        transport = scripted_transport(
            [
                scripted_transport.tool_calls(
                    ("read_file", {"file_path": "util.js"}),
                    ("read_file", {"file_path": "missing.js"}),
                    ("list_directory", {"directory_path": "."}),
                ),
                scripted_transport.final("Summary: fine"),
            ]
        )
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this")

        assert result == "Summary: fine"
        tool_turns = loop.conversation.tool_turns
        assert len(tool_turns) == 1
        exchanges = tool_turns[0].exchanges
        assert [exchange.call.call_id for exchange in exchanges] == [
            "call-0",
            "call-1",
            "call-2",
        ]
        assert isinstance(exchanges[0].result, ToolOk)
        assert "add" in exchanges[0].result.payload["content"]
        assert isinstance(exchanges[1].result, ToolErr)
        assert isinstance(exchanges[2].result, ToolOk)
        # user, model, tool turns were all sent on the follow-up request
        assert transport.sent_turn_counts == [1, 3]
        assert loop.iterations == 1

    @pytest.mark.asyncio
    async def test_unknown_tool_is_answered_and_loop_continues(
        self, scripted_transport, tools
    ):
        transport = scripted_transport(
            [
                scripted_transport.tool_calls(("run_shell", {"cmd": "ls"})),
                scripted_transport.final("done"),
            ]
        )
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this")

        assert result == "done"
        result_sent = loop.conversation.tool_turns[0].exchanges[0].result
        assert result_sent.message == "Unknown function run_shell"

    @pytest.mark.asyncio
    async def test_iteration_cap_stops_tool_calls(self, scripted_transport, tools):
        transport = scripted_transport(
            lambda conversation: scripted_transport.tool_calls(
                ("find_file", {"pattern": "*.js"}), text="partial review"
            )
        )
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this")

        assert loop.iterations == MAX_TOOL_ITERATIONS
        assert len(loop.conversation.tool_turns) == MAX_TOOL_ITERATIONS
        assert transport.send_count == MAX_TOOL_ITERATIONS + 1
        assert result == "partial review"
        assert loop.state == LoopState.DONE

    @pytest.mark.asyncio
    async def test_custom_iteration_cap(self, scripted_transport, tools):
        transport = scripted_transport(
            lambda conversation: scripted_transport.tool_calls(
                ("list_directory", {"directory_path": "."})
            )
        )
        loop = ToolCallLoop(transport, tools, max_iterations=2)

        result = await loop.run("review this")

        assert transport.send_count == 3
        assert result == ""

    @pytest.mark.asyncio
    async def test_cancelled_before_first_request(self, scripted_transport, tools):
        transport = scripted_transport([scripted_transport.final("never sent")])
        token = CancellationToken()
        token.cancel()
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this", token)

        assert result is None
        assert transport.send_count == 0
        assert loop.state == LoopState.ABORTED

    @pytest.mark.asyncio
    async def test_cancelled_between_tool_rounds(self, scripted_transport, tools):
        token = CancellationToken()

        def reply(conversation):
            token.cancel()
            return scripted_transport.tool_calls(("read_file", {"file_path": "app.js"}))

        transport = scripted_transport(reply)
        loop = ToolCallLoop(transport, tools)

        result = await loop.run("review this", token)

        assert result is None
        assert transport.send_count == 1
        # the in-flight round still completes before the check
        assert isinstance(loop.conversation.turns[-1], ToolTurn)
        assert loop.state == LoopState.ABORTED

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, scripted_transport, tools):
        transport = scripted_transport(
            [
                scripted_transport.tool_calls(("read_file", {"file_path": "app.js"})),
                TransportError("Model request failed: 500"),
            ]
        )
        loop = ToolCallLoop(transport, tools)

        with pytest.raises(TransportError):
            await loop.run("review this")

        assert transport.send_count == 2


# === REVIEWER TESTS ===
class TestCodeReviewer:
    """Tests for CodeReviewer.review()."""

    @pytest.mark.asyncio
    async def test_review_parses_final_text(self, scripted_transport, tools):
        transport = scripted_transport(
            [
                scripted_transport.tool_calls(("read_file", {"file_path": "util.js"})),
                scripted_transport.final(
                    "Overall Assessment: Imports look right.\n"
                    "Suggestions:\n- Add a semicolon check\n"
                    "Can Auto-Fix: No"
                ),
            ]
        )
        reviewer = CodeReviewer(transport, tools)
        request = ReviewRequest(
            file_path="/project/app.js", source_text="import { add } from './util';"
        )

        review = await reviewer.review(request)

        assert review.summary == "Imports look right."
        assert review.suggestions == ["- Add a semicolon check"]
        assert review.can_auto_fix is False
        assert review.auto_fix_available is True
        assert "app.js" in transport.prompts[0]
        assert "import { add } from './util';" in transport.prompts[0]

    @pytest.mark.asyncio
    async def test_each_review_uses_a_fresh_conversation(
        self, scripted_transport, tools
    ):
        transport = scripted_transport(
            [scripted_transport.final("first"), scripted_transport.final("second")]
        )
        reviewer = CodeReviewer(transport, tools)

        await reviewer.review(ReviewRequest(file_path="a.js", source_text="a"))
        await reviewer.review(ReviewRequest(file_path="b.js", source_text="b"))

        assert transport.sent_turn_counts == [1, 1]

    @pytest.mark.asyncio
    async def test_cancelled_review_returns_none(self, scripted_transport, tools):
        transport = scripted_transport([])
        token = CancellationToken()
        token.cancel()
        reviewer = CodeReviewer(transport, tools)

        review = await reviewer.review(
            ReviewRequest(file_path="a.js", source_text="a"), token
        )

        assert review is None
