"""End-to-end review through the HTTP API with a scripted pydantic-ai model."""

import pytest
from pydantic_ai.messages import (
    ModelMessage,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel

from src.agents.transport import PydanticAITransport
from src.api.handlers.review_handler import ReviewRunner
from src.api.reviews import get_runner
from src.config.settings import Settings
from src.main import app

REVIEW_TEXT = """**Overall Assessment:** `add` is imported but the call is missing a semicolon.

**Issues Found:**
- Missing semicolon after the call to `add`

**Suggestions:**
- Terminate the statement with a semicolon

**Can Auto-Fix:** Yes
"""


def scripted_model() -> tuple[FunctionModel, list[dict]]:
    """Model that reads util.js once, reviews, then returns fixed code."""
    tool_results: list[dict] = []

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        if not info.function_tools:
            return ModelResponse(
                parts=[TextPart(content="```js\nconsole.log(add(1, 2));\n```")]
            )

        last_parts = messages[-1].parts
        returns = [part for part in last_parts if isinstance(part, ToolReturnPart)]
        if returns:
            tool_results.extend(part.content for part in returns)
            return ModelResponse(parts=[TextPart(content=REVIEW_TEXT)])

        return ModelResponse(
            parts=[
                ToolCallPart(
                    tool_name="read_file",
                    args={"file_path": "util.js"},
                    tool_call_id="read-util",
                )
            ]
        )

    return FunctionModel(respond), tool_results


@pytest.fixture
def project(tmp_path):
    (tmp_path / "util.js").write_text("export const add = (a, b) => a + b;\n")
    (tmp_path / "app.js").write_text("console.log(add(1, 2))\n")
    return tmp_path


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("PROJECT_ROOT", raising=False)
    model, tool_results = scripted_model()
    runner = ReviewRunner(
        Settings(_env_file=None),
        transport_factory=lambda settings: PydanticAITransport(model, max_retries=1),
    )
    runner.tool_results = tool_results
    app.dependency_overrides[get_runner] = lambda: runner
    yield runner
    app.dependency_overrides.clear()


def test_review_and_fix_single_file(client, runner, project):
    target = project / "app.js"

    response = client.post(
        "/review", json={"path": str(target), "apply_fixes": "always"}
    )
    data = response.json()

    assert response.status_code == 200
    assert data["reviewed"] == 1
    assert data["fixed"] == [str(target)]
    review = data["reviews"][str(target)]
    assert review["can_auto_fix"] is True
    assert review["issues"] == ["- Missing semicolon after the call to `add`"]
    assert runner.tool_results[0]["success"] is True
    assert "export const add" in runner.tool_results[0]["content"]
    assert target.read_text() == "console.log(add(1, 2));\n"


def test_review_directory_without_fixes(client, runner, project):
    response = client.post("/review", json={"path": str(project)})
    data = response.json()

    assert response.status_code == 200
    assert data["total"] == 2
    assert data["reviewed"] == 2
    assert data["fixed"] == []
    assert (project / "app.js").read_text() == "console.log(add(1, 2))\n"
