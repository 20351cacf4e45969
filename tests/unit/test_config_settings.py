from pathlib import Path

from src.config.settings import DEFAULT_INCLUDED_EXTENSIONS, Settings


def test_review_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("REVIEW_MODEL", raising=False)
    monkeypatch.delenv("MAX_TOOL_ITERATIONS", raising=False)
    monkeypatch.delenv("PROJECT_ROOT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.review_model == "google-gla:gemini-2.5-flash"
    assert settings.review_temperature == 0.7
    assert settings.max_output_tokens == 8192
    assert settings.max_tool_iterations == 6
    assert settings.find_file_max_files == 1000
    assert settings.find_file_max_depth == 10
    assert settings.restrict_tools_to_root is True
    assert settings.project_root is None
    assert settings.included_extensions == DEFAULT_INCLUDED_EXTENSIONS


def test_review_settings_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("REVIEW_MODEL", "openai:gpt-4.1-mini")
    monkeypatch.setenv("MAX_TOOL_ITERATIONS", "3")
    monkeypatch.setenv("PROJECT_ROOT", "/srv/project")
    monkeypatch.setenv("EXCLUDE_GLOBS", '["generated/*"]')

    settings = Settings(_env_file=None)

    assert settings.review_model == "openai:gpt-4.1-mini"
    assert settings.model_provider == "openai"
    assert settings.max_tool_iterations == 3
    assert settings.project_root == Path("/srv/project")
    assert settings.exclude_globs == ["generated/*"]


def test_api_key_for_provider(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")  # pragma: allowlist secret
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")  # pragma: allowlist secret

    settings = Settings(_env_file=None)

    assert settings.api_key_for("google-gla:gemini-2.5-flash") == "gemini-key"
    assert settings.api_key_for("openai:gpt-4.1-mini") == "openai-key"
    assert settings.api_key_for("mistral:large") is None


def test_api_key_for_defaults_to_review_model(monkeypatch) -> None:
    monkeypatch.delenv("REVIEW_MODEL", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")  # pragma: allowlist secret

    settings = Settings(_env_file=None)

    assert settings.api_key_for() == "gemini-key"
