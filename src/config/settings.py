"""Application settings using Pydantic Settings for environment variable management."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INCLUDED_EXTENSIONS = [
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".html",
    ".css",
    ".less",
    ".json",
    ".vue",
    ".py",
    ".java",
    ".cpp",
    ".c",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Model Configuration
    gemini_api_key: str | None = Field(
        default=None, description="Gemini API key (google-gla models)"
    )
    openai_api_key: str | None = Field(
        default=None, description="OpenAI API key (openai models)"
    )
    review_model: str = Field(
        default="google-gla:gemini-2.5-flash",
        description="Model used for reviews, as '<provider>:<model name>'",
    )
    review_temperature: float = Field(
        default=0.7, description="Temperature for AI model responses"
    )
    max_output_tokens: int = Field(
        default=8192, description="Maximum tokens the model may generate per reply"
    )

    # Review Loop Configuration
    max_tool_iterations: int = Field(
        default=6, description="Maximum tool-call exchanges per file review"
    )
    project_root: Path | None = Field(
        default=None,
        description="Root directory for tool calls (defaults to the reviewed path)",
    )
    restrict_tools_to_root: bool = Field(
        default=True,
        description="Reject tool calls that resolve outside the project root",
    )
    find_file_max_files: int = Field(
        default=1000, description="Maximum files examined by find_file"
    )
    find_file_max_depth: int = Field(
        default=10, description="Maximum directory depth walked by find_file"
    )
    tool_max_file_chars: int = Field(
        default=200_000, description="read_file truncates content beyond this size"
    )

    # Scanning Configuration
    scan_max_files: int = Field(
        default=1000, description="Maximum number of files collected per batch"
    )
    included_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDED_EXTENSIONS),
        description="File extensions eligible for review",
    )
    exclude_globs: list[str] = Field(
        default_factory=list,
        description="Extra glob patterns excluded from directory scans",
    )

    # Transport Configuration
    max_retries: int = Field(
        default=3, description="Maximum number of attempts for model calls"
    )
    llm_requests_per_second: float = Field(
        default=0.83, description="Average model request rate"
    )
    llm_burst: float = Field(default=10, description="Maximum request burst size")

    # Observability
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # Application Settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )

    # Server Configuration
    # Use a localhost default to avoid binding to all interfaces.
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def model_provider(self) -> str:
        """Provider prefix of ``review_model`` (e.g. "openai")."""
        provider, _, _ = self.review_model.partition(":")
        return provider

    def api_key_for(self, model_name: str | None = None) -> str | None:
        """Return the credential matching the provider of ``model_name``."""
        provider, _, _ = (model_name or self.review_model).partition(":")
        if provider == "openai":
            return self.openai_api_key
        if provider in ("google-gla", "gemini"):
            return self.gemini_api_key
        return None


# Global settings instance
settings = Settings()

# Validate required secrets in production to avoid silent failures
if settings.is_production and not settings.api_key_for():
    raise RuntimeError(
        "Missing required environment variables for production: "
        f"API key for model provider '{settings.model_provider}'"
    )
