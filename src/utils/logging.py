"""Logging and observability setup using Pydantic Logfire."""

import logging
import sys

from src.config.settings import settings


def setup_logging() -> None:
    """Configure application logging.

    Review progress is reported through the log, so everything goes to
    stdout at the configured level. Verbose HTTP libraries are quieted.
    """
    log_level = getattr(logging, settings.log_level)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


def setup_observability() -> None:
    """Setup logging and, when a token is configured, Logfire tracing.

    Model requests are traced through the pydantic-ai instrumentation and
    provider HTTP calls through the httpx instrumentation.
    """
    setup_logging()

    logger = logging.getLogger(__name__)

    if not settings.logfire_token:
        logger.debug("Logfire token not configured, skipping observability setup")
        return

    try:
        import logfire

        logfire.configure(
            token=settings.logfire_token,
            service_name="ai-file-reviewer",
            environment=settings.environment,
        )
        logfire.instrument_pydantic_ai()
        logfire.instrument_httpx()

        logger.info(
            f"Logfire observability enabled for {settings.environment} environment"
        )

    except ImportError:
        logger.warning(
            "Logfire package not installed. Install with: "
            "pip install 'ai-file-reviewer[logfire]'"
        )
    except Exception as e:
        logger.error(f"Failed to setup Logfire observability: {e}")
