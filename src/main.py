"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import reviews
from src.config.settings import settings
from src.utils.logging import setup_observability

# Setup logging and observability
setup_observability()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(f"Starting AI File Reviewer in {settings.environment} environment")
    logger.info(f"Review model: {settings.review_model}")
    if not settings.api_key_for():
        logger.warning(
            f"No API key configured for {settings.model_provider}; "
            "review requests will be rejected"
        )

    yield

    # Cancel a review still in flight so it stops at the next checkpoint
    reviews.get_runner().cancel()
    logger.info("Shutting down AI File Reviewer")


app = FastAPI(
    title="AI File Reviewer",
    description="AI-powered review of local source files with optional auto-fix",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire if configured
if settings.logfire_token:
    import logfire

    logfire.instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reviews.router)


@app.get("/health")
async def health_check() -> dict[str, str | bool]:
    """Health check endpoint with configuration status."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": "0.1.0",
        "review_model": settings.review_model,
        "api_key_configured": bool(settings.api_key_for()),
        "logfire_enabled": bool(settings.logfire_token),
        "review_active": reviews.get_runner().is_active,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "AI File Reviewer API",
        "docs": "/docs",
        "health": "/health",
        "review": "/review",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=settings.host, port=settings.port)
