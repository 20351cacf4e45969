"""HTTP endpoints for starting, cancelling and inspecting reviews."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.api.handlers.review_handler import ApplyPolicy, ReviewRunner
from src.models.errors import (
    ConfigurationError,
    FileChangedError,
    ReviewInProgressError,
    TransportError,
)
from src.models.review import BatchReport

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/review", tags=["reviews"])

# One runner per process: only one review may run at a time
_runner = ReviewRunner()


def get_runner() -> ReviewRunner:
    """Return the process-wide review runner."""
    return _runner


class ReviewPathRequest(BaseModel):
    """Body of ``POST /review``."""

    path: str = Field(..., min_length=1, description="File or directory to review")
    apply_fixes: Literal["never", "always"] = Field(
        default="never",
        description="Write generated fixes back to disk ('always') or not",
    )


class CancelResponse(BaseModel):
    cancelled: bool


class ReviewStatus(BaseModel):
    active: bool
    total: int
    completed: int
    reviewed: int


@router.post("", response_model=BatchReport)
async def review_path(
    body: ReviewPathRequest, runner: ReviewRunner = Depends(get_runner)
) -> BatchReport:
    """
    Review a file or directory and return the batch report.

    === BEHAVIOR ===
    file      -> single review; a model failure is returned as 502
    directory -> scan and review each file; failed files are listed
                 under ``skipped`` and the batch continues

    The request blocks until the review finishes or is cancelled through
    ``POST /review/cancel``; a cancelled batch returns its partial report.
    """
    policy = ApplyPolicy(body.apply_fixes)
    logger.info(f"Review requested for {body.path} (apply_fixes={policy.value})")

    try:
        return await runner.review_path(body.path, policy)
    except ReviewInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except FileChangedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
    except ConfigurationError as e:
        logger.error(f"Review unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        ) from e
    except TransportError as e:
        logger.error(f"Review of {body.path} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot read {body.path}: {e}",
        ) from e


@router.post("/cancel", response_model=CancelResponse)
async def cancel_review(runner: ReviewRunner = Depends(get_runner)) -> CancelResponse:
    """Request cancellation of the running review, if any."""
    cancelled = runner.cancel()
    if not cancelled:
        logger.info("Cancel requested but no review is running")
    return CancelResponse(cancelled=cancelled)


@router.get("/status", response_model=ReviewStatus)
async def review_status(runner: ReviewRunner = Depends(get_runner)) -> ReviewStatus:
    """Return whether a review is running and how far it has got."""
    return ReviewStatus(**runner.progress())
