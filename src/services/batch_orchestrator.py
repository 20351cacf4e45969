"""Sequential review of many files with cancellation and apply-all handling."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from src.models.review import (
    BatchJob,
    BatchReport,
    FixDecision,
    Review,
    ReviewRequest,
)
from src.services.file_scanner import estimate_review_time
from src.utils.cancellation import CancellationToken, is_cancelled

logger = logging.getLogger(__name__)

ReviewFn = Callable[
    [ReviewRequest, CancellationToken | None], Awaitable[Review | None]
]
ReadFn = Callable[[str], Awaitable[str]]
DecideFn = Callable[[str, Review], Awaitable[FixDecision]]
GenerateFixFn = Callable[[str, str, Review], Awaitable[str]]
ApplyFixFn = Callable[[str, str, str], Awaitable[None]]
ProgressFn = Callable[[BatchJob], None]


class BatchOrchestrator:
    """
    Reviews an ordered list of files, one at a time.

    === BEHAVIOR ===
    For each file, in order:
        CHECK cancellation (stop the batch if requested)
        READ the file and REVIEW it
        LOG the summary and suggestions
        IF the review offers a fix (union rule, ``Review.auto_fix_available``):
            ASK ``decide`` unless "apply all" was chosen earlier in the batch
            apply      -> generate the fix and hand it to ``apply_fix``
            apply_all  -> same, and stop asking for the rest of the batch
            skip       -> leave the file untouched
        ADVANCE the cursor and report progress

    Edge Cases:
        - Read or model failure: logged with the file path, recorded as
          skipped, the batch continues
        - Fix generation/apply failure: logged, the file still counts as
          reviewed
        - Cancellation during a review: the file is not counted and the
          batch stops with partial results

    The orchestrator never writes files itself; ``apply_fix`` is the
    caller's mutation boundary.
    """

    def __init__(
        self,
        review_file: ReviewFn,
        read_file: ReadFn,
        decide: DecideFn,
        generate_fix: GenerateFixFn,
        apply_fix: ApplyFixFn,
        on_progress: ProgressFn | None = None,
    ) -> None:
        self.review_file = review_file
        self.read_file = read_file
        self.decide = decide
        self.generate_fix = generate_fix
        self.apply_fix = apply_fix
        self.on_progress = on_progress
        self.job: BatchJob | None = None

    async def run(
        self,
        files: Iterable[str],
        cancel_token: CancellationToken | None = None,
    ) -> BatchReport:
        """Review ``files`` in order and return the aggregate report."""
        job = BatchJob(files=list(files))
        self.job = job
        reviews: dict[str, Review] = {}

        logger.info(
            f"Reviewing {job.total} files "
            f"(estimated {estimate_review_time(job.total)})"
        )
        self._report(job)

        for index, file_path in enumerate(job.files):
            if is_cancelled(cancel_token):
                job.cancelled = True
                logger.warning("Review cancelled by user.")
                break

            logger.info(f"File {index + 1}/{job.total}: {Path(file_path).name}")

            try:
                source_text = await self.read_file(file_path)
                review = await self.review_file(
                    ReviewRequest(file_path=file_path, source_text=source_text),
                    cancel_token,
                )
            except Exception as e:
                logger.error(f"Skipping {file_path}: {e}")
                job.skip(file_path, str(e))
                self._advance(job)
                continue

            if review is None:
                job.cancelled = True
                logger.warning(f"Review cancelled while processing {file_path}")
                break

            reviews[file_path] = review
            job.reviewed_count += 1
            _log_review(file_path, review)

            if review.auto_fix_available:
                await self._handle_fix(
                    job, file_path, source_text, review, cancel_token
                )

            self._advance(job)

        report = BatchReport.from_job(job, reviews)
        logger.info(report.format_summary())
        return report

    async def _handle_fix(
        self,
        job: BatchJob,
        file_path: str,
        source_text: str,
        review: Review,
        cancel_token: CancellationToken | None,
    ) -> None:
        try:
            if job.apply_all:
                decision = FixDecision.APPLY
            else:
                decision = await self.decide(file_path, review)
        except Exception as e:
            logger.error(f"Could not get a fix decision for {file_path}: {e}")
            return

        if decision == FixDecision.SKIP:
            logger.info(f"Skipped applying fixes for {file_path}")
            return

        if decision == FixDecision.APPLY_ALL:
            job.apply_all = True

        if is_cancelled(cancel_token):
            logger.info(f"Cancelled; not generating fixes for {file_path}")
            return

        try:
            fixed_code = await self.generate_fix(file_path, source_text, review)
            await self.apply_fix(file_path, source_text, fixed_code)
        except Exception as e:
            logger.error(f"Failed to apply fixes to {file_path}: {e}")
            return

        job.fixed.append(file_path)
        mode = " (Apply All mode)" if job.apply_all else ""
        logger.info(f"Applied fixes to {file_path}{mode}")

    def _advance(self, job: BatchJob) -> None:
        job.advance()
        self._report(job)

    def _report(self, job: BatchJob) -> None:
        if self.on_progress is not None:
            self.on_progress(job)


def _log_review(file_path: str, review: Review) -> None:
    logger.info(f"{Path(file_path).name}: {review.summary}")
    for index, suggestion in enumerate(review.suggestions, 1):
        logger.info(f"  Suggestion {index}. {suggestion}")
