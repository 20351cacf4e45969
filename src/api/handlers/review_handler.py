"""Review request handler shared by the HTTP API and the CLI.

Owns the pieces the review engine leaves to its caller: building the
transport and tools, the single active cancellation token, fix decisions,
and writing fixed code back to disk.
"""

import asyncio
import hashlib
import logging
import os
import tempfile
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from src.agents.code_reviewer import CodeReviewer
from src.agents.fix_generator import FixGenerator
from src.agents.transport import ModelTransport, build_transport
from src.config.settings import Settings, settings
from src.models.errors import FileChangedError, ReviewInProgressError
from src.models.review import (
    BatchJob,
    BatchReport,
    FixDecision,
    Review,
    ReviewRequest,
)
from src.services.batch_orchestrator import BatchOrchestrator, DecideFn
from src.services.file_scanner import scan_directory
from src.tools.file_tools import FileTools
from src.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

TransportFactory = Callable[[Settings], ModelTransport]


class ApplyPolicy(str, Enum):
    """How fix decisions are made for fixable files."""

    ASK = "ask"
    NEVER = "never"
    ALWAYS = "always"


# === FILE MUTATION BOUNDARY ===


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _read_raw(path: Path) -> str:
    # newline="" keeps CRLF so the content check sees line-ending changes
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()


def _line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _match_line_endings(original_text: str, fixed_text: str) -> str:
    newline = _line_ending(original_text)
    lines = fixed_text.replace("\r\n", "\n").split("\n")
    if lines[-1] == "" and len(lines) > 1:
        lines.pop()
    elif not original_text.endswith(newline):
        return newline.join(lines)
    return newline.join(lines) + newline


async def read_source_file(file_path: str) -> str:
    """Read a file for review (UTF-8, line endings kept as they are on disk)."""
    return await asyncio.to_thread(_read_raw, Path(file_path))


def _replace_file(file_path: str, original_text: str, fixed_text: str) -> None:
    path = Path(file_path)
    if _digest(_read_raw(path)) != _digest(original_text):
        raise FileChangedError(file_path)

    # Write next to the target so os.replace stays on one filesystem
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(_match_line_endings(original_text, fixed_text))
        os.chmod(temp_path, path.stat().st_mode)
        os.replace(temp_path, path)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise


async def apply_fixed_code(file_path: str, original_text: str, fixed_text: str) -> None:
    """
    Replace a file's contents with generated fixes.

    The file must still hold exactly the text that was reviewed: unsaved or
    concurrent edits are never overwritten. The replacement is written to a
    temporary file and moved into place atomically.

    Raises:
        FileChangedError: If the file changed since it was read for review
        OSError: If the file cannot be read or written
    """
    await asyncio.to_thread(_replace_file, file_path, original_text, fixed_text)
    logger.info(f"Fixes applied and {file_path} saved")


# === DECISIONS ===


def policy_decider(policy: ApplyPolicy) -> DecideFn:
    """Build a non-interactive decision function for ``policy``."""

    async def decide(file_path: str, review: Review) -> FixDecision:
        if policy == ApplyPolicy.ALWAYS:
            return FixDecision.APPLY_ALL
        return FixDecision.SKIP

    return decide


# === RUNNER ===


class ReviewRunner:
    """
    Runs single-file and batch reviews, one at a time.

    Only one review may be active: its cancellation token is the single
    outstanding handle, and starting another review while it runs raises
    ReviewInProgressError.
    """

    def __init__(
        self,
        app_settings: Settings | None = None,
        transport_factory: TransportFactory = build_transport,
    ) -> None:
        self.settings = app_settings or settings
        self.transport_factory = transport_factory
        self.cancel_token: CancellationToken | None = None
        self.current_job: BatchJob | None = None

    @property
    def is_active(self) -> bool:
        return self.cancel_token is not None

    def cancel(self) -> bool:
        """Request cancellation of the active review.

        Returns:
            True if a review was running
        """
        if self.cancel_token is None:
            return False
        self.cancel_token.cancel()
        return True

    def progress(self) -> dict[str, int | bool]:
        job = self.current_job
        return {
            "active": self.is_active,
            "total": job.total if job else 0,
            "completed": job.cursor if job else 0,
            "reviewed": job.reviewed_count if job else 0,
        }

    async def review_path(
        self,
        target: str | Path,
        policy: ApplyPolicy = ApplyPolicy.NEVER,
        decide: DecideFn | None = None,
    ) -> BatchReport:
        """
        Review a file or every reviewable file under a directory.

        Args:
            target: File or directory path
            policy: Fix policy; ASK requires ``decide``
            decide: Interactive decision callback used with ApplyPolicy.ASK

        Returns:
            BatchReport (a single file is reported as a batch of one)

        Raises:
            ConfigurationError: If no API key is configured
            ReviewInProgressError: If another review is running
            FileNotFoundError: If ``target`` does not exist
            TransportError: Single-file review only; batches skip failed files
        """
        path = Path(target).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Cannot access path: {path}")

        if path.is_file():
            return await self.review_file(path, policy, decide)
        return await self.review_directory(path, policy, decide)

    async def review_file(
        self,
        file_path: str | Path,
        policy: ApplyPolicy = ApplyPolicy.NEVER,
        decide: DecideFn | None = None,
    ) -> BatchReport:
        """Review one file; any failure is terminal for the operation."""
        path = Path(file_path).resolve()
        decide = self._decider(policy, decide)
        reviewer, fixer = self._build_engine(path.parent)

        token = self._start()
        job = BatchJob(files=[str(path)])
        self.current_job = job
        reviews: dict[str, Review] = {}
        try:
            logger.info(f"Reviewing: {path.name}")
            source_text = await read_source_file(str(path))
            review = await reviewer.review(
                ReviewRequest(file_path=str(path), source_text=source_text), token
            )
            if review is None:
                job.cancelled = True
                return BatchReport.from_job(job, reviews)

            reviews[str(path)] = review
            job.reviewed_count = 1

            if review.auto_fix_available and not token.is_cancelled:
                decision = await decide(str(path), review)
                if decision != FixDecision.SKIP:
                    fixed_code = await fixer.generate(str(path), source_text, review)
                    await apply_fixed_code(str(path), source_text, fixed_code)
                    job.fixed.append(str(path))

            job.advance()
            return BatchReport.from_job(job, reviews)
        finally:
            self._finish()

    async def review_directory(
        self,
        directory: str | Path,
        policy: ApplyPolicy = ApplyPolicy.NEVER,
        decide: DecideFn | None = None,
    ) -> BatchReport:
        """Scan ``directory`` and review the files found, skipping failures."""
        root = Path(directory).resolve()
        decide = self._decider(policy, decide)
        reviewer, fixer = self._build_engine(root)

        token = self._start()
        try:
            files = await asyncio.to_thread(
                scan_directory,
                root,
                self.settings.scan_max_files,
                self.settings.find_file_max_depth,
                self.settings.included_extensions,
                self.settings.exclude_globs,
            )
            if not files:
                logger.info(f"No files found to review in {root}")
                return BatchReport(total=0, attempted=0, reviewed=0)

            orchestrator = BatchOrchestrator(
                review_file=reviewer.review,
                read_file=read_source_file,
                decide=decide,
                generate_fix=fixer.generate,
                apply_fix=apply_fixed_code,
                on_progress=self._track,
            )
            return await orchestrator.run(files, token)
        finally:
            self._finish()

    # === HELPERS ===

    def _decider(self, policy: ApplyPolicy, decide: DecideFn | None) -> DecideFn:
        if policy == ApplyPolicy.ASK:
            if decide is None:
                raise ValueError("ApplyPolicy.ASK requires a decide callback")
            return decide
        return policy_decider(policy)

    def _build_engine(self, project_root: Path) -> tuple[CodeReviewer, FixGenerator]:
        # Raises ConfigurationError before anything is sent
        transport = self.transport_factory(self.settings)
        tools = FileTools.from_settings(project_root, self.settings)
        reviewer = CodeReviewer(
            transport, tools, max_iterations=self.settings.max_tool_iterations
        )
        return reviewer, FixGenerator(transport)

    def _start(self) -> CancellationToken:
        if self.cancel_token is not None:
            raise ReviewInProgressError("A review is already running")
        self.cancel_token = CancellationToken()
        self.current_job = None
        return self.cancel_token

    def _track(self, job: BatchJob) -> None:
        self.current_job = job

    def _finish(self) -> None:
        self.cancel_token = None

