"""Review records and batch state."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReviewRequest(BaseModel):
    """A single file submitted for review."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    source_text: str


class Review(BaseModel):
    """Structured result of reviewing one file.

    Derived from the model's final reply by the response parser.
    ``can_auto_fix`` only reflects the explicit "Can Auto-Fix" marker; use
    ``auto_fix_available`` to decide whether a fix should be offered.
    """

    model_config = ConfigDict(frozen=True)

    summary: str
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    can_auto_fix: bool = False
    raw_text: str = ""

    @property
    def auto_fix_available(self) -> bool:
        """Check if a fix should be offered for this review.

        Returns:
            True if the model said the issues can be fixed automatically or
            if it made at least one suggestion
        """
        return self.can_auto_fix or len(self.suggestions) > 0


class FixDecision(str, Enum):
    """User decision for a fixable file."""

    APPLY = "apply"
    SKIP = "skip"
    APPLY_ALL = "apply_all"


class SkippedFile(BaseModel):
    file_path: str
    reason: str


class BatchJob(BaseModel):
    """Mutable progress of one batch run.

    Owned by the batch orchestrator. ``cursor`` counts files that have been
    fully processed and only moves forward.
    """

    files: list[str]
    cursor: int = 0
    apply_all: bool = False
    cancelled: bool = False
    reviewed_count: int = 0
    skipped: list[SkippedFile] = Field(default_factory=list)
    fixed: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.files)

    @property
    def remaining(self) -> list[str]:
        return self.files[self.cursor :]

    def advance(self) -> None:
        self.cursor = min(self.cursor + 1, self.total)

    def skip(self, file_path: str, reason: str) -> None:
        self.skipped.append(SkippedFile(file_path=file_path, reason=reason))


class BatchReport(BaseModel):
    """Outcome of a review run, returned to the caller."""

    total: int
    attempted: int
    reviewed: int
    cancelled: bool = False
    skipped: list[SkippedFile] = Field(default_factory=list)
    fixed: list[str] = Field(default_factory=list)
    reviews: dict[str, Review] = Field(default_factory=dict)

    @classmethod
    def from_job(cls, job: BatchJob, reviews: dict[str, Review]) -> "BatchReport":
        return cls(
            total=job.total,
            attempted=job.cursor,
            reviewed=job.reviewed_count,
            cancelled=job.cancelled,
            skipped=list(job.skipped),
            fixed=list(job.fixed),
            reviews=dict(reviews),
        )

    def format_summary(self) -> str:
        """One-line summary, e.g. ``Reviewed 2 of 3 files (1 skipped)``."""
        text = f"Reviewed {self.reviewed} of {self.total} files"
        details = []
        if self.skipped:
            details.append(f"{len(self.skipped)} skipped")
        if self.fixed:
            details.append(f"{len(self.fixed)} fixed")
        if details:
            text += f" ({', '.join(details)})"
        if self.cancelled:
            text += " - cancelled"
        return text
