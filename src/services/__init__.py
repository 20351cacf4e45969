"""Services that drive reviews across many files."""

from src.services.batch_orchestrator import BatchOrchestrator
from src.services.file_scanner import estimate_review_time, scan_directory

__all__ = ["BatchOrchestrator", "estimate_review_time", "scan_directory"]
