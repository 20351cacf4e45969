"""Collect reviewable files under a directory."""

import logging
import math
import os
from collections.abc import Iterable
from pathlib import Path

from src.utils.filters import is_skipped_directory, should_review_file

logger = logging.getLogger(__name__)

SECONDS_PER_FILE = 10


def scan_directory(
    root: str | Path,
    max_files: int = 1000,
    max_depth: int = 10,
    included_extensions: Iterable[str] | None = None,
    exclude_globs: Iterable[str] = (),
) -> list[str]:
    """Walk ``root`` and return reviewable file paths in a stable order.

    Directories are visited in name order, depth first. Heavy directories
    (VCS metadata, dependencies, build output) are pruned and unreadable
    directories are skipped with a warning.

    Args:
        root: Directory to scan
        max_files: Stop after collecting this many files
        max_depth: Do not descend deeper than this many levels
        included_extensions: Allowed extensions (defaults to the built-in list)
        exclude_globs: Additional glob patterns to exclude

    Returns:
        List of file paths (strings), at most ``max_files`` long
    """
    root_path = Path(root)
    exclude_globs = list(exclude_globs)
    files: list[str] = []

    def walk(directory: Path, depth: int) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Cannot access directory {directory}: {e}")
            return

        for entry in entries:
            if len(files) >= max_files:
                return

            if entry.is_dir(follow_symlinks=False):
                if depth < max_depth and not is_skipped_directory(entry.name):
                    walk(Path(entry.path), depth + 1)
                continue

            relative = Path(entry.path).relative_to(root_path).as_posix()
            if entry.is_file() and should_review_file(
                relative, included_extensions, exclude_globs
            ):
                files.append(entry.path)

    walk(root_path, 0)
    logger.info(f"Found {len(files)} reviewable files under {root_path}")
    return files


def estimate_review_time(file_count: int) -> str:
    """Rough duration of a batch, e.g. ``"3 minutes"`` (about 10s per file)."""
    minutes = math.ceil(file_count * SECONDS_PER_FILE / 60)

    if minutes < 1:
        return "less than a minute"
    if minutes == 1:
        return "1 minute"
    if minutes < 60:
        return f"{minutes} minutes"

    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}m"
