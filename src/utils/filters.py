"""File filtering utilities for determining which files to review."""

import fnmatch
import re
from collections.abc import Iterable
from pathlib import Path, PurePath
from re import Pattern

from src.config.settings import DEFAULT_INCLUDED_EXTENSIONS

# Patterns for files/directories that should be excluded from review.
# Matched against POSIX-style paths, so directory patterns accept any prefix.
EXCLUDED_PATTERNS: list[Pattern[str]] = [
    # Lock files
    re.compile(r"package-lock\.json$"),
    re.compile(r"yarn\.lock$"),
    re.compile(r"pnpm-lock\.yaml$"),
    re.compile(r"Pipfile\.lock$"),
    re.compile(r"poetry\.lock$"),
    # Build/dist directories
    re.compile(r"(^|/)dist/"),
    re.compile(r"(^|/)build/"),
    re.compile(r"(^|/)out/"),
    re.compile(r"(^|/)coverage/"),
    re.compile(r"(^|/)\.next/"),
    re.compile(r"(^|/)\.nuxt/"),
    re.compile(r"(^|/)__pycache__/"),
    # Dependencies
    re.compile(r"(^|/)node_modules/"),
    re.compile(r"(^|/)venv/"),
    re.compile(r"(^|/)\.venv/"),
    re.compile(r"(^|/)env/"),
    # Minified and bundled files
    re.compile(r"\.min\.js$"),
    re.compile(r"\.min\.css$"),
    re.compile(r"\.bundle\.js$"),
    re.compile(r"\.pyc$"),
    # Environment files
    re.compile(r"(^|/)\.env[^/]*$"),
    # IDE files
    re.compile(r"(^|/)\.vscode/"),
    re.compile(r"(^|/)\.idea/"),
    # Git
    re.compile(r"(^|/)\.git/"),
]

# Files never worth reviewing even when their extension is allowed
SKIPPED_FILE_NAMES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".gitignore",
    ".eslintrc",
    ".prettierrc",
}

# Directories pruned while walking a tree
SKIPPED_DIRECTORIES = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "dist",
    "build",
    "out",
    "coverage",
    ".next",
    ".nuxt",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    "venv",
    ".venv",
    "env",
    ".vscode",
    ".idea",
}


def is_skipped_directory(name: str) -> bool:
    """Check if a directory name belongs to VCS metadata, caches or build output."""
    return name in SKIPPED_DIRECTORIES


def is_excluded_path(file_path: str, exclude_globs: Iterable[str] = ()) -> bool:
    """Check a path against the built-in exclusions and extra glob patterns.

    Args:
        file_path: Path to the file (relative or absolute)
        exclude_globs: Additional glob patterns (e.g. ``"**/generated/**"``)

    Returns:
        True if the path matches any exclusion
    """
    normalized_path = PurePath(file_path).as_posix()

    if any(pattern.search(normalized_path) for pattern in EXCLUDED_PATTERNS):
        return True

    return any(fnmatch.fnmatch(normalized_path, glob) for glob in exclude_globs)


def should_review_file(
    file_path: str,
    included_extensions: Iterable[str] | None = None,
    exclude_globs: Iterable[str] = (),
) -> bool:
    """Determine if a file should be included in a review.

    Args:
        file_path: Path to the file (relative or absolute)
        included_extensions: Allowed extensions (defaults to the built-in list)
        exclude_globs: Additional glob patterns to exclude

    Returns:
        True if the file should be reviewed, False if it should be excluded
    """
    if is_excluded_path(file_path, exclude_globs):
        return False

    path = Path(file_path)
    extensions = {
        ext.lower() for ext in (included_extensions or DEFAULT_INCLUDED_EXTENSIONS)
    }
    if path.suffix.lower() not in extensions:
        return False

    return path.name.lower() not in SKIPPED_FILE_NAMES
