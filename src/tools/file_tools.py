"""File-system inspection tools the model can call during a review."""

import asyncio
import logging
import os
import re
import stat
from pathlib import Path
from typing import Any

from pydantic_ai.tools import ToolDefinition

from src.config.settings import Settings
from src.models.conversation import (
    FIND_FILE,
    LIST_DIRECTORY,
    READ_FILE,
    ToolCall,
    ToolErr,
    ToolOk,
    ToolResult,
)
from src.models.errors import ToolExecutionError
from src.utils.filters import is_skipped_directory

logger = logging.getLogger(__name__)

TOOL_DEFINITIONS: list[ToolDefinition] = [
    ToolDefinition(
        name=READ_FILE,
        description=(
            "Read the contents of a file at the specified path. Use this when "
            "you need to examine related files or dependencies."
        ),
        parameters_json_schema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The relative or absolute path to the file to read",
                }
            },
            "required": ["file_path"],
        },
    ),
    ToolDefinition(
        name=LIST_DIRECTORY,
        description=(
            "List all files in a directory. Useful for understanding project "
            "structure."
        ),
        parameters_json_schema={
            "type": "object",
            "properties": {
                "directory_path": {
                    "type": "string",
                    "description": "The path to the directory to list",
                }
            },
            "required": ["directory_path"],
        },
    ),
    ToolDefinition(
        name=FIND_FILE,
        description=(
            "Search for files by name pattern in the project. Returns matching "
            "file paths."
        ),
        parameters_json_schema={
            "type": "object",
            "properties": {
                "pattern": {
                    "type": "string",
                    "description": (
                        'File name pattern to search for (e.g., "*.config.js" '
                        'or "package.json")'
                    ),
                },
                "directory": {
                    "type": "string",
                    "description": (
                        "Directory to search in (optional, defaults to project root)"
                    ),
                },
            },
            "required": ["pattern"],
        },
    ),
]


def compile_name_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a restricted glob into a regex.

    Only ``*`` (any run of characters) and ``?`` (one character) are special;
    everything else matches literally. The match is anchored to the whole
    basename and ignores case.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


class FileTools:
    """Executes the model's tool calls against the local file system.

    Every call produces a ToolResult; failures come back as ``ToolErr`` so
    the conversation can always continue.
    """

    def __init__(
        self,
        project_root: str | Path,
        max_find_files: int = 1000,
        max_find_depth: int = 10,
        max_read_chars: int = 200_000,
        restrict_to_root: bool = True,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.max_find_files = max_find_files
        self.max_find_depth = max_find_depth
        self.max_read_chars = max_read_chars
        self.restrict_to_root = restrict_to_root

    @classmethod
    def from_settings(
        cls, project_root: str | Path, settings: Settings
    ) -> "FileTools":
        return cls(
            project_root=settings.project_root or project_root,
            max_find_files=settings.find_file_max_files,
            max_find_depth=settings.find_file_max_depth,
            max_read_chars=settings.tool_max_file_chars,
            restrict_to_root=settings.restrict_tools_to_root,
        )

    async def execute(self, call: ToolCall) -> ToolResult:
        """Run one tool call and return its result. Never raises."""
        logger.info(f"Tool call: {call.describe()}")
        try:
            if call.name == READ_FILE:
                return await self.read_file(self._require(call, "file_path"))
            if call.name == LIST_DIRECTORY:
                directory_path = self._require(call, "directory_path")
                return await self.list_directory(directory_path)
            if call.name == FIND_FILE:
                return await self.find_file(
                    self._require(call, "pattern"), call.arguments.get("directory")
                )
            logger.warning(f"Model requested unknown tool: {call.name}")
            return ToolErr(message=f"Unknown function {call.name}")
        except ToolExecutionError as e:
            return ToolErr(message=str(e))
        except Exception as e:
            logger.exception(f"Tool {call.name} failed unexpectedly")
            return ToolErr(message=f"Error executing {call.name}: {e}")

    # === TOOLS ===

    async def read_file(self, file_path: str) -> ToolResult:
        """Read a text file. Content beyond ``max_read_chars`` is truncated."""
        path = self._resolve(file_path)
        try:
            content = await asyncio.to_thread(
                path.read_text, encoding="utf-8", errors="replace"
            )
        except OSError as e:
            return ToolErr(message=f"Cannot read file: {e.strerror or e}")

        payload: dict[str, Any] = {
            "path": file_path,
            "content": content,
            "size": len(content),
        }
        if len(content) > self.max_read_chars:
            payload["content"] = content[: self.max_read_chars]
            payload["truncated"] = True
        return ToolOk(payload=payload)

    async def list_directory(self, directory_path: str) -> ToolResult:
        """List the immediate entries of a directory with type and size."""
        path = self._resolve(directory_path)
        try:
            entries = await asyncio.to_thread(_list_entries, path)
        except OSError as e:
            return ToolErr(message=f"Cannot list directory: {e.strerror or e}")

        return ToolOk(payload={"directory": directory_path, "files": entries})

    async def find_file(
        self, pattern: str, directory: str | None = None
    ) -> ToolResult:
        """Recursively find files whose basename matches ``pattern``."""
        if not pattern:
            return ToolErr(message="Cannot search files: empty pattern")

        root = self._resolve(directory) if directory else self.project_root
        if not root.is_dir():
            return ToolErr(
                message=f"Cannot search files: {directory} is not a directory"
            )

        regex = compile_name_pattern(pattern)
        matches = await asyncio.to_thread(self._walk_matches, root, regex)
        return ToolOk(
            payload={
                "pattern": pattern,
                "directory": directory or ".",
                "matches": matches,
            }
        )

    # === HELPERS ===

    def _require(self, call: ToolCall, argument: str) -> str:
        value = call.arguments.get(argument)
        if not isinstance(value, str) or not value:
            raise ToolExecutionError(
                f"Missing required argument '{argument}' for {call.name}"
            )
        return value

    def _resolve(self, raw_path: str) -> Path:
        path = Path(raw_path).expanduser()
        if not path.is_absolute():
            path = self.project_root / path
        path = path.resolve()

        if self.restrict_to_root and not path.is_relative_to(self.project_root):
            raise ToolExecutionError(
                f"Access denied: {raw_path} is outside the project root"
            )
        return path

    def _walk_matches(self, root: Path, regex: re.Pattern[str]) -> list[str]:
        matches: list[str] = []
        examined = 0
        # (directory, depth) stack; entries are visited in name order
        pending: list[tuple[Path, int]] = [(root, 0)]

        while pending and examined < self.max_find_files:
            directory, depth = pending.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda entry: entry.name)
            except OSError:
                logger.debug(f"find_file: cannot access {directory}")
                continue

            subdirectories = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if depth < self.max_find_depth and not is_skipped_directory(
                        entry.name
                    ):
                        subdirectories.append(Path(entry.path))
                    continue

                examined += 1
                if regex.fullmatch(entry.name):
                    matches.append(Path(entry.path).relative_to(root).as_posix())
                if examined >= self.max_find_files:
                    logger.info(
                        f"find_file stopped after {examined} files under {root}"
                    )
                    break

            pending.extend((sub, depth + 1) for sub in reversed(subdirectories))

        return matches


def _list_entries(path: Path) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for name in sorted(os.listdir(path)):
        try:
            stats = (path / name).stat()
        except OSError:
            entries.append({"name": name, "error": "Cannot access"})
            continue
        entries.append(
            {
                "name": name,
                "is_directory": stat.S_ISDIR(stats.st_mode),
                "size": stats.st_size,
            }
        )
    return entries
