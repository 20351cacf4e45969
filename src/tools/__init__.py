"""Tool functions the model can call while reviewing a file."""

from .file_tools import TOOL_DEFINITIONS, FileTools

__all__ = ["FileTools", "TOOL_DEFINITIONS"]
