"""Core tool abstractions.

- BaseTool: Abstract base class for all tools
- ToolMetadata: Tool metadata and capabilities
"""

from .base import BaseTool, ToolMetadata, ToolResult

__all__ = ["BaseTool", "ToolMetadata", "ToolResult"]
