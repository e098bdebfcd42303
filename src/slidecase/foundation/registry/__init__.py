"""Tool registry for discovery and execution."""

from .registry import ToolRegistry

__all__ = ["ToolRegistry"]
