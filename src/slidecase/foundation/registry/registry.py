"""Registry of tools, keyed by name.

Servers list tools from it and dispatch calls through ``execute``, which
validates raw arguments and renders every failure as a ``ToolError`` string.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ValidationError

from ..core import BaseTool
from ..errors import ErrorCode, ToolError


class ToolRegistry:
    """Name-keyed collection of tool instances.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(BatchUpdateTool(services))
        >>> await registry.execute("batch_update", {"presentation_id": "abc", "operations": [...]})
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool[BaseModel]] = {}

    def register(self, tool: BaseTool[BaseModel]) -> None:
        name = tool.metadata.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered")
        self._tools[name] = tool

    def get(self, name: str) -> BaseTool[BaseModel] | None:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool[BaseModel]]:
        return iter(self._tools.values())

    def list_tools(self, *, category: str | None = None) -> list[BaseTool[BaseModel]]:
        """Enabled tools in registration order, optionally one category only."""
        return [
            t for t in self._tools.values()
            if t.metadata.enabled and (category is None or t.metadata.category == category)
        ]

    async def execute(self, name: str, params: dict[str, object]) -> str:
        """Validate ``params`` against the tool's schema and run it.

        Returns the tool output, or a rendered ToolError for an unknown
        tool, invalid arguments or a failed run.
        """
        if (tool := self._tools.get(name)) is None:
            return _reject(name, f"Tool '{name}' not found")
        try:
            validated = tool.params_schema.model_validate(params)
        except ValidationError as e:
            return _reject(name, f"Invalid parameters: {e}")
        return await tool.arun(validated)


def _reject(name: str, message: str) -> str:
    return ToolError.create(name, message, ErrorCode.INVALID_PARAMS, recoverable=False).render()
