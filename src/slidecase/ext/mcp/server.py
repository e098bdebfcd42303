"""Serve registry tools over MCP (stdio for desktop clients, SSE or streamable HTTP otherwise).

    >>> from slidecase.ext.mcp import serve_mcp
    >>> serve_mcp(build_registry(services), transport="stdio")

Needs the ``mcp`` extra: ``pip install slidecase[mcp]``.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from slidecase.runtime.observability import get_logger

if TYPE_CHECKING:
    from slidecase.foundation.core import BaseTool
    from slidecase.foundation.registry import ToolRegistry

Transport = Literal["stdio", "sse", "streamable-http"]

log = get_logger("ext.mcp")


class ToolServer(ABC):
    """Transport-agnostic front for a registry.

    ``invoke`` never raises for caller mistakes: an unknown tool or bad
    arguments come back as a rendered ``ToolError`` string, the same shape
    a failing tool produces, so clients handle one kind of text.
    """

    __slots__ = ("_name", "_registry")

    def __init__(self, name: str, registry: ToolRegistry) -> None:
        self._name = name
        self._registry = registry

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def run(self, **kwargs: Any) -> None:
        """Block serving requests."""

    def list_tools(self) -> list[dict[str, object]]:
        return [
            {
                "name": tool.metadata.name,
                "description": tool.metadata.description,
                "category": tool.metadata.category,
                "parameters": tool.params_schema.model_json_schema(),
            }
            for tool in self._registry.list_tools()
        ]

    async def invoke(self, tool_name: str, params: dict[str, object]) -> str:
        return await self._registry.execute(tool_name, params)


def _tool_signature(schema: type[BaseModel]) -> inspect.Signature:
    """Keyword-only signature built from a params model.

    FastMCP derives a tool's input schema from the handler signature, so the
    generic ``**kwargs`` handler gets one that mirrors the model's fields.
    """
    empty = inspect.Parameter.empty
    params = [
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            annotation=info.annotation,
            default=empty if info.is_required() else info.get_default(call_default_factory=True),
        )
        for name, info in schema.model_fields.items()
    ]
    return inspect.Signature(params, return_annotation=str)


class MCPServer(ToolServer):
    """ToolServer backed by FastMCP. Tools are registered at construction."""

    __slots__ = ("_mcp",)

    def __init__(self, name: str, registry: ToolRegistry) -> None:
        super().__init__(name, registry)
        try:
            from fastmcp import FastMCP
        except ImportError as e:
            raise ImportError("MCP support needs fastmcp: pip install slidecase[mcp]") from e

        self._mcp = FastMCP(name)
        for tool in self._registry.list_tools():
            self._mcp.tool(name=tool.metadata.name, description=tool.metadata.description)(self._handler(tool))
            log.debug("registered mcp tool", tool=tool.metadata.name)

    def _handler(self, tool: BaseTool[BaseModel]) -> Callable[..., Awaitable[str]]:
        tool_name = tool.metadata.name
        schema = tool.params_schema

        async def handler(**kwargs: object) -> str:
            return await self.invoke(tool_name, kwargs)

        handler.__name__ = tool_name
        handler.__doc__ = tool.metadata.description
        handler.__signature__ = _tool_signature(schema)  # type: ignore[attr-defined]
        handler.__annotations__ = {n: f.annotation for n, f in schema.model_fields.items()} | {"return": str}
        return handler

    def run(self, transport: Transport = "stdio", *, host: str = "127.0.0.1", port: int = 8080) -> None:
        """Serve until interrupted. ``host`` and ``port`` only apply to the HTTP transports."""
        log.info("starting mcp server", name=self._name, transport=transport, tools=len(self._registry.list_tools()))
        if transport == "stdio":
            self._mcp.run()
        else:
            self._mcp.run(transport=transport, host=host, port=port)


def serve_mcp(
    registry: ToolRegistry,
    *,
    name: str = "slidecase",
    transport: Transport = "stdio",
    host: str = "127.0.0.1",
    port: int = 8080,
) -> None:
    """Build an ``MCPServer`` for ``registry`` and run it (blocking)."""
    MCPServer(name, registry).run(transport=transport, host=host, port=port)
