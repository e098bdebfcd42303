"""MCP server integration."""

from .server import MCPServer, ToolServer, Transport, serve_mcp

__all__ = ["MCPServer", "ToolServer", "Transport", "serve_mcp"]
