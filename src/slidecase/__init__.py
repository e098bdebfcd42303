"""slidecase - batch editing of Google Slides presentations for AI agents.

Compiles heterogeneous edit operations into as few Slides API round trips
as possible and reconciles per-operation outcomes under stop, continue or
rollback error handling.

Quick Start:
    >>> from slidecase import BatchOrchestrator, BatchUpdateParams, SlidesClient, SlidesServices
    >>>
    >>> orchestrator = BatchOrchestrator(SlidesServices(documents=SlidesClient(access_token="ya29...")))
    >>> report = await orchestrator.run(BatchUpdateParams(
    ...     presentation_id="1AbC",
    ...     operations=[
    ...         {"kind": "add_slide", "parameters": {"layout": "TITLE_AND_BODY"}},
    ...         {"kind": "modify_text", "parameters": {"object_id": "title_1", "text": "Q3"}},
    ...     ],
    ...     on_error="rollback",
    ... ))
    >>> report.api_call_count
    1

MCP:
    >>> from slidecase.ext.mcp import serve_mcp
    >>> serve_mcp(build_registry(services), transport="stdio")
"""

__version__ = "0.1.0"

from .batch import BatchOrchestrator, BatchUpdateParams, ExecutionReport, OnErrorMode, OperationResult
from .foundation.config import SlidecaseSettings, clear_settings_cache, get_settings
from .foundation.core import BaseTool, ToolMetadata
from .foundation.errors import Err, ErrorCode, Ok, Result, ToolError, ToolException, classify_exception
from .foundation.registry import ToolRegistry
from .operations import OperationKind, SlidesServices
from .runtime.observability import configure_logging, get_logger, log_context
from .slides import DocumentService, GoogleTranslator, SlidesAPIError, SlidesClient, Translator
from .tools import BatchUpdateTool

__all__ = [
    "__version__",
    # Orchestrator
    "BatchOrchestrator", "BatchUpdateParams", "ExecutionReport", "OnErrorMode", "OperationResult", "OperationKind",
    # Tools
    "BaseTool", "ToolMetadata", "ToolRegistry", "BatchUpdateTool",
    # Slides
    "SlidesServices", "DocumentService", "SlidesClient", "SlidesAPIError", "Translator", "GoogleTranslator",
    # Errors
    "ErrorCode", "ToolError", "ToolException", "classify_exception", "Result", "Ok", "Err",
    # Config & logging
    "SlidecaseSettings", "get_settings", "clear_settings_cache", "configure_logging", "get_logger", "log_context",
]
