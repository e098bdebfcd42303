"""Unified error handling for slidecase.

- ErrorCode: Error codes surfaced per operation and per request
- ToolError/ToolException: Structured errors and exceptions
- classify_exception: The single seam mapping failures to error codes
- Result/Ok/Err: Outcomes of tool runs and standalone operation attempts
"""

from .errors import (
    ErrorCode,
    ToolError,
    ToolException,
    classify_exception,
    code_for_status,
)
from .result import Err, Ok, Result
from .types import JsonDict, JsonPrimitive, JsonValue, OperationOutcome

__all__ = [
    # Core errors
    "ErrorCode", "ToolError", "ToolException", "classify_exception", "code_for_status",
    # Result monad
    "Result", "Ok", "Err", "OperationOutcome",
    # JSON aliases
    "JsonDict", "JsonPrimitive", "JsonValue",
]
