"""Standardized error handling for slide tools.

Provides error codes and structured error responses for agent feedback.
Uses Pydantic for validation and serialization.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ErrorCode(StrEnum):
    """Error codes surfaced to callers, per operation or per request."""
    INVALID_PARAMS = "INVALID_PARAMS"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_OPERATION = "INVALID_OPERATION"
    BATCH_ERROR = "BATCH_ERROR"
    POST_PROCESS_ERROR = "POST_PROCESS_ERROR"
    SKIPPED = "SKIPPED"
    CANCELLED = "CANCELLED"
    PRESENTATION_NOT_FOUND = "PRESENTATION_NOT_FOUND"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    SLIDES_API_ERROR = "SLIDES_API_ERROR"
    TRANSLATE_API_ERROR = "TRANSLATE_API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


# Last-resort text heuristic, ordered for priority. Only consulted when an
# exception carries no structured status.
_PATTERN_CODES: dict[str, ErrorCode] = {
    "not found": ErrorCode.PRESENTATION_NOT_FOUND,
    "notfound": ErrorCode.PRESENTATION_NOT_FOUND,
    "forbidden": ErrorCode.ACCESS_DENIED,
    "permission": ErrorCode.ACCESS_DENIED,
    "unauthorized": ErrorCode.ACCESS_DENIED,
    "timeout": ErrorCode.TIMEOUT,
    "timed out": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "rate limit": ErrorCode.RATE_LIMITED,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())

_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.ACCESS_DENIED,
    403: ErrorCode.ACCESS_DENIED,
    404: ErrorCode.PRESENTATION_NOT_FOUND,
    429: ErrorCode.RATE_LIMITED,
}


@lru_cache(maxsize=256)
def _classify_text(exc_key: str) -> ErrorCode:
    """Cached classification by exception signature."""
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN_ERROR


def code_for_status(status_code: int) -> ErrorCode:
    """Map an HTTP status from the remote API to an error code."""
    return _STATUS_CODES.get(status_code, ErrorCode.SLIDES_API_ERROR)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map a failure to a domain error code.

    Structured information wins: a ``ToolException`` keeps its code and any
    exception exposing an integer ``status_code`` is mapped by status. Only
    exceptions carrying neither fall back to matching on name and message.
    """
    if isinstance(exc, ToolException):
        return exc.error.code
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return code_for_status(status)
    return _classify_text(f"{type(exc).__name__} {exc}")


class ToolError(BaseModel):
    """Structured error response for tool failures.

    Attributes:
        tool_name: Name of the tool or operation kind that failed
        message: Human-readable error message
        code: Machine-readable error code for programmatic handling
        recoverable: Whether the error might succeed on retry
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Tool Error",
            "description": "Structured error from tool execution",
            "examples": [{
                "tool_name": "add_slide",
                "message": "unsupported layout 'FANCY'",
                "code": "PARSE_ERROR",
                "recoverable": False,
            }],
        },
    )

    tool_name: Annotated[str, Field(min_length=1, description="Name of the tool that produced the error")]
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    code: ErrorCode = Field(default=ErrorCode.UNKNOWN_ERROR, description="Machine-readable error classification")
    recoverable: bool = Field(default=True, description="Whether retry might succeed")

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return str(v) if isinstance(v, Exception) else v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically retryable (rate limits, timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        *,
        recoverable: bool = True,
    ) -> Self:
        """Factory method for construction."""
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable)

    @classmethod
    def from_exception(cls, tool_name: str, exc: BaseException, context: str = "", *, recoverable: bool = True) -> Self:
        """Create from exception with auto-classification."""
        if isinstance(exc, ToolException):
            return cls(tool_name=tool_name, message=exc.error.message, code=exc.error.code,
                       recoverable=exc.error.recoverable)
        message = str(exc) or type(exc).__name__
        return cls(
            tool_name=tool_name,
            message=f"{context}: {message}" if context else message,
            code=classify_exception(exc),
            recoverable=recoverable,
        )

    def render(self) -> str:
        """Format error for LLM consumption."""
        parts = [f"**Tool Error ({self.tool_name}):** {self.message} [{self.code}]"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying or trying an alternative approach._")
        return "".join(parts)

    __str__ = render


class ToolException(Exception):
    """Exception wrapping a ToolError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: ToolError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, tool_name: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN_ERROR, *, recoverable: bool = True) -> Self:
        """Create tool exception."""
        return cls(ToolError(tool_name=tool_name, message=message, code=code, recoverable=recoverable))

    @classmethod
    def from_exc(cls, tool_name: str, exc: BaseException, context: str = "") -> Self:
        """Fast path: wrap an arbitrary exception with its classified code."""
        return cls(ToolError.from_exception(tool_name, exc, context))

    @property
    def code(self) -> ErrorCode:
        return self.error.code
