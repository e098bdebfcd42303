"""Type aliases shared by errors, results and wire payloads."""

from __future__ import annotations

from typing import Any, TypeAlias, Union

from .errors import ToolError
from .result import Result

# JSON type aliases - using Any for recursive types to avoid Pydantic resolution issues
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

# Outcome of one logical operation: result payload or structured error
OperationOutcome: TypeAlias = Result[JsonDict, ToolError]
