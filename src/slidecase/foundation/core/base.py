"""Core tool abstractions: BaseTool and ToolMetadata.

A tool pairs a pydantic parameter model with an async ``_async_run`` that
returns the serialized output. Callers go through ``arun`` (text, failures
rendered) or ``arun_result`` (Ok/Err).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..errors import Err, Ok, Result, ToolError, ToolException


class ToolMetadata(BaseModel):
    """What a tool is called and how it is listed to clients."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    description: str = Field(..., min_length=10)
    category: str = Field(default="general")
    enabled: bool = Field(default=True)


TParams = TypeVar("TParams", bound=BaseModel)

ToolResult = Result[str, ToolError]


class BaseTool(ABC, Generic[TParams]):
    """Abstract base class for all tools.

    Subclasses set ``metadata`` and ``params_schema`` and implement
    ``_async_run``. Raise ``ToolException`` from it for structured failures;
    any other exception is classified by ``ToolError.from_exception``.

    Example:
        >>> class EchoTool(BaseTool[EchoParams]):
        ...     metadata = ToolMetadata(name="echo", description="Echo text back to the caller")
        ...     params_schema = EchoParams
        ...
        ...     async def _async_run(self, params: EchoParams) -> str:
        ...         return params.text
    """

    metadata: ClassVar[ToolMetadata]
    params_schema: ClassVar[type[BaseModel]]

    @abstractmethod
    async def _async_run(self, params: TParams) -> str: ...

    async def arun_result(self, params: TParams) -> ToolResult:
        """Ok(output) or Err(ToolError). Cancellation propagates."""
        try:
            output = await self._async_run(params)
        except ToolException as e:
            return Err(e.error)
        except Exception as e:
            return Err(ToolError.from_exception(self.metadata.name, e, "Execution failed"))
        return Ok(output)

    async def arun(self, params: TParams) -> str:
        result = await self.arun_result(params)
        return result.match(ok=lambda out: out, err=lambda e: e.render())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.metadata.name!r}>"
