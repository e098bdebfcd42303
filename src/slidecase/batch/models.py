"""Data model for one orchestration run.

Everything here is created per run and discarded with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Self

import orjson
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator

from slidecase.foundation.errors import ErrorCode, JsonDict, ToolError
from slidecase.operations import Extractor


class OnErrorMode(StrEnum):
    STOP = "stop"
    CONTINUE = "continue"
    ROLLBACK = "rollback"

    @property
    def halts(self) -> bool:
        """Whether the first failure closes the run."""
        return self is not OnErrorMode.CONTINUE


# ─────────────────────────────────────────────────────────────────────────────
# Input
# ─────────────────────────────────────────────────────────────────────────────


class OperationSpec(BaseModel):
    """One requested operation as the caller submits it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: str = Field(..., validation_alias=AliasChoices("kind", "tool_name"), description="Operation kind, e.g. add_slide")
    parameters: JsonDict = Field(default_factory=dict, description="Kind-specific parameters")


class BatchUpdateParams(BaseModel):
    """Request for a batch run. Request-level checks happen in the orchestrator."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "presentation_id": "1AbCdEf",
                "operations": [
                    {"kind": "add_slide", "parameters": {"layout": "TITLE_AND_BODY"}},
                    {"kind": "modify_text", "parameters": {"object_id": "title_1", "text": "Q3 Review"}},
                ],
                "on_error": "stop",
            }],
        },
    )

    presentation_id: str = Field(default="", description="Target presentation id")
    operations: list[OperationSpec] = Field(default_factory=list, description="Operations in execution order")
    on_error: str | None = Field(default=None, description="stop | continue | rollback (default from settings)")


class LogicalOperation(BaseModel):
    """Immutable operation with its position in the caller's list."""

    model_config = ConfigDict(frozen=True)

    index: Annotated[int, Field(ge=0)]
    kind: str
    parameters: JsonDict = Field(default_factory=dict)

    @property
    def source(self) -> str:
        """Name errors for this operation are attributed to. A blank kind falls back to the batch tool."""
        return self.kind.strip() or "batch_update"


# ─────────────────────────────────────────────────────────────────────────────
# Classification
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CompiledOperation:
    index: int
    kind: str
    requests: list[JsonDict]
    extractor: Extractor = field(repr=False)


@dataclass(slots=True)
class ClassificationOutcome:
    """Disjoint partition of the run's index space."""

    batchable: list[CompiledOperation] = field(default_factory=list)
    non_batchable: list[int] = field(default_factory=list)
    invalid: dict[int, ToolError] = field(default_factory=dict)

    @property
    def request_count(self) -> int:
        return sum(len(op.requests) for op in self.batchable)


# ─────────────────────────────────────────────────────────────────────────────
# Output
# ─────────────────────────────────────────────────────────────────────────────


class OperationResult(BaseModel):
    """Outcome of one logical operation. Exactly one of result/error is set."""

    model_config = ConfigDict(frozen=True)

    index: int
    kind: str
    success: bool
    result: JsonDict | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    @model_validator(mode="after")
    def _one_of(self) -> Self:
        if self.success != (self.result is not None) or self.success == (self.error is not None):
            raise ValueError("exactly one of result or error must be set, matching success")
        return self

    @classmethod
    def ok(cls, index: int, kind: str, result: JsonDict) -> Self:
        return cls(index=index, kind=kind, success=True, result=result)

    @classmethod
    def failed(cls, index: int, kind: str, error: ToolError) -> Self:
        return cls(index=index, kind=kind, success=False, error=error.message, error_code=error.code)


class ExecutionReport(BaseModel):
    """Ordered per-operation outcomes plus run-level accounting."""

    presentation_id: str
    total_operations: int
    success_count: int
    failure_count: int
    results: list[OperationResult]
    stopped_at_index: int | None = None
    rolled_back: bool = False
    rollback_error: str | None = None
    api_call_count: int = 0
    batch_optimized: bool = False
    cancelled: bool = False

    @computed_field
    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.error_code == ErrorCode.SKIPPED)

    def to_dict(self) -> JsonDict:
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2).decode()
