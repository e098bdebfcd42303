"""batch_update tool: run many slide edits with as few API calls as possible."""

from __future__ import annotations

import asyncio
from typing import ClassVar

from slidecase.batch import BatchOrchestrator, BatchUpdateParams, ExecutionReport
from slidecase.foundation.core import BaseTool, ToolMetadata
from slidecase.operations import CompilerRegistry, HandlerRegistry, OperationKind, SlidesServices

_KINDS = ", ".join(k.value for k in OperationKind)


class BatchUpdateTool(BaseTool[BatchUpdateParams]):
    """Expose the batch orchestrator as a tool returning a JSON report.

    Example:
        >>> tool = BatchUpdateTool(SlidesServices(documents=SlidesClient()))
        >>> print(await tool.arun(BatchUpdateParams(presentation_id="1AbC", operations=[...])))
    """

    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="batch_update",
        description=(
            "Apply a list of edits to a Google Slides presentation. Compatible edits are sent in a single "
            f"API call, the rest run one by one. Supported kinds: {_KINDS}. "
            "on_error: stop (default), continue, or rollback."
        ),
        category="slides",
    )
    params_schema: ClassVar[type[BatchUpdateParams]] = BatchUpdateParams

    def __init__(
        self,
        services: SlidesServices,
        *,
        compilers: CompilerRegistry | None = None,
        handlers: HandlerRegistry | None = None,
    ) -> None:
        self._orchestrator = BatchOrchestrator(services, compilers=compilers, handlers=handlers)

    async def execute(self, params: BatchUpdateParams, cancel: asyncio.Event | None = None) -> ExecutionReport:
        """Run and return the structured report (raises ToolException on request errors)."""
        return await self._orchestrator.run(params, cancel)

    async def _async_run(self, params: BatchUpdateParams) -> str:
        report = await self._orchestrator.run(params)
        return report.to_json()
