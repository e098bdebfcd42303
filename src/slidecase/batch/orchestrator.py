"""Batch-operation orchestrator.

Flow for one run:

1. Validate the request (presentation id, operations, on-error mode).
2. Classify every operation. No network activity.
3. Record invalid operations; under stop/rollback the first one ends the run.
4. Verify the presentation is reachable.
5. Send all batchable operations in one aggregated call.
6. Run the remaining operations one by one.
7. Skip (or cancel) whatever was not attempted and aggregate the report.

Example:
    >>> orchestrator = BatchOrchestrator(SlidesServices(documents=SlidesClient()))
    >>> report = await orchestrator.run(BatchUpdateParams(
    ...     presentation_id="1AbC",
    ...     operations=[{"kind": "delete_object", "parameters": {"object_id": "shape_1"}}],
    ... ))
    >>> report.success_count
    1
"""

from __future__ import annotations

import asyncio

from slidecase.foundation.config import BatchSettings, get_settings
from slidecase.foundation.errors import ErrorCode, ToolException
from slidecase.operations import CompilerRegistry, HandlerRegistry, SlidesServices, default_compilers, default_handlers
from slidecase.runtime.observability import get_logger, log_context

from .aggregator import aggregate
from .classifier import classify
from .controller import RunState
from .executor import BatchExecutor, SequentialExecutor
from .models import BatchUpdateParams, ExecutionReport, LogicalOperation, OnErrorMode

log = get_logger("batch.orchestrator")

TOOL_NAME = "batch_update"


class BatchOrchestrator:
    """Runs heterogeneous operation lists against one presentation.

    Holds only the read-only compiler and handler registries between runs.
    """

    __slots__ = ("_services", "_compilers", "_handlers", "_settings")

    def __init__(
        self,
        services: SlidesServices,
        *,
        compilers: CompilerRegistry | None = None,
        handlers: HandlerRegistry | None = None,
        settings: BatchSettings | None = None,
    ) -> None:
        self._services = services
        self._compilers = compilers or default_compilers()
        self._handlers = handlers or default_handlers(self._compilers)
        self._settings = settings

    def _resolve_mode(self, raw: str | None) -> OnErrorMode:
        value = raw or (self._settings or get_settings().batch).default_on_error
        try:
            return OnErrorMode(value.strip().lower())
        except ValueError:
            raise ToolException.create(
                TOOL_NAME, f"invalid on_error '{value}': must be 'stop', 'continue', or 'rollback'",
                ErrorCode.INVALID_PARAMS, recoverable=False,
            ) from None

    def _validate(self, params: BatchUpdateParams) -> OnErrorMode:
        if not params.presentation_id.strip():
            raise ToolException.create(TOOL_NAME, "presentation_id is required", ErrorCode.INVALID_PARAMS,
                                       recoverable=False)
        if not params.operations:
            raise ToolException.create(TOOL_NAME, "no operations provided", ErrorCode.INVALID_PARAMS,
                                       recoverable=False)
        return self._resolve_mode(params.on_error)

    async def _verify_presentation(self, presentation_id: str) -> None:
        try:
            await self._services.documents.get_presentation(presentation_id)
        except ToolException:
            raise
        except asyncio.CancelledError:
            log.warning("presentation check cancelled")
            raise
        except Exception as e:
            raise ToolException.from_exc(TOOL_NAME, e, "could not load presentation") from e

    async def run(self, params: BatchUpdateParams, cancel: asyncio.Event | None = None) -> ExecutionReport:
        """Execute one batch run.

        Operation-level failures are reported in the result, never raised.

        Raises:
            ToolException: For request-level problems, before any operation runs.
        """
        mode = self._validate(params)
        presentation_id = params.presentation_id.strip()
        operations = [
            LogicalOperation(index=i, kind=spec.kind, parameters=spec.parameters)
            for i, spec in enumerate(params.operations)
        ]

        with log_context(presentation_id=presentation_id, on_error=str(mode)):
            log.info("batch run started", operations=len(operations))
            outcome = classify(operations, self._compilers)
            state = RunState(mode, len(operations))
            state.record_invalid(outcome.invalid, operations)

            if cancel is not None and cancel.is_set() and not state.closed:
                state.cancel()
            if not state.closed:
                await self._verify_presentation(presentation_id)
                await BatchExecutor(self._services).run(presentation_id, outcome.batchable, state, cancel)
                await SequentialExecutor(self._services, self._handlers).run(
                    presentation_id, operations, outcome.non_batchable, state, cancel,
                )

            state.finish(operations)
            report = aggregate(presentation_id, operations, state, len(outcome.batchable))
            log.info(
                "batch run finished",
                total=report.total_operations,
                succeeded=report.success_count,
                failed=report.failure_count,
                api_calls=report.api_call_count,
                batch_optimized=report.batch_optimized,
                stopped_at=report.stopped_at_index,
                cancelled=report.cancelled,
            )
            return report
