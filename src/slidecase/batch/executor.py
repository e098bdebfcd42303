"""Batch and sequential executors.

At most one remote call is in flight per run. Both executors check the
cooperative cancel token before dispatching and let task cancellation
propagate after logging it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from slidecase.foundation.errors import Err, ErrorCode, Ok, OperationOutcome, ToolError, ToolException
from slidecase.operations import HandlerRegistry, SlidesServices
from slidecase.runtime.observability import get_logger

from .controller import RunState
from .models import CompiledOperation, LogicalOperation

log = get_logger("batch.executor")


def _cancel_requested(cancel: asyncio.Event | None, state: RunState) -> bool:
    if cancel is not None and cancel.is_set():
        state.cancel()
        return True
    return False


class BatchExecutor:
    """Send every batchable operation in one aggregated call.

    Replies are correlated back by running offset: each operation owns
    ``len(op.requests)`` consecutive replies starting where the previous
    operation's end.
    """

    __slots__ = ("_services",)

    def __init__(self, services: SlidesServices) -> None:
        self._services = services

    async def run(
        self,
        presentation_id: str,
        batchable: Sequence[CompiledOperation],
        state: RunState,
        cancel: asyncio.Event | None = None,
    ) -> None:
        if not batchable or state.closed or _cancel_requested(cancel, state):
            return

        requests = [request for op in batchable for request in op.requests]
        log.info("executing aggregated batch", operations=len(batchable), requests=len(requests))
        state.count_call()
        try:
            replies = await self._services.documents.execute_batch(presentation_id, requests)
        except asyncio.CancelledError:
            log.warning("aggregated batch cancelled in flight", operations=len(batchable))
            raise
        except Exception as e:
            detail = e.error.message if isinstance(e, ToolException) else (str(e) or type(e).__name__)
            log.error("aggregated batch failed", error=detail, error_type=type(e).__name__)
            state.fail_batch(
                [(op.index, op.kind) for op in batchable],
                ToolError.create("batch_update", f"batch update failed: {detail}", ErrorCode.BATCH_ERROR),
            )
            return

        state.mark_applied(*(op.index for op in batchable))
        offset = 0
        for op in batchable:
            try:
                payload = op.extractor(replies, offset)
            except Exception as e:
                state.record_failure(op.index, op.kind, ToolError.create(
                    op.kind, f"post-processing failed: {e}", ErrorCode.POST_PROCESS_ERROR, recoverable=False,
                ))
            else:
                state.record_success(op.index, op.kind, payload)
            offset += len(op.requests)


class SequentialExecutor:
    """Run non-batchable operations one at a time, in ascending index order."""

    __slots__ = ("_services", "_handlers")

    def __init__(self, services: SlidesServices, handlers: HandlerRegistry) -> None:
        self._services = services
        self._handlers = handlers

    async def run(
        self,
        presentation_id: str,
        operations: Sequence[LogicalOperation],
        indices: Sequence[int],
        state: RunState,
        cancel: asyncio.Event | None = None,
    ) -> None:
        for index in sorted(indices):
            if state.closed or _cancel_requested(cancel, state):
                return
            if state.resolved(index):
                continue
            op = operations[index]
            if op.kind not in self._handlers:
                state.record_failure(index, op.kind, ToolError.create(
                    op.source, f"'{op.kind}' cannot run outside a batch", ErrorCode.INVALID_OPERATION, recoverable=False,
                ))
                continue

            state.count_call()
            outcome = await self._attempt(presentation_id, op)
            if outcome.is_ok():
                state.record_success(index, op.kind, outcome.unwrap())
                state.mark_applied(index)
            else:
                state.record_failure(index, op.kind, outcome.unwrap_err())

    async def _attempt(self, presentation_id: str, op: LogicalOperation) -> OperationOutcome:
        try:
            payload = await self._handlers.dispatch(
                op.kind, self._services, {**op.parameters, "presentation_id": presentation_id},
            )
        except asyncio.CancelledError:
            log.warning("operation cancelled in flight", index=op.index, kind=op.kind)
            raise
        except Exception as e:
            return Err(ToolError.from_exception(op.source, e))
        return Ok(payload)
