"""Result aggregator: fold a finished run into the ordered report."""

from __future__ import annotations

from collections.abc import Sequence

from .controller import RunState
from .models import ExecutionReport, LogicalOperation, OperationResult


def aggregate(
    presentation_id: str,
    operations: Sequence[LogicalOperation],
    state: RunState,
    batchable_count: int,
) -> ExecutionReport:
    """Build the report. Every operation must already have a result.

    Raises:
        RuntimeError: If an index was left unresolved.
    """
    results: list[OperationResult] = []
    for op in operations:
        if (result := state.result(op.index)) is None:
            raise RuntimeError(f"operation {op.index} finished without a result")
        results.append(result)

    total = len(operations)
    successes = sum(1 for r in results if r.success)
    return ExecutionReport(
        presentation_id=presentation_id,
        total_operations=total,
        success_count=successes,
        failure_count=total - successes,
        results=results,
        stopped_at_index=state.stopped_at_index,
        rolled_back=state.rolled_back,
        rollback_error=state.rollback_error,
        api_call_count=state.api_call_count,
        batch_optimized=batchable_count > 1 and state.api_call_count < total,
        cancelled=state.cancelled,
    )
