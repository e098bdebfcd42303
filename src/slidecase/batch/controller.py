"""Error-mode controller: per-run bookkeeping shared by both executors.

Under ``stop`` and ``rollback`` the first recorded failure closes the run and
every operation not yet attempted is later marked SKIPPED. Under ``continue``
failures are recorded in place and nothing is skipped. Cooperative
cancellation marks the remainder CANCELLED instead.
"""

from __future__ import annotations

from collections.abc import Sequence

from slidecase.foundation.errors import ErrorCode, JsonDict, ToolError
from slidecase.runtime.observability import get_logger

from .models import LogicalOperation, OnErrorMode, OperationResult

log = get_logger("batch.controller")

ATOMIC_BATCH_FAILED = "atomic batch failed, no changes were applied"


class RunState:
    """Outcomes and run-level flags for one orchestration run."""

    __slots__ = ("mode", "total", "_results", "_applied", "stopped_at_index", "rolled_back",
                 "rollback_error", "api_call_count", "cancelled")

    def __init__(self, mode: OnErrorMode, total: int) -> None:
        self.mode = mode
        self.total = total
        self._results: dict[int, OperationResult] = {}
        self._applied: set[int] = set()
        self.stopped_at_index: int | None = None
        self.rolled_back = False
        self.rollback_error: str | None = None
        self.api_call_count = 0
        self.cancelled = False

    # ─── Queries ─────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        """No further operation may be attempted."""
        return self.cancelled or self.stopped_at_index is not None

    def resolved(self, index: int) -> bool:
        return index in self._results

    def result(self, index: int) -> OperationResult | None:
        return self._results.get(index)

    # ─── Recording ───────────────────────────────────────────────────

    def count_call(self) -> None:
        self.api_call_count += 1

    def mark_applied(self, *indices: int) -> None:
        self._applied.update(indices)

    def record_success(self, index: int, kind: str, payload: JsonDict) -> None:
        self._results[index] = OperationResult.ok(index, kind, payload)

    def record_failure(self, index: int, kind: str, error: ToolError) -> None:
        """Record a failure; under a halting mode the first one closes the run."""
        self._results[index] = OperationResult.failed(index, kind, error)
        log.warning("operation failed", index=index, kind=kind, code=str(error.code), error=error.message)
        if self.mode.halts and not self.closed:
            self.stopped_at_index = index
            if self.mode is OnErrorMode.ROLLBACK:
                self._note_partial_rollback(index)

    def record_invalid(self, invalid: dict[int, ToolError], operations: Sequence[LogicalOperation]) -> None:
        """Record classification failures before any execution.

        Under a halting mode only the lowest invalid index is reported; the
        rest of the run is left for ``finish`` to skip.
        """
        if not invalid:
            return
        if self.mode.halts:
            first = min(invalid)
            self.record_failure(first, operations[first].kind, invalid[first])
            return
        for index in sorted(invalid):
            self.record_failure(index, operations[index].kind, invalid[index])

    def fail_batch(self, indices: Sequence[tuple[int, str]], error: ToolError) -> None:
        """Every operation in the aggregated call failed together."""
        for index, kind in sorted(indices):
            self.record_failure(index, kind, error)
        if self.mode is OnErrorMode.ROLLBACK:
            self.rolled_back = True
            self.rollback_error = ATOMIC_BATCH_FAILED

    def cancel(self) -> None:
        if not self.cancelled:
            log.info("run cancelled", resolved=len(self._results), total=self.total)
        self.cancelled = True

    def finish(self, operations: Sequence[LogicalOperation]) -> None:
        """Give every unresolved operation its SKIPPED or CANCELLED result."""
        code, message = (
            (ErrorCode.CANCELLED, "cancelled before execution") if self.cancelled
            else (ErrorCode.SKIPPED, f"skipped due to failure at index {self.stopped_at_index}")
        )
        for op in operations:
            if op.index not in self._results:
                self._results[op.index] = OperationResult.failed(
                    op.index, op.kind, ToolError.create(op.source, message, code, recoverable=True),
                )

    # ─── Internal ────────────────────────────────────────────────────

    def _note_partial_rollback(self, failed_index: int) -> None:
        """The remote API cannot undo applied requests; say so in the report."""
        applied = sorted(self._applied - {failed_index})
        if applied:
            self.rollback_error = (
                f"operation {failed_index} failed after operations {applied} were applied; "
                "those changes were not undone"
            )
