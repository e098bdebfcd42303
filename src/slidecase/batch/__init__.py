"""Batch-operation orchestrator: classify, execute, reconcile."""

from .aggregator import aggregate
from .classifier import classify
from .controller import ATOMIC_BATCH_FAILED, RunState
from .executor import BatchExecutor, SequentialExecutor
from .models import (
    BatchUpdateParams,
    ClassificationOutcome,
    CompiledOperation,
    ExecutionReport,
    LogicalOperation,
    OnErrorMode,
    OperationResult,
    OperationSpec,
)
from .orchestrator import BatchOrchestrator

__all__ = [
    "BatchOrchestrator", "BatchUpdateParams", "OperationSpec", "OnErrorMode",
    "LogicalOperation", "CompiledOperation", "ClassificationOutcome", "OperationResult", "ExecutionReport",
    "classify", "BatchExecutor", "SequentialExecutor", "RunState", "ATOMIC_BATCH_FAILED", "aggregate",
]
