"""Operation classifier: partition a run into batchable, standalone and invalid."""

from __future__ import annotations

from collections.abc import Sequence

from slidecase.foundation.errors import ErrorCode, ToolError
from slidecase.operations import Compiled, CompilerRegistry, Invalid, Unsupported
from slidecase.runtime.observability import get_logger

from .models import ClassificationOutcome, CompiledOperation, LogicalOperation

log = get_logger("batch.classifier")


def classify(operations: Sequence[LogicalOperation], compilers: CompilerRegistry) -> ClassificationOutcome:
    """Run every operation through the compiler registry.

    Pure: no network activity. Each index lands in exactly one bucket.
    A compiled operation with no wire requests runs standalone.
    """
    outcome = ClassificationOutcome()
    for op in operations:
        match compilers.compile(op.kind, op.parameters):
            case Invalid(message=message):
                outcome.invalid[op.index] = ToolError.create(op.source, message, ErrorCode.PARSE_ERROR, recoverable=False)
            case Unsupported():
                outcome.non_batchable.append(op.index)
            case Compiled(requests=requests) if not requests:
                outcome.non_batchable.append(op.index)
            case Compiled(requests=requests, extractor=extractor):
                outcome.batchable.append(CompiledOperation(op.index, op.kind, list(requests), extractor))

    log.debug(
        "classified operations",
        batchable=len(outcome.batchable),
        non_batchable=len(outcome.non_batchable),
        invalid=len(outcome.invalid),
        wire_requests=outcome.request_count,
    )
    return outcome
