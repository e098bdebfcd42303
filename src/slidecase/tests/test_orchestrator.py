"""End-to-end orchestration against an in-memory Slides API.

Covers the three on-error modes, reply correlation, batch atomicity and the
request-level failures that abort a run before any operation executes.
"""

from __future__ import annotations

import asyncio

import pytest

from slidecase.batch import ATOMIC_BATCH_FAILED, BatchOrchestrator, BatchUpdateParams, ExecutionReport
from slidecase.foundation.config import BatchSettings
from slidecase.foundation.errors import ErrorCode, ToolException
from slidecase.operations import SlidesServices
from slidecase.slides import SlidesAPIError

from .fakes import FakeDocumentService, FakeTranslator, create_slide_replies

IMAGE_URL = "https://example.com/chart.png"


def request(*operations: tuple[str, dict], on_error: str | None = None, presentation_id: str = "pres-1") -> BatchUpdateParams:
    return BatchUpdateParams(
        presentation_id=presentation_id,
        operations=[{"kind": kind, "parameters": params} for kind, params in operations],
        on_error=on_error,
    )


@pytest.fixture
def orchestrator(services: SlidesServices) -> BatchOrchestrator:
    return BatchOrchestrator(services, settings=BatchSettings(default_on_error="stop"))


def codes(report: ExecutionReport) -> list[ErrorCode | None]:
    return [r.error_code for r in report.results]


def assert_consistent(report: ExecutionReport) -> None:
    assert len(report.results) == report.total_operations
    assert [r.index for r in report.results] == list(range(report.total_operations))
    assert report.success_count + report.failure_count == report.total_operations
    for r in report.results:
        assert (r.result is not None) == r.success
        assert (r.error is not None) != r.success


# ═════════════════════════════════════════════════════════════════════════════
# Happy path
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_mixed_run_uses_one_batch_call(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [create_slide_replies]
    report = await orchestrator.run(request(
        ("add_slide", {"layout": "TITLE_AND_BODY"}),
        ("modify_text", {"object_id": "title_a", "text": "Q3 Review"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
    ))

    assert_consistent(report)
    assert report.success_count == 3
    assert report.api_call_count == 2
    assert report.batch_optimized
    assert report.stopped_at_index is None
    assert report.results[0].result == {"slide_id": "new_slide_0", "slide_index": None}
    assert report.results[1].result == {"object_id": "title_a", "updated_text": "Q3 Review", "action": "replace"}

    # Existence check, aggregated call, then add_image's own read and write
    assert len(documents.batch_calls) == 2
    assert [next(iter(r)) for r in documents.batch_calls[0]] == ["createSlide", "deleteText", "insertText"]
    assert next(iter(documents.batch_calls[1][0])) == "createImage"


@pytest.mark.asyncio
async def test_replies_correlate_by_offset(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [[
        {}, {},
        {"createSlide": {"objectId": "slide_x"}},
        {},
        {"createSlide": {"objectId": "slide_y"}},
    ]]
    report = await orchestrator.run(request(
        ("modify_text", {"object_id": "title_a", "text": "x"}),
        ("add_slide", {"layout": "BLANK", "position": 2}),
        ("delete_object", {"object_id": "img_a"}),
        ("add_slide", {"layout": "TITLE"}),
    ))

    assert report.success_count == 4
    assert report.results[1].result == {"slide_id": "slide_x", "slide_index": 2}
    assert report.results[3].result == {"slide_id": "slide_y", "slide_index": None}
    assert report.api_call_count == 1


@pytest.mark.asyncio
async def test_single_batchable_operation_is_not_optimized(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(("delete_object", {"object_id": "img_a"})))
    assert report.success_count == 1
    assert report.api_call_count == 1
    assert not report.batch_optimized


@pytest.mark.asyncio
async def test_tool_name_alias(orchestrator: BatchOrchestrator) -> None:
    params = BatchUpdateParams.model_validate({
        "presentation_id": "pres-1",
        "operations": [{"tool_name": "delete_object", "parameters": {"object_id": "img_a"}}],
    })
    report = await orchestrator.run(params)
    assert report.results[0].kind == "delete_object"
    assert report.results[0].success


@pytest.mark.asyncio
async def test_slide_index_resolved_standalone(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    report = await orchestrator.run(request(
        ("delete_slide", {"slide_index": 2}),
        ("delete_object", {"object_id": "img_a"}),
    ))
    assert report.success_count == 2
    assert report.results[0].result == {"deleted_slide_id": "slide_b"}
    assert report.api_call_count == 2
    assert not report.batch_optimized
    assert documents.batch_calls[1] == [{"deleteObject": {"objectId": "slide_b"}}]


@pytest.mark.asyncio
async def test_three_new_slides_share_one_call(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [create_slide_replies]
    report = await orchestrator.run(request(
        ("add_slide", {"layout": "BLANK"}),
        ("add_slide", {"layout": "TITLE"}),
        ("add_slide", {"layout": "TITLE_AND_BODY"}),
    ))

    assert report.success_count == 3
    assert report.api_call_count == 1
    assert report.batch_optimized
    assert len(documents.batch_calls) == 1
    assert [next(iter(r)) for r in documents.batch_calls[0]] == ["createSlide"] * 3


@pytest.mark.asyncio
async def test_one_batchable_one_standalone_is_not_optimized(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("set_background", {"scope": "all", "background_type": "solid", "color": "#FFFFFF"}),
    ))

    assert report.success_count == 2
    assert report.api_call_count == 2
    assert not report.batch_optimized


# ═════════════════════════════════════════════════════════════════════════════
# Invalid operations
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["stop", "rollback"])
async def test_invalid_operation_halts_before_any_network_call(
    orchestrator: BatchOrchestrator, documents: FakeDocumentService, mode: str,
) -> None:
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("explode", {}),
        ("modify_text", {"object_id": "title_a", "text": "x"}),
        ("add_slide", {"layout": "NOPE"}),
        on_error=mode))

    assert_consistent(report)
    assert documents.network_calls == 0
    assert report.api_call_count == 0
    assert report.stopped_at_index == 1
    assert codes(report) == [ErrorCode.SKIPPED, ErrorCode.PARSE_ERROR, ErrorCode.SKIPPED, ErrorCode.SKIPPED]
    assert report.results[0].error == "skipped due to failure at index 1"
    assert report.skipped_count == 3
    assert not report.rolled_back
    assert report.rollback_error is None


@pytest.mark.asyncio
async def test_invalid_operations_tolerated_in_continue(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("explode", {}),
        ("modify_text", {"object_id": "title_a", "text": "x"}),
        ("add_slide", {"layout": "NOPE"}),
        on_error="continue"))

    assert codes(report) == [None, ErrorCode.PARSE_ERROR, None, ErrorCode.PARSE_ERROR]
    assert report.success_count == 2
    assert report.stopped_at_index is None
    assert report.api_call_count == 1
    assert len(documents.batch_calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["", "   "])
async def test_blank_kind_fails_only_its_own_operation(orchestrator: BatchOrchestrator, kind: str) -> None:
    report = await orchestrator.run(request(
        (kind, {}),
        ("delete_object", {"object_id": "img_a"}),
        on_error="continue"))

    assert_consistent(report)
    assert codes(report) == [ErrorCode.PARSE_ERROR, None]
    assert report.results[0].kind == kind
    assert report.results[0].error == "operation kind is empty"


@pytest.mark.asyncio
async def test_blank_kind_halts_under_stop(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        (" ", {}),
    ))

    assert codes(report) == [ErrorCode.SKIPPED, ErrorCode.PARSE_ERROR]
    assert report.stopped_at_index == 1
    assert documents.batch_calls == []


# ═════════════════════════════════════════════════════════════════════════════
# Batch failures
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_batch_failure_fails_every_batched_operation(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [SlidesAPIError(400, "Invalid requests[1]: object not found", "INVALID_ARGUMENT")]
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("modify_text", {"object_id": "missing", "text": "x"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
    ))

    assert_consistent(report)
    assert codes(report) == [ErrorCode.BATCH_ERROR, ErrorCode.BATCH_ERROR, ErrorCode.SKIPPED]
    assert report.results[0].error.startswith("batch update failed: ")
    assert report.stopped_at_index == 0
    assert report.api_call_count == 1
    assert not report.rolled_back
    assert len(documents.batch_calls) == 1


@pytest.mark.asyncio
async def test_batch_failure_under_rollback_flags_nothing_applied(
    orchestrator: BatchOrchestrator, documents: FakeDocumentService,
) -> None:
    documents.batch_effects = [SlidesAPIError(500, "backend error")]
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("modify_text", {"object_id": "title_a", "text": "x"}),
        on_error="rollback"))

    assert report.rolled_back
    assert report.rollback_error == ATOMIC_BATCH_FAILED
    assert report.failure_count == 2


@pytest.mark.asyncio
async def test_batch_failure_in_continue_runs_standalone_operations(
    orchestrator: BatchOrchestrator, documents: FakeDocumentService,
) -> None:
    documents.batch_effects = [RuntimeError("connection reset")]
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
        on_error="continue"))

    assert codes(report) == [ErrorCode.BATCH_ERROR, None]
    assert report.api_call_count == 2
    assert not report.batch_optimized
    assert report.stopped_at_index is None


@pytest.mark.asyncio
async def test_malformed_reply_is_post_process_error(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [[{}, {}]]
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("add_slide", {"layout": "BLANK"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
    ))

    # The batch itself succeeded, so the earlier operation stays a success
    assert codes(report) == [None, ErrorCode.POST_PROCESS_ERROR, ErrorCode.SKIPPED]
    assert report.stopped_at_index == 1


# ═════════════════════════════════════════════════════════════════════════════
# Sequential failures
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_standalone_failure_stops_remaining(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    report = await orchestrator.run(request(
        ("add_image", {"slide_id": "no_such_slide", "image_url": IMAGE_URL}),
        ("set_background", {"scope": "all", "background_type": "solid", "color": "#FFFFFF"}),
    ))

    assert codes(report) == [ErrorCode.OBJECT_NOT_FOUND, ErrorCode.SKIPPED]
    assert report.stopped_at_index == 0
    assert report.api_call_count == 1
    assert documents.batch_calls == []


@pytest.mark.asyncio
async def test_standalone_failure_tolerated_in_continue(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(
        ("add_image", {"slide_id": "no_such_slide", "image_url": IMAGE_URL}),
        ("set_background", {"scope": "all", "background_type": "solid", "color": "#FFFFFF"}),
        on_error="continue"))

    assert codes(report) == [ErrorCode.OBJECT_NOT_FOUND, None]
    assert report.results[1].result["affected_slides"] == ["slide_a", "slide_b", "slide_c"]
    assert report.api_call_count == 2


SEQUENTIAL_RUN = (
    ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
    ("add_image", {"slide_id": "no_such_slide", "image_url": IMAGE_URL}),
    ("set_background", {"scope": "all", "background_type": "solid", "color": "#FFFFFF"}),
    ("transform_object", {"object_id": "title_a", "position": {"x": 72, "y": 36}}),
)


@pytest.mark.asyncio
async def test_failure_in_second_of_four_skips_the_rest_under_stop(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(*SEQUENTIAL_RUN, on_error="stop"))

    assert_consistent(report)
    assert codes(report) == [None, ErrorCode.OBJECT_NOT_FOUND, ErrorCode.SKIPPED, ErrorCode.SKIPPED]
    assert report.stopped_at_index == 1
    assert report.skipped_count == 2
    assert report.api_call_count == 2
    assert report.results[2].error == "skipped due to failure at index 1"


@pytest.mark.asyncio
async def test_failure_in_second_of_four_runs_the_rest_under_continue(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(*SEQUENTIAL_RUN, on_error="continue"))

    assert_consistent(report)
    assert codes(report) == [None, ErrorCode.OBJECT_NOT_FOUND, None, None]
    assert report.stopped_at_index is None
    assert report.skipped_count == 0
    assert report.api_call_count == 4


@pytest.mark.asyncio
async def test_translation_without_changes_is_a_successful_no_op(documents: FakeDocumentService) -> None:
    """Text that comes back identical is reported as zero translations, not as a failure."""
    orchestrator = BatchOrchestrator(SlidesServices(documents, FakeTranslator()), settings=BatchSettings())
    report = await orchestrator.run(request(
        ("translate_presentation", {"target_language": "en"}),
        ("delete_object", {"object_id": "img_a"}),
    ))

    assert codes(report) == [None, None]
    assert report.results[0].result["translated_count"] == 0
    assert report.results[0].result["translated_elements"] == []
    # Only the aggregated delete reached the document
    assert documents.batch_calls == [[{"deleteObject": {"objectId": "img_a"}}]]


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"scope": "all", "background_type": "gradient", "color": "#FFFFFF"},
    {"scope": "all", "background_type": "image", "image_base64": "iVBORw0KGgo="},
])
async def test_unsupported_background_sources_are_parse_errors(
    orchestrator: BatchOrchestrator, documents: FakeDocumentService, params: dict,
) -> None:
    report = await orchestrator.run(request(("set_background", params)))
    assert codes(report) == [ErrorCode.PARSE_ERROR]
    assert documents.network_calls == 0


@pytest.mark.asyncio
async def test_inline_image_data_is_rejected(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(
        ("add_image", {"slide_id": "slide_a", "image_base64": "iVBORw0KGgo="}),
    ))
    assert codes(report) == [ErrorCode.PARSE_ERROR]
    assert "image_base64" in report.results[0].error


@pytest.mark.asyncio
async def test_rollback_reports_changes_it_cannot_undo(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("modify_text", {"object_id": "title_a", "text": "x"}),
        ("replace_image", {"object_id": "title_a", "image_url": IMAGE_URL}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
        on_error="rollback"))

    assert codes(report) == [None, None, ErrorCode.INVALID_OPERATION, ErrorCode.SKIPPED]
    assert report.stopped_at_index == 2
    assert not report.rolled_back
    assert report.rollback_error == (
        "operation 2 failed after operations [0, 1] were applied; those changes were not undone"
    )


@pytest.mark.asyncio
async def test_out_of_range_rotation_rejected_while_classifying(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(
        ("transform_object", {"object_id": "title_a", "rotation": 400}),
    ))
    # Rejected while classifying, before any handler runs
    assert codes(report) == [ErrorCode.PARSE_ERROR]


@pytest.mark.asyncio
async def test_transform_runs_standalone(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    report = await orchestrator.run(request(
        ("transform_object", {"object_id": "title_a", "position": {"x": 72, "y": 36}}),
    ))
    result = report.results[0].result
    assert result["position"] == {"x": 72.0, "y": 36.0}
    assert documents.batch_calls[0][0]["updatePageElementTransform"]["applyMode"] == "ABSOLUTE"


# ═════════════════════════════════════════════════════════════════════════════
# Request-level failures
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("presentation_id", ["", "   "])
async def test_missing_presentation_id(orchestrator: BatchOrchestrator, presentation_id: str) -> None:
    with pytest.raises(ToolException) as info:
        await orchestrator.run(request(("delete_object", {"object_id": "a"}), presentation_id=presentation_id))
    assert info.value.code is ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_no_operations(orchestrator: BatchOrchestrator) -> None:
    with pytest.raises(ToolException, match="no operations"):
        await orchestrator.run(request())


@pytest.mark.asyncio
async def test_invalid_on_error_mode(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    with pytest.raises(ToolException) as info:
        await orchestrator.run(request(("delete_object", {"object_id": "a"}), on_error="sometimes"))
    assert info.value.code is ErrorCode.INVALID_PARAMS
    assert documents.network_calls == 0


@pytest.mark.asyncio
async def test_unreachable_presentation(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.get_error = SlidesAPIError(404, "Requested entity was not found.", "NOT_FOUND")
    with pytest.raises(ToolException) as info:
        await orchestrator.run(request(("delete_object", {"object_id": "a"})))
    assert info.value.code is ErrorCode.PRESENTATION_NOT_FOUND
    assert documents.batch_calls == []


@pytest.mark.asyncio
async def test_access_denied(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.get_error = SlidesAPIError(403, "The caller does not have permission", "PERMISSION_DENIED")
    with pytest.raises(ToolException) as info:
        await orchestrator.run(request(("delete_object", {"object_id": "a"})))
    assert info.value.code is ErrorCode.ACCESS_DENIED


@pytest.mark.asyncio
async def test_default_mode_comes_from_settings(services: SlidesServices) -> None:
    orchestrator = BatchOrchestrator(services, settings=BatchSettings(default_on_error="continue"))
    report = await orchestrator.run(request(("explode", {}), ("delete_object", {"object_id": "img_a"})))
    assert codes(report) == [ErrorCode.PARSE_ERROR, None]


# ═════════════════════════════════════════════════════════════════════════════
# Cancellation
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_cancel_before_start(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    cancel = asyncio.Event()
    cancel.set()
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
    ), cancel)

    assert report.cancelled
    assert codes(report) == [ErrorCode.CANCELLED, ErrorCode.CANCELLED]
    assert documents.network_calls == 0
    assert report.skipped_count == 0


@pytest.mark.asyncio
async def test_cancel_between_phases(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    cancel = asyncio.Event()

    def replies_then_cancel(requests: list[dict]) -> list[dict]:
        cancel.set()
        return [{} for _ in requests]

    documents.batch_effects = [replies_then_cancel]
    report = await orchestrator.run(request(
        ("delete_object", {"object_id": "img_a"}),
        ("add_image", {"slide_id": "slide_a", "image_url": IMAGE_URL}),
        ("add_video", {"slide_id": "slide_a", "video_source": "youtube", "video_id": "abc"}),
    ), cancel)

    assert report.cancelled
    assert codes(report) == [None, ErrorCode.CANCELLED, ErrorCode.CANCELLED]
    assert report.api_call_count == 1


@pytest.mark.asyncio
async def test_task_cancellation_propagates(orchestrator: BatchOrchestrator, documents: FakeDocumentService) -> None:
    documents.batch_effects = [asyncio.CancelledError()]
    with pytest.raises(asyncio.CancelledError):
        await orchestrator.run(request(("delete_object", {"object_id": "img_a"})))


# ═════════════════════════════════════════════════════════════════════════════
# Report serialization
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_report_json(orchestrator: BatchOrchestrator) -> None:
    report = await orchestrator.run(request(("explode", {}), ("delete_object", {"object_id": "img_a"})))
    data = report.to_dict()
    assert data["stopped_at_index"] == 0
    assert data["skipped_count"] == 1
    assert "rollback_error" not in data
    assert data["results"][0] == {
        "index": 0, "kind": "explode", "success": False,
        "error": "unknown operation kind 'explode'", "error_code": "PARSE_ERROR",
    }
    assert '"api_call_count": 0' in report.to_json()
