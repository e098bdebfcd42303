"""Standalone handlers for operations that cannot join the aggregated call.

Each handler reads the current document, builds its own requests and issues
them in one call. Parameter validation failures surface as INVALID_OPERATION;
remote failures propagate for the caller to classify.
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TypeAlias, TypeVar

from pydantic import ValidationError

from slidecase.foundation.errors import ErrorCode, JsonDict, ToolException
from slidecase.runtime.observability import get_logger
from slidecase.slides.client import DocumentService
from slidecase.slides.document import AffineTransform, Page, PageElement, Presentation
from slidecase.slides.translate import Translator
from slidecase.slides.units import element_properties, emu_to_points, generate_object_id, points_to_emu, solid_fill

from .compilers import Compiled, CompilerRegistry, default_compilers
from .kinds import OperationKind
from .params import (
    PARAMS_BY_KIND,
    AddImageParams,
    AddVideoParams,
    OperationParams,
    ReplaceImageParams,
    SetBackgroundParams,
    SlideRefParams,
    TransformObjectParams,
    TranslatePresentationParams,
    format_validation_error,
)

log = get_logger("operations.handlers")

P = TypeVar("P", bound=OperationParams)


@dataclass(slots=True)
class SlidesServices:
    """Remote capabilities handed to every standalone handler."""

    documents: DocumentService
    translator: Translator | None = None


Handler: TypeAlias = Callable[[SlidesServices, JsonDict], Awaitable[JsonDict]]


class HandlerRegistry:
    """Lookup from OperationKind to standalone handler."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: Mapping[OperationKind, Handler] | None = None) -> None:
        self._handlers: dict[OperationKind, Handler] = dict(handlers or {})

    def register(self, kind: OperationKind, handler: Handler) -> None:
        self._handlers[kind] = handler

    def get(self, kind: str) -> Handler | None:
        op_kind = OperationKind.parse(kind)
        return self._handlers.get(op_kind) if op_kind else None

    def __contains__(self, kind: object) -> bool:
        return isinstance(kind, str) and self.get(kind) is not None

    def kinds(self) -> frozenset[OperationKind]:
        return frozenset(self._handlers)

    async def dispatch(self, kind: str, services: SlidesServices, params: JsonDict) -> JsonDict:
        if (handler := self.get(kind)) is None:
            raise ToolException.create(kind, f"no standalone handler for '{kind}'", ErrorCode.INVALID_OPERATION,
                                       recoverable=False)
        return await handler(services, params)


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _parse(model: type[P], kind: OperationKind, raw: JsonDict) -> P:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ToolException.create(kind, format_validation_error(e), ErrorCode.INVALID_OPERATION,
                                   recoverable=False) from e


def _not_found(kind: OperationKind, message: str) -> ToolException:
    return ToolException.create(kind, message, ErrorCode.OBJECT_NOT_FOUND, recoverable=False)


def resolve_slide(deck: Presentation, kind: OperationKind, slide_index: int | None, slide_id: str | None) -> Page:
    """Find a slide by id, falling back to 1-based position."""
    if slide_id:
        if (slide := deck.slide_by_id(slide_id)) is None:
            raise _not_found(kind, f"slide '{slide_id}' not found")
        return slide
    if slide_index is None or (slide := deck.slide_at(slide_index)) is None:
        raise _not_found(kind, f"slide at index {slide_index} not found (presentation has {len(deck.slides)} slides)")
    return slide


def _find_element(deck: Presentation, kind: OperationKind, object_id: str) -> tuple[Page, PageElement]:
    if (found := deck.find_element(object_id)) is None:
        raise _not_found(kind, f"object '{object_id}' not found in presentation")
    slide, element, _ = found
    return slide, element


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════


async def add_image(services: SlidesServices, raw: JsonDict) -> JsonDict:
    p = _parse(AddImageParams, OperationKind.ADD_IMAGE, raw)
    deck = await services.documents.get_presentation(p.presentation_id)
    slide = resolve_slide(deck, OperationKind.ADD_IMAGE, p.slide_index, p.slide_id)

    object_id = generate_object_id("image")
    pos = p.position
    props = element_properties(
        slide.object_id, x=pos.x if pos else 0.0, y=pos.y if pos else 0.0,
        width=p.size.width if p.size else None, height=p.size.height if p.size else None,
    )
    await services.documents.execute_batch(p.presentation_id, [
        {"createImage": {"objectId": object_id, "url": p.image_url, "elementProperties": props}},
    ])
    return {"object_id": object_id, "slide_id": slide.object_id}


async def add_video(services: SlidesServices, raw: JsonDict) -> JsonDict:
    p = _parse(AddVideoParams, OperationKind.ADD_VIDEO, raw)
    deck = await services.documents.get_presentation(p.presentation_id)
    slide = resolve_slide(deck, OperationKind.ADD_VIDEO, p.slide_index, p.slide_id)

    object_id = generate_object_id("video")
    pos = p.position
    props = element_properties(
        slide.object_id, x=pos.x if pos else 0.0, y=pos.y if pos else 0.0,
        width=p.size.width if p.size else None, height=p.size.height if p.size else None,
    )
    requests: list[JsonDict] = [{"createVideo": {
        "objectId": object_id, "source": p.video_source.upper(), "id": p.video_id, "elementProperties": props,
    }}]

    video_props: JsonDict = {}
    if p.start_time is not None:
        video_props["start"] = int(p.start_time * 1000)
    if p.end_time is not None:
        video_props["end"] = int(p.end_time * 1000)
    if p.autoplay:
        video_props["autoPlay"] = True
    if p.mute:
        video_props["mute"] = True
    if video_props:
        requests.append({"updateVideoProperties": {
            "objectId": object_id, "videoProperties": video_props, "fields": ",".join(video_props),
        }})

    await services.documents.execute_batch(p.presentation_id, requests)
    return {"object_id": object_id, "slide_id": slide.object_id}


async def replace_image(services: SlidesServices, raw: JsonDict) -> JsonDict:
    p = _parse(ReplaceImageParams, OperationKind.REPLACE_IMAGE, raw)
    deck = await services.documents.get_presentation(p.presentation_id)
    slide, element = _find_element(deck, OperationKind.REPLACE_IMAGE, p.object_id)
    if element.image is None:
        raise ToolException.create(OperationKind.REPLACE_IMAGE,
                                   f"object '{p.object_id}' is not an image (type: {element.kind})",
                                   ErrorCode.INVALID_OPERATION, recoverable=False)

    new_id = generate_object_id("image")
    props: JsonDict = {"pageObjectId": slide.object_id}
    if element.transform is not None:
        props["transform"] = element.transform.model_dump(by_alias=True)
    if p.preserve_size and element.size is not None:
        props["size"] = element.size.model_dump(by_alias=True, exclude_none=True)

    await services.documents.execute_batch(p.presentation_id, [
        {"deleteObject": {"objectId": p.object_id}},
        {"createImage": {"objectId": new_id, "url": p.image_url, "elementProperties": props}},
    ])
    return {"object_id": p.object_id, "new_object_id": new_id, "preserved_size": p.preserve_size}


async def set_background(services: SlidesServices, raw: JsonDict) -> JsonDict:
    p = _parse(SetBackgroundParams, OperationKind.SET_BACKGROUND, raw)
    deck = await services.documents.get_presentation(p.presentation_id)
    if p.scope == "all":
        slide_ids = [s.object_id for s in deck.slides]
    else:
        slide_ids = [resolve_slide(deck, OperationKind.SET_BACKGROUND, p.slide_index, p.slide_id).object_id]
    if not slide_ids:
        raise _not_found(OperationKind.SET_BACKGROUND, "presentation has no slides")

    fill: JsonDict = (
        {"solidFill": solid_fill(p.color)} if p.background_type == "solid"
        else {"stretchedPictureFill": {"contentUrl": p.image_url}}
    )
    await services.documents.execute_batch(p.presentation_id, [
        {"updatePageProperties": {
            "objectId": sid, "pageProperties": {"pageBackgroundFill": fill}, "fields": "pageBackgroundFill",
        }}
        for sid in slide_ids
    ])
    return {"background_type": p.background_type, "affected_slides": slide_ids}


def _collect_text(deck: Presentation, p: TranslatePresentationParams) -> list[tuple[int, PageElement]]:
    """(1-based slide index, element) pairs holding non-blank text in scope."""
    collected: list[tuple[int, PageElement]] = []
    for position, slide in enumerate(deck.slides, start=1):
        if p.scope == "slide":
            if p.slide_id and slide.object_id != p.slide_id:
                continue
            if not p.slide_id and position != p.slide_index:
                continue
        for element, _ in slide.walk():
            if p.scope == "object" and element.object_id != p.object_id:
                continue
            if element.text.strip():
                collected.append((position, element))
    return collected


async def translate_presentation(services: SlidesServices, raw: JsonDict) -> JsonDict:
    kind = OperationKind.TRANSLATE_PRESENTATION
    p = _parse(TranslatePresentationParams, kind, raw)
    if services.translator is None:
        raise ToolException.create(kind, "translation service not configured", ErrorCode.TRANSLATE_API_ERROR,
                                   recoverable=False)
    deck = await services.documents.get_presentation(p.presentation_id)
    elements = _collect_text(deck, p)
    if not elements:
        target = {"object": f"object '{p.object_id}'", "slide": "slide"}.get(p.scope, "presentation")
        raise _not_found(kind, f"no text found to translate in {target}")

    batch = await services.translator.translate([e.text for _, e in elements], p.target_language, p.source_language)

    requests: list[JsonDict] = []
    translated: list[JsonDict] = []
    for (position, element), text in zip(elements, batch.texts, strict=True):
        if not text or text == element.text:
            continue
        requests.append({"deleteText": {"objectId": element.object_id, "textRange": {"type": "ALL"}}})
        requests.append({"insertText": {"objectId": element.object_id, "insertionIndex": 0, "text": text}})
        translated.append({
            "slide_index": position, "object_id": element.object_id, "object_type": element.kind,
            "original_text": element.text, "translated_text": text,
        })

    if requests:
        await services.documents.execute_batch(p.presentation_id, requests)
    else:
        log.info("translation left all text unchanged", presentation_id=p.presentation_id)
    return {
        "target_language": p.target_language,
        "source_language": p.source_language or batch.detected_source_language or "auto-detected",
        "translated_count": len(translated),
        "affected_slides": sorted({t["slide_index"] for t in translated}),
        "translated_elements": translated,
    }


def compute_transform(current: AffineTransform, element: PageElement, p: TransformObjectParams) -> tuple[JsonDict, float, float, float]:
    """New absolute transform for ``element``.

    Returns (transform, visual width EMU, visual height EMU, rotation degrees).
    Scale is decomposed from the current matrix so rotation and resize compose.
    """
    tx, ty = current.translate_x, current.translate_y
    sx = math.hypot(current.scale_x, current.shear_y)
    sy = math.hypot(current.scale_y, current.shear_x)
    angle = math.atan2(current.shear_y, current.scale_x)

    if p.position is not None:
        tx, ty = points_to_emu(p.position.x), points_to_emu(p.position.y)
    if p.rotation is not None:
        angle = math.radians(p.rotation)

    size = element.size
    base_w = size.width.emu if size and size.width else None
    base_h = size.height.emu if size and size.height else None
    if p.size is not None and (p.size.width is not None or p.size.height is not None):
        if not base_w or not base_h:
            raise ToolException.create(OperationKind.TRANSFORM_OBJECT, "cannot resize object with unknown base size",
                                       ErrorCode.INVALID_OPERATION, recoverable=False)
        old_sx, old_sy = sx, sy
        if p.size.width is not None:
            sx = points_to_emu(p.size.width) / base_w
        if p.size.height is not None:
            sy = points_to_emu(p.size.height) / base_h
        if p.scale_proportionally:
            if p.size.height is None:
                sy = old_sy * (sx / old_sx) if old_sx else sx
            elif p.size.width is None:
                sx = old_sx * (sy / old_sy) if old_sy else sy

    cos_a, sin_a = math.cos(angle), math.sin(angle)
    transform = {
        "scaleX": sx * cos_a,
        "shearY": sx * sin_a,
        "shearX": -sy * sin_a,
        "scaleY": sy * cos_a,
        "translateX": tx,
        "translateY": ty,
        "unit": "EMU",
    }
    return transform, (base_w or 0.0) * sx, (base_h or 0.0) * sy, math.degrees(angle)


async def transform_object(services: SlidesServices, raw: JsonDict) -> JsonDict:
    p = _parse(TransformObjectParams, OperationKind.TRANSFORM_OBJECT, raw)
    deck = await services.documents.get_presentation(p.presentation_id)
    _, element = _find_element(deck, OperationKind.TRANSFORM_OBJECT, p.object_id)

    transform, width, height, rotation = compute_transform(element.transform or AffineTransform(), element, p)
    await services.documents.execute_batch(p.presentation_id, [{"updatePageElementTransform": {
        "objectId": p.object_id, "transform": transform, "applyMode": "ABSOLUTE",
    }}])
    return {
        "object_id": p.object_id,
        "position": {"x": emu_to_points(transform["translateX"]), "y": emu_to_points(transform["translateY"])},
        "size": {"width": emu_to_points(width), "height": emu_to_points(height)},
        "rotation": rotation,
    }


def resolve_and_run(kind: OperationKind, compilers: CompilerRegistry | None = None) -> Handler:
    """Handler for compilable kinds that reference a slide by position.

    Resolves the slide id from the current document, then compiles and
    executes the operation on its own.
    """
    registry = compilers or default_compilers()
    model = PARAMS_BY_KIND[kind]

    async def handler(services: SlidesServices, raw: JsonDict) -> JsonDict:
        p = _parse(model, kind, raw)
        if isinstance(p, SlideRefParams) and p.needs_resolution:
            deck = await services.documents.get_presentation(p.presentation_id)
            slide = resolve_slide(deck, kind, p.slide_index, p.slide_id)
            p = p.model_copy(update={"slide_id": slide.object_id})
        outcome = registry.compile_params(kind, p)
        if not isinstance(outcome, Compiled):
            raise ToolException.create(kind, outcome.reason, ErrorCode.INVALID_OPERATION, recoverable=False)
        replies = await services.documents.execute_batch(p.presentation_id, outcome.requests)
        return outcome.extractor(replies, 0)

    return handler


def default_handlers(compilers: CompilerRegistry | None = None) -> HandlerRegistry:
    """Registry with every built-in standalone handler."""
    registry = HandlerRegistry({
        OperationKind.ADD_IMAGE: add_image,
        OperationKind.ADD_VIDEO: add_video,
        OperationKind.REPLACE_IMAGE: replace_image,
        OperationKind.SET_BACKGROUND: set_background,
        OperationKind.TRANSLATE_PRESENTATION: translate_presentation,
        OperationKind.TRANSFORM_OBJECT: transform_object,
    })
    for kind in (OperationKind.ADD_TEXT_BOX, OperationKind.CREATE_SHAPE, OperationKind.DELETE_SLIDE):
        registry.register(kind, resolve_and_run(kind, compilers))
    return registry
