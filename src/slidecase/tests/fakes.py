"""In-memory fakes for the remote document and translation APIs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from slidecase.slides import Presentation, TranslationBatch

# ─────────────────────────────────────────────────────────────────────────────
# Deck builders
# ─────────────────────────────────────────────────────────────────────────────


def text_shape(object_id: str, text: str, *, shape_type: str = "TEXT_BOX") -> dict[str, Any]:
    return {
        "objectId": object_id,
        "size": {"width": {"magnitude": 3_000_000, "unit": "EMU"}, "height": {"magnitude": 1_000_000, "unit": "EMU"}},
        "transform": {"scaleX": 1, "scaleY": 1, "translateX": 100_000, "translateY": 200_000, "unit": "EMU"},
        "shape": {"shapeType": shape_type, "text": {"textElements": [{"textRun": {"content": text}}]}},
    }


def image_element(object_id: str) -> dict[str, Any]:
    return {
        "objectId": object_id,
        "size": {"width": {"magnitude": 2_000_000, "unit": "EMU"}, "height": {"magnitude": 1_500_000, "unit": "EMU"}},
        "transform": {"scaleX": 1, "scaleY": 1, "translateX": 50_000, "translateY": 60_000, "unit": "EMU"},
        "image": {"contentUrl": "https://example.com/old.png"},
    }


def make_deck(*slides: tuple[str, list[dict[str, Any]]], presentation_id: str = "pres-1") -> Presentation:
    return Presentation.model_validate({
        "presentationId": presentation_id,
        "title": "Quarterly Review",
        "slides": [{"objectId": sid, "pageElements": elements} for sid, elements in slides],
    })


def default_deck() -> Presentation:
    return make_deck(
        ("slide_a", [text_shape("title_a", "Hello world"), image_element("img_a")]),
        ("slide_b", [text_shape("body_b", "Second slide")]),
        ("slide_c", []),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────


class FakeDocumentService:
    """Records every call. Replies default to ``{}`` per request.

    ``batch_effects`` is consumed one entry per execute_batch call: an
    exception to raise, a reply list to return, or a callable building
    replies from the requests.
    """

    def __init__(self, deck: Presentation | None = None) -> None:
        self.deck = deck or default_deck()
        self.get_calls: list[str] = []
        self.batch_calls: list[list[dict[str, Any]]] = []
        self.get_error: BaseException | None = None
        self.batch_effects: list[BaseException | list[dict[str, Any]] | Callable[[list[dict[str, Any]]], list[dict[str, Any]]]] = []

    @property
    def network_calls(self) -> int:
        return len(self.get_calls) + len(self.batch_calls)

    async def get_presentation(self, presentation_id: str) -> Presentation:
        self.get_calls.append(presentation_id)
        if self.get_error is not None:
            raise self.get_error
        return self.deck

    async def execute_batch(self, presentation_id: str, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.batch_calls.append(requests)
        effect = self.batch_effects.pop(0) if self.batch_effects else None
        if isinstance(effect, BaseException):
            raise effect
        if callable(effect):
            return effect(requests)
        if effect is not None:
            return effect
        return [{} for _ in requests]


class FakeTranslator:
    def __init__(self, mapping: dict[str, str] | None = None, *, detected: str | None = "en") -> None:
        self.mapping = mapping or {}
        self.detected = detected
        self.calls: list[tuple[list[str], str, str | None]] = []

    async def translate(self, texts: list[str], target: str, source: str | None = None) -> TranslationBatch:
        self.calls.append((list(texts), target, source))
        return TranslationBatch(texts=[self.mapping.get(t, t) for t in texts], detected_source_language=self.detected)


def create_slide_replies(requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Replies as the API shapes them: createSlide/createShape echo their object ids."""
    replies: list[dict[str, Any]] = []
    for n, request in enumerate(requests):
        if "createSlide" in request:
            replies.append({"createSlide": {"objectId": request["createSlide"].get("objectId", f"new_slide_{n}")}})
        elif "createShape" in request:
            replies.append({"createShape": {"objectId": request["createShape"]["objectId"]}})
        else:
            replies.append({})
    return replies
