"""Request compilers: pure functions from validated parameters to wire requests.

A compiler returns ``Compiled`` (wire requests plus a reply extractor) or
``Unsupported`` when it would need current remote state to write correctly.
``CompilerRegistry.compile`` adds the third outcome, ``Invalid``, for unknown
kinds and malformed parameters.

Example:
    >>> outcome = default_compilers().compile("delete_object", {"object_id": "shape_1"})
    >>> match outcome:
    ...     case Compiled(requests=reqs): len(reqs)
    1
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TypeAlias

from pydantic import ValidationError

from slidecase.foundation.errors import JsonDict
from slidecase.slides.units import element_properties, generate_object_id, is_transparent, parse_hex_color, solid_fill

from .kinds import OperationKind
from .params import (
    PARAMS_BY_KIND,
    AddSlideParams,
    AddTextBoxParams,
    ChangeZOrderParams,
    CreateBulletListParams,
    CreateNumberedListParams,
    CreateShapeParams,
    DeleteObjectParams,
    DeleteSlideParams,
    ModifyTextParams,
    OperationParams,
    RichTextStyle,
    StyleTextParams,
    TextBoxStyle,
    TransformObjectParams,
    format_validation_error,
)

# (replies, start_offset) -> result payload; raises on malformed replies
Extractor: TypeAlias = Callable[[list[JsonDict], int], JsonDict]

BULLET_PRESETS: dict[str, str] = {
    "DISC": "BULLET_DISC_CIRCLE_SQUARE",
    "CIRCLE": "BULLET_DISC_CIRCLE_SQUARE",
    "SQUARE": "BULLET_DISC_CIRCLE_SQUARE",
    "DIAMOND": "BULLET_DIAMOND_CIRCLE_SQUARE",
    "ARROW": "BULLET_ARROW_DIAMOND_DISC",
    "STAR": "BULLET_STAR_CIRCLE_SQUARE",
    "CHECKBOX": "BULLET_CHECKBOX",
    **{p: p for p in (
        "BULLET_DISC_CIRCLE_SQUARE", "BULLET_DIAMONDX_ARROW3D_SQUARE", "BULLET_CHECKBOX",
        "BULLET_ARROW_DIAMOND_DISC", "BULLET_STAR_CIRCLE_SQUARE", "BULLET_ARROW3D_CIRCLE_SQUARE",
        "BULLET_LEFTTRIANGLE_DIAMOND_DISC", "BULLET_DIAMONDX_HOLLOWDIAMOND_SQUARE",
        "BULLET_DIAMOND_CIRCLE_SQUARE",
    )},
}
DEFAULT_BULLET_PRESET = "BULLET_DISC_CIRCLE_SQUARE"

NUMBER_PRESETS: dict[str, str] = {
    "DECIMAL": "NUMBERED_DECIMAL_ALPHA_ROMAN",
    "ALPHA_UPPER": "NUMBERED_UPPERALPHA_ALPHA_ROMAN",
    "ALPHA_LOWER": "NUMBERED_ALPHA_ALPHA_ROMAN",
    "ROMAN_UPPER": "NUMBERED_UPPERROMAN_UPPERALPHA_DECIMAL",
    "ROMAN_LOWER": "NUMBERED_ROMAN_UPPERALPHA_DECIMAL",
    **{p: p for p in (
        "NUMBERED_DECIMAL_ALPHA_ROMAN", "NUMBERED_DECIMAL_ALPHA_ROMAN_PARENS", "NUMBERED_DECIMAL_NESTED",
        "NUMBERED_UPPERALPHA_ALPHA_ROMAN", "NUMBERED_UPPERROMAN_UPPERALPHA_DECIMAL", "NUMBERED_ZERODECIMAL_ALPHA_ROMAN",
        "NUMBERED_ALPHA_ALPHA_ROMAN", "NUMBERED_ROMAN_UPPERALPHA_DECIMAL",
    )},
}
DEFAULT_NUMBER_PRESET = "NUMBERED_DECIMAL_ALPHA_ROMAN"


# ═══════════════════════════════════════════════════════════════════════════════
# Compile Outcomes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Compiled:
    """Wire requests plus the extractor that reads this operation's replies."""

    requests: list[JsonDict]
    extractor: Extractor = field(repr=False)


@dataclass(frozen=True, slots=True)
class Unsupported:
    """Cannot be expressed as wire requests; run standalone instead."""

    reason: str


@dataclass(frozen=True, slots=True)
class Invalid:
    """Malformed operation; fails on every path."""

    message: str


CompileOutcome: TypeAlias = Compiled | Unsupported | Invalid
Compiler: TypeAlias = Callable[[OperationParams], Compiled | Unsupported]


def _fixed(payload: JsonDict) -> Extractor:
    """Extractor for operations whose result does not depend on replies."""
    return lambda replies, offset: dict(payload)


# ═══════════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════════


class CompilerRegistry:
    """Lookup from OperationKind to compiler. Read-only once populated."""

    __slots__ = ("_compilers",)

    def __init__(self, compilers: Mapping[OperationKind, Compiler] | None = None) -> None:
        self._compilers: dict[OperationKind, Compiler] = dict(compilers or {})

    def register(self, kind: OperationKind) -> Callable[[Compiler], Compiler]:
        def decorator(fn: Compiler) -> Compiler:
            self._compilers[kind] = fn
            return fn
        return decorator

    def __contains__(self, kind: object) -> bool:
        return kind in self._compilers

    def kinds(self) -> frozenset[OperationKind]:
        return frozenset(self._compilers)

    def compile(self, kind: str, parameters: Mapping[str, object]) -> CompileOutcome:
        """Compile one logical operation. Never raises."""
        if not kind.strip():
            return Invalid("operation kind is empty")
        op_kind = OperationKind.parse(kind)
        if op_kind is None:
            return Invalid(f"unknown operation kind '{kind}'")
        try:
            params = PARAMS_BY_KIND[op_kind].model_validate(dict(parameters))
        except ValidationError as e:
            return Invalid(format_validation_error(e))
        if (compiler := self._compilers.get(op_kind)) is None:
            return Unsupported(f"'{op_kind}' has no batch compiler")
        try:
            return compiler(params)
        except ValueError as e:
            return Invalid(str(e) or f"invalid {op_kind} parameters")

    def compile_params(self, kind: OperationKind, params: OperationParams) -> Compiled | Unsupported:
        """Compile already-validated parameters, for standalone handlers."""
        if (compiler := self._compilers.get(kind)) is None:
            return Unsupported(f"'{kind}' has no batch compiler")
        return compiler(params)


# ═══════════════════════════════════════════════════════════════════════════════
# Request Builders
# ═══════════════════════════════════════════════════════════════════════════════


def _text_range(start: int | None = None, end: int | None = None) -> JsonDict:
    if start is not None and end is not None:
        return {"type": "FIXED_RANGE", "startIndex": start, "endIndex": end}
    return {"type": "ALL"}


def _text_box_style(style: TextBoxStyle) -> tuple[JsonDict, list[str]]:
    text_style: JsonDict = {}
    fields: list[str] = []
    if style.font_family:
        text_style["fontFamily"] = style.font_family
        fields.append("fontFamily")
    if style.font_size:
        text_style["fontSize"] = {"magnitude": style.font_size, "unit": "PT"}
        fields.append("fontSize")
    if style.bold:
        text_style["bold"] = True
        fields.append("bold")
    if style.italic:
        text_style["italic"] = True
        fields.append("italic")
    if style.color:
        text_style["foregroundColor"] = {"opaqueColor": {"rgbColor": parse_hex_color(style.color)}}
        fields.append("foregroundColor")
    return text_style, fields


def _rich_text_style(style: RichTextStyle) -> tuple[JsonDict, list[str]]:
    text_style: JsonDict = {}
    fields: list[str] = []
    if style.font_family:
        text_style["fontFamily"] = style.font_family
        fields.append("fontFamily")
    if style.font_size:
        text_style["fontSize"] = {"magnitude": style.font_size, "unit": "PT"}
        fields.append("fontSize")
    for name in ("bold", "italic", "underline", "strikethrough"):
        if (flag := getattr(style, name)) is not None:
            text_style[name] = flag
            fields.append(name)
    if style.foreground_color:
        text_style["foregroundColor"] = {"opaqueColor": {"rgbColor": parse_hex_color(style.foreground_color)}}
        fields.append("foregroundColor")
    if style.background_color:
        text_style["backgroundColor"] = {"opaqueColor": {"rgbColor": parse_hex_color(style.background_color)}}
        fields.append("backgroundColor")
    if style.link_url:
        text_style["link"] = {"url": style.link_url}
        fields.append("link")
    return text_style, fields


def update_text_style(object_id: str, style: JsonDict, fields: list[str],
                      start: int | None = None, end: int | None = None) -> JsonDict:
    return {"updateTextStyle": {
        "objectId": object_id,
        "style": style,
        "fields": ",".join(fields),
        "textRange": _text_range(start, end),
    }}


def _shape_properties(p: CreateShapeParams, object_id: str) -> JsonDict | None:
    props: JsonDict = {}
    fields: list[str] = []
    if p.fill_color:
        props["shapeBackgroundFill"] = (
            {"propertyState": "NOT_RENDERED"} if is_transparent(p.fill_color)
            else {"propertyState": "RENDERED", "solidFill": solid_fill(p.fill_color)}
        )
        fields.append("shapeBackgroundFill")
    if p.outline_color:
        if is_transparent(p.outline_color):
            props["outline"] = {"propertyState": "NOT_RENDERED"}
        else:
            props["outline"] = {"propertyState": "RENDERED", "outlineFill": {"solidFill": solid_fill(p.outline_color)}}
            if p.outline_weight is not None:
                props["outline"]["weight"] = {"magnitude": p.outline_weight, "unit": "PT"}
        fields.append("outline")
    elif p.outline_weight is not None:
        props["outline"] = {"weight": {"magnitude": p.outline_weight, "unit": "PT"}}
        fields.append("outline.weight")
    if not fields:
        return None
    return {"updateShapeProperties": {"objectId": object_id, "shapeProperties": props, "fields": ",".join(fields)}}


# ═══════════════════════════════════════════════════════════════════════════════
# Compilers
# ═══════════════════════════════════════════════════════════════════════════════


def compile_add_slide(p: AddSlideParams) -> Compiled:
    request: JsonDict = {"slideLayoutReference": {"predefinedLayout": p.layout}}
    if p.position is not None:
        request["insertionIndex"] = p.position - 1

    def extract(replies: list[JsonDict], offset: int) -> JsonDict:
        try:
            slide_id = replies[offset]["createSlide"]["objectId"]
        except (IndexError, KeyError, TypeError) as e:
            raise ValueError(f"missing createSlide reply at offset {offset}") from e
        return {"slide_id": slide_id, "slide_index": p.position}

    return Compiled([{"createSlide": request}], extract)


def compile_delete_slide(p: DeleteSlideParams) -> Compiled | Unsupported:
    if p.needs_resolution:
        return Unsupported("slide referenced by position needs the current slide order")
    return Compiled([{"deleteObject": {"objectId": p.slide_id}}], _fixed({"deleted_slide_id": p.slide_id}))


def compile_add_text_box(p: AddTextBoxParams) -> Compiled | Unsupported:
    if p.needs_resolution:
        return Unsupported("slide referenced by position needs the current slide order")
    object_id = generate_object_id("textbox")
    pos = p.position
    requests: list[JsonDict] = [
        {"createShape": {
            "objectId": object_id,
            "shapeType": "TEXT_BOX",
            "elementProperties": element_properties(
                p.slide_id, x=pos.x if pos else 0.0, y=pos.y if pos else 0.0,
                width=p.size.width, height=p.size.height,
            ),
        }},
        {"insertText": {"objectId": object_id, "text": p.text}},
    ]
    if p.style is not None:
        style, fields = _text_box_style(p.style)
        if fields:
            requests.append(update_text_style(object_id, style, fields))
    return Compiled(requests, _fixed({"object_id": object_id}))


def compile_modify_text(p: ModifyTextParams) -> Compiled:
    delete_all = {"deleteText": {"objectId": p.object_id, "textRange": {"type": "ALL"}}}
    insert_at_start = {"insertText": {"objectId": p.object_id, "text": p.text, "insertionIndex": 0}}
    requests = {
        "replace": [delete_all, insert_at_start],
        "append": [{"insertText": {"objectId": p.object_id, "text": p.text}}],
        "prepend": [insert_at_start],
        "delete": [delete_all],
    }[p.action]
    return Compiled(requests, _fixed({"object_id": p.object_id, "updated_text": p.text, "action": p.action}))


def compile_delete_object(p: DeleteObjectParams) -> Compiled:
    ids = p.object_ids
    return Compiled(
        [{"deleteObject": {"objectId": i}} for i in ids],
        _fixed({"deleted_count": len(ids), "deleted_ids": ids}),
    )


def compile_create_shape(p: CreateShapeParams) -> Compiled | Unsupported:
    if p.needs_resolution:
        return Unsupported("slide referenced by position needs the current slide order")
    object_id = generate_object_id("shape")
    pos = p.position
    requests: list[JsonDict] = [{"createShape": {
        "objectId": object_id,
        "shapeType": p.shape_type,
        "elementProperties": element_properties(
            p.slide_id, x=pos.x if pos else 0.0, y=pos.y if pos else 0.0,
            width=p.size.width, height=p.size.height,
        ),
    }}]
    if (styling := _shape_properties(p, object_id)) is not None:
        requests.append(styling)
    return Compiled(requests, _fixed({"object_id": object_id}))


def compile_transform_object(p: TransformObjectParams) -> Unsupported:
    return Unsupported("transform is computed from the object's current transform")


def compile_style_text(p: StyleTextParams) -> Compiled:
    style, fields = _rich_text_style(p.style)
    if not fields:
        raise ValueError("no valid style properties provided")
    return Compiled(
        [update_text_style(p.object_id, style, fields, p.start_index, p.end_index)],
        _fixed({"object_id": p.object_id, "applied_styles": fields}),
    )


def _paragraph_bullets(object_id: str, preset: str) -> JsonDict:
    return {"createParagraphBullets": {"objectId": object_id, "bulletPreset": preset, "textRange": {"type": "ALL"}}}


def compile_create_bullet_list(p: CreateBulletListParams) -> Compiled:
    preset = BULLET_PRESETS.get(p.bullet_style, DEFAULT_BULLET_PRESET)
    return Compiled([_paragraph_bullets(p.object_id, preset)], _fixed({"object_id": p.object_id, "bullet_preset": preset}))


def compile_create_numbered_list(p: CreateNumberedListParams) -> Compiled:
    preset = NUMBER_PRESETS.get(p.number_style, DEFAULT_NUMBER_PRESET)
    return Compiled([_paragraph_bullets(p.object_id, preset)], _fixed({"object_id": p.object_id, "number_preset": preset}))


def compile_change_z_order(p: ChangeZOrderParams) -> Compiled:
    return Compiled(
        [{"updatePageElementsZOrder": {"pageElementObjectIds": [p.object_id], "operation": p.action}}],
        _fixed({"object_id": p.object_id, "action": p.action.lower()}),
    )


@lru_cache(maxsize=1)
def default_compilers() -> CompilerRegistry:
    """Registry with every built-in compiler."""
    return CompilerRegistry({
        OperationKind.ADD_SLIDE: compile_add_slide,
        OperationKind.DELETE_SLIDE: compile_delete_slide,
        OperationKind.ADD_TEXT_BOX: compile_add_text_box,
        OperationKind.MODIFY_TEXT: compile_modify_text,
        OperationKind.DELETE_OBJECT: compile_delete_object,
        OperationKind.CREATE_SHAPE: compile_create_shape,
        OperationKind.TRANSFORM_OBJECT: compile_transform_object,
        OperationKind.STYLE_TEXT: compile_style_text,
        OperationKind.CREATE_BULLET_LIST: compile_create_bullet_list,
        OperationKind.CREATE_NUMBERED_LIST: compile_create_numbered_list,
        OperationKind.CHANGE_Z_ORDER: compile_change_z_order,
    })
