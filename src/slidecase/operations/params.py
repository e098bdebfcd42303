"""Validated parameter models, one per operation kind.

Positions and sizes are in points, colours are ``#RRGGBB``. Models forbid
unknown fields so typos surface as validation errors rather than no-ops.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PositiveFloat, ValidationError, field_validator, model_validator

from slidecase.slides.units import is_transparent, parse_hex_color

from .kinds import OperationKind

PREDEFINED_LAYOUTS: frozenset[str] = frozenset({
    "BLANK", "CAPTION_ONLY", "TITLE", "TITLE_AND_BODY", "TITLE_AND_TWO_COLUMNS", "TITLE_ONLY",
    "ONE_COLUMN_TEXT", "MAIN_POINT", "BIG_NUMBER", "SECTION_HEADER", "SECTION_TITLE_AND_DESCRIPTION",
})

Z_ORDER_ACTIONS: frozenset[str] = frozenset({"BRING_TO_FRONT", "SEND_TO_BACK", "BRING_FORWARD", "SEND_BACKWARD"})


def _hex_color(value: str) -> str:
    parse_hex_color(value)
    return value


def _hex_or_transparent(value: str) -> str:
    return value if is_transparent(value) else _hex_color(value)


def _http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return value


HexColor = Annotated[str, AfterValidator(_hex_color)]
FillColor = Annotated[str, AfterValidator(_hex_or_transparent)]
HttpUrlStr = Annotated[str, AfterValidator(_http_url)]
ObjectId = Annotated[str, Field(min_length=1)]


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one line: ``field: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


# ─────────────────────────────────────────────────────────────────────────────
# Shared fragments
# ─────────────────────────────────────────────────────────────────────────────


class OperationParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    # Injected by the orchestrator before standalone dispatch
    presentation_id: str = ""


class Position(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    x: float = 0.0
    y: float = 0.0


class BoxSize(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    width: PositiveFloat
    height: PositiveFloat


class PartialSize(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    width: PositiveFloat | None = None
    height: PositiveFloat | None = None


class SlideRefParams(OperationParams):
    """Targets a slide by id or by 1-based position."""

    slide_index: int | None = Field(default=None, ge=1)
    slide_id: str | None = None

    @model_validator(mode="after")
    def _require_slide_ref(self) -> SlideRefParams:
        if not self.slide_id and self.slide_index is None:
            raise ValueError("either slide_index or slide_id is required")
        return self

    @property
    def needs_resolution(self) -> bool:
        return not self.slide_id


def _lower(v: object) -> object:
    return v.strip().lower() if isinstance(v, str) else v


def _upper(v: object) -> object:
    return v.strip().upper() if isinstance(v, str) else v


# ─────────────────────────────────────────────────────────────────────────────
# Batchable kinds
# ─────────────────────────────────────────────────────────────────────────────


class AddSlideParams(OperationParams):
    layout: str = Field(..., min_length=1, description="Predefined layout name")
    position: int | None = Field(default=None, ge=1, description="1-based insertion position")

    @field_validator("layout", mode="before")
    @classmethod
    def _upper_layout(cls, v: object) -> object:
        return _upper(v)

    @field_validator("layout")
    @classmethod
    def _known_layout(cls, v: str) -> str:
        if v not in PREDEFINED_LAYOUTS:
            raise ValueError(f"unsupported layout '{v}'")
        return v


class DeleteSlideParams(SlideRefParams):
    pass


class TextBoxStyle(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    font_family: str | None = None
    font_size: PositiveFloat | None = None
    bold: bool = False
    italic: bool = False
    color: HexColor | None = None


class AddTextBoxParams(SlideRefParams):
    model_config = ConfigDict(str_strip_whitespace=False)

    text: str = Field(..., min_length=1)
    size: BoxSize
    position: Position | None = None
    style: TextBoxStyle | None = None


class ModifyTextParams(OperationParams):
    model_config = ConfigDict(str_strip_whitespace=False)

    object_id: ObjectId
    action: Literal["replace", "append", "prepend", "delete"] = "replace"
    text: str = ""

    @field_validator("action", mode="before")
    @classmethod
    def _lower_action(cls, v: object) -> object:
        return _lower(v)

    @model_validator(mode="after")
    def _text_required(self) -> ModifyTextParams:
        if self.action != "delete" and not self.text:
            raise ValueError(f"text is required for {self.action} action")
        return self


class DeleteObjectParams(OperationParams):
    object_id: str | None = None
    multiple: list[str] = Field(default_factory=list)

    @property
    def object_ids(self) -> list[str]:
        """Requested ids, de-duplicated in first-seen order."""
        ids = ([self.object_id] if self.object_id else []) + [i for i in self.multiple if i]
        return list(dict.fromkeys(ids))

    @model_validator(mode="after")
    def _require_ids(self) -> DeleteObjectParams:
        if not self.object_ids:
            raise ValueError("no objects to delete: provide object_id or multiple")
        return self


class CreateShapeParams(SlideRefParams):
    shape_type: str = Field(..., min_length=1)
    size: BoxSize
    position: Position | None = None
    fill_color: FillColor | None = None
    outline_color: FillColor | None = None
    outline_weight: PositiveFloat | None = None

    @field_validator("shape_type", mode="before")
    @classmethod
    def _upper_shape(cls, v: object) -> object:
        return _upper(v)


class RichTextStyle(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    font_family: str | None = None
    font_size: PositiveFloat | None = None
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strikethrough: bool | None = None
    foreground_color: HexColor | None = None
    background_color: HexColor | None = None
    link_url: HttpUrlStr | None = None

    @model_validator(mode="after")
    def _any_style(self) -> RichTextStyle:
        if all(v is None for v in self.model_dump().values()):
            raise ValueError("no valid style properties provided")
        return self


class StyleTextParams(OperationParams):
    object_id: ObjectId
    style: RichTextStyle
    start_index: int | None = Field(default=None, ge=0)
    end_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _valid_range(self) -> StyleTextParams:
        if self.start_index is not None and self.end_index is not None and self.end_index <= self.start_index:
            raise ValueError("end_index must be greater than start_index")
        return self


class CreateBulletListParams(OperationParams):
    object_id: ObjectId
    bullet_style: str = Field(default="DISC", min_length=1)

    @field_validator("bullet_style", mode="before")
    @classmethod
    def _upper_style(cls, v: object) -> object:
        return _upper(v)


class CreateNumberedListParams(OperationParams):
    object_id: ObjectId
    number_style: str = Field(default="DECIMAL", min_length=1)

    @field_validator("number_style", mode="before")
    @classmethod
    def _upper_style(cls, v: object) -> object:
        return _upper(v)


class ChangeZOrderParams(OperationParams):
    object_id: ObjectId
    action: str

    @field_validator("action", mode="before")
    @classmethod
    def _upper_action(cls, v: object) -> object:
        return _upper(v)

    @field_validator("action")
    @classmethod
    def _known_action(cls, v: str) -> str:
        if v not in Z_ORDER_ACTIONS:
            raise ValueError(f"'{v.lower()}' is not a valid action (use bring_to_front, send_to_back, bring_forward, send_backward)")
        return v


# ─────────────────────────────────────────────────────────────────────────────
# Standalone kinds
# ─────────────────────────────────────────────────────────────────────────────


class TransformObjectParams(OperationParams):
    object_id: ObjectId
    position: Position | None = None
    size: PartialSize | None = None
    rotation: float | None = Field(default=None, ge=0, le=360, description="Degrees")
    scale_proportionally: bool = True


class AddImageParams(SlideRefParams):
    image_url: HttpUrlStr
    position: Position | None = None
    size: PartialSize | None = None

    @field_validator("position")
    @classmethod
    def _non_negative(cls, v: Position | None) -> Position | None:
        if v is not None and (v.x < 0 or v.y < 0):
            raise ValueError("position coordinates must be non-negative")
        return v


class AddVideoParams(SlideRefParams):
    video_source: Literal["youtube", "drive"]
    video_id: ObjectId
    position: Position | None = None
    size: BoxSize | None = None
    start_time: float | None = Field(default=None, ge=0, description="Seconds")
    end_time: float | None = Field(default=None, ge=0, description="Seconds")
    autoplay: bool = False
    mute: bool = False

    @field_validator("video_source", mode="before")
    @classmethod
    def _lower_source(cls, v: object) -> object:
        return _lower(v)

    @model_validator(mode="after")
    def _valid_range(self) -> AddVideoParams:
        if self.start_time is not None and self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be greater than start_time")
        return self


class ReplaceImageParams(OperationParams):
    object_id: ObjectId
    image_url: HttpUrlStr
    preserve_size: bool = True


class SetBackgroundParams(OperationParams):
    scope: Literal["slide", "all"]
    background_type: Literal["solid", "image"]
    slide_index: int | None = Field(default=None, ge=1)
    slide_id: str | None = None
    color: HexColor | None = None
    image_url: HttpUrlStr | None = None

    @field_validator("scope", "background_type", mode="before")
    @classmethod
    def _lower_enums(cls, v: object) -> object:
        return _lower(v)

    @model_validator(mode="after")
    def _consistent(self) -> SetBackgroundParams:
        if self.scope == "slide" and not self.slide_id and self.slide_index is None:
            raise ValueError("slide_index or slide_id is required when scope is 'slide'")
        if self.background_type == "solid" and not self.color:
            raise ValueError("color is required for solid background")
        if self.background_type == "image" and not self.image_url:
            raise ValueError("image_url is required for image background")
        return self


class TranslatePresentationParams(OperationParams):
    target_language: str = Field(..., min_length=1, description="ISO 639-1 code")
    source_language: str | None = None
    scope: Literal["all", "slide", "object"] = "all"
    slide_index: int | None = Field(default=None, ge=1)
    slide_id: str | None = None
    object_id: str | None = None

    @field_validator("scope", mode="before")
    @classmethod
    def _lower_scope(cls, v: object) -> object:
        return _lower(v)

    @model_validator(mode="after")
    def _consistent(self) -> TranslatePresentationParams:
        if self.scope == "slide" and not self.slide_id and self.slide_index is None:
            raise ValueError("slide_index or slide_id is required when scope is 'slide'")
        if self.scope == "object" and not self.object_id:
            raise ValueError("object_id is required when scope is 'object'")
        return self


PARAMS_BY_KIND: dict[OperationKind, type[OperationParams]] = {
    OperationKind.ADD_SLIDE: AddSlideParams,
    OperationKind.DELETE_SLIDE: DeleteSlideParams,
    OperationKind.ADD_TEXT_BOX: AddTextBoxParams,
    OperationKind.MODIFY_TEXT: ModifyTextParams,
    OperationKind.DELETE_OBJECT: DeleteObjectParams,
    OperationKind.CREATE_SHAPE: CreateShapeParams,
    OperationKind.STYLE_TEXT: StyleTextParams,
    OperationKind.CREATE_BULLET_LIST: CreateBulletListParams,
    OperationKind.CREATE_NUMBERED_LIST: CreateNumberedListParams,
    OperationKind.CHANGE_Z_ORDER: ChangeZOrderParams,
    OperationKind.TRANSFORM_OBJECT: TransformObjectParams,
    OperationKind.ADD_IMAGE: AddImageParams,
    OperationKind.ADD_VIDEO: AddVideoParams,
    OperationKind.REPLACE_IMAGE: ReplaceImageParams,
    OperationKind.SET_BACKGROUND: SetBackgroundParams,
    OperationKind.TRANSLATE_PRESENTATION: TranslatePresentationParams,
}
