"""Read-only snapshot of a remote presentation.

Only the fields the handlers consult are modelled; everything else in the
API response is ignored.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .units import EMU_PER_POINT


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class Dimension(_ApiModel):
    magnitude: float = 0.0
    unit: str = "EMU"

    @property
    def emu(self) -> float:
        return self.magnitude * EMU_PER_POINT if self.unit == "PT" else self.magnitude


class Size(_ApiModel):
    width: Dimension | None = None
    height: Dimension | None = None


class AffineTransform(_ApiModel):
    scale_x: float = 1.0
    scale_y: float = 1.0
    shear_x: float = 0.0
    shear_y: float = 0.0
    translate_x: float = 0.0
    translate_y: float = 0.0
    unit: str = "EMU"


class TextRun(_ApiModel):
    content: str = ""


class TextElement(_ApiModel):
    text_run: TextRun | None = None


class TextContent(_ApiModel):
    text_elements: list[TextElement] = Field(default_factory=list)

    @property
    def plain_text(self) -> str:
        return "".join(e.text_run.content for e in self.text_elements if e.text_run)


class Shape(_ApiModel):
    shape_type: str = ""
    text: TextContent | None = None


class Image(_ApiModel):
    content_url: str = ""


class Video(_ApiModel):
    id: str = ""
    source: str = ""


class ElementGroup(_ApiModel):
    children: list[PageElement] = Field(default_factory=list)


class PageElement(_ApiModel):
    object_id: str
    size: Size | None = None
    transform: AffineTransform | None = None
    shape: Shape | None = None
    image: Image | None = None
    video: Video | None = None
    element_group: ElementGroup | None = None

    @property
    def kind(self) -> str:
        if self.shape is not None:
            return "TEXT_BOX" if self.shape.shape_type == "TEXT_BOX" else "SHAPE"
        if self.image is not None:
            return "IMAGE"
        if self.video is not None:
            return "VIDEO"
        if self.element_group is not None:
            return "GROUP"
        return "UNKNOWN"

    @property
    def text(self) -> str:
        """Plain text of a shape, empty for everything else."""
        return self.shape.text.plain_text if self.shape and self.shape.text else ""


class Page(_ApiModel):
    object_id: str
    page_elements: list[PageElement] = Field(default_factory=list)

    def walk(self) -> Iterator[tuple[PageElement, bool]]:
        """Depth-first walk yielding (element, inside_group)."""
        stack = [(e, False) for e in reversed(self.page_elements)]
        while stack:
            element, grouped = stack.pop()
            yield element, grouped
            if element.element_group:
                stack.extend((c, True) for c in reversed(element.element_group.children))


class Presentation(_ApiModel):
    presentation_id: str
    title: str = ""
    slides: list[Page] = Field(default_factory=list)

    def slide_at(self, slide_index: int) -> Page | None:
        """Slide by 1-based position, None when out of range."""
        if 1 <= slide_index <= len(self.slides):
            return self.slides[slide_index - 1]
        return None

    def slide_by_id(self, slide_id: str) -> Page | None:
        return next((s for s in self.slides if s.object_id == slide_id), None)

    def position_of(self, slide_id: str) -> int | None:
        """1-based position of a slide id."""
        return next((i for i, s in enumerate(self.slides, start=1) if s.object_id == slide_id), None)

    def find_element(self, object_id: str) -> tuple[Page, PageElement, bool] | None:
        """Locate an element anywhere in the deck: (slide, element, inside_group)."""
        for slide in self.slides:
            for element, grouped in slide.walk():
                if element.object_id == object_id:
                    return slide, element, grouped
        return None


ElementGroup.model_rebuild()
