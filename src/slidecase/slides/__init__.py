"""Google Slides domain: document snapshot, REST client, translation, units."""

from .client import DocumentService, SlidesAPIError, SlidesClient
from .document import AffineTransform, Dimension, Page, PageElement, Presentation, Size
from .translate import GoogleTranslator, TranslationBatch, Translator
from .units import EMU_PER_POINT, emu_to_points, generate_object_id, parse_hex_color, points_to_emu

__all__ = [
    "DocumentService", "SlidesAPIError", "SlidesClient",
    "AffineTransform", "Dimension", "Page", "PageElement", "Presentation", "Size",
    "GoogleTranslator", "TranslationBatch", "Translator",
    "EMU_PER_POINT", "emu_to_points", "generate_object_id", "parse_hex_color", "points_to_emu",
]
