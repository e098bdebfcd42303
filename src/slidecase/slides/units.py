"""Unit, colour and object-id helpers shared by compilers and handlers.

Positions and sizes arrive in points; the remote API speaks EMU.
"""

from __future__ import annotations

import re
import uuid

from slidecase.foundation.errors import JsonDict

EMU_PER_POINT = 12700

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def points_to_emu(points: float) -> float:
    return points * EMU_PER_POINT


def emu_to_points(emu: float) -> float:
    return emu / EMU_PER_POINT


def parse_hex_color(value: str) -> JsonDict:
    """Parse ``#RRGGBB`` into an RgbColor payload with 0..1 channels.

    Raises:
        ValueError: If the value is not a six-digit hex colour.
    """
    match = _HEX_COLOR.match(value.strip())
    if match is None:
        raise ValueError(f"invalid hex color '{value}', expected #RRGGBB")
    digits = match.group(1)
    red, green, blue = (int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    return {"red": red, "green": green, "blue": blue}


def is_transparent(value: str) -> bool:
    return value.strip().lower() == "transparent"


def generate_object_id(prefix: str) -> str:
    """Unique object id of the form ``<prefix>_<16 hex chars>``."""
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


# ─────────────────────────────────────────────────────────────────────────────
# Wire fragments
# ─────────────────────────────────────────────────────────────────────────────


def emu_dimension(points: float) -> JsonDict:
    return {"magnitude": points_to_emu(points), "unit": "EMU"}


def translate_transform(x: float, y: float) -> JsonDict:
    """Identity-scale AffineTransform placing an element at (x, y) points."""
    return {
        "scaleX": 1,
        "scaleY": 1,
        "translateX": points_to_emu(x),
        "translateY": points_to_emu(y),
        "unit": "EMU",
    }


def element_properties(page_id: str, *, x: float = 0.0, y: float = 0.0,
                       width: float | None = None, height: float | None = None) -> JsonDict:
    """PageElementProperties for a new element on ``page_id``."""
    props: JsonDict = {"pageObjectId": page_id, "transform": translate_transform(x, y)}
    size: JsonDict = {}
    if width is not None:
        size["width"] = emu_dimension(width)
    if height is not None:
        size["height"] = emu_dimension(height)
    if size:
        props["size"] = size
    return props


def solid_fill(color: str) -> JsonDict:
    return {"color": {"rgbColor": parse_hex_color(color)}}
