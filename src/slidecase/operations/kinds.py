"""Closed enumeration of the logical operations a batch may contain."""

from __future__ import annotations

from enum import StrEnum


class OperationKind(StrEnum):
    # Compile to wire requests when every referenced id is known up front
    ADD_SLIDE = "add_slide"
    DELETE_SLIDE = "delete_slide"
    ADD_TEXT_BOX = "add_text_box"
    MODIFY_TEXT = "modify_text"
    DELETE_OBJECT = "delete_object"
    CREATE_SHAPE = "create_shape"
    STYLE_TEXT = "style_text"
    CREATE_BULLET_LIST = "create_bullet_list"
    CREATE_NUMBERED_LIST = "create_numbered_list"
    CHANGE_Z_ORDER = "change_z_order"
    # Always standalone
    TRANSFORM_OBJECT = "transform_object"
    ADD_IMAGE = "add_image"
    ADD_VIDEO = "add_video"
    REPLACE_IMAGE = "replace_image"
    SET_BACKGROUND = "set_background"
    TRANSLATE_PRESENTATION = "translate_presentation"

    @classmethod
    def parse(cls, value: str) -> OperationKind | None:
        """Lookup by value, None for unknown kinds."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None
