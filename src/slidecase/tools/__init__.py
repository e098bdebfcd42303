"""Slide tools exposed through the registry."""

from .batch_update import BatchUpdateTool

__all__ = ["BatchUpdateTool"]
