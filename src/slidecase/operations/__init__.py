"""Logical slide operations: kinds, parameter models, compilers and handlers."""

from .compilers import (
    Compiled,
    CompileOutcome,
    CompilerRegistry,
    Extractor,
    Invalid,
    Unsupported,
    default_compilers,
)
from .handlers import Handler, HandlerRegistry, SlidesServices, default_handlers
from .kinds import OperationKind
from .params import PARAMS_BY_KIND, OperationParams

__all__ = [
    "OperationKind", "OperationParams", "PARAMS_BY_KIND",
    "Compiled", "Unsupported", "Invalid", "CompileOutcome", "Extractor", "CompilerRegistry", "default_compilers",
    "Handler", "HandlerRegistry", "SlidesServices", "default_handlers",
]
