"""Structured logging for batch runs.

Every event is a name plus flat key/value fields. Fields come from three
places, merged in this order (later wins):

1. ``log_context(...)`` scopes, carried in a ContextVar so they follow a run
   across awaits (the orchestrator opens one per presentation)
2. fields bound on the logger via ``get_logger(name, **fields)`` / ``bind``
3. fields passed at the call site

Output goes through a renderer: ``console`` for people, ``json`` (one object
per line) for log shippers, ``none`` for tests.

    >>> configure_logging("console", "DEBUG")
    >>> get_logger("batch").info("call issued", requests=4)
    12:00:01.512 [info] call issued logger="batch" requests=4
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TextIO, runtime_checkable

import orjson

from slidecase.foundation.errors import JsonDict, JsonValue

_scoped_fields: ContextVar[JsonDict] = ContextVar("slidecase_log_fields", default={})
_active_renderer: ContextVar[LogRenderer | None] = ContextVar("slidecase_log_renderer", default=None)
_threshold: ContextVar[int] = ContextVar("slidecase_log_threshold", default=logging.INFO)

_LEVELS = {logging.DEBUG: "debug", logging.INFO: "info", logging.WARNING: "warning", logging.ERROR: "error"}


@dataclass(frozen=True, slots=True)
class LogEvent:
    """One emitted event, already merged with every field source."""

    created: float
    level: str
    name: str
    fields: JsonDict

    def clock(self) -> str:
        return datetime.fromtimestamp(self.created, tz=UTC).strftime("%H:%M:%S.%f")[:-3]

    def as_json(self) -> JsonDict:
        stamp = datetime.fromtimestamp(self.created, tz=UTC).isoformat()
        return {"timestamp": stamp, "level": self.level, "event": self.name, **self.fields}


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, event: LogEvent) -> None: ...


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BoundLogger:
    """Logger carrying a fixed set of fields. ``bind``/``unbind`` return copies."""

    fields: JsonDict = field(default_factory=dict)

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self.fields, **kw})

    def unbind(self, *keys: str) -> BoundLogger:
        return BoundLogger({k: v for k, v in self.fields.items() if k not in keys})

    def emit(self, level: int, name: str, **kw: JsonValue) -> None:
        if level < _threshold.get():
            return
        merged = {**_scoped_fields.get(), **self.fields, **kw}
        event = LogEvent(time.time(), _LEVELS.get(level, "error"), name, merged)
        _current_renderer().render(event)

    def debug(self, name: str, **kw: JsonValue) -> None:
        self.emit(logging.DEBUG, name, **kw)

    def info(self, name: str, **kw: JsonValue) -> None:
        self.emit(logging.INFO, name, **kw)

    def warning(self, name: str, **kw: JsonValue) -> None:
        self.emit(logging.WARNING, name, **kw)

    def error(self, name: str, **kw: JsonValue) -> None:
        self.emit(logging.ERROR, name, **kw)


def get_logger(name: str | None = None, **fields: JsonValue) -> BoundLogger:
    """Logger for a component. The level and renderer are looked up per event,
    so module-level loggers follow a later ``configure_logging`` call."""
    if name:
        fields = {"logger": name, **fields}
    return BoundLogger(dict(fields))


@contextmanager
def log_context(**fields: JsonValue) -> Iterator[JsonDict]:
    """Attach ``fields`` to every event logged inside the block.

        >>> with log_context(presentation_id="abc123"):
        ...     log.info("compiled")   # carries presentation_id
    """
    merged = {**_scoped_fields.get(), **fields}
    token = _scoped_fields.set(merged)
    try:
        yield merged
    finally:
        _scoped_fields.reset(token)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────

_RESET = "\033[0m"
_LEVEL_STYLE = {"debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m"}
_KEY_STYLE = "\033[36m"


def _console_value(value: object) -> tuple[str, str]:
    """Console text for a field value and the ANSI style it is shown in."""
    match value:
        case bool():
            return ("true" if value else "false"), "\033[34m"
        case int() | float():
            return str(value), "\033[34m"
        case str():
            return f'"{value}"', "\033[33m"
        case dict():
            return f"{{{len(value)} keys}}", "\033[2m"
        case list() | tuple():
            return f"[{len(value)} items]", "\033[2m"
        case _:
            return repr(value), ""


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...`` lines, colored on a tty."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def _paint(self, text: str, style: str) -> str:
        return f"{style}{text}{_RESET}" if self.colors and style else text

    def render(self, event: LogEvent) -> None:
        line = [
            self._paint(event.clock(), "\033[2m"),
            self._paint(f"[{event.level}]", _LEVEL_STYLE.get(event.level, "")),
            self._paint(event.name, "\033[1m"),
        ]
        for key in sorted(event.fields):
            text, style = _console_value(event.fields[key])
            line.append(f"{self._paint(key, _KEY_STYLE)}={self._paint(text, style)}")
        print(" ".join(line), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines. Values orjson cannot encode are written with ``str()``."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, event: LogEvent) -> None:
        payload = orjson.dumps(event.as_json(), default=str, option=orjson.OPT_NON_STR_KEYS)
        print(payload.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, event: LogEvent) -> None:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the renderer and minimum level for subsequent events.

    ``format`` is ``console``, ``json`` or ``none``. ``output`` defaults to
    stderr for the console and stdout for JSON lines. An unrecognised
    ``level`` falls back to INFO.
    """
    renderer: LogRenderer
    match format:
        case "console":
            renderer = ConsoleRenderer(output or sys.stderr, colors)
        case "json":
            renderer = JsonRenderer(output or sys.stdout)
        case "none":
            renderer = NoOpRenderer()
        case _:
            raise ValueError(f"Unknown format: {format!r}. Use 'console', 'json', or 'none'")

    _threshold.set(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    _active_renderer.set(renderer)
    return renderer


def _current_renderer() -> LogRenderer:
    renderer = _active_renderer.get()
    if renderer is None:
        renderer = ConsoleRenderer()
        _active_renderer.set(renderer)
    return renderer
