"""Ok/Err outcome type.

Tool runs return ``Result[str, ToolError]`` and each standalone operation
attempt returns an ``OperationOutcome`` (``Result[JsonDict, ToolError]``).
Callers branch with ``is_ok`` or ``match``; there is no chaining API.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


class Result(Generic[T, E]):
    """Success (``Ok``) or failure (``Err``) carrying one value.

        >>> Ok(3).match(ok=lambda v: v + 1, err=lambda e: 0)
        4
    """

    __slots__ = ("_value", "_is_ok")

    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok

    def is_ok(self) -> bool:
        return self._is_ok

    def unwrap(self) -> T:
        """The Ok value. Raises RuntimeError on Err."""
        if not self._is_ok:
            raise RuntimeError(f"unwrap() on Err: {self._value!r}")
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> E:
        """The Err value. Raises RuntimeError on Ok."""
        if self._is_ok:
            raise RuntimeError(f"unwrap_err() on Ok: {self._value!r}")
        return self._value  # type: ignore[return-value]

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Apply ``ok`` or ``err`` to the held value, whichever side it is."""
        return ok(self._value) if self._is_ok else err(self._value)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return (self._is_ok, self._value) == (other._is_ok, other._value)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    return Result(value, True)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    return Result(error, False)
