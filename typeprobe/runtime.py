"""Names imported by generated sources at execution time."""

from __future__ import annotations

from typing import Generic, TypeVar

_T = TypeVar("_T")


class TypeSlot(Generic[_T]):
    """Wrapper whose single type argument is a probe's expression."""


class SourceNopError(RuntimeError):
    """Raised by generated code in place of a ``NOP`` body."""
