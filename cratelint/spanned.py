"""A value paired with the byte range of the source text it came from."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Spanned(Generic[T]):
    """A value together with its span in a source file.

    Comparison, ordering and hashing only consider the value, so two values
    read from different places in a file compare equal. A ``Spanned`` also
    compares equal to a bare value equal to the one it wraps.
    """

    __slots__ = ("value", "span")

    def __init__(self, value: T, span: range | tuple[int, int] = range(0, 0)) -> None:
        self.value = value
        self.span = span if isinstance(span, range) else range(*span)

    def take(self) -> T:
        """Return the wrapped value, dropping the span."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Spanned):
            return self.value == other.value
        return self.value == other

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Spanned):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, Spanned):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, Spanned):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, Spanned):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return repr(self.value)