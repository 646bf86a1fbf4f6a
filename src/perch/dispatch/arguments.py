"""Path arguments — URL segments left over after route resolution."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, overload


class PathArguments(Sequence[str]):
    """Immutable, ordered sequence of path argument strings.

    Handed to handlers as the ``arguments`` context value and used as
    the container for a trailing "remaining arguments" parameter::

        def search(self, terms: PathArguments) -> Response:
            return Response(" ".join(terms))
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: tuple[str, ...] = tuple(str(item) for item in items)

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> PathArguments: ...

    def __getitem__(self, index: int | slice) -> str | PathArguments:
        if isinstance(index, slice):
            return PathArguments(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, PathArguments):
            return self._items == other._items
        if isinstance(other, list | tuple):
            return list(self._items) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"PathArguments({list(self._items)!r})"

    def get_all(self) -> list[str]:
        """Return the arguments as a new list."""
        return list(self._items)

    def get(self, index: int, default: str | None = None) -> str | None:
        """Return the argument at *index*, or *default* when out of range."""
        try:
            return self._items[index]
        except IndexError:
            return default
