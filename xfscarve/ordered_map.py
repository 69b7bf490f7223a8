"""A small mapping that keeps its entries in insertion order."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableMapping
from typing import Any


class OrderedMap(MutableMapping):
    """Mapping backed by a list of ``(key, value)`` pairs.

    Keys are compared with ``==`` only, so they need not be hashable.
    Lookups are linear. Positions returned by :meth:`emplace`,
    :meth:`find` and :meth:`insert` are indices into the insertion order.
    """

    def __init__(self, items: Iterable[tuple[Any, Any]] | None = None) -> None:
        self._pairs: list[tuple[Any, Any]] = []
        if items is not None:
            self.insert_many(items)

    def _index(self, key: Any) -> int | None:
        return next(
            (i for i, (k, _) in enumerate(self._pairs) if k == key),
            None,
        )

    def emplace(self, key: Any, value: Any) -> tuple[int, bool]:
        """Add *key* unless present; return its position and whether it was added."""
        index = self._index(key)
        if index is not None:
            return index, False
        self._pairs.append((key, value))
        return len(self._pairs) - 1, True

    def at(self, key: Any) -> Any:
        """Return the value for *key*, raising KeyError when it is absent."""
        index = self._index(key)
        if index is None:
            raise KeyError("key not found")
        return self._pairs[index][1]

    def count(self, key: Any) -> int:
        """1 when *key* is present, otherwise 0."""
        return 0 if self._index(key) is None else 1

    def find(self, key: Any) -> int | None:
        """Position of *key*, or None when it is absent."""
        return self._index(key)

    def erase(self, key: Any) -> int:
        """Remove *key*; return the number of entries removed (0 or 1)."""
        index = self._index(key)
        if index is None:
            return 0
        del self._pairs[index]
        return 1

    def erase_range(self, first: int, last: int) -> int:
        """Remove the entries at positions ``first`` up to ``last``.

        Returns the position that now follows the removed entries.
        """
        if not 0 <= first <= last <= len(self._pairs):
            raise IndexError(f"invalid range [{first}, {last})")
        del self._pairs[first:last]
        return first

    def insert(self, item: tuple[Any, Any]) -> tuple[int, bool]:
        """Add a ``(key, value)`` pair unless its key is present."""
        key, value = item
        return self.emplace(key, value)

    def insert_many(self, items: Iterable[tuple[Any, Any]]) -> None:
        """Insert each pair in turn; earlier keys win over later duplicates."""
        for item in items:
            self.insert(item)

    def __getitem__(self, key: Any) -> Any:
        return self.at(key)

    def __setitem__(self, key: Any, value: Any) -> None:
        index = self._index(key)
        if index is None:
            self._pairs.append((key, value))
        else:
            self._pairs[index] = (key, value)

    def __delitem__(self, key: Any) -> None:
        if not self.erase(key):
            raise KeyError("key not found")

    def __contains__(self, key: object) -> bool:
        return self._index(key) is not None

    def __iter__(self) -> Iterator[Any]:
        return (k for k, _ in list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedMap):
            return self._pairs == other._pairs
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._pairs!r})"