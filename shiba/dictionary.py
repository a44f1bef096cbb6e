"""Insertion-ordered dictionary keyed by object digests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, List, NamedTuple, Optional, Tuple

if TYPE_CHECKING:
    from .types import Obj


class ObjKey(NamedTuple):
    """Digest of an object: its kind tag and canonical byte form."""
    kind: str
    data: bytes


class Dictionary:
    """Ordered map from object to object.

    Entries live in a plain dict keyed by :class:`ObjKey`, which keeps
    insertion order, keeps the position of re-assigned keys and deletes
    in O(1). The original key object is kept next to its value so that
    iteration can hand keys back to the program.
    """

    def __init__(self) -> None:
        self._entries: Dict[ObjKey, Tuple['Obj', 'Obj']] = {}

    def set(self, key: 'Obj', value: 'Obj') -> None:
        k = key.key()
        entry = self._entries.get(k)
        if entry is not None:
            self._entries[k] = (entry[0], value)
            return
        self._entries[k] = (key.clone(), value)

    def get(self, key: 'Obj') -> Optional['Obj']:
        entry = self._entries.get(key.key())
        if entry is None:
            return None
        return entry[1]

    def delete(self, key: 'Obj') -> bool:
        return self._entries.pop(key.key(), None) is not None

    def contains(self, key: 'Obj') -> bool:
        return key.key() in self._entries

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List['Obj']:
        return [k for k, _ in self._entries.values()]

    def values(self) -> List['Obj']:
        return [v for _, v in self._entries.values()]

    def items(self) -> Iterator[Tuple['Obj', 'Obj']]:
        return iter(list(self._entries.values()))

    def clone(self) -> 'Dictionary':
        d = Dictionary()
        for k, (key, value) in self._entries.items():
            d._entries[k] = (key.clone(), value.clone())
        return d

    def equals(self, other: 'Dictionary') -> bool:
        if len(self) != len(other):
            return False
        for k, (_, value) in self._entries.items():
            entry = other._entries.get(k)
            if entry is None or not value.equals(entry[1]):
                return False
        return True

    def __str__(self) -> str:
        inner = ', '.join(f"{k.repr()}: {v.repr()}" for k, v in self._entries.values())
        return '{' + inner + '}'
