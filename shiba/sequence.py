"""Uniform sequence view over strings and lists.

Indexing, slicing, unpacking and for-in iteration all go through this
view so they treat both kinds identically. Strings are viewed as
sequences of single-codepoint strings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List, Tuple

from .errors import InternalError
from .types import Kind, Obj


class Sequence(ABC):

    @abstractmethod
    def size(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def index(self, i: int) -> Obj:
        raise NotImplementedError

    @abstractmethod
    def slice(self, start: int, end: int) -> Obj:
        raise NotImplementedError

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Tuple[int, Obj]]:
        """Yield ``(index, element)`` pairs over a snapshot of the sequence."""
        for i in range(self.size()):
            yield i, self.index(i)


class StrSequence(Sequence):
    def __init__(self, text: str):
        self.text = text

    def size(self) -> int:
        return len(self.text)

    def index(self, i: int) -> Obj:
        return Obj.string(self.text[i])

    def slice(self, start: int, end: int) -> Obj:
        return Obj.string(self.text[start:end])


class ListSequence(Sequence):
    def __init__(self, items: List[Obj]):
        self.items = items

    def size(self) -> int:
        return len(self.items)

    def index(self, i: int) -> Obj:
        # the element box itself, so that `xs[i] = v` updates the list
        return self.items[i]

    def slice(self, start: int, end: int) -> Obj:
        return Obj.list_of([o.copy() for o in self.items[start:end]])

    def __iter__(self) -> Iterator[Tuple[int, Obj]]:
        for i, o in enumerate(list(self.items)):
            yield i, o


def as_sequence(o: Obj) -> Sequence:
    if o.kind is Kind.STR:
        return StrSequence(o.value)
    if o.kind is Kind.LIST:
        return ListSequence(o.value)
    raise InternalError(f"{o.kind} cannot be viewed as a sequence")
