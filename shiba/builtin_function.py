from dataclasses import dataclass
from typing import Callable, List, Optional

from .types import Obj


@dataclass
class BuiltinFunction:
    name: str
    # None means variadic
    arity: Optional[int]
    fn: Callable[[List[Obj]], Optional[Obj]]

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
