"""Process results.

Every evaluation step returns one of these. Values travel as
:class:`ObjResult`; control transfers travel as the remaining tags and
are consumed by the construct they target (a loop consumes ``Break`` and
``Continue``, a call consumes ``Return``).
"""

from dataclasses import dataclass
from typing import Optional

from .types import Obj


class ProcessResult:
    pass


@dataclass
class ObjResult(ProcessResult):
    obj: Obj


class Nop(ProcessResult):
    def __repr__(self) -> str:
        return 'Nop'


@dataclass
class Exit(ProcessResult):
    code: int = 0


class Continue(ProcessResult):
    def __repr__(self) -> str:
        return 'Continue'


class Break(ProcessResult):
    def __repr__(self) -> str:
        return 'Break'


@dataclass
class Return(ProcessResult):
    value: Optional[Obj] = None


NOP = Nop()
CONTINUE = Continue()
BREAK = Break()


def is_control(result: ProcessResult) -> bool:
    """True for results that unwind enclosing statements."""
    return isinstance(result, (Return, Break, Continue, Exit))
