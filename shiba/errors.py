from typing import Any, Optional

from shiba.location import Location


class ShibaError(Exception):
    """Base exception for every error surfaced by the Shiba interpreter."""
    kind = 'Error'

    def __init__(self, message: str, loc: Optional[Location] = None):
        super().__init__(message)
        self.message = message
        self.loc = loc

    def at(self, loc: Optional[Location]) -> 'ShibaError':
        # keep the innermost location
        if self.loc is None:
            self.loc = loc
        return self

    def __str__(self) -> str:
        if self.loc is None:
            return f"{self.kind}: {self.message}"
        return f"{self.loc}: {self.kind}: {self.message}"


class TokenizeError(ShibaError):
    kind = 'Tokenize'

    def __init__(self, message: str, loc: Optional[Location] = None, incomplete: bool = False):
        super().__init__(message, loc)
        # True when more input could make the source valid (e.g. open string)
        self.incomplete = incomplete


class ParseError(ShibaError):
    kind = 'Parse'

    def __init__(self, message: str, loc: Optional[Location] = None, incomplete: bool = False):
        super().__init__(message, loc)
        self.incomplete = incomplete


class UndefinedIdent(ShibaError):
    kind = 'UndefinedIdent'

    def __init__(self, ident: str, loc: Optional[Location] = None):
        super().__init__(f"identifier {ident} is undefined", loc)
        self.ident = ident


class DictKeyNotFound(ShibaError):
    kind = 'DictKeyNotFound'

    def __init__(self, container: Any, key: Any, loc: Optional[Location] = None):
        super().__init__(f"key {key} is not found in dict", loc)
        # kept so that assignment can insert the key without re-evaluating
        self.container = container
        self.key = key


class TypeMismatch(ShibaError):
    kind = 'TypeMismatch'

    def __init__(self, expected: str, actual: str, loc: Optional[Location] = None):
        super().__init__(f"{expected} is expected but got {actual}", loc)
        self.expected = expected
        self.actual = actual


class InvalidIndex(ShibaError):
    kind = 'InvalidIndex'

    def __init__(self, index: int, length: int, loc: Optional[Location] = None):
        super().__init__(f"index {index} out of range (length {length})", loc)
        self.index = index
        self.length = length


class InvalidBinaryOp(ShibaError):
    kind = 'InvalidBinaryOp'

    def __init__(self, op: str, left: str, right: str, loc: Optional[Location] = None):
        super().__init__(f"invalid operation {left} [{op}] {right}", loc)
        self.op = op
        self.left = left
        self.right = right


class InvalidUnaryOp(ShibaError):
    kind = 'InvalidUnaryOp'

    def __init__(self, op: str, operand: str, loc: Optional[Location] = None):
        super().__init__(f"invalid operation [{op}]{operand}", loc)
        self.op = op
        self.operand = operand


class InvalidAssignOp(ShibaError):
    kind = 'InvalidAssignOp'

    def __init__(self, op: str, left: str, right: str, loc: Optional[Location] = None):
        super().__init__(f"invalid assignment {left} [{op}] {right}", loc)
        self.op = op
        self.left = left
        self.right = right


class ModuleImportError(ShibaError):
    kind = 'Import'


class EvalError(ShibaError):
    """Runtime failure that does not fit any more specific kind."""
    kind = 'Eval'


class InternalError(ShibaError):
    kind = 'Internal'

    def __str__(self) -> str:
        return f"shiba internal error: {super().__str__()}"


class ExitRequest(Exception):
    """Raised by the ``exit`` builtin and turned into an ``Exit`` result by the driver."""

    def __init__(self, code: int = 0):
        super().__init__(code)
        self.code = code
