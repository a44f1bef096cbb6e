"""Abstract Syntax Tree (AST) definitions for the Shiba language.

Every node keeps the token that introduced it, so any error raised while
evaluating the node can point at the source location.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .location import Location
from .tokenizer import Token


@dataclass
class Node:
    """Base class for all AST nodes."""
    token: Token

    @property
    def loc(self) -> Location:
        return self.token.loc


@dataclass
class Eof(Node):
    pass


@dataclass
class Comment(Node):
    message: str


@dataclass
class ImportStmt(Node):
    target: str  # module path without extension, e.g. "a/b"


@dataclass
class Literal(Node):
    value: Any
    literal_type: str  # 'i64', 'f64', 'str', 'bool'


@dataclass
class ListLit(Node):
    elements: List[Node]


@dataclass
class DictLit(Node):
    # parallel lists
    keys: List[Node]
    values: List[Node]


@dataclass
class Ident(Node):
    name: str


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Slice(Node):
    target: Node
    start: Optional[Node]
    end: Optional[Node]


@dataclass
class Selector(Node):
    target: Node
    name: str


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class Assign(Node):
    op: str  # one of tokenizer.ASSIGN_OPS; ':=' unpacks
    left: List[Node]
    right: List[Node]


@dataclass
class IfStmt(Node):
    # conds[i] guards blocks[i]; a trailing None condition is the else block
    conds: List[Optional[Node]]
    blocks: List[List[Node]]


@dataclass
class ForStmt(Node):
    target: Node
    counter: Ident
    element: Ident
    body: List[Node]


@dataclass
class WhileStmt(Node):
    """Conditional loop, written ``for cond { ... }``."""
    condition: Node
    body: List[Node]


@dataclass
class FuncDecl(Node):
    name: str
    params: List[str]
    body: List[Node]


@dataclass
class StructDecl(Node):
    name: str
    fields: List[str]
    methods: List[FuncDecl]


@dataclass
class StructInit(Node):
    name: str
    values: DictLit  # keys are Ident nodes


@dataclass
class Call(Node):
    func: Node
    args: List[Node]


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class BreakStmt(Node):
    pass


@dataclass
class ContinueStmt(Node):
    pass
