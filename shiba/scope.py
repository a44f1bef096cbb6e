"""Scopes of a module.

A module owns a :class:`ModuleScope`: a root function scope for the
module's top level plus a stack of function scopes, one per active call
into a function defined in the module. Every function scope holds a
stack of block levels; the first level is the function body itself and
one more level is pushed for each ``if``/``for`` body being executed.

Lookup searches the current function scope from the innermost block
outward and then the root scope. A function called from another function
therefore never sees its caller's locals, only its own and the module's.

Objects and struct definitions live in two parallel namespaces of the
same shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .errors import InternalError

OBJS = 'objs'
STRUCTS = 'structs'


class FunctionScope:
    def __init__(self) -> None:
        self.levels: Dict[str, List[Dict[str, Any]]] = {OBJS: [{}], STRUCTS: [{}]}

    @property
    def depth(self) -> int:
        """Number of block scopes above the function body."""
        return len(self.levels[OBJS]) - 1

    def push_block(self) -> None:
        for stack in self.levels.values():
            stack.append({})

    def pop_block(self) -> None:
        if self.depth == 0:
            raise InternalError('no block scope to pop')
        for stack in self.levels.values():
            stack.pop()

    def get(self, name: str, space: str = OBJS) -> Optional[Any]:
        for level in reversed(self.levels[space]):
            if name in level:
                return level[name]
        return None

    def set(self, name: str, value: Any, space: str = OBJS) -> None:
        """Rebind ``name`` where it lives, or create it in the innermost level."""
        stack = self.levels[space]
        for level in reversed(stack):
            if name in level:
                level[name] = value
                return
        stack[-1][name] = value

    def declare(self, name: str, value: Any, space: str = OBJS) -> None:
        """Bind ``name`` in the innermost level, shadowing outer bindings."""
        self.levels[space][-1][name] = value

    def names(self, space: str = OBJS) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for level in self.levels[space]:
            merged.update(level)
        return merged


class ModuleScope:
    def __init__(self) -> None:
        self.root = FunctionScope()
        self.frames: List[FunctionScope] = []

    @property
    def current(self) -> FunctionScope:
        return self.frames[-1] if self.frames else self.root

    @property
    def function_depth(self) -> int:
        return len(self.frames)

    @property
    def block_depth(self) -> int:
        return self.current.depth

    def push_function(self) -> None:
        self.frames.append(FunctionScope())

    def pop_function(self) -> None:
        if not self.frames:
            raise InternalError('no function scope to pop')
        self.frames.pop()

    def push_block(self) -> None:
        self.current.push_block()

    def pop_block(self) -> None:
        self.current.pop_block()

    def get(self, name: str, space: str = OBJS) -> Optional[Any]:
        if self.frames:
            found = self.frames[-1].get(name, space)
            if found is not None:
                return found
        return self.root.get(name, space)

    def set(self, name: str, value: Any, space: str = OBJS) -> None:
        self.current.set(name, value, space)

    def declare(self, name: str, value: Any, space: str = OBJS) -> None:
        self.current.declare(name, value, space)
