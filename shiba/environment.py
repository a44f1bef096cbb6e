from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from shiba.errors import InternalError
from shiba.module import Module
from shiba.scope import OBJS, STRUCTS
from shiba.types import Obj, StructDef


class Environment:
    """Registry of every loaded module, keyed by ``directory/name``.

    Identifier operations take the module to act on so that ``m.name``
    resolves in ``m``'s own scope. Scope pushes are only exposed as
    context managers, which pop on every exit path.
    """
    def __init__(self):
        self.modules: Dict[str, Module] = {}

    def register(self, mod: Module) -> None:
        self.modules[mod.key] = mod

    def get_module(self, key: str) -> Optional[Module]:
        return self.modules.get(key)

    def find_module(self, mod: Module) -> Module:
        m = self.modules.get(mod.key)
        if m is None:
            raise InternalError(f'module undefined: {mod.key}')
        return m

    @contextmanager
    def function_scope(self, mod: Module) -> Iterator[None]:
        scope = self.find_module(mod).scope
        scope.push_function()
        try:
            yield
        finally:
            scope.pop_function()

    @contextmanager
    def block_scope(self, mod: Module) -> Iterator[None]:
        scope = self.find_module(mod).scope
        scope.push_block()
        try:
            yield
        finally:
            scope.pop_block()

    def get_obj(self, mod: Module, name: str) -> Optional[Obj]:
        return self.find_module(mod).scope.get(name, OBJS)

    def set_obj(self, mod: Module, name: str, o: Obj) -> None:
        self.find_module(mod).scope.set(name, o, OBJS)

    def declare_obj(self, mod: Module, name: str, o: Obj) -> None:
        self.find_module(mod).scope.declare(name, o, OBJS)

    def get_struct(self, mod: Module, name: str) -> Optional[StructDef]:
        return self.find_module(mod).scope.get(name, STRUCTS)

    def set_struct(self, mod: Module, name: str, sd: StructDef) -> None:
        self.find_module(mod).scope.set(name, sd, STRUCTS)

    def __str__(self) -> str:
        lines = []
        for key, mod in self.modules.items():
            lines.append(f"{key}: {{")
            lines.append("  global: {")
            for name, o in mod.scope.root.names(OBJS).items():
                lines.append(f"    {name}: {o.repr()},")
            lines.append("  }")
            lines.append("  structs: {")
            for name, sd in mod.scope.root.names(STRUCTS).items():
                lines.append(f"    {name}: {sd},")
            lines.append("  }")
            lines.append("}")
        return '\n'.join(lines)
