"""Loaded source units.

A module is created when an import or the command line resolves a file
(or a host-provided registry entry) and lives for the rest of the run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from .scope import ModuleScope

if TYPE_CHECKING:
    from .types import Obj

EXTENSION = '.sb'


def with_extension(path: str) -> str:
    if not path.endswith(EXTENSION):
        path += EXTENSION
    return path


@dataclass(eq=False)
class Module:
    name: str
    filename: str
    directory: str
    content: str
    scope: ModuleScope = field(default_factory=ModuleScope)

    @property
    def key(self) -> str:
        return os.path.join(self.directory, self.name)

    @classmethod
    def from_file(cls, path: str) -> 'Module':
        """Load ``path`` (``.sb`` appended when missing).

        Raises ``OSError`` when the file cannot be read.
        """
        filename = os.path.abspath(with_extension(path))
        with open(filename, 'r', encoding='utf-8') as f:
            content = f.read()
        directory, base = os.path.split(filename)
        name = base[:-len(EXTENSION)]
        return cls(name=name, filename=filename, directory=directory, content=content)

    @classmethod
    def from_source(cls, source: str, name: str = '<main>', directory: Optional[str] = None) -> 'Module':
        directory = os.path.abspath(directory if directory is not None else os.getcwd())
        return cls(name=name, filename=name, directory=directory, content=source)

    @classmethod
    def from_objects(cls, name: str, objs: Dict[str, 'Obj']) -> 'Module':
        """Build a module whose root scope holds host-provided objects."""
        mod = cls(name=name, filename=f"<host:{name}>", directory='<host>', content='')
        for ident, o in objs.items():
            mod.scope.set(ident, o.copy())
        return mod

    def __repr__(self) -> str:
        return f"<Module {self.key}>"
