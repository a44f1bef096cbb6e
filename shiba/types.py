"""Runtime object model for Shiba.

Every Shiba value is an :class:`Obj`, a mutable box holding a kind tag and
a payload. Boxes are what scopes, lists, dicts and struct instances store,
so updating a box in place (``Obj.update``) is observed by every holder.
Scalars are copied into new boxes when bound to a new name while
container payloads stay shared, which gives lists and dicts reference
semantics under mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .dictionary import Dictionary, ObjKey

if TYPE_CHECKING:
    from .ast import Node
    from .builtin_function import BuiltinFunction
    from .module import Module
    from .sequence import Sequence


I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1


def wrap_i64(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    return ((value - I64_MIN) % (1 << 64)) + I64_MIN


class Kind(Enum):
    NIL = 'nil'
    BOOL = 'bool'
    I64 = 'i64'
    F64 = 'f64'
    STR = 'str'
    LIST = 'list'
    DICT = 'dict'
    STRUCT = 'struct'
    FUNC = 'func'
    METHOD = 'method'
    BUILTIN = 'builtin'
    HOST_FUNC = 'hostfunc'
    MODULE = 'mod'
    STRUCT_DEF = 'structdef'

    def __str__(self) -> str:
        return self.value


NUMERIC_KINDS = (Kind.I64, Kind.F64)
CALLABLE_KINDS = (Kind.FUNC, Kind.METHOD, Kind.BUILTIN, Kind.HOST_FUNC)


@dataclass(eq=False)
class Function:
    """A user-defined function. It always runs in its defining module."""
    module: 'Module'
    name: str
    params: List[str]
    body: List['Node']


@dataclass(eq=False)
class StructDef:
    name: str
    fields: List[str]
    methods: Dict[str, Function] = field(default_factory=dict)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def __str__(self) -> str:
        return f"{{{self.name}: vars: {self.fields}, defs: {list(self.methods)}}}"


@dataclass(eq=False)
class StructInstance:
    """An instance of a struct.

    Methods are not stored on the instance; :meth:`method` binds them on
    demand so the instance never owns a reference back to itself.
    """
    definition: StructDef
    fields: Dict[str, 'Obj']

    @property
    def name(self) -> str:
        return self.definition.name

    def method(self, name: str) -> Optional['Obj']:
        fn = self.definition.methods.get(name)
        if fn is None:
            return None
        return Obj(Kind.METHOD, Method(fn, self))

    def methods(self) -> Dict[str, 'Obj']:
        return {name: self.method(name) for name in self.definition.methods}


@dataclass(eq=False)
class Method:
    """A function bound to the struct instance it was selected from."""
    function: Function
    receiver: StructInstance

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def module(self) -> 'Module':
        return self.function.module

    @property
    def params(self) -> List[str]:
        return self.function.params

    @property
    def body(self) -> List['Node']:
        return self.function.body


def quote(s: str) -> str:
    escaped = s.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n').replace('\t', '\\t')
    return f'"{escaped}"'


class Obj:
    """A tagged Shiba value."""
    __slots__ = ('kind', 'value')

    def __init__(self, kind: Kind, value: Any = None):
        self.kind = kind
        self.value = value

    # Convenience constructors
    @staticmethod
    def nil() -> 'Obj':
        return Obj(Kind.NIL)

    @staticmethod
    def boolean(value: bool) -> 'Obj':
        return Obj(Kind.BOOL, bool(value))

    @staticmethod
    def integer(value: int) -> 'Obj':
        return Obj(Kind.I64, wrap_i64(value))

    @staticmethod
    def double(value: float) -> 'Obj':
        return Obj(Kind.F64, float(value))

    @staticmethod
    def string(value: str) -> 'Obj':
        return Obj(Kind.STR, value)

    @staticmethod
    def list_of(items: Optional[List['Obj']] = None) -> 'Obj':
        return Obj(Kind.LIST, list(items) if items is not None else [])

    @staticmethod
    def dict_of(d: Optional[Dictionary] = None) -> 'Obj':
        return Obj(Kind.DICT, d if d is not None else Dictionary())

    @staticmethod
    def builtin(fn: 'BuiltinFunction', host: bool = False) -> 'Obj':
        return Obj(Kind.HOST_FUNC if host else Kind.BUILTIN, fn)

    @staticmethod
    def module(mod: 'Module') -> 'Obj':
        return Obj(Kind.MODULE, mod)

    # Mutation and copies
    def update(self, other: 'Obj') -> None:
        """Overwrite this box with the kind and payload of ``other``."""
        self.kind = other.kind
        self.value = other.value

    def copy(self) -> 'Obj':
        """New box sharing this box's payload."""
        return Obj(self.kind, self.value)

    def clone(self) -> 'Obj':
        """Deep copy of containers and struct instances."""
        if self.kind is Kind.LIST:
            return Obj(Kind.LIST, [o.clone() for o in self.value])
        if self.kind is Kind.DICT:
            return Obj(Kind.DICT, self.value.clone())
        if self.kind is Kind.STRUCT:
            inst = self.value
            fields = {k: v.clone() for k, v in inst.fields.items()}
            return Obj(Kind.STRUCT, StructInstance(inst.definition, fields))
        return self.copy()

    # Uniform views
    def is_truthy(self) -> bool:
        kind = self.kind
        if kind is Kind.NIL:
            return False
        if kind in (Kind.BOOL, Kind.I64, Kind.F64, Kind.STR, Kind.LIST):
            return bool(self.value)
        if kind is Kind.DICT:
            return self.value.size() > 0
        return True

    def can_sequence(self) -> bool:
        return self.kind in (Kind.STR, Kind.LIST)

    def is_iterable(self) -> bool:
        return self.kind in (Kind.STR, Kind.LIST)

    def is_callable(self) -> bool:
        return self.kind in CALLABLE_KINDS

    def sequence(self) -> 'Sequence':
        from .sequence import as_sequence
        return as_sequence(self)

    def key(self) -> ObjKey:
        """Stable hashable digest used to key dictionaries."""
        return ObjKey(self.kind.value, self.repr().encode('utf-8'))

    @property
    def type_name(self) -> str:
        if self.kind is Kind.STRUCT:
            return self.value.name
        return self.kind.value

    def equals(self, other: 'Obj') -> bool:
        if self.kind is not other.kind:
            return False
        kind = self.kind
        if kind is Kind.NIL:
            return True
        if kind in (Kind.BOOL, Kind.I64, Kind.F64, Kind.STR):
            return self.value == other.value
        if kind is Kind.LIST:
            if len(self.value) != len(other.value):
                return False
            return all(a.equals(b) for a, b in zip(self.value, other.value))
        if kind is Kind.DICT:
            return self.value.equals(other.value)
        if kind is Kind.STRUCT:
            a, b = self.value, other.value
            if a.definition is not b.definition:
                return False
            return all(v.equals(b.fields[k]) for k, v in a.fields.items())
        if kind is Kind.METHOD:
            return (self.value.function is other.value.function
                    and self.value.receiver is other.value.receiver)
        return self.value is other.value

    def repr(self) -> str:
        """Canonical form used inside containers; strings are quoted."""
        if self.kind is Kind.STR:
            return quote(self.value)
        return str(self)

    def __str__(self) -> str:
        kind = self.kind
        if kind is Kind.NIL:
            return 'nil'
        if kind is Kind.BOOL:
            return 'true' if self.value else 'false'
        if kind is Kind.I64:
            return str(self.value)
        if kind is Kind.F64:
            return repr(self.value)
        if kind is Kind.STR:
            return self.value
        if kind is Kind.LIST:
            return '[' + ', '.join(o.repr() for o in self.value) + ']'
        if kind is Kind.DICT:
            return str(self.value)
        if kind is Kind.STRUCT:
            inst = self.value
            inner = ', '.join(f"{k}: {v.repr()}" for k, v in inst.fields.items())
            return f"{inst.name}{{{inner}}}"
        if kind is Kind.FUNC:
            return f"<func {self.value.name}>"
        if kind is Kind.METHOD:
            return f"<method {self.value.receiver.name}.{self.value.name}>"
        if kind in (Kind.BUILTIN, Kind.HOST_FUNC):
            return f"<builtin {self.value.name}>"
        if kind is Kind.MODULE:
            return f"<module {self.value.name}>"
        if kind is Kind.STRUCT_DEF:
            return f"<struct {self.value.name}>"
        return '<unknown object>'

    def __repr__(self) -> str:
        return f"Obj({self.kind}, {self.repr()})"
