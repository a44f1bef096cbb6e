"""Built-in functions visible from every module.

Identifier lookup falls back to this registry after the scope chain, so
a program may shadow any of these names with its own binding.
"""

from typing import TYPE_CHECKING, Dict, List

from .builtin_function import BuiltinFunction
from .errors import DictKeyNotFound, ExitRequest, TypeMismatch
from .types import Kind, Obj

if TYPE_CHECKING:
    from .interpreter import Interpreter


def populate_builtins(interp: 'Interpreter') -> Dict[str, Obj]:
    registry: Dict[str, Obj] = {}

    def std_print(args: List[Obj]) -> None:
        interp.write(' '.join(str(a) for a in args))

    def std_len(args: List[Obj]) -> Obj:
        o = args[0]
        if o.kind in (Kind.STR, Kind.LIST):
            return Obj.integer(len(o.value))
        if o.kind is Kind.DICT:
            return Obj.integer(o.value.size())
        raise TypeMismatch('str, list or dict', o.type_name)

    def std_exit(args: List[Obj]) -> None:
        code = args[0]
        if code.kind is not Kind.I64:
            raise TypeMismatch('i64', code.type_name)
        raise ExitRequest(code.value)

    def std_env(args: List[Obj]) -> None:
        interp.write(str(interp.env))

    def std_keys(args: List[Obj]) -> Obj:
        d = args[0]
        if d.kind is not Kind.DICT:
            raise TypeMismatch('dict', d.type_name)
        return Obj.list_of([k.clone() for k in d.value.keys()])

    def std_delete(args: List[Obj]) -> None:
        d, key = args
        if d.kind is not Kind.DICT:
            raise TypeMismatch('dict', d.type_name)
        if not d.value.delete(key):
            raise DictKeyNotFound(d, key)

    def std_type(args: List[Obj]) -> Obj:
        return Obj.string(args[0].type_name)

    def std_str(args: List[Obj]) -> Obj:
        return Obj.string(str(args[0]))

    for fn in (
        BuiltinFunction('print', None, std_print),
        BuiltinFunction('len', 1, std_len),
        BuiltinFunction('exit', 1, std_exit),
        BuiltinFunction('env', 0, std_env),
        BuiltinFunction('keys', 1, std_keys),
        BuiltinFunction('delete', 2, std_delete),
        BuiltinFunction('type', 1, std_type),
        BuiltinFunction('str', 1, std_str),
    ):
        registry[fn.name] = Obj.builtin(fn)
    return registry
