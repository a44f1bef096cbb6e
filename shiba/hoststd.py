"""Standard modules provided by the host.

``import X`` falls back to this registry when no ``X.sb`` is found next
to the importer or in the standard module directory. Each entry builds
the objects placed in the root scope of the new module.
"""

import math
from typing import Callable, Dict, List

from .builtin_function import BuiltinFunction
from .errors import TypeMismatch
from .types import NUMERIC_KINDS, Kind, Obj


def _number(o: Obj) -> float:
    if o.kind not in NUMERIC_KINDS:
        raise TypeMismatch('i64 or f64', o.type_name)
    return float(o.value)


def populate_math() -> Dict[str, Obj]:
    def math_add(args: List[Obj]) -> Obj:
        total = 0
        for a in args:
            if a.kind is not Kind.I64:
                raise TypeMismatch('i64', a.type_name)
            total += a.value
        return Obj.integer(total)

    def math_sqrt(args: List[Obj]) -> Obj:
        return Obj.double(math.sqrt(_number(args[0])))

    def math_floor(args: List[Obj]) -> Obj:
        x = args[0]
        if x.kind is Kind.I64:
            return x.copy()
        return Obj.integer(math.floor(_number(x)))

    def math_pow(args: List[Obj]) -> Obj:
        x, y = args
        if x.kind is Kind.I64 and y.kind is Kind.I64 and y.value >= 0:
            # reduced modulo 2**64, then wrapped like every other i64 result
            return Obj.integer(pow(x.value, y.value, 1 << 64))
        return Obj.double(math.pow(_number(x), _number(y)))

    objs = {
        'pi': Obj.double(math.pi),
        'e': Obj.double(math.e),
    }
    for fn in (
        BuiltinFunction('add', None, math_add),
        BuiltinFunction('sqrt', 1, math_sqrt),
        BuiltinFunction('floor', 1, math_floor),
        BuiltinFunction('pow', 2, math_pow),
    ):
        objs[fn.name] = Obj.builtin(fn, host=True)
    return objs


HOST_MODULES: Dict[str, Callable[[], Dict[str, Obj]]] = {
    'math': populate_math,
}
