"""Operator semantics for the primitive kinds.

``compute_binary_op`` and ``compute_unary_op`` implement the operator
truth table. Every result is a fresh object. Errors are raised without a
location; the evaluator attaches the operator's location.
"""

from __future__ import annotations

import operator
from typing import Callable, Dict

from .errors import EvalError, InvalidBinaryOp, InvalidUnaryOp
from .types import NUMERIC_KINDS, Kind, Obj

ARITHMETIC_OPS = ('+', '-', '*', '/', '%')
COMPARISON_OPS = ('<', '<=', '>', '>=')
BITWISE_OPS = ('&', '|', '^', '<<', '>>')
LOGICAL_OPS = ('&&', '||')

_COMPARE: Dict[str, Callable] = {
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
}


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _trunc_mod(a: int, b: int) -> int:
    r = abs(a) % abs(b)
    return -r if a < 0 else r


def _arithmetic(op: str, left: Obj, right: Obj) -> Obj:
    lk, rk = left.kind, right.kind
    if op == '+':
        if lk is Kind.STR and rk is Kind.STR:
            return Obj.string(left.value + right.value)
        if lk is Kind.LIST and rk is Kind.LIST:
            return Obj.list_of([o.copy() for o in left.value + right.value])

    if lk not in NUMERIC_KINDS or rk not in NUMERIC_KINDS:
        raise InvalidBinaryOp(op, str(lk), str(rk))

    if op == '%':
        if lk is not Kind.I64 or rk is not Kind.I64:
            raise InvalidBinaryOp(op, str(lk), str(rk))
        if right.value == 0:
            raise EvalError('modulo by zero')
        return Obj.integer(_trunc_mod(left.value, right.value))

    if op == '/' and right.value == 0:
        raise EvalError('division by zero')

    if lk is Kind.I64 and rk is Kind.I64:
        a, b = left.value, right.value
        if op == '+':
            return Obj.integer(a + b)
        if op == '-':
            return Obj.integer(a - b)
        if op == '*':
            return Obj.integer(a * b)
        return Obj.integer(_trunc_div(a, b))

    # numeric promotion: at least one side is f64
    a, b = float(left.value), float(right.value)
    if op == '+':
        return Obj.double(a + b)
    if op == '-':
        return Obj.double(a - b)
    if op == '*':
        return Obj.double(a * b)
    return Obj.double(a / b)


def _compare(op: str, left: Obj, right: Obj) -> Obj:
    lk, rk = left.kind, right.kind
    if lk in NUMERIC_KINDS and rk in NUMERIC_KINDS:
        return Obj.boolean(_COMPARE[op](left.value, right.value))
    if lk is Kind.STR and rk is Kind.STR:
        return Obj.boolean(_COMPARE[op](left.value, right.value))
    raise InvalidBinaryOp(op, str(lk), str(rk))


def _bitwise(op: str, left: Obj, right: Obj) -> Obj:
    if left.kind is not Kind.I64 or right.kind is not Kind.I64:
        raise InvalidBinaryOp(op, str(left.kind), str(right.kind))
    a, b = left.value, right.value
    if op == '&':
        return Obj.integer(a & b)
    if op == '|':
        return Obj.integer(a | b)
    if op == '^':
        return Obj.integer(a ^ b)
    if b < 0:
        raise EvalError(f'negative shift count {b}')
    if op == '<<':
        # shifting past the width yields 0, as for a 64-bit register
        return Obj.integer(a << b if b < 64 else 0)
    return Obj.integer(a >> min(b, 63))


def compute_binary_op(op: str, left: Obj, right: Obj) -> Obj:
    """Apply a non short-circuit binary operator."""
    if op in ARITHMETIC_OPS:
        return _arithmetic(op, left, right)
    if op == '==':
        return Obj.boolean(left.equals(right))
    if op == '!=':
        return Obj.boolean(not left.equals(right))
    if op in COMPARISON_OPS:
        return _compare(op, left, right)
    if op in BITWISE_OPS:
        return _bitwise(op, left, right)
    if op in LOGICAL_OPS:
        if left.kind is not Kind.BOOL or right.kind is not Kind.BOOL:
            raise InvalidBinaryOp(op, str(left.kind), str(right.kind))
        if op == '&&':
            return Obj.boolean(left.value and right.value)
        return Obj.boolean(left.value or right.value)
    raise InvalidBinaryOp(op, str(left.kind), str(right.kind))


def compute_unary_op(op: str, operand: Obj) -> Obj:
    kind = operand.kind
    if op == '+' and kind in NUMERIC_KINDS:
        return operand.copy()
    if op == '-':
        if kind is Kind.I64:
            return Obj.integer(-operand.value)
        if kind is Kind.F64:
            return Obj.double(-operand.value)
    if op == '!':
        return Obj.boolean(not operand.is_truthy())
    if op == '^' and kind is Kind.I64:
        return Obj.integer(~operand.value)
    raise InvalidUnaryOp(op, str(kind))
