import pytest

from shiba.dictionary import Dictionary
from shiba.errors import EvalError, InvalidBinaryOp, InvalidUnaryOp
from shiba.operators import compute_binary_op, compute_unary_op
from shiba.types import I64_MAX, I64_MIN, Kind, Obj


def i(n):
    return Obj.integer(n)


def f(x):
    return Obj.double(x)


def s(text):
    return Obj.string(text)


@pytest.mark.parametrize('op', ['+', '-', '*', '/'])
@pytest.mark.parametrize('a, b', [(7, 2.5), (-3, 0.5), (2.5, 7), (0.25, -4)])
def test_numeric_promotion(op, a, b):
    left = i(a) if isinstance(a, int) else f(a)
    right = i(b) if isinstance(b, int) else f(b)
    result = compute_binary_op(op, left, right)
    assert result.kind is Kind.F64
    x, y = float(a), float(b)
    expected = {'+': x + y, '-': x - y, '*': x * y, '/': x / y}[op]
    assert result.value == expected


def test_integer_division_truncates_toward_zero():
    assert compute_binary_op('/', i(7), i(2)).value == 3
    assert compute_binary_op('/', i(-7), i(2)).value == -3
    assert compute_binary_op('%', i(-7), i(2)).value == -1
    assert compute_binary_op('%', i(7), i(-2)).value == 1


@pytest.mark.parametrize('op, left', [('/', i(1)), ('/', f(1.0)), ('%', i(1))])
def test_division_by_zero(op, left):
    right = i(0) if left.kind is Kind.I64 else f(0.0)
    with pytest.raises(EvalError):
        compute_binary_op(op, left, right)


def test_modulo_only_on_integers():
    with pytest.raises(InvalidBinaryOp):
        compute_binary_op('%', f(5.0), i(2))


def test_i64_wraps_around():
    assert compute_binary_op('+', i(I64_MAX), i(1)).value == I64_MIN
    assert compute_binary_op('*', i(I64_MAX), i(2)).value == -2
    assert compute_unary_op('-', i(I64_MIN)).value == I64_MIN


def test_concatenation():
    assert compute_binary_op('+', s('ab'), s('c')).value == 'abc'
    joined = compute_binary_op('+', Obj.list_of([i(1)]), Obj.list_of([i(2)]))
    assert str(joined) == '[1, 2]'
    with pytest.raises(InvalidBinaryOp):
        compute_binary_op('+', s('a'), i(1))


def test_equality_is_by_kind_then_value():
    assert compute_binary_op('==', i(1), i(1)).value is True
    assert compute_binary_op('==', i(1), f(1.0)).value is False
    assert compute_binary_op('!=', s('a'), i(1)).value is True
    a = Obj.list_of([i(1), s('x')])
    b = Obj.list_of([i(1), s('x')])
    assert compute_binary_op('==', a, b).value is True
    assert compute_binary_op('==', Obj.nil(), Obj.nil()).value is True


def test_comparisons():
    assert compute_binary_op('<', i(1), f(1.5)).value is True
    assert compute_binary_op('>=', s('b'), s('a')).value is True
    with pytest.raises(InvalidBinaryOp):
        compute_binary_op('<', s('a'), i(1))


def test_bitwise():
    assert compute_binary_op('&', i(6), i(3)).value == 2
    assert compute_binary_op('|', i(6), i(3)).value == 7
    assert compute_binary_op('^', i(6), i(3)).value == 5
    assert compute_binary_op('<<', i(1), i(4)).value == 16
    assert compute_binary_op('>>', i(-16), i(2)).value == -4
    assert compute_unary_op('^', i(0)).value == -1
    with pytest.raises(InvalidBinaryOp):
        compute_binary_op('&', f(1.0), i(1))


def test_logical_needs_bools():
    assert compute_binary_op('&&', Obj.boolean(True), Obj.boolean(False)).value is False
    with pytest.raises(InvalidBinaryOp):
        compute_binary_op('||', i(1), Obj.boolean(True))


def test_unary():
    assert compute_unary_op('-', f(2.5)).value == -2.5
    assert compute_unary_op('+', i(3)).value == 3
    with pytest.raises(InvalidUnaryOp):
        compute_unary_op('-', s('a'))


def _values():
    d = Dictionary()
    d.set(s('k'), i(1))
    return [
        Obj.nil(), Obj.boolean(True), Obj.boolean(False), i(0), i(-2),
        f(0.0), f(0.1), s(''), s('x'), Obj.list_of(), Obj.list_of([i(0)]),
        Obj.dict_of(), Obj.dict_of(d),
    ]


@pytest.mark.parametrize('value', _values(), ids=repr)
def test_double_negation_matches_truthiness(value):
    negated = compute_unary_op('!', compute_unary_op('!', value))
    assert negated.kind is Kind.BOOL
    assert negated.value == value.is_truthy()


def test_falsy_values():
    falsy = [v for v in _values() if not v.is_truthy()]
    assert [str(v) for v in falsy] == ['nil', 'false', '0', '0.0', '', '[]', '{}']
