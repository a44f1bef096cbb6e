import pytest

from shiba.ast import (
    Assign, BinaryOp, Call, Comment, DictLit, ForStmt, FuncDecl, Ident,
    IfStmt, ImportStmt, Index, ListLit, Literal, Selector, Slice, StructDecl,
    StructInit, UnaryOp, WhileStmt,
)
from shiba.errors import ParseError
from shiba.parser import parse_program


def parse_one(source):
    stmts = parse_program(source, 'test')
    assert len(stmts) == 1
    return stmts[0]


def test_precedence_climbing():
    node = parse_one('1 + 2 * 3 == 7 && !x')
    assert isinstance(node, BinaryOp) and node.op == '&&'
    eq = node.left
    assert eq.op == '=='
    assert eq.left.op == '+'
    assert eq.left.right.op == '*'
    assert isinstance(node.right, UnaryOp) and node.right.op == '!'


def test_binary_operators_are_left_associative():
    node = parse_one('10 - 3 - 2')
    assert node.op == '-'
    assert node.left.op == '-'
    assert node.right.value == 2


def test_shift_binds_tighter_than_bitwise_and():
    node = parse_one('a & b << 1')
    assert node.op == '&'
    assert node.right.op == '<<'


def test_postfix_chain():
    node = parse_one('m.items[0](1, 2)')
    assert isinstance(node, Call)
    assert len(node.args) == 2
    assert isinstance(node.func, Index)
    assert isinstance(node.func.target, Selector)
    assert node.func.target.name == 'items'


def test_slices_with_optional_bounds():
    full = parse_one('xs[1:2]')
    assert isinstance(full, Slice) and full.start.value == 1 and full.end.value == 2
    head = parse_one('xs[:2]')
    assert head.start is None and head.end.value == 2
    tail = parse_one('xs[1:]')
    assert tail.start.value == 1 and tail.end is None


def test_assignment_lists():
    node = parse_one('a, b = 1, 2')
    assert isinstance(node, Assign) and node.op == '='
    assert [n.name for n in node.left] == ['a', 'b']
    assert [n.value for n in node.right] == [1, 2]
    node = parse_one('x, y := pair')
    assert node.op == ':='
    node = parse_one('d["k"] += 5')
    assert node.op == '+=' and isinstance(node.left[0], Index)


def test_multiple_expressions_without_assignment():
    with pytest.raises(ParseError):
        parse_program('a, b', 'test')


def test_literals():
    node = parse_one('[1, 2.5, "s", true, {"k": false},]')
    assert isinstance(node, ListLit)
    assert [e.literal_type for e in node.elements[:4]] == ['i64', 'f64', 'str', 'bool']
    assert isinstance(node.elements[4], DictLit)


def test_newlines_inside_brackets_are_ignored():
    node = parse_one('f(1,\n  2,\n)')
    assert isinstance(node, Call) and len(node.args) == 2
    node = parse_one('d = {\n "a": 1,\n "b": 2\n}')
    assert len(node.right[0].keys) == 2


def test_statements_without_newline():
    stmts = parse_program('print(1) print(2)', 'test')
    assert len(stmts) == 2


def test_if_elif_else_across_lines():
    node = parse_one('if a {\n x = 1\n}\nelif b {\n x = 2\n} else {\n x = 3\n}')
    assert isinstance(node, IfStmt)
    assert len(node.blocks) == 3
    assert node.conds[2] is None


def test_if_without_else_leaves_next_statement():
    stmts = parse_program('if a { b = 1 }\nc = 2', 'test')
    assert isinstance(stmts[0], IfStmt) and len(stmts[0].blocks) == 1
    assert isinstance(stmts[1], Assign)


def test_for_in_and_conditional_loop():
    node = parse_one('for i, e in xs { print(e) }')
    assert isinstance(node, ForStmt)
    assert (node.counter.name, node.element.name) == ('i', 'e')
    node = parse_one('for i < 10 { i += 1 }')
    assert isinstance(node, WhileStmt)
    assert node.condition.op == '<'
    node = parse_one('for ok { break }')
    assert isinstance(node, WhileStmt) and isinstance(node.condition, Ident)


def test_struct_decl_and_init():
    decl = parse_one('struct P { x y\n def sum() { return x + y } }')
    assert isinstance(decl, StructDecl)
    assert decl.fields == ['x', 'y']
    assert [m.name for m in decl.methods] == ['sum']
    init = parse_one('p = P{x: 4, y: 5}').right[0]
    assert isinstance(init, StructInit)
    assert [k.name for k in init.values.keys] == ['x', 'y']


def test_struct_init_needs_parens_in_headers():
    node = parse_one('if p == (P{x: 1}) { }')
    assert isinstance(node.conds[0].right, StructInit)
    node = parse_one('if ok { }')
    assert isinstance(node.conds[0], Ident)


def test_func_decl_and_import():
    fn = parse_one('def add(x, y,) { return x + y }')
    assert isinstance(fn, FuncDecl) and fn.params == ['x', 'y']
    assert parse_one('import lib/util').target == 'lib/util'
    assert parse_one('import "a/b"').target == 'a/b'


def test_comment_statement():
    node = parse_one('# hello')
    assert isinstance(node, Comment) and node.message == ' hello'


def test_locations_match_introducing_tokens():
    stmts = parse_program('x = 1\nprint(x + y[0])', 'test')
    assign, call = stmts
    assert (assign.loc.line, assign.loc.column) == (1, 3)  # '='
    assert (assign.left[0].loc.line, assign.left[0].loc.column) == (1, 1)
    assert (assign.right[0].loc.line, assign.right[0].loc.column) == (1, 5)
    assert (call.loc.line, call.loc.column) == (2, 6)  # '('
    plus = call.args[0]
    assert plus.loc.column == 9
    assert plus.left.loc.column == 7
    assert plus.right.loc.column == 12  # '['
    assert plus.right.target.loc.column == 11


@pytest.mark.parametrize('source', [
    'print(1',
    'def f() {',
    'x = ',
    'a +',
    'xs = [1, 2',
    'if a { b = 1',
])
def test_incomplete_input(source):
    with pytest.raises(ParseError) as excinfo:
        parse_program(source, 'test')
    assert excinfo.value.incomplete


@pytest.mark.parametrize('source', [
    'x = )',
    'def 1() {}',
    'struct P { 1 }',
])
def test_invalid_input_is_not_incomplete(source):
    with pytest.raises(ParseError) as excinfo:
        parse_program(source, 'test')
    assert not excinfo.value.incomplete
    assert excinfo.value.loc is not None
