import pytest

from shiba.errors import (
    DictKeyNotFound, EvalError, InvalidAssignOp, InvalidBinaryOp, InvalidIndex,
    TypeMismatch, UndefinedIdent,
)
from shiba.interpreter import Interpreter, run_program


def run(source, capsys):
    assert run_program(source) == 0
    return capsys.readouterr().out


@pytest.mark.parametrize('source, expected', [
    ('a = 99\nprint(a)\n', '99\n'),
    ('a, b, c = 1, 2, 3\nprint(a+b+c)\n', '6\n'),
    ('xs := [10, 20, 30]\nfor i, e in xs { print(i) print(e) }\n', '0\n10\n1\n20\n2\n30\n'),
    ('d = {"k": 1}\nd["k"] += 5\nd["n"] = 7\nprint(d["k"]) print(d["n"])\n', '6\n7\n'),
    ('def add(x, y) { return x + y }\nprint(add(2, 3))\n', '5\n'),
    ('struct P { x y\n  def sum() { return x + y } }\np = P{x: 4, y: 5}\nprint(p.sum())\n', '9\n'),
])
def test_end_to_end(source, expected, capsys):
    assert run(source, capsys) == expected


def test_print_canonical_forms(capsys):
    out = run('print(1, 2.5, "s", true, [1, "a"], {"k": [2]}, 1.0 / 4)', capsys)
    assert out == '1 2.5 s true [1, "a"] {"k": [2]} 0.25\n'


def test_new_binding_does_not_alias_scalars(capsys):
    out = run('a = 1\nb = a\na = 2\nprint(a, b)', capsys)
    assert out == '2 1\n'


def test_containers_are_shared_under_mutation(capsys):
    out = run('a = {}\nb = a\nb["k"] = 1\nxs = [1]\nys = xs\nys[0] = 5\nprint(a, xs)', capsys)
    assert out == '{"k": 1} [5]\n'


def test_arguments_are_passed_by_value(capsys):
    source = '\n'.join([
        'def reset(xs) { xs[0] = 0\n xs = [] }',
        'ys = [1, 2]',
        'reset(ys)',
        'print(ys)',
    ])
    assert run(source, capsys) == '[1, 2]\n'


def test_functions_update_module_bindings(capsys):
    source = 'count = 0\ndef bump() { count += 1 }\nbump()\nbump()\nprint(count)'
    assert run(source, capsys) == '2\n'


def test_function_locals_do_not_leak(capsys):
    source = 'def f() { local = 1 }\nf()\nprint(local)'
    with pytest.raises(UndefinedIdent) as excinfo:
        run_program(source)
    assert excinfo.value.ident == 'local'
    assert excinfo.value.loc.line == 3


def test_missing_return_yields_nil(capsys):
    assert run('def f() { }\nprint(f())', capsys) == 'nil\n'


def test_recursion_and_early_return(capsys):
    source = '\n'.join([
        'def find(xs, x) {',
        '    for i, e in xs {',
        '        if e == x {',
        '            return i',
        '        }',
        '    }',
        '    return -1',
        '}',
        'print(find([5, 6, 7], 7), find([], 1))',
    ])
    assert run(source, capsys) == '2 -1\n'


def test_deep_recursion_without_cli(capsys):
    source = 'def s(n) { if n == 0 { return 0 } return n + s(n - 1) }\nprint(s(600))\n'
    assert run(source, capsys) == '180300\n'


def test_conditional_loop_reevaluates_condition(capsys):
    assert run('i = 0\nfor i < 3 { i += 1 }\nprint(i)', capsys) == '3\n'


def test_nested_loops_break_inner_only(capsys):
    source = '\n'.join([
        'for i, a in [1, 2] {',
        '    for j, b in [10, 20, 30] {',
        '        if b == 20 { break }',
        '        print(a * b)',
        '    }',
        '}',
    ])
    assert run(source, capsys) == '10\n20\n'


def test_if_elif_else(capsys):
    source = '\n'.join([
        'def sign(n) {',
        '    if n > 0 { return "+" }',
        '    elif n < 0 { return "-" }',
        '    else { return "0" }',
        '}',
        'print(sign(3), sign(-3), sign(0))',
    ])
    assert run(source, capsys) == '+ - 0\n'


def test_short_circuit(capsys):
    source = 'def boom() { return missing }\nprint(false && boom(), true || boom())'
    assert run(source, capsys) == 'false true\n'


def test_string_iteration_and_indexing(capsys):
    source = 'for i, c in "ab" { print(i, c) }\nprint("shiba"[2], len("shiba"))'
    assert run(source, capsys) == '0 a\n1 b\ni 5\n'


def test_struct_fields_and_unset_fields(capsys):
    source = '\n'.join([
        'struct Point { x y }',
        'p = Point{x: 1}',
        'p.y = 2',
        'p.x += 10',
        'print(p, p.x, type(p))',
    ])
    assert run(source, capsys) == 'Point{x: 11, y: 2} 11 Point\n'


def test_struct_unknown_field_is_rejected():
    with pytest.raises(EvalError):
        run_program('struct P { x }\np = P{z: 1}')


def test_methods_call_each_other(capsys):
    source = '\n'.join([
        'struct Rect {',
        '    w h',
        '    def area() { return w * h }',
        '    def double_area() { return area() * 2 }',
        '}',
        'r = Rect{w: 2, h: 3}',
        'print(r.double_area())',
    ])
    assert run(source, capsys) == '12\n'


def test_struct_instances_are_cloned_on_binding(capsys):
    source = '\n'.join([
        'struct Box { v }',
        'def set(b) { b.v = 9 }',
        'a = Box{v: 1}',
        'set(a)',
        'print(a.v)',
    ])
    assert run(source, capsys) == '1\n'


def test_builtins(capsys):
    source = '\n'.join([
        'd = {"a": 1, "b": 2}',
        'delete(d, "a")',
        'print(keys(d), len(d), len([1, 2, 3]), type(1.5), str(12) + "!")',
    ])
    assert run(source, capsys) == '["b"] 1 3 f64 12!\n'


def test_builtins_can_be_shadowed(capsys):
    assert run('len = 3\nprint(len)', capsys) == '3\n'


def test_exit_stops_the_program(capsys):
    assert run_program('print(1)\nexit(3)\nprint(2)') == 3
    assert capsys.readouterr().out == '1\n'


def test_exit_inside_function():
    assert run_program('def f() { for true { exit(4) } }\nf()') == 4


def test_compound_assign_to_undefined_identifier_binds(capsys):
    assert run('total += 5\nprint(total)', capsys) == '5\n'


def test_compound_assign_to_missing_key():
    with pytest.raises(DictKeyNotFound):
        run_program('d = {}\nd["k"] += 1')


def test_compound_assign_with_invalid_operands():
    with pytest.raises(InvalidAssignOp) as excinfo:
        run_program('s = "a"\ns -= 1')
    assert excinfo.value.loc.line == 2


def test_assignment_size_mismatch():
    with pytest.raises(EvalError):
        run_program('a, b = 1, 2, 3')
    with pytest.raises(EvalError):
        run_program('a, b := [1, 2, 3]')


def test_string_item_assignment_is_rejected():
    with pytest.raises(EvalError):
        run_program('s = "abc"\ns[0] = "x"')


def test_index_errors():
    with pytest.raises(InvalidIndex):
        run_program('xs = [1]\nprint(xs[-1])')
    with pytest.raises(InvalidIndex):
        run_program('print("abc"[2:1])')
    with pytest.raises(TypeMismatch):
        run_program('print([1]["a"])')


def test_dict_miss_on_read():
    with pytest.raises(DictKeyNotFound) as excinfo:
        run_program('d = {"a": 1}\nprint(d["b"])')
    assert str(excinfo.value.key) == 'b'


def test_calling_a_non_function():
    with pytest.raises(TypeMismatch):
        run_program('x = 1\nx()')
    with pytest.raises(TypeMismatch):
        run_program('d = {"f": 1}\nd["f"]()')


def test_arity_is_checked():
    with pytest.raises(EvalError):
        run_program('def f(a) { }\nf(1, 2)')


@pytest.mark.parametrize('source, message', [
    ('break', 'break outside loop'),
    ('def f() { continue }\nf()', 'continue outside loop in f'),
    ('return 1', 'return outside function'),
])
def test_control_outside_its_construct(source, message):
    with pytest.raises(EvalError) as excinfo:
        run_program(source)
    assert excinfo.value.message == message


def test_error_location_points_into_callee():
    source = 'def f(x) {\n    return x + "a"\n}\nf(1)'
    with pytest.raises(InvalidBinaryOp) as excinfo:
        run_program(source)
    assert (excinfo.value.loc.line, excinfo.value.loc.column) == (2, 14)


def test_debug_tracing(capsys):
    interp = Interpreter(debug_level=3)
    interp.run_source('def f(x) { return x }\nif f(1) { print("yes") }')
    out = capsys.readouterr().out
    assert '[shiba] define function f(x)' in out
    assert '[shiba] call <main>.f(1)' in out
    assert '[shiba] if condition 1 -> True' in out
    assert out.rstrip().endswith('yes')
