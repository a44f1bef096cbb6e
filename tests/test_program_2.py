from shiba.interpreter import Interpreter


def test_program_2_recursive_fib(example, capsys):
    interp = Interpreter()
    interp.run_file(example(2))
    out = capsys.readouterr().out.strip()
    assert out == '610'
