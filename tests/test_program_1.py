from shiba.interpreter import Interpreter


def test_program_1_hello_world(example, capsys):
    interp = Interpreter()
    assert interp.run_file(example(1)) == 0
    out = capsys.readouterr().out.strip()
    assert out == 'Hello World!!'
