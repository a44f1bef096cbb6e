from shiba.interpreter import Interpreter


def test_program_5_loop_control_and_slices(example, capsys):
    interp = Interpreter()
    interp.run_file(example(5))
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['[2, 4, 6, 8]', '[4, 6] [2, 4] hiba']
