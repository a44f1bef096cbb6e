"""CLI entry point for the Shiba interpreter.

Usage:
    python -m shiba [-v|-vv|-vvv] [program_file]

Options:
  -v            Increase debug verbosity (can be repeated)

Without a program file the interactive REPL starts. Debug tracing is
written to stdout; SHIBA_DBG enables it as well (a number selects the
level). SHIBA_STDMOD_DIR overrides the directory searched for standard
modules.
"""

import argparse
import os
import sys
from typing import List, Optional

from .errors import ShibaError
from .interpreter import Interpreter
from .repl import run_repl


def env_debug_level() -> int:
    value = os.environ.get('SHIBA_DBG', '')
    if not value:
        return 0
    try:
        return max(int(value), 1)
    except ValueError:
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog='shiba', description="Shiba language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('program', nargs='?', help='Shiba program file (.sb) to execute')
    args = parser.parse_args(argv)

    interp = Interpreter(
        debug_level=args.v + env_debug_level(),
        stdmod_dir=os.environ.get('SHIBA_STDMOD_DIR') or None,
    )

    if not args.program:
        return run_repl(interp)

    try:
        return interp.run_file(args.program)
    except OSError as e:
        print(f"{args.program}: cannot load: {e.strerror}", file=sys.stderr)
        return 1
    except ShibaError as e:
        print(e, file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
