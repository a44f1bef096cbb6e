"""Interactive read-eval-print loop."""

import sys
from typing import List, Optional

from .ast import Node
from .errors import ParseError, ShibaError, TokenizeError
from .interpreter import Interpreter
from .module import Module
from .parser import parse_program
from .results import Exit, ObjResult
from .types import Kind

PROMPT = 'shiba>>> '
CONTINUATION_PROMPT = 'shiba... '
REPL_MODULE = '<repl>'


def read_line(prompt: str) -> str:
    return input(prompt)


class Repl:
    """Reads statements line by line and evaluates them in one module.

    Lines accumulate in a buffer until it parses; a parse that fails only
    because the input ended early switches to the continuation prompt.
    """

    def __init__(self, interp: Optional[Interpreter] = None):
        self.interp = interp if interp is not None else Interpreter()
        self.mod = Module.from_source('', name=REPL_MODULE)
        self.interp.env.register(self.mod)
        self.buffer = ''

    def parse(self) -> Optional[List[Node]]:
        """Parse the buffer; None means more input is needed."""
        try:
            statements = parse_program(self.buffer, REPL_MODULE)
        except (TokenizeError, ParseError) as e:
            if e.incomplete:
                return None
            self.buffer = ''
            print(e, file=sys.stderr)
            return []
        self.buffer = ''
        return statements

    def evaluate(self, statements: List[Node]) -> Optional[int]:
        """Evaluate parsed statements; returns an exit code when ``exit()`` ran."""
        for stmt in statements:
            try:
                result = self.interp.run_statement(self.mod, stmt)
            except ShibaError as e:
                print(e, file=sys.stderr)
                return None
            if isinstance(result, Exit):
                return result.code
            if isinstance(result, ObjResult) and result.obj.kind is not Kind.NIL:
                self.interp.write(str(result.obj))
        return None

    def run(self) -> int:
        while True:
            prompt = CONTINUATION_PROMPT if self.buffer else PROMPT
            try:
                line = read_line(prompt)
            except EOFError:
                print()
                return 0
            except KeyboardInterrupt:
                print()
                if not self.buffer:
                    return 0
                self.buffer = ''
                continue

            self.buffer += line + ' '
            statements = self.parse()
            if statements is None:
                continue
            code = self.evaluate(statements)
            if code is not None:
                return code


def run_repl(interp: Optional[Interpreter] = None) -> int:
    return Repl(interp).run()
