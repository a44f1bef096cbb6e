# Shiba language package
# This package provides a tokenizer, parser and tree-walking interpreter for the Shiba language.
from .errors import ShibaError
from .interpreter import Interpreter, run_program
from .parser import parse_program

__all__ = [
    'run_program',
    'parse_program',
    'Interpreter',
    'ShibaError',
]
