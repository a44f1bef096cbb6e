"""Tokenizer for the Shiba language.

:class:`TokenReader` scans a module's content one token at a time and
:class:`Tokenizer` buffers the scanned tokens so that the parser can
``mark()`` a position and ``reset()`` back to it. Scanning is lazy: a
token is only read when the parser first asks for it.

Newlines are tokens because they terminate statements. A ``#`` token
carries the comment text up to the end of the line as its value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .errors import TokenizeError
from .location import Location
from .module import Module

IDENT = 'IDENT'
STRING = 'STRING'
NUMBER = 'NUMBER'
EOF = 'EOF'
NEWLINE = '\n'

KEYWORDS = (
    'true', 'false', 'if', 'elif', 'else', 'for', 'in', 'def',
    'continue', 'break', 'return', 'import', 'struct',
)

# longest first so that a prefix never shadows a longer punctuator
PUNCTUATORS = sorted((
    '&&', '||', '==', '!=', '<=', '>=', '+=', '-=', '*=', '/=', '%=',
    '&=', '|=', '^=', ':=', '<<', '>>', '<', '>', '.', ':', '=', '+',
    '-', '*', '/', '%', '#', ',', '(', ')', '[', ']', '{', '}', '&',
    '|', '^', '!', NEWLINE,
), key=len, reverse=True)

ASSIGN_OPS = ('=', '+=', '-=', '*=', '/=', '%=', '&=', '|=', '^=', ':=')

ESCAPES = {'"': '"', '\\': '\\', 'n': '\n', 't': '\t', 'r': '\r', '0': '\0'}


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    loc: Location

    @property
    def line(self) -> int:
        return self.loc.line

    @property
    def column(self) -> int:
        return self.loc.column

    def describe(self) -> str:
        if self.type in (IDENT, STRING, NUMBER):
            return f"{self.type.lower()} {self.value!r}"
        if self.type == NEWLINE:
            return 'newline'
        if self.type == EOF:
            return 'end of input'
        return repr(self.type)


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def is_ident_letter(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or ('0' <= c <= '9') or c == '_'


class TokenReader:
    """Scans tokens out of a module's content."""

    def __init__(self, mod: Module):
        self.mod = mod
        self.content = mod.content
        self.pos = 0
        self.line = 1
        self.col = 1

    def loc(self) -> Location:
        return Location(self.mod.name, self.line, self.col, self.pos)

    def has_next(self) -> bool:
        return self.pos < len(self.content)

    def cur(self) -> str:
        return self.content[self.pos]

    def advance(self, n: int = 1) -> None:
        for _ in range(n):
            if self.content[self.pos] == '\n':
                self.line += 1
                self.col = 1
            else:
                self.col += 1
            self.pos += 1

    def read_token(self) -> Token:
        while self.has_next() and self.cur() in ' \t\r':
            self.advance()

        if not self.has_next():
            return Token(EOF, '', self.loc())

        c = self.cur()
        if c == '"':
            return self.read_string()
        if is_digit(c):
            return self.read_number()

        loc = self.loc()
        for punct in PUNCTUATORS:
            if self.content.startswith(punct, self.pos):
                self.advance(len(punct))
                if punct == '#':
                    return self.read_comment(loc)
                return Token(punct, punct, loc)

        if is_ident_letter(c):
            return self.read_ident()

        raise TokenizeError(f"invalid token {c!r}", loc)

    def read_comment(self, loc: Location) -> Token:
        start = self.pos
        while self.has_next() and self.cur() != '\n':
            self.advance()
        return Token('#', self.content[start:self.pos], loc)

    def read_string(self) -> Token:
        loc = self.loc()
        self.advance()  # opening quote
        chars: List[str] = []
        while True:
            if not self.has_next():
                raise TokenizeError('string unterminated', loc, incomplete=True)
            c = self.cur()
            if c == '"':
                self.advance()
                break
            if c == '\\':
                esc_loc = self.loc()
                self.advance()
                if not self.has_next():
                    raise TokenizeError('string unterminated', loc, incomplete=True)
                esc = self.cur()
                if esc not in ESCAPES:
                    raise TokenizeError(f"invalid escape sequence \\{esc}", esc_loc)
                chars.append(ESCAPES[esc])
                self.advance()
                continue
            chars.append(c)
            self.advance()
        return Token(STRING, ''.join(chars), loc)

    def read_number(self) -> Token:
        loc = self.loc()
        start = self.pos
        while self.has_next() and (is_digit(self.cur()) or self.cur() == '.'):
            self.advance()
        text = self.content[start:self.pos]
        if text.count('.') >= 2:
            raise TokenizeError(f"invalid decimal expression {text}", loc)
        return Token(NUMBER, text, loc)

    def read_ident(self) -> Token:
        loc = self.loc()
        start = self.pos
        while self.has_next() and is_ident_letter(self.cur()):
            self.advance()
        ident = self.content[start:self.pos]
        if ident in KEYWORDS:
            return Token(ident, ident, loc)
        return Token(IDENT, ident, loc)


class Tokenizer:
    """Buffered token stream supporting lookahead and backtracking."""

    def __init__(self, mod: Module):
        self.reader = TokenReader(mod)
        self.tokens: List[Token] = []
        self.pos = 0

    def mark(self) -> int:
        return self.pos

    def reset(self, pos: int) -> None:
        self.pos = pos

    def peek_token(self) -> Token:
        while self.pos >= len(self.tokens):
            if self.tokens and self.tokens[-1].type == EOF:
                # end of input yields EOF forever
                return self.tokens[-1]
            self.tokens.append(self.reader.read_token())
        return self.tokens[self.pos]

    def next_token(self) -> Token:
        tok = self.peek_token()
        if tok.type != EOF:
            self.pos += 1
        return tok


def tokenize(mod: Module) -> List[Token]:
    """Scan a whole module; the returned list ends with one EOF token."""
    t = Tokenizer(mod)
    tokens = []
    while True:
        tok = t.next_token()
        tokens.append(tok)
        if tok.type == EOF:
            return tokens
