"""Recursive-descent parser for the Shiba language.

The parser pulls tokens lazily from a :class:`~shiba.tokenizer.Tokenizer`
and produces one top-level AST node per :meth:`Parser.parse_statement`
call, so the driver can evaluate a statement before the next one is even
scanned.

Newline tokens terminate statements, except inside unclosed parentheses,
brackets and expression braces where they are skipped. Blocks
(``{ ... }`` after ``if``, ``for``, ``def`` and ``struct``) reset that
nesting so that newlines separate the statements inside them.

Binary operators are parsed by precedence climbing, lowest first::

    ||  &&  == !=  < <= > >=  |  ^  &  << >>  + -  * / %

Errors raised because the input ended early are flagged ``incomplete``;
the REPL uses that to keep reading lines.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence

from .ast import (
    Assign, BinaryOp, BreakStmt, Call, Comment, ContinueStmt, DictLit, Eof,
    ForStmt, FuncDecl, Ident, IfStmt, ImportStmt, Index, ListLit, Literal,
    Node, ReturnStmt, Selector, Slice, StructDecl, StructInit, UnaryOp,
    WhileStmt,
)
from .errors import ParseError
from .module import Module
from .tokenizer import ASSIGN_OPS, EOF, IDENT, NEWLINE, NUMBER, STRING, Token, Tokenizer
from .types import I64_MAX

UNARY_OPS = ('+', '-', '!', '^')
STATEMENT_END = (NEWLINE, EOF, '}', '#')


class Parser:
    def __init__(self, mod: Module):
        self.mod = mod
        self.tokenizer = Tokenizer(mod)
        # depth of unclosed (), [] and expression {}
        self.nesting = 0
        # set while parsing if/for headers where '{' opens the body
        self.no_struct_init = False

    # Token helpers
    def peek(self) -> Token:
        tok = self.tokenizer.peek_token()
        if self.nesting > 0:
            while tok.type == NEWLINE:
                self.tokenizer.next_token()
                tok = self.tokenizer.peek_token()
        return tok

    def next(self) -> Token:
        self.peek()
        return self.tokenizer.next_token()

    def match(self, *types: str) -> bool:
        return self.peek().type in types

    def consume(self, expected: str) -> Token:
        tok = self.peek()
        if tok.type != expected:
            shown = 'newline' if expected == NEWLINE else expected
            raise self.error(f"{shown} is expected but found {tok.describe()}", tok)
        return self.next()

    def skip_newlines(self) -> None:
        while self.tokenizer.peek_token().type == NEWLINE:
            self.tokenizer.next_token()

    def error(self, message: str, tok: Token) -> ParseError:
        return ParseError(message, tok.loc, incomplete=tok.type == EOF)

    @contextmanager
    def nested(self) -> Iterator[None]:
        saved = self.no_struct_init
        self.nesting += 1
        self.no_struct_init = False
        try:
            yield
        finally:
            self.nesting -= 1
            self.no_struct_init = saved

    # Statements
    def parse_statement(self) -> Node:
        """Parse the next top-level statement; returns ``Eof`` at the end."""
        self.skip_newlines()
        tok = self.peek()
        if tok.type == EOF:
            return Eof(tok)
        if tok.type == '#':
            self.next()
            return Comment(tok, tok.value)
        if tok.type == 'import':
            return self.parse_import_stmt()
        if tok.type == 'def':
            return self.parse_func_decl()
        if tok.type == 'struct':
            return self.parse_struct_decl()
        if tok.type == 'if':
            return self.parse_if_stmt()
        if tok.type == 'for':
            return self.parse_for_stmt()
        if tok.type == 'return':
            return self.parse_return_stmt()
        if tok.type == 'break':
            return BreakStmt(self.next())
        if tok.type == 'continue':
            return ContinueStmt(self.next())
        return self.parse_simple_stmt()

    def parse_import_stmt(self) -> ImportStmt:
        tok = self.consume('import')
        target = self.peek()
        if target.type == STRING:
            self.next()
            return ImportStmt(tok, target.value)
        if target.type != IDENT:
            raise self.error(f"module name is expected but found {target.describe()}", target)
        parts = [self.next().value]
        # import a/b
        while self.match('/'):
            self.next()
            parts.append(self.consume(IDENT).value)
        return ImportStmt(tok, '/'.join(parts))

    def parse_block(self) -> List[Node]:
        self.consume('{')
        saved_nesting, saved_no_struct = self.nesting, self.no_struct_init
        self.nesting, self.no_struct_init = 0, False
        try:
            statements: List[Node] = []
            while True:
                self.skip_newlines()
                tok = self.peek()
                if tok.type == '}':
                    break
                if tok.type == EOF:
                    raise self.error('unterminated block', tok)
                statements.append(self.parse_statement())
            self.consume('}')
        finally:
            self.nesting, self.no_struct_init = saved_nesting, saved_no_struct
        return statements

    def parse_params(self) -> List[str]:
        params: List[str] = []
        with self.nested():
            self.consume('(')
            while not self.match(')'):
                params.append(self.consume(IDENT).value)
                if not self.match(','):
                    break
                self.next()
            self.consume(')')
        return params

    def parse_func_decl(self) -> FuncDecl:
        tok = self.consume('def')
        name = self.consume(IDENT).value
        params = self.parse_params()
        body = self.parse_block()
        return FuncDecl(tok, name, params, body)

    def parse_struct_decl(self) -> StructDecl:
        tok = self.consume('struct')
        name = self.consume(IDENT).value
        self.consume('{')
        fields: List[str] = []
        methods: List[FuncDecl] = []
        while True:
            self.skip_newlines()
            cur = self.peek()
            if cur.type == '}':
                self.next()
                break
            if cur.type == IDENT:
                fields.append(self.next().value)
            elif cur.type == ',':
                self.next()
            elif cur.type == '#':
                self.next()
            elif cur.type == 'def':
                methods.append(self.parse_func_decl())
            else:
                raise self.error(f"field or method is expected in struct {name} but found {cur.describe()}", cur)
        return StructDecl(tok, name, fields, methods)

    def parse_header(self) -> Node:
        saved = self.no_struct_init
        self.no_struct_init = True
        try:
            return self.parse_expression()
        finally:
            self.no_struct_init = saved

    def parse_if_stmt(self) -> IfStmt:
        tok = self.consume('if')
        conds: List[Optional[Node]] = [self.parse_header()]
        blocks = [self.parse_block()]
        while True:
            pos = self.tokenizer.mark()
            self.skip_newlines()
            if self.match('elif'):
                self.next()
                conds.append(self.parse_header())
                blocks.append(self.parse_block())
                continue
            if self.match('else'):
                self.next()
                conds.append(None)
                blocks.append(self.parse_block())
                break
            self.tokenizer.reset(pos)
            break
        return IfStmt(tok, conds, blocks)

    def parse_for_stmt(self) -> Node:
        tok = self.consume('for')
        pos = self.tokenizer.mark()
        # for cnt, elem in target { ... }
        if self.match(IDENT):
            counter = self.next()
            if self.match(','):
                self.next()
                if self.match(IDENT):
                    element = self.next()
                    if self.match('in'):
                        self.next()
                        target = self.parse_header()
                        body = self.parse_block()
                        return ForStmt(tok, target, Ident(counter, counter.value),
                                       Ident(element, element.value), body)
        # for cond { ... }
        self.tokenizer.reset(pos)
        cond = self.parse_header()
        body = self.parse_block()
        return WhileStmt(tok, cond, body)

    def parse_return_stmt(self) -> ReturnStmt:
        tok = self.consume('return')
        if self.match(*STATEMENT_END):
            return ReturnStmt(tok, None)
        return ReturnStmt(tok, self.parse_expression())

    def parse_simple_stmt(self) -> Node:
        exprs = self.parse_expr_list()
        if self.match(*ASSIGN_OPS):
            op = self.next()
            if self.match(*STATEMENT_END):
                raise self.error(f"right side of {op.type} is missing", self.peek())
            right = self.parse_expr_list()
            return Assign(op, op.type, exprs, right)
        if len(exprs) > 1:
            raise ParseError('an assignment operator is expected after multiple expressions', exprs[1].loc)
        return exprs[0]

    def parse_expr_list(self) -> List[Node]:
        exprs = [self.parse_expression()]
        while self.match(','):
            self.next()
            if self.match(*ASSIGN_OPS) or self.match(*STATEMENT_END):
                break  # trailing comma
            exprs.append(self.parse_expression())
        return exprs

    # Expressions
    def parse_expression(self) -> Node:
        return self.parse_logic_or()

    def _left_assoc(self, ops: Sequence[str], operand: Callable[[], Node]) -> Node:
        node = operand()
        while self.match(*ops):
            op = self.next()
            right = operand()
            node = BinaryOp(op, op.type, node, right)
        return node

    def parse_logic_or(self) -> Node:
        return self._left_assoc(('||',), self.parse_logic_and)

    def parse_logic_and(self) -> Node:
        return self._left_assoc(('&&',), self.parse_equality)

    def parse_equality(self) -> Node:
        return self._left_assoc(('==', '!='), self.parse_relational)

    def parse_relational(self) -> Node:
        return self._left_assoc(('<', '<=', '>', '>='), self.parse_bitwise_or)

    def parse_bitwise_or(self) -> Node:
        return self._left_assoc(('|',), self.parse_bitwise_xor)

    def parse_bitwise_xor(self) -> Node:
        return self._left_assoc(('^',), self.parse_bitwise_and)

    def parse_bitwise_and(self) -> Node:
        return self._left_assoc(('&',), self.parse_shift)

    def parse_shift(self) -> Node:
        return self._left_assoc(('<<', '>>'), self.parse_additive)

    def parse_additive(self) -> Node:
        return self._left_assoc(('+', '-'), self.parse_multiplicative)

    def parse_multiplicative(self) -> Node:
        return self._left_assoc(('*', '/', '%'), self.parse_unary)

    def parse_unary(self) -> Node:
        if self.match(*UNARY_OPS):
            op = self.next()
            operand = self.parse_unary()
            return UnaryOp(op, op.type, operand)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        while True:
            if self.match('('):
                node = self.parse_call(node)
                continue
            if self.match('['):
                node = self.parse_index(node)
                continue
            if self.match('.'):
                tok = self.next()
                name = self.consume(IDENT)
                node = Selector(tok, node, name.value)
                continue
            return node

    def parse_call(self, func: Node) -> Call:
        args: List[Node] = []
        with self.nested():
            tok = self.consume('(')
            while not self.match(')'):
                args.append(self.parse_expression())
                if not self.match(','):
                    break
                self.next()
            self.consume(')')
        return Call(tok, func, args)

    def parse_index(self, target: Node) -> Node:
        with self.nested():
            tok = self.consume('[')
            start: Optional[Node] = None
            if not self.match(':'):
                start = self.parse_expression()
            if self.match(':'):
                self.next()
                end = None if self.match(']') else self.parse_expression()
                self.consume(']')
                return Slice(tok, target, start, end)
            if start is None:
                raise self.error('index is expected', self.peek())
            self.consume(']')
        return Index(tok, target, start)

    def parse_primary(self) -> Node:
        tok = self.peek()
        if tok.type == NUMBER:
            self.next()
            return self.number_literal(tok)
        if tok.type == STRING:
            self.next()
            return Literal(tok, tok.value, 'str')
        if tok.type in ('true', 'false'):
            self.next()
            return Literal(tok, tok.type == 'true', 'bool')
        if tok.type == IDENT:
            self.next()
            if self.match('{') and not self.no_struct_init:
                return StructInit(tok, tok.value, self.parse_struct_fields())
            return Ident(tok, tok.value)
        if tok.type == '(':
            with self.nested():
                self.next()
                expr = self.parse_expression()
                self.consume(')')
            return expr
        if tok.type == '[':
            return self.parse_list()
        if tok.type == '{':
            return self.parse_dict()
        raise self.error(f"unexpected {tok.describe()}", tok)

    def number_literal(self, tok: Token) -> Literal:
        if '.' in tok.value:
            return Literal(tok, float(tok.value), 'f64')
        value = int(tok.value)
        if value > I64_MAX:
            raise ParseError(f"integer literal {tok.value} overflows i64", tok.loc)
        return Literal(tok, value, 'i64')

    def parse_list(self) -> ListLit:
        elements: List[Node] = []
        with self.nested():
            tok = self.consume('[')
            while not self.match(']'):
                elements.append(self.parse_expression())
                if not self.match(','):
                    break
                self.next()
            self.consume(']')
        return ListLit(tok, elements)

    def parse_dict(self) -> DictLit:
        keys: List[Node] = []
        values: List[Node] = []
        with self.nested():
            tok = self.consume('{')
            while not self.match('}'):
                keys.append(self.parse_expression())
                self.consume(':')
                values.append(self.parse_expression())
                if not self.match(','):
                    break
                self.next()
            self.consume('}')
        return DictLit(tok, keys, values)

    def parse_struct_fields(self) -> DictLit:
        keys: List[Node] = []
        values: List[Node] = []
        with self.nested():
            tok = self.consume('{')
            while not self.match('}'):
                name = self.consume(IDENT)
                keys.append(Ident(name, name.value))
                self.consume(':')
                values.append(self.parse_expression())
                if not self.match(','):
                    break
                self.next()
            self.consume('}')
        return DictLit(tok, keys, values)


def parse_program(source: str, name: str = '<main>') -> List[Node]:
    """Parse a whole source string into its list of top-level statements."""
    parser = Parser(Module.from_source(source, name))
    statements: List[Node] = []
    while True:
        stmt = parser.parse_statement()
        if isinstance(stmt, Eof):
            return statements
        statements.append(stmt)
