"""Tree-walking evaluator for the Shiba language.

The :class:`Interpreter` parses a module one top-level statement at a
time and evaluates each statement before scanning the next. Statements
produce process results (see :mod:`shiba.results`): values travel as
``ObjResult`` while ``return``/``break``/``continue`` travel as tags that
each loop and call inspects. Errors are :class:`~shiba.errors.ShibaError`
exceptions; every evaluation step attaches its node's location to an
error that has none yet, so the innermost location wins.

Identifiers live in the scope of the module being evaluated. A function
always runs in the module that defined it, so calling ``m.f()`` pushes a
function scope on ``m`` and not on the caller's module.
"""

from __future__ import annotations

import os
import sys
from typing import Dict, Iterator, List, Optional, Union

from .ast import (
    Assign, BinaryOp, BreakStmt, Call, Comment, ContinueStmt, DictLit, Eof,
    ForStmt, FuncDecl, Ident, IfStmt, ImportStmt, Index, ListLit, Literal,
    Node, ReturnStmt, Selector, Slice, StructDecl, StructInit, UnaryOp,
    WhileStmt,
)
from .builtin_function import BuiltinFunction
from .builtins import populate_builtins
from .dictionary import Dictionary
from .environment import Environment
from .errors import (
    DictKeyNotFound, EvalError, ExitRequest, InternalError, InvalidAssignOp,
    InvalidBinaryOp, InvalidIndex, ModuleImportError, ShibaError, TypeMismatch,
    UndefinedIdent,
)
from .hoststd import HOST_MODULES
from .module import EXTENSION, Module, with_extension
from .operators import compute_binary_op, compute_unary_op
from .parser import Parser
from .results import (
    BREAK, CONTINUE, NOP, Break, Continue, Exit, ObjResult, ProcessResult,
    Return, is_control,
)
from .types import Function, Kind, Method, Obj, StructDef, StructInstance

STDMOD_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'lib')
HOST_DIR = '<host>'

# errors raised by host callbacks that are reported as Shiba errors
HOST_ERRORS = (ValueError, TypeError, ArithmeticError, OSError)

# a Shiba call nests about ten Python frames
RECURSION_LIMIT = 20000


class Interpreter:
    """Core interpreter that evaluates Shiba modules."""

    def __init__(self, debug_level: int = 0, stdmod_dir: Optional[str] = None, out=None):
        self.env = Environment()
        self.debug_level = debug_level
        self.stdmod_dir = os.path.abspath(stdmod_dir) if stdmod_dir else STDMOD_DIR
        # None writes to the current sys.stdout
        self.out = out
        self.builtins: Dict[str, Obj] = populate_builtins(self)
        sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    def debug(self, msg: str) -> None:
        if self.debug_level > 0:
            print(f"[shiba] {msg}", file=self.out)

    def write(self, text: str) -> None:
        print(text, file=self.out)

    # Driver
    def statements(self, mod: Module) -> Iterator[Node]:
        """Parse ``mod`` lazily, one top-level statement at a time."""
        parser = Parser(mod)
        while True:
            stmt = parser.parse_statement()
            if isinstance(stmt, Eof):
                return
            yield stmt

    def run_statement(self, mod: Module, stmt: Node) -> ProcessResult:
        """Evaluate one top-level statement of ``mod``.

        ``exit()`` anywhere below is returned as an ``Exit`` result;
        control tags that reach the top level are errors.
        """
        if self.debug_level >= 2:
            self.debug(f"{stmt.loc}: {type(stmt).__name__}")
        try:
            result = self.process(mod, stmt)
        except ExitRequest as e:
            return Exit(e.code)
        except RecursionError:
            raise EvalError('maximum recursion depth exceeded', stmt.loc) from None
        self.check_top_level(result, stmt)
        return result

    def check_top_level(self, result: ProcessResult, stmt: Node) -> None:
        if isinstance(result, Break):
            raise EvalError('break outside loop', stmt.loc)
        if isinstance(result, Continue):
            raise EvalError('continue outside loop', stmt.loc)
        if isinstance(result, Return):
            raise EvalError('return outside function', stmt.loc)

    def run_module(self, mod: Module) -> int:
        """Register and evaluate ``mod`` as the main module; returns the exit code."""
        self.env.register(mod)
        self.debug(f"run module {mod.key}")
        for stmt in self.statements(mod):
            result = self.run_statement(mod, stmt)
            if isinstance(result, Exit):
                return result.code
        return 0

    def run_file(self, path: str) -> int:
        return self.run_module(Module.from_file(path))

    def run_source(self, source: str, name: str = '<main>', directory: Optional[str] = None) -> int:
        return self.run_module(Module.from_source(source, name, directory))

    # Statements
    def process(self, mod: Module, node: Node) -> ProcessResult:
        try:
            return self._process(mod, node)
        except ShibaError as e:
            raise e.at(node.loc)

    def _process(self, mod: Module, node: Node) -> ProcessResult:
        if isinstance(node, (Comment, Eof)):
            return NOP
        if isinstance(node, Assign):
            return self.process_assign(mod, node)
        if isinstance(node, IfStmt):
            return self.process_if(mod, node)
        if isinstance(node, ForStmt):
            return self.process_for(mod, node)
        if isinstance(node, WhileStmt):
            return self.process_while(mod, node)
        if isinstance(node, FuncDecl):
            fn = Function(mod, node.name, node.params, node.body)
            self.env.set_obj(mod, node.name, Obj(Kind.FUNC, fn))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}({', '.join(node.params)})")
            return NOP
        if isinstance(node, StructDecl):
            return self.process_struct_decl(mod, node)
        if isinstance(node, ImportStmt):
            return self.process_import(mod, node)
        if isinstance(node, ReturnStmt):
            if node.value is None:
                return Return(None)
            return Return(self.evaluate(mod, node.value))
        if isinstance(node, BreakStmt):
            return BREAK
        if isinstance(node, ContinueStmt):
            return CONTINUE
        return ObjResult(self.evaluate(mod, node))

    def process_block(self, mod: Module, statements: List[Node]) -> ProcessResult:
        for stmt in statements:
            result = self.process(mod, stmt)
            if is_control(result):
                return result
        return NOP

    def process_if(self, mod: Module, node: IfStmt) -> ProcessResult:
        with self.env.block_scope(mod):
            for cond, block in zip(node.conds, node.blocks):
                if cond is not None:
                    value = self.evaluate(mod, cond)
                    truthy = value.is_truthy()
                    if self.debug_level >= 3:
                        self.debug(f"if condition {value.repr()} -> {truthy}")
                    if not truthy:
                        continue
                return self.process_block(mod, block)
        return NOP

    def process_for(self, mod: Module, node: ForStmt) -> ProcessResult:
        target = self.evaluate(mod, node.target)
        if not target.is_iterable():
            raise TypeMismatch('iterable', target.type_name, node.target.loc)
        with self.env.block_scope(mod):
            for i, element in target.sequence():
                self.env.declare_obj(mod, node.counter.name, Obj.integer(i))
                self.env.declare_obj(mod, node.element.name, element.copy())
                result = self.process_block(mod, node.body)
                if isinstance(result, Break):
                    break
                if isinstance(result, Continue):
                    continue
                if is_control(result):
                    return result
        return NOP

    def process_while(self, mod: Module, node: WhileStmt) -> ProcessResult:
        with self.env.block_scope(mod):
            while True:
                cond = self.evaluate(mod, node.condition)
                if self.debug_level >= 3:
                    self.debug(f"loop condition {cond.repr()} -> {cond.is_truthy()}")
                if not cond.is_truthy():
                    break
                result = self.process_block(mod, node.body)
                if isinstance(result, Break):
                    break
                if isinstance(result, Continue):
                    continue
                if is_control(result):
                    return result
        return NOP

    def process_struct_decl(self, mod: Module, node: StructDecl) -> ProcessResult:
        seen = set()
        for name in node.fields:
            if name in seen:
                raise EvalError(f"duplicate field {name} in struct {node.name}")
            seen.add(name)
        methods = {m.name: Function(mod, m.name, m.params, m.body) for m in node.methods}
        self.env.set_struct(mod, node.name, StructDef(node.name, list(node.fields), methods))
        if self.debug_level >= 2:
            self.debug(f"define struct {node.name} {{{', '.join(node.fields)}}}")
        return NOP

    # Assignment
    def process_assign(self, mod: Module, node: Assign) -> ProcessResult:
        if node.op == ':=':
            return self.assign_unpack(mod, node)
        if node.op == '=':
            return self.assign_plain(mod, node)
        return self.assign_compute(mod, node)

    def assign_plain(self, mod: Module, node: Assign) -> ProcessResult:
        if len(node.left) != len(node.right):
            raise EvalError(f"assignment size mismatch: {len(node.left)} = {len(node.right)}")
        # evaluate every right side first so that `a, b = b, a` swaps
        values = [self.evaluate(mod, r).copy() for r in node.right]
        for target, value in zip(node.left, values):
            self.assign_to(mod, target, value)
        return NOP

    def assign_unpack(self, mod: Module, node: Assign) -> ProcessResult:
        if len(node.right) != 1:
            raise EvalError(':= cannot have multiple operands on the right side')
        value = self.evaluate(mod, node.right[0])
        if len(node.left) == 1:
            self.assign_to(mod, node.left[0], value.copy())
            return NOP
        if not value.can_sequence():
            raise TypeMismatch('iterable', value.type_name, node.right[0].loc)
        seq = value.sequence()
        if seq.size() != len(node.left):
            raise EvalError(f"unpack size mismatch: {len(node.left)} := {value.repr()}")
        items = [o.copy() for _, o in seq]
        for target, item in zip(node.left, items):
            self.assign_to(mod, target, item)
        return NOP

    def assign_compute(self, mod: Module, node: Assign) -> ProcessResult:
        if len(node.left) != 1:
            raise EvalError(f"cannot assign to multiple values by {node.op}")
        if len(node.right) != 1:
            raise EvalError(f"cannot assign multiple values with {node.op}")
        target = node.left[0]
        right = self.evaluate(mod, node.right[0])
        if isinstance(target, Ident) and self.env.get_obj(mod, target.name) is None:
            self.env.set_obj(mod, target.name, right.copy())
            return NOP
        left = self.lvalue(mod, target)
        try:
            result = compute_binary_op(node.op[:-1], left, right)
        except InvalidBinaryOp:
            raise InvalidAssignOp(node.op, left.type_name, right.type_name) from None
        left.update(result)
        return NOP

    def assign_to(self, mod: Module, target: Node, value: Obj) -> None:
        """Bind ``value`` to ``target``: update where it resolves, create where it does not."""
        if isinstance(target, Ident):
            existing = self.env.get_obj(mod, target.name)
            if existing is None:
                self.env.set_obj(mod, target.name, value)
            else:
                existing.update(value)
            return
        if isinstance(target, Index):
            container = self.evaluate(mod, target.target)
            key = self.evaluate(mod, target.index)
            if container.kind is Kind.DICT:
                existing = container.value.get(key)
                if existing is None:
                    container.value.set(key, value)
                else:
                    existing.update(value)
                return
            try:
                self.element(container, key).update(value)
            except ShibaError as e:
                raise e.at(target.loc)
            return
        self.lvalue(mod, target).update(value)

    def lvalue(self, mod: Module, target: Node) -> Obj:
        """Resolve ``target`` to the box that stores it."""
        try:
            return self._lvalue(mod, target)
        except ShibaError as e:
            raise e.at(target.loc)

    def _lvalue(self, mod: Module, target: Node) -> Obj:
        if isinstance(target, Ident):
            o = self.env.get_obj(mod, target.name)
            if o is None:
                raise UndefinedIdent(target.name)
            return o
        if isinstance(target, Index):
            container = self.evaluate(mod, target.target)
            key = self.evaluate(mod, target.index)
            if container.kind is Kind.DICT:
                o = container.value.get(key)
                if o is None:
                    raise DictKeyNotFound(container, key)
                return o
            return self.element(container, key)
        if isinstance(target, Selector):
            owner = self.evaluate(mod, target.target)
            if owner.kind is Kind.MODULE:
                o = self.env.get_obj(owner.value, target.name)
                if o is None:
                    raise UndefinedIdent(f"{owner.value.name}.{target.name}")
                return o
            if owner.kind is Kind.STRUCT:
                o = owner.value.fields.get(target.name)
                if o is None:
                    raise EvalError(f"{owner.value.name} has no field {target.name}")
                return o
            raise TypeMismatch('struct or mod', owner.type_name)
        if isinstance(target, Slice):
            raise EvalError('cannot assign to a slice')
        raise EvalError(f"cannot assign to {type(target).__name__}")

    def element(self, container: Obj, key: Obj) -> Obj:
        """The assignable element box of a list."""
        if container.kind is Kind.STR:
            raise EvalError('str does not support item assignment')
        if container.kind is not Kind.LIST:
            raise TypeMismatch('list or dict', container.type_name)
        return container.sequence().index(self.index_value(key, len(container.value)))

    # Expressions
    def evaluate(self, mod: Module, node: Node) -> Obj:
        try:
            return self._evaluate(mod, node)
        except ShibaError as e:
            raise e.at(node.loc)

    def _evaluate(self, mod: Module, node: Node) -> Obj:
        if isinstance(node, Literal):
            return self.literal(node)
        if isinstance(node, Ident):
            return self.lookup(mod, node.name)
        if isinstance(node, BinaryOp):
            return self.binary_op(mod, node)
        if isinstance(node, UnaryOp):
            return compute_unary_op(node.op, self.evaluate(mod, node.operand))
        if isinstance(node, Call):
            callee = self.evaluate(mod, node.func)
            args = [self.evaluate(mod, a) for a in node.args]
            return self.call(callee, args)
        if isinstance(node, Index):
            return self.index(mod, node)
        if isinstance(node, Slice):
            return self.slice(mod, node)
        if isinstance(node, Selector):
            return self.select(mod, node)
        if isinstance(node, ListLit):
            return Obj.list_of([self.evaluate(mod, e).copy() for e in node.elements])
        if isinstance(node, DictLit):
            d = Dictionary()
            for k, v in zip(node.keys, node.values):
                d.set(self.evaluate(mod, k), self.evaluate(mod, v).copy())
            return Obj.dict_of(d)
        if isinstance(node, StructInit):
            return self.instantiate(mod, node)
        raise InternalError(f"{type(node).__name__} is not an expression")

    def literal(self, node: Literal) -> Obj:
        if node.literal_type == 'i64':
            return Obj.integer(node.value)
        if node.literal_type == 'f64':
            return Obj.double(node.value)
        if node.literal_type == 'str':
            return Obj.string(node.value)
        if node.literal_type == 'bool':
            return Obj.boolean(node.value)
        raise InternalError(f"unknown literal type {node.literal_type}")

    def lookup(self, mod: Module, name: str) -> Obj:
        o = self.env.get_obj(mod, name)
        if o is not None:
            return o
        sd = self.env.get_struct(mod, name)
        if sd is not None:
            return Obj(Kind.STRUCT_DEF, sd)
        builtin = self.builtins.get(name)
        if builtin is not None:
            return builtin
        raise UndefinedIdent(name)

    def binary_op(self, mod: Module, node: BinaryOp) -> Obj:
        left = self.evaluate(mod, node.left)
        if node.op == '&&' and left.kind is Kind.BOOL and not left.value:
            return Obj.boolean(False)
        if node.op == '||' and left.kind is Kind.BOOL and left.value:
            return Obj.boolean(True)
        right = self.evaluate(mod, node.right)
        return compute_binary_op(node.op, left, right)

    def index_value(self, key: Obj, size: int) -> int:
        if key.kind is not Kind.I64:
            raise TypeMismatch('i64', key.type_name)
        if key.value < 0 or key.value >= size:
            raise InvalidIndex(key.value, size)
        return key.value

    def index(self, mod: Module, node: Index) -> Obj:
        target = self.evaluate(mod, node.target)
        key = self.evaluate(mod, node.index)
        if target.kind is Kind.DICT:
            o = target.value.get(key)
            if o is None:
                raise DictKeyNotFound(target, key)
            return o
        if not target.can_sequence():
            raise TypeMismatch('str, list or dict', target.type_name)
        seq = target.sequence()
        return seq.index(self.index_value(key, seq.size()))

    def slice(self, mod: Module, node: Slice) -> Obj:
        target = self.evaluate(mod, node.target)
        if not target.can_sequence():
            raise TypeMismatch('str or list', target.type_name)
        seq = target.sequence()
        size = seq.size()
        start, end = 0, size
        if node.start is not None:
            start = self.bound(self.evaluate(mod, node.start), size)
        if node.end is not None:
            end = self.bound(self.evaluate(mod, node.end), size)
        if start > end:
            raise InvalidIndex(start, size)
        return seq.slice(start, end)

    def bound(self, o: Obj, size: int) -> int:
        if o.kind is not Kind.I64:
            raise TypeMismatch('i64', o.type_name)
        if o.value < 0 or o.value > size:
            raise InvalidIndex(o.value, size)
        return o.value

    def select(self, mod: Module, node: Selector) -> Obj:
        owner = self.evaluate(mod, node.target)
        if owner.kind is Kind.MODULE:
            target_mod = owner.value
            o = self.env.get_obj(target_mod, node.name)
            if o is not None:
                return o
            sd = self.env.get_struct(target_mod, node.name)
            if sd is not None:
                return Obj(Kind.STRUCT_DEF, sd)
            raise UndefinedIdent(f"{target_mod.name}.{node.name}")
        if owner.kind is Kind.STRUCT:
            inst = owner.value
            o = inst.fields.get(node.name)
            if o is not None:
                return o
            method = inst.method(node.name)
            if method is not None:
                return method
            raise EvalError(f"{inst.name} has no field or method {node.name}")
        raise TypeMismatch('struct or mod', owner.type_name)

    def instantiate(self, mod: Module, node: StructInit) -> Obj:
        sd = self.env.get_struct(mod, node.name)
        if sd is None:
            raise UndefinedIdent(node.name)
        fields: Dict[str, Obj] = {name: Obj.nil() for name in sd.fields}
        for key, value in zip(node.values.keys, node.values.values):
            if not sd.has_field(key.name):
                raise EvalError(f"struct {sd.name} has no field {key.name}", key.loc)
            fields[key.name] = self.evaluate(mod, value).clone()
        return Obj(Kind.STRUCT, StructInstance(sd, fields))

    # Calls
    def call(self, callee: Obj, args: List[Obj]) -> Obj:
        if not callee.is_callable():
            raise TypeMismatch('callable', callee.type_name)
        if callee.kind in (Kind.BUILTIN, Kind.HOST_FUNC):
            return self.call_builtin(callee.value, args)
        return self.call_function(callee.value, args)

    def call_builtin(self, fn: BuiltinFunction, args: List[Obj]) -> Obj:
        if fn.arity is not None and len(args) != fn.arity:
            raise EvalError(f"{fn.name} takes {fn.arity} argument(s) but {len(args)} given")
        if self.debug_level >= 3:
            self.debug(f"call builtin {fn.name}({', '.join(a.repr() for a in args)})")
        try:
            result = fn.fn(args)
        except HOST_ERRORS as e:
            raise EvalError(f"{fn.name}: {e}") from e
        return result if result is not None else Obj.nil()

    def call_function(self, fn: Union[Function, Method], args: List[Obj]) -> Obj:
        if len(args) != len(fn.params):
            raise EvalError(f"{fn.name} takes {len(fn.params)} argument(s) but {len(args)} given")
        if self.debug_level >= 3:
            self.debug(f"call {fn.module.name}.{fn.name}({', '.join(a.repr() for a in args)})")
        mod = fn.module
        with self.env.function_scope(mod):
            if isinstance(fn, Method):
                receiver = fn.receiver
                # same boxes, so assigning a field inside the method updates the instance
                for name, field in receiver.fields.items():
                    self.env.declare_obj(mod, name, field)
                for name, method in receiver.methods().items():
                    self.env.declare_obj(mod, name, method)
            for name, arg in zip(fn.params, args):
                self.env.declare_obj(mod, name, arg.clone())
            result = self.process_block(mod, fn.body)
        if isinstance(result, Return):
            return result.value if result.value is not None else Obj.nil()
        if isinstance(result, Break):
            raise EvalError(f"break outside loop in {fn.name}")
        if isinstance(result, Continue):
            raise EvalError(f"continue outside loop in {fn.name}")
        return Obj.nil()

    # Modules
    def process_import(self, mod: Module, node: ImportStmt) -> ProcessResult:
        target = self.import_module(mod, node.target)
        alias = node.target.rsplit('/', 1)[-1]
        self.env.set_obj(mod, alias, Obj.module(target))
        return NOP

    def import_module(self, importer: Module, name: str) -> Module:
        """Resolve ``name`` as a user module, a standard module, then a host module."""
        for directory in (importer.directory, self.stdmod_dir):
            path = os.path.join(directory, with_extension(name))
            if os.path.isfile(path):
                return self.load_file_module(path)
        host_key = os.path.join(HOST_DIR, name)
        loaded = self.env.get_module(host_key)
        if loaded is not None:
            return loaded
        factory = HOST_MODULES.get(name)
        if factory is None:
            raise ModuleImportError(f"module {name} is not found")
        target = Module.from_objects(name, factory())
        self.env.register(target)
        self.debug(f"import host module {name}")
        return target

    def load_file_module(self, path: str) -> Module:
        directory, base = os.path.split(os.path.abspath(path))
        key = os.path.join(directory, base[:-len(EXTENSION)])
        loaded = self.env.get_module(key)
        if loaded is not None:
            self.debug(f"module {key} is already loaded")
            return loaded
        try:
            target = Module.from_file(path)
        except OSError as e:
            raise ModuleImportError(f"cannot load module {path}: {e.strerror}") from e
        # registered before evaluation, so cyclic imports see the partial module
        self.env.register(target)
        self.debug(f"load module {target.key}")
        for stmt in self.statements(target):
            if self.debug_level >= 2:
                self.debug(f"{stmt.loc}: {type(stmt).__name__}")
            result = self.process(target, stmt)
            self.check_top_level(result, stmt)
        return target


def run_program(source: str, debug_level: int = 0) -> int:
    """Run a source string as the main module and return its exit code."""
    return Interpreter(debug_level=debug_level).run_source(source)
