"""PLC tree-walking interpreter.

Independent of the analyzer: it keeps its own Scope chain and re-checks
operand kinds at runtime. Statement executors return None when control falls
through, or a `_Return` record that the enclosing method call unwraps.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal
from fractions import Fraction

from .ast import (
    Access,
    AssignStmt,
    Binary,
    BoolLit,
    Call,
    CharLit,
    DecimalLit,
    DeclStmt,
    Expr,
    ExprStmt,
    ForStmt,
    Group,
    IfStmt,
    IntLit,
    Method,
    NilLit,
    ReturnStmt,
    Source,
    Stmt,
    StringLit,
    WhileStmt,
)
from .environment import (
    ANY,
    DECIMAL_DIVISION_SCALE,
    INTEGER,
    MAX_CALL_DEPTH,
    RANGE,
    Function,
    Type,
    Variable,
    get_method,
    lookup_type,
    print_function,
    type_of,
)
from .errors import (
    ArithmeticFault,
    PlcError,
    RuntimeFault,
    TypeAssertionFailure,
    UndefinedFunction,
    UndefinedVariable,
    UnknownMethod,
)
from .scope import Scope
from .values import (
    K_CHARACTER,
    K_DECIMAL,
    K_INTEGER,
    K_STRING,
    NIL,
    VBool,
    VChar,
    VDecimal,
    VInt,
    VIterable,
    VObject,
    VString,
    Value,
    value_eq,
)

logger = logging.getLogger(__name__)

# Add, subtract and multiply are exact under this context
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

ORDERED_KINDS: set[str] = {K_INTEGER, K_CHARACTER, K_STRING, K_DECIMAL}

# Python frames one PLC call may need, nested blocks and expressions included
_FRAMES_PER_CALL = 40


@dataclass
class _Return:
    value: Value


@dataclass
class RunResult:
    value: Value
    output: list[str] = field(default_factory=list)


def _int_div_trunc(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        return -q
    return q


def _decimal_div(a: Decimal, b: Decimal) -> Decimal:
    scale = 10**DECIMAL_DIVISION_SCALE
    # round() on a Fraction is half-to-even
    scaled = round(Fraction(a) / Fraction(b) * scale)
    return Decimal(scaled).scaleb(-DECIMAL_DIVISION_SCALE, _EXACT)


def _cmp(op: str, a: object, b: object) -> bool:
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    raise AssertionError(op)


class Interpreter:
    def __init__(self, parent: Scope | None = None) -> None:
        self.output: list[str] = []
        self.depth: int = 0
        self.scope: Scope = Scope(parent)
        self.scope.define_function(print_function(self._print))
        self.scope.define_function(RANGE)

    def _print(self, value: Value) -> None:
        text = value.to_string()
        logger.debug("print %r", text)
        self.output.append(text)

    # ── Top level ─────────────────────────────────────────────

    def run_source(self, source: Source) -> Value:
        for f in source.fields:
            try:
                value = self.eval_expr(f.value) if f.value is not None else NIL
                typ = self._declared_type(f.type_name, value)
            except PlcError as err:
                err.at(f.pos)
                raise
            self.scope.define_variable(f.name, typ, value)
        for m in source.methods:
            self.scope.define_function(self._make_method(m, self.scope))
        main = self.scope.lookup_function("main", 0)
        logger.debug("invoking entry point main/0")
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(limit, MAX_CALL_DEPTH * _FRAMES_PER_CALL))
        try:
            return main.invoke([])
        finally:
            sys.setrecursionlimit(limit)

    def _declared_type(self, type_name: str | None, value: Value) -> Type:
        if type_name is not None:
            return lookup_type(type_name)
        return type_of(value)

    # ── Methods ───────────────────────────────────────────────

    def _make_method(self, m: Method, closure: Scope) -> Function:
        param_types = [
            lookup_type(p.type_name) if p.type_name is not None else ANY
            for p in m.params
        ]
        return_type = ANY
        if m.return_type_name is not None:
            return_type = lookup_type(m.return_type_name)

        def body(args: list[Value]) -> Value:
            return self._call_method(m, closure, param_types, args)

        return Function(m.name, param_types, return_type, body)

    def _call_method(
        self, m: Method, closure: Scope, param_types: list[Type], args: list[Value]
    ) -> Value:
        logger.debug("calling %s/%d", m.name, len(args))
        if self.depth >= MAX_CALL_DEPTH:
            raise RuntimeFault(
                "stack overflow: more than " + str(MAX_CALL_DEPTH) + " nested calls"
            )
        caller = self.scope
        self.scope = Scope(closure)
        self.depth += 1
        try:
            for i, p in enumerate(m.params):
                self.scope.define_variable(p.name, param_types[i], args[i])
            result = self.exec_stmts(m.statements)
        except RecursionError:
            raise RuntimeFault("stack overflow in " + m.name) from None
        finally:
            self.depth -= 1
            self.scope = caller
        if result is None:
            return NIL
        return result.value

    # ── Statements ────────────────────────────────────────────

    def exec_block(self, stmts: list[Stmt]) -> _Return | None:
        self.scope = Scope(self.scope)
        try:
            return self.exec_stmts(stmts)
        finally:
            assert self.scope.parent is not None
            self.scope = self.scope.parent

    def exec_stmts(self, stmts: list[Stmt]) -> _Return | None:
        for stmt in stmts:
            result = self.exec_stmt(stmt)
            if result is not None:
                return result
        return None

    def exec_stmt(self, stmt: Stmt) -> _Return | None:
        try:
            return self._exec_stmt(stmt)
        except PlcError as err:
            err.at(stmt.pos)
            raise

    def _exec_stmt(self, stmt: Stmt) -> _Return | None:
        if isinstance(stmt, ExprStmt):
            self.eval_expr(stmt.expr)
            return None
        if isinstance(stmt, DeclStmt):
            value = self.eval_expr(stmt.value) if stmt.value is not None else NIL
            typ = self._declared_type(stmt.type_name, value)
            self.scope.define_variable(stmt.name, typ, value)
            return None
        if isinstance(stmt, AssignStmt):
            target = self._resolve_target(stmt.receiver)
            target.value = self.eval_expr(stmt.value)
            return None
        if isinstance(stmt, IfStmt):
            if self._eval_condition(stmt.condition):
                return self.exec_block(stmt.then_statements)
            return self.exec_block(stmt.else_statements)
        if isinstance(stmt, ForStmt):
            return self._exec_for(stmt)
        if isinstance(stmt, WhileStmt):
            while self._eval_condition(stmt.condition):
                result = self.exec_block(stmt.statements)
                if result is not None:
                    return result
            return None
        if isinstance(stmt, ReturnStmt):
            return _Return(self.eval_expr(stmt.value))
        raise RuntimeFault("unsupported statement " + type(stmt).__name__)

    def _exec_for(self, stmt: ForStmt) -> _Return | None:
        iterable = self.eval_expr(stmt.value)
        if not isinstance(iterable, VIterable):
            raise TypeAssertionFailure(
                "FOR expects IntegerIterable, got " + iterable.kind()
            )
        for element in iterable:
            self.scope = Scope(self.scope)
            try:
                self.scope.define_variable(stmt.name, INTEGER, element)
                result = self.exec_stmts(stmt.statements)
            finally:
                assert self.scope.parent is not None
                self.scope = self.scope.parent
            if result is not None:
                return result
        return None

    def _resolve_target(self, receiver: Expr) -> Variable:
        if not isinstance(receiver, Access):
            raise RuntimeFault("assignment target must be a variable or field")
        if receiver.receiver is not None:
            return self._field(self.eval_expr(receiver.receiver), receiver.name)
        return self.scope.lookup_variable(receiver.name)

    def _eval_condition(self, condition: Expr) -> bool:
        value = self.eval_expr(condition)
        if not isinstance(value, VBool):
            raise TypeAssertionFailure("condition must be Boolean, got " + value.kind())
        return value.value

    # ── Expressions ───────────────────────────────────────────

    def eval_expr(self, expr: Expr) -> Value:
        if isinstance(expr, NilLit):
            return NIL
        if isinstance(expr, BoolLit):
            return VBool(expr.value)
        if isinstance(expr, CharLit):
            return VChar(expr.value)
        if isinstance(expr, StringLit):
            return VString(expr.value)
        if isinstance(expr, IntLit):
            return VInt(expr.value)
        if isinstance(expr, DecimalLit):
            return VDecimal(expr.value)
        if isinstance(expr, Group):
            return self.eval_expr(expr.expr)
        if isinstance(expr, Binary):
            return self._eval_binary(expr)
        if isinstance(expr, Access):
            if expr.receiver is not None:
                variable = self._field(self.eval_expr(expr.receiver), expr.name)
            else:
                variable = self.scope.lookup_variable(expr.name)
            return variable.value if variable.value is not None else NIL
        if isinstance(expr, Call):
            return self._eval_call(expr)
        raise RuntimeFault("unsupported expression " + type(expr).__name__)

    def _eval_call(self, expr: Call) -> Value:
        if expr.receiver is not None:
            receiver = self.eval_expr(expr.receiver)
            args = [self.eval_expr(a) for a in expr.arguments]
            try:
                fn = get_method(type_of(receiver), expr.name, len(args))
            except UnknownMethod as err:
                raise UndefinedFunction(err.msg) from None
            return fn.invoke([receiver] + args)
        args = [self.eval_expr(a) for a in expr.arguments]
        fn = self.scope.lookup_function(expr.name, len(args))
        return fn.invoke(args)

    def _field(self, obj: Value, name: str) -> Variable:
        if not isinstance(obj, VObject):
            raise UndefinedVariable(obj.kind() + " has no field '" + name + "'")
        if name not in obj.scope.variables:
            raise UndefinedVariable(obj.typ.name + " has no field '" + name + "'")
        return obj.scope.variables[name]

    def _eval_binary(self, expr: Binary) -> Value:
        op = expr.op
        if op == "AND" or op == "OR":
            left = self._require_bool(op, self.eval_expr(expr.left))
            if op == "AND" and not left:
                return VBool(False)
            if op == "OR" and left:
                return VBool(True)
            return VBool(self._require_bool(op, self.eval_expr(expr.right)))

        left_v = self.eval_expr(expr.left)
        right_v = self.eval_expr(expr.right)
        return binary_op(op, left_v, right_v)

    def _require_bool(self, op: str, value: Value) -> bool:
        if not isinstance(value, VBool):
            raise TypeAssertionFailure(
                "operator '" + op + "' expects Boolean, got " + value.kind()
            )
        return value.value


def binary_op(op: str, left: Value, right: Value) -> Value:
    """Runtime operator table for the non-short-circuit operators."""
    lk = left.kind()
    rk = right.kind()
    if op in ("<", "<=", ">", ">=", "==", "!="):
        if lk != rk or lk not in ORDERED_KINDS:
            raise _operand_error(op, lk, rk)
        if op == "==":
            return VBool(value_eq(left, right))
        if op == "!=":
            return VBool(not value_eq(left, right))
        return VBool(_cmp(op, getattr(left, "value"), getattr(right, "value")))
    if op == "+":
        if isinstance(left, VString) or isinstance(right, VString):
            return VString(left.to_string() + right.to_string())
        if isinstance(left, VInt) and isinstance(right, VInt):
            return VInt(left.value + right.value)
        if isinstance(left, VDecimal) and isinstance(right, VDecimal):
            return VDecimal(_EXACT.add(left.value, right.value))
        raise _operand_error(op, lk, rk)
    if op in ("-", "*", "/"):
        if isinstance(left, VInt) and isinstance(right, VInt):
            if op == "-":
                return VInt(left.value - right.value)
            if op == "*":
                return VInt(left.value * right.value)
            if right.value == 0:
                raise ArithmeticFault("division by zero")
            return VInt(_int_div_trunc(left.value, right.value))
        if isinstance(left, VDecimal) and isinstance(right, VDecimal):
            if op == "-":
                return VDecimal(_EXACT.subtract(left.value, right.value))
            if op == "*":
                return VDecimal(_EXACT.multiply(left.value, right.value))
            if right.value == 0:
                raise ArithmeticFault("division by zero")
            return VDecimal(_decimal_div(left.value, right.value))
        raise _operand_error(op, lk, rk)
    raise RuntimeFault("unknown operator '" + op + "'")


def _operand_error(op: str, left: str, right: str) -> TypeAssertionFailure:
    return TypeAssertionFailure(
        "operator '" + op + "' cannot be applied to " + left + " and " + right
    )


def run(source: Source, parent: Scope | None = None) -> RunResult:
    """Execute a parsed program and return main's value plus printed lines."""
    interp = Interpreter(parent)
    value = interp.run_source(source)
    return RunResult(value, interp.output)
