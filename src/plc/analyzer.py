"""PLC static analyzer.

A single depth-first pass over the AST. Every expression gets its `type`
slot filled, every Access/Call its `binding`. The first rule violation
raises; the error carries the position of the innermost offending node.
"""

from __future__ import annotations

import logging

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
    Field,
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
    BOOLEAN,
    CHARACTER,
    COMPARABLE,
    DECIMAL,
    INTEGER,
    INTEGER_ITERABLE,
    NIL,
    RANGE,
    STRING,
    Function,
    Type,
    Variable,
    get_field,
    get_method,
    is_decimal_finite,
    is_integer_in_range,
    lookup_type,
    print_function,
    require_assignable,
)
from .errors import (
    EmptyBody,
    InvalidAssignmentTarget,
    InvalidReturn,
    MissingEntryPoint,
    MissingTypeInfo,
    Overflow,
    PlcError,
    TypeMismatch,
    UndefinedFunction,
)
from .scope import Scope

logger = logging.getLogger(__name__)

COMPARISON_OPS: set[str] = {"<", "<=", ">", ">=", "==", "!="}

ARITHMETIC_OPS: set[str] = {"-", "*", "/"}

ORDERED_TYPES: tuple[Type, ...] = (INTEGER, CHARACTER, STRING, DECIMAL, COMPARABLE)

NUMERIC_TYPES: tuple[Type, ...] = (INTEGER, DECIMAL)


def binary_result_type(op: str, left: Type, right: Type) -> Type:
    """Static operator table. Raises TypeMismatch for rejected operand pairs."""
    if op == "AND" or op == "OR":
        if left is BOOLEAN and right is BOOLEAN:
            return BOOLEAN
    elif op in COMPARISON_OPS:
        if left is right and left in ORDERED_TYPES:
            return BOOLEAN
    elif op in ARITHMETIC_OPS:
        if left is right and left in NUMERIC_TYPES:
            return left
    elif op == "+":
        if left is STRING or right is STRING:
            return STRING
        if left is right and left in NUMERIC_TYPES:
            return left
    raise TypeMismatch(
        "operator '"
        + op
        + "' cannot be applied to "
        + left.name
        + " and "
        + right.name
    )


class Analyzer:
    def __init__(self, parent: Scope | None = None) -> None:
        self.scope: Scope = Scope(parent)
        self.scope.define_function(print_function())
        self.scope.define_function(RANGE)
        # Enclosing method while its body is checked; None at top level
        self.method: Function | None = None

    # ── Scope management ──────────────────────────────────────

    def enter_scope(self) -> None:
        self.scope = Scope(self.scope)

    def exit_scope(self) -> None:
        assert self.scope.parent is not None
        self.scope = self.scope.parent

    def check_block(self, stmts: list[Stmt]) -> None:
        self.enter_scope()
        try:
            for stmt in stmts:
                self.check_stmt(stmt)
        finally:
            self.exit_scope()

    # ── Top level ─────────────────────────────────────────────

    def check_source(self, source: Source) -> Source:
        for f in source.fields:
            self.check_field(f)
        for m in source.methods:
            self.check_method(m)
        self._check_main()
        return source

    def _check_main(self) -> None:
        try:
            main = self.scope.lookup_function("main", 0)
        except UndefinedFunction:
            raise MissingEntryPoint("no zero-argument method 'main'") from None
        if main.return_type is not INTEGER:
            name = main.return_type.name if main.return_type is not None else "?"
            raise MissingEntryPoint("'main' must return Integer, not " + name)
        logger.debug("entry point main/0 resolved")

    def check_field(self, f: Field) -> None:
        try:
            f.variable = self._declare(f.name, f.type_name, f.value)
        except PlcError as err:
            err.at(f.pos)
            raise

    def check_method(self, m: Method) -> None:
        try:
            param_types = [
                lookup_type(p.type_name) if p.type_name is not None else ANY
                for p in m.params
            ]
            return_type: Type | None = None
            if m.return_type_name is not None:
                return_type = lookup_type(m.return_type_name)
        except PlcError as err:
            err.at(m.pos)
            raise
        fn = Function(m.name, param_types, return_type)
        self.scope.define_function(fn)
        m.function = fn
        logger.debug("checking method %s/%d", m.name, fn.arity)
        previous = self.method
        self.method = fn
        self.enter_scope()
        try:
            for i, p in enumerate(m.params):
                self.scope.define_variable(p.name, param_types[i])
            for stmt in m.statements:
                self.check_stmt(stmt)
        finally:
            self.exit_scope()
            self.method = previous
        if fn.return_type is None:
            fn.return_type = NIL

    def _declare(
        self, name: str, type_name: str | None, value: Expr | None
    ) -> Variable:
        if type_name is None and value is None:
            raise MissingTypeInfo(
                "declaration of '" + name + "' needs a type or an initial value"
            )
        typ: Type | None = None
        if type_name is not None:
            typ = lookup_type(type_name)
        if value is not None:
            value_type = self.check_expr(value)
            if typ is None:
                typ = value_type
            require_assignable(typ, value_type)
        assert typ is not None
        return self.scope.define_variable(name, typ)

    # ── Statements ────────────────────────────────────────────

    def check_stmt(self, stmt: Stmt) -> None:
        try:
            if isinstance(stmt, ExprStmt):
                self.check_expr(stmt.expr)
            elif isinstance(stmt, DeclStmt):
                stmt.variable = self._declare(stmt.name, stmt.type_name, stmt.value)
            elif isinstance(stmt, AssignStmt):
                self.check_assign_stmt(stmt)
            elif isinstance(stmt, IfStmt):
                self.check_if_stmt(stmt)
            elif isinstance(stmt, ForStmt):
                self.check_for_stmt(stmt)
            elif isinstance(stmt, WhileStmt):
                self.check_while_stmt(stmt)
            elif isinstance(stmt, ReturnStmt):
                self.check_return_stmt(stmt)
            else:
                raise TypeError("unhandled statement " + type(stmt).__name__)
        except PlcError as err:
            err.at(stmt.pos)
            raise

    def check_assign_stmt(self, stmt: AssignStmt) -> None:
        if not isinstance(stmt.receiver, Access):
            raise InvalidAssignmentTarget(
                "assignment target must be a variable or field"
            )
        target_type = self.check_expr(stmt.receiver)
        value_type = self.check_expr(stmt.value)
        require_assignable(target_type, value_type)

    def check_if_stmt(self, stmt: IfStmt) -> None:
        self._require_condition(stmt.condition)
        if not stmt.then_statements:
            raise EmptyBody("IF requires at least one statement")
        self.check_block(stmt.then_statements)
        self.check_block(stmt.else_statements)

    def check_for_stmt(self, stmt: ForStmt) -> None:
        iter_type = self.check_expr(stmt.value)
        require_assignable(INTEGER_ITERABLE, iter_type)
        if not stmt.statements:
            raise EmptyBody("FOR requires at least one statement")
        self.enter_scope()
        try:
            self.scope.define_variable(stmt.name, INTEGER)
            for s in stmt.statements:
                self.check_stmt(s)
        finally:
            self.exit_scope()

    def check_while_stmt(self, stmt: WhileStmt) -> None:
        self._require_condition(stmt.condition)
        self.check_block(stmt.statements)

    def check_return_stmt(self, stmt: ReturnStmt) -> None:
        if self.method is None:
            raise InvalidReturn("RETURN outside of a method")
        value_type = self.check_expr(stmt.value)
        if self.method.return_type is None:
            # First RETURN fixes an unannotated method's return type
            self.method.return_type = value_type
            return
        require_assignable(self.method.return_type, value_type)

    def _require_condition(self, condition: Expr) -> None:
        cond_type = self.check_expr(condition)
        if cond_type is not BOOLEAN:
            raise TypeMismatch("condition must be Boolean, got " + cond_type.name)

    # ── Expressions ───────────────────────────────────────────

    def check_expr(self, expr: Expr) -> Type:
        try:
            typ = self._type_expr(expr)
        except PlcError as err:
            err.at(expr.pos)
            raise
        expr.type = typ
        return typ

    def _type_expr(self, expr: Expr) -> Type:
        if isinstance(expr, NilLit):
            return NIL
        if isinstance(expr, BoolLit):
            return BOOLEAN
        if isinstance(expr, CharLit):
            return CHARACTER
        if isinstance(expr, StringLit):
            return STRING
        if isinstance(expr, IntLit):
            if not is_integer_in_range(expr.value):
                raise Overflow("integer literal " + expr.raw + " is out of range")
            return INTEGER
        if isinstance(expr, DecimalLit):
            if not is_decimal_finite(expr.value):
                raise Overflow("decimal literal " + expr.raw + " is out of range")
            return DECIMAL
        if isinstance(expr, Group):
            return self.check_expr(expr.expr)
        if isinstance(expr, Binary):
            left = self.check_expr(expr.left)
            right = self.check_expr(expr.right)
            return binary_result_type(expr.op, left, right)
        if isinstance(expr, Access):
            return self.check_access(expr)
        if isinstance(expr, Call):
            return self.check_call(expr)
        raise TypeError("unhandled expression " + type(expr).__name__)

    def check_access(self, expr: Access) -> Type:
        if expr.receiver is not None:
            receiver_type = self.check_expr(expr.receiver)
            variable = get_field(receiver_type, expr.name)
        else:
            variable = self.scope.lookup_variable(expr.name)
        expr.binding = variable
        return variable.type

    def check_call(self, expr: Call) -> Type:
        if expr.receiver is not None:
            receiver_type = self.check_expr(expr.receiver)
            fn = get_method(receiver_type, expr.name, len(expr.arguments))
            param_types = fn.param_types[1:]
        else:
            fn = self.scope.lookup_function(expr.name, len(expr.arguments))
            param_types = fn.param_types
        for i, arg in enumerate(expr.arguments):
            arg_type = self.check_expr(arg)
            try:
                require_assignable(param_types[i], arg_type)
            except PlcError as err:
                err.at(arg.pos)
                raise
        expr.binding = fn
        if fn.return_type is None:
            # Recursive call while the callee's return type is still being inferred
            return ANY
        return fn.return_type


def check(source: Source, parent: Scope | None = None) -> Source:
    """Analyze a parsed program; raises on the first violation."""
    return Analyzer(parent).check_source(source)