"""PLC AST — parse-time node definitions plus the analyzer's annotation slots."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .environment import Function, Type, Variable


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# TOP LEVEL
# ============================================================


@dataclass
class Source:
    """field* method*."""

    fields: list[Field]
    methods: list[Method]


@dataclass
class Field:
    """LET name (: Type)? (= expr)? ;"""

    pos: Pos
    name: str
    type_name: str | None
    value: Expr | None
    variable: Variable | None = field(default=None, init=False, repr=False, compare=False)


@dataclass
class Param:
    """Method parameter. type_name is None when unannotated."""

    pos: Pos
    name: str
    type_name: str | None


@dataclass
class Method:
    """DEF name(params) (: Type)? DO stmts END."""

    pos: Pos
    name: str
    params: list[Param]
    return_type_name: str | None
    statements: list[Stmt]
    function: Function | None = field(default=None, init=False, repr=False, compare=False)


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""

    pos: Pos


@dataclass
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expr: Expr


@dataclass
class DeclStmt(Stmt):
    """LET name (: Type)? (= expr)? ;"""

    name: str
    type_name: str | None
    value: Expr | None
    variable: Variable | None = field(default=None, init=False, repr=False, compare=False)


@dataclass
class AssignStmt(Stmt):
    """receiver = value ;"""

    receiver: Expr
    value: Expr


@dataclass
class IfStmt(Stmt):
    """IF cond DO ... (ELSE ...)? END."""

    condition: Expr
    then_statements: list[Stmt]
    else_statements: list[Stmt]


@dataclass
class ForStmt(Stmt):
    """FOR name IN value DO ... END."""

    name: str
    value: Expr
    statements: list[Stmt]


@dataclass
class WhileStmt(Stmt):
    """WHILE cond DO ... END."""

    condition: Expr
    statements: list[Stmt]


@dataclass
class ReturnStmt(Stmt):
    """RETURN expr ;"""

    value: Expr


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions. `type` is written once by the analyzer."""

    pos: Pos
    type: Type | None = field(default=None, init=False, repr=False, compare=False)


@dataclass
class Literal(Expr):
    """Base for literal values."""


@dataclass
class NilLit(Literal):
    """NIL."""


@dataclass
class BoolLit(Literal):
    """TRUE or FALSE."""

    value: bool


@dataclass
class CharLit(Literal):
    """Character literal with escapes resolved."""

    value: str


@dataclass
class StringLit(Literal):
    """String literal with escapes resolved."""

    value: str


@dataclass
class IntLit(Literal):
    """Arbitrary-precision integer literal."""

    value: int
    raw: str


@dataclass
class DecimalLit(Literal):
    """Arbitrary-precision decimal literal."""

    value: Decimal
    raw: str


@dataclass
class Group(Expr):
    """( expr )."""

    expr: Expr


@dataclass
class Binary(Expr):
    """left op right."""

    op: str
    left: Expr
    right: Expr


@dataclass
class Access(Expr):
    """name or receiver.name. `binding` is the resolved Variable."""

    receiver: Expr | None
    name: str
    binding: Variable | None = field(default=None, init=False, repr=False, compare=False)


@dataclass
class Call(Expr):
    """name(args) or receiver.name(args). `binding` is the resolved Function."""

    receiver: Expr | None
    name: str
    arguments: list[Expr]
    binding: Function | None = field(default=None, init=False, repr=False, compare=False)
