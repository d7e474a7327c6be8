"""PLC emitter — converts an AST back into PLC textual syntax.

Total over the node set in `plc/ast.py`; re-parsing the output yields an
equivalent tree.
"""

from __future__ import annotations

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
    Param,
    ReturnStmt,
    Source,
    Stmt,
    StringLit,
    WhileStmt,
)


def to_source(source: Source) -> str:
    """Render a `Source` back into PLC source text."""
    return _Emitter().emit_source(source)


class _Emitter:
    _INDENT: str = "    "

    # Expression precedence (higher binds tighter)
    _PREC_LOGICAL: int = 1
    _PREC_EQUALITY: int = 2
    _PREC_ADDITIVE: int = 3
    _PREC_MULTIPLICATIVE: int = 4
    _PREC_SECONDARY: int = 5

    _BIN_PREC: dict[str, int] = {
        "AND": _PREC_LOGICAL,
        "OR": _PREC_LOGICAL,
        "==": _PREC_EQUALITY,
        "!=": _PREC_EQUALITY,
        "<": _PREC_EQUALITY,
        "<=": _PREC_EQUALITY,
        ">": _PREC_EQUALITY,
        ">=": _PREC_EQUALITY,
        "+": _PREC_ADDITIVE,
        "-": _PREC_ADDITIVE,
        "*": _PREC_MULTIPLICATIVE,
        "/": _PREC_MULTIPLICATIVE,
    }

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0

    # ── Public ──────────────────────────────────────────────

    def emit_source(self, source: Source) -> str:
        self._lines = []
        self._indent_level = 0
        for f in source.fields:
            self._emit_field(f)
        for m in source.methods:
            if self._lines:
                self._lines.append("")
            self._emit_method(m)
        text = "\n".join(self._lines)
        if text == "":
            return ""
        return text + "\n"

    # ── Lines / Blocks ──────────────────────────────────────

    def _emit_line(self, line: str) -> None:
        self._lines.append(self._INDENT * self._indent_level + line)

    def _emit_stmt_block(self, stmts: list[Stmt]) -> None:
        self._indent_level += 1
        for stmt in stmts:
            self._emit_stmt(stmt)
        self._indent_level -= 1

    # ── Top level ───────────────────────────────────────────

    def _emit_field(self, f: Field) -> None:
        self._emit_line(self._render_binding(f.name, f.type_name, f.value))

    def _emit_method(self, m: Method) -> None:
        params = ", ".join(self._render_param(p) for p in m.params)
        header = "DEF " + m.name + "(" + params + ")"
        if m.return_type_name is not None:
            header += ": " + m.return_type_name
        self._emit_line(header + " DO")
        self._emit_stmt_block(m.statements)
        self._emit_line("END")

    def _render_param(self, p: Param) -> str:
        if p.type_name is None:
            return p.name
        return p.name + ": " + p.type_name

    def _render_binding(
        self, name: str, type_name: str | None, value: Expr | None
    ) -> str:
        out = "LET " + name
        if type_name is not None:
            out += ": " + type_name
        if value is not None:
            out += " = " + self._render_expr(value)
        return out + ";"

    # ── Statements ──────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExprStmt):
            self._emit_line(self._render_expr(stmt.expr) + ";")
            return
        if isinstance(stmt, DeclStmt):
            self._emit_line(self._render_binding(stmt.name, stmt.type_name, stmt.value))
            return
        if isinstance(stmt, AssignStmt):
            self._emit_line(
                self._render_expr(stmt.receiver)
                + " = "
                + self._render_expr(stmt.value)
                + ";"
            )
            return
        if isinstance(stmt, IfStmt):
            self._emit_line("IF " + self._render_expr(stmt.condition) + " DO")
            self._emit_stmt_block(stmt.then_statements)
            if stmt.else_statements:
                self._emit_line("ELSE")
                self._emit_stmt_block(stmt.else_statements)
            self._emit_line("END")
            return
        if isinstance(stmt, ForStmt):
            self._emit_line(
                "FOR " + stmt.name + " IN " + self._render_expr(stmt.value) + " DO"
            )
            self._emit_stmt_block(stmt.statements)
            self._emit_line("END")
            return
        if isinstance(stmt, WhileStmt):
            self._emit_line("WHILE " + self._render_expr(stmt.condition) + " DO")
            self._emit_stmt_block(stmt.statements)
            self._emit_line("END")
            return
        if isinstance(stmt, ReturnStmt):
            self._emit_line("RETURN " + self._render_expr(stmt.value) + ";")
            return
        raise TypeError("unhandled stmt type")

    # ── Expressions ─────────────────────────────────────────

    def _render_expr(self, expr: Expr) -> str:
        if isinstance(expr, NilLit):
            return "NIL"
        if isinstance(expr, BoolLit):
            return "TRUE" if expr.value else "FALSE"
        if isinstance(expr, IntLit):
            return expr.raw
        if isinstance(expr, DecimalLit):
            return expr.raw
        if isinstance(expr, CharLit):
            return "'" + self._escape_text(expr.value, quote="'") + "'"
        if isinstance(expr, StringLit):
            return '"' + self._escape_text(expr.value, quote='"') + '"'
        if isinstance(expr, Group):
            return "(" + self._render_expr(expr.expr) + ")"
        if isinstance(expr, Binary):
            prec = self._BIN_PREC[expr.op]
            left = self._render_operand(expr.left, prec, is_right=False)
            right = self._render_operand(expr.right, prec, is_right=True)
            return left + " " + expr.op + " " + right
        if isinstance(expr, Access):
            if expr.receiver is None:
                return expr.name
            return self._render_receiver(expr.receiver) + "." + expr.name
        if isinstance(expr, Call):
            args = ", ".join(self._render_expr(a) for a in expr.arguments)
            if expr.receiver is None:
                return expr.name + "(" + args + ")"
            return (
                self._render_receiver(expr.receiver)
                + "."
                + expr.name
                + "("
                + args
                + ")"
            )
        raise TypeError("unhandled expr type")

    def _expr_prec(self, expr: Expr) -> int:
        if isinstance(expr, Binary):
            return self._BIN_PREC[expr.op]
        return self._PREC_SECONDARY

    def _render_operand(self, expr: Expr, parent_prec: int, is_right: bool) -> str:
        # Left-associative: an equal-precedence right operand needs parentheses
        prec = self._expr_prec(expr)
        text = self._render_expr(expr)
        if prec < parent_prec or (is_right and prec == parent_prec):
            return "(" + text + ")"
        return text

    def _render_receiver(self, expr: Expr) -> str:
        text = self._render_expr(expr)
        if isinstance(expr, Binary):
            return "(" + text + ")"
        return text

    # ── Literals / Escapes ──────────────────────────────────

    def _escape_text(self, s: str, quote: str) -> str:
        out = ""
        for ch in s:
            if ch == "\n":
                out += "\\n"
            elif ch == "\r":
                out += "\\r"
            elif ch == "\t":
                out += "\\t"
            elif ch == "\b":
                out += "\\b"
            elif ch == "\\":
                out += "\\\\"
            elif ch == quote:
                out += "\\" + quote
            else:
                out += ch
        return out
