"""PLC diagnostics — lexical, analysis, and runtime failures."""

from __future__ import annotations

from .ast import Pos


class PlcError(Exception):
    """Base error for every failure raised by the toolchain."""

    def __init__(self, msg: str, pos: Pos | None = None):
        super().__init__(msg)
        self.msg = msg
        self.pos = pos

    def at(self, pos: Pos) -> PlcError:
        """Attach a position if none is known yet. Returns self for re-raising."""
        if self.pos is None:
            self.pos = pos
        return self

    def __str__(self) -> str:
        if self.pos is None:
            return self.msg
        return f"{self.msg} at line {self.pos.line} col {self.pos.col}"


# ============================================================
# Lexical / syntax
# ============================================================


class TokenizeError(PlcError):
    """Malformed source text."""

    def __init__(self, msg: str, line: int, col: int, index: int):
        super().__init__(msg, Pos(line, col))
        self.line = line
        self.col = col
        self.index = index


class ParseError(PlcError):
    """Token stream does not match the grammar."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, Pos(line, col))
        self.line = line
        self.col = col


# ============================================================
# Name lookup (raised by Scope in both passes)
# ============================================================


class UndefinedName(PlcError):
    """A scope chain lookup found nothing."""


class UndefinedVariable(UndefinedName):
    pass


class UndefinedFunction(UndefinedName):
    pass


# ============================================================
# Static analysis
# ============================================================


class AnalysisError(PlcError):
    """Static rule violation. The analyzer stops at the first one."""


class TypeMismatch(AnalysisError):
    pass


class UnknownType(AnalysisError):
    pass


class UnknownField(AnalysisError):
    pass


class UnknownMethod(AnalysisError):
    pass


class MissingTypeInfo(AnalysisError):
    pass


class InvalidAssignmentTarget(AnalysisError):
    pass


class EmptyBody(AnalysisError):
    pass


class Overflow(AnalysisError):
    pass


class MissingEntryPoint(AnalysisError):
    pass


class InvalidReturn(AnalysisError):
    pass


# ============================================================
# Runtime
# ============================================================


class RuntimeFault(PlcError):
    """Runtime failure. Aborts the whole execution."""


class TypeAssertionFailure(RuntimeFault):
    """A value did not have the runtime kind an operation requires."""


class ArithmeticFault(RuntimeFault):
    """Division by a zero-valued operand."""
