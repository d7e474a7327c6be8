"""Lexical frames shared by the analyzer and the interpreter."""

from __future__ import annotations

from .environment import Function, Type, Variable
from .errors import UndefinedFunction, UndefinedVariable
from .values import Value


class Scope:
    """One frame: variables by name, functions by (name, arity), and a parent link."""

    def __init__(self, parent: Scope | None = None) -> None:
        self.parent: Scope | None = parent
        self.variables: dict[str, Variable] = {}
        self.functions: dict[tuple[str, int], Function] = {}

    def define_variable(
        self, name: str, typ: Type, value: Value | None = None
    ) -> Variable:
        """Bind in this frame. Shadows, never errors, on a reused name."""
        variable = Variable(name, typ, value)
        self.variables[name] = variable
        return variable

    def lookup_variable(self, name: str) -> Variable:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        raise UndefinedVariable("undefined variable '" + name + "'")

    def define_function(self, function: Function) -> Function:
        self.functions[(function.name, function.arity)] = function
        return function

    def lookup_function(self, name: str, arity: int) -> Function:
        scope: Scope | None = self
        while scope is not None:
            if (name, arity) in scope.functions:
                return scope.functions[(name, arity)]
            scope = scope.parent
        raise UndefinedFunction(
            "undefined function '" + name + "/" + str(arity) + "'"
        )

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.variables))
        return "Scope(" + names + ")"
