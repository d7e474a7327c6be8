"""PLC type and function catalog.

Every type is a registry entry compared by identity. A type may carry a field
table (name -> Variable) and a method table keyed by (name, arity), where the
arity counts the receiver. Methods and free functions share one `Function`
representation: ordered parameter types, a return type, and a callable body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from .errors import (
    RuntimeFault,
    TypeAssertionFailure,
    TypeMismatch,
    UnknownField,
    UnknownMethod,
    UnknownType,
)
from .values import (
    K_BOOLEAN,
    K_CHARACTER,
    K_DECIMAL,
    K_INTEGER,
    K_ITERABLE,
    K_NIL,
    K_STRING,
    VChar,
    VDecimal,
    VInt,
    VIterable,
    VObject,
    VString,
    Value,
)
from .values import NIL as NIL_VALUE

INTEGER_MIN: int = -(2**31)
INTEGER_MAX: int = 2**31 - 1
DECIMAL_DIVISION_SCALE: int = 1
MAX_CALL_DEPTH: int = 500


# ============================================================
# CATALOG ENTRIES
# ============================================================


@dataclass(eq=False)
class Type:
    """A catalog type. `kind` is the runtime kind its values report."""

    name: str
    kind: str
    fields: dict[str, Variable] = field(default_factory=dict)
    methods: dict[tuple[str, int], Function] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Type({self.name})"


@dataclass(eq=False)
class Function:
    """A callable. For methods, param_types[0] is the receiver type.

    return_type is None only while the analyzer is still inferring it.
    """

    name: str
    param_types: list[Type]
    return_type: Type | None
    body: Callable[[list[Value]], Value] | None = None

    @property
    def arity(self) -> int:
        return len(self.param_types)

    def invoke(self, args: list[Value]) -> Value:
        if self.body is None:
            raise RuntimeFault(f"function '{self.name}/{self.arity}' has no body")
        return self.body(args)

    def __repr__(self) -> str:
        return f"Function({self.name}/{self.arity})"


@dataclass(eq=False)
class Variable:
    """A named, typed slot. `value` is only used while interpreting."""

    name: str
    type: Type
    value: Value | None = None

    def __repr__(self) -> str:
        return f"Variable({self.name}: {self.type.name})"


# ============================================================
# BUILT-IN TYPES
# ============================================================

ANY: Type = Type("Any", "Any")
NIL: Type = Type("Nil", K_NIL)
COMPARABLE: Type = Type("Comparable", "Comparable")
BOOLEAN: Type = Type("Boolean", K_BOOLEAN)
INTEGER: Type = Type("Integer", K_INTEGER)
DECIMAL: Type = Type("Decimal", K_DECIMAL)
CHARACTER: Type = Type("Character", K_CHARACTER)
STRING: Type = Type("String", K_STRING)
INTEGER_ITERABLE: Type = Type("IntegerIterable", K_ITERABLE)

COMPARABLE_TYPES: tuple[Type, ...] = (INTEGER, CHARACTER, STRING, DECIMAL)

_TYPES: dict[str, Type] = {
    t.name: t
    for t in (
        ANY,
        NIL,
        COMPARABLE,
        BOOLEAN,
        INTEGER,
        DECIMAL,
        CHARACTER,
        STRING,
        INTEGER_ITERABLE,
    )
}

_BUILTIN_NAMES: frozenset[str] = frozenset(_TYPES)


def lookup_type(name: str) -> Type:
    if name not in _TYPES:
        raise UnknownType(f"unknown type '{name}'")
    return _TYPES[name]


def register_type(typ: Type) -> Type:
    """Add an embedder-provided type to the catalog."""
    if typ.name in _TYPES and _TYPES[typ.name] is not typ:
        raise ValueError(f"type '{typ.name}' already registered")
    _TYPES[typ.name] = typ
    return typ


def unregister_type(typ: Type) -> None:
    """Drop an embedder-provided type. Built-in types cannot be removed."""
    if typ.name in _BUILTIN_NAMES:
        raise ValueError(f"type '{typ.name}' is built in")
    if _TYPES.get(typ.name) is typ:
        del _TYPES[typ.name]


def type_of(value: Value) -> Type:
    """The catalog entry describing a runtime value."""
    if isinstance(value, VObject):
        return value.typ
    return lookup_type(value.kind())


# ============================================================
# ASSIGNABILITY / MEMBERS
# ============================================================


def is_assignable(target: Type, source: Type) -> bool:
    """Can a value of type `source` be stored where `target` is expected?"""
    if target is source:
        return True
    if target is ANY:
        return True
    if target is COMPARABLE:
        return source in COMPARABLE_TYPES
    return False


def require_assignable(target: Type, source: Type) -> None:
    if not is_assignable(target, source):
        raise TypeMismatch(f"expected {target.name}, received {source.name}")


def get_field(typ: Type, name: str) -> Variable:
    if name not in typ.fields:
        raise UnknownField(f"type {typ.name} has no field '{name}'")
    return typ.fields[name]


def get_method(typ: Type, name: str, arity: int) -> Function:
    """Look up a method by name and argument count (receiver excluded)."""
    key = (name, arity + 1)
    if key not in typ.methods:
        raise UnknownMethod(f"type {typ.name} has no method '{name}/{arity}'")
    return typ.methods[key]


def define_method(
    typ: Type,
    name: str,
    param_types: list[Type],
    return_type: Type,
    body: Callable[[list[Value]], Value],
) -> Function:
    """Attach a native method; the receiver type is prepended to param_types."""
    fn = Function(name, [typ] + param_types, return_type, body)
    typ.methods[(name, fn.arity)] = fn
    return fn


# ============================================================
# NATIVE METHODS
# ============================================================


def _as_str(v: Value) -> str:
    if not isinstance(v, VString):
        raise TypeAssertionFailure("expected String, got " + v.kind())
    return v.value


def _as_int(v: Value) -> int:
    if not isinstance(v, VInt):
        raise TypeAssertionFailure("expected Integer, got " + v.kind())
    return v.value


def _string_length(args: list[Value]) -> Value:
    return VInt(len(_as_str(args[0])))


def _string_char_at(args: list[Value]) -> Value:
    s = _as_str(args[0])
    i = _as_int(args[1])
    if i < 0 or i >= len(s):
        raise RuntimeFault(f"index {i} out of range for string of length {len(s)}")
    return VChar(s[i])


def _string_substring(args: list[Value]) -> Value:
    s = _as_str(args[0])
    start = _as_int(args[1])
    end = _as_int(args[2]) if len(args) == 3 else len(s)
    if start < 0 or end > len(s) or start > end:
        raise RuntimeFault(
            f"substring bounds [{start}, {end}) out of range for length {len(s)}"
        )
    return VString(s[start:end])


def _integer_abs(args: list[Value]) -> Value:
    return VInt(abs(_as_int(args[0])))


def _decimal_abs(args: list[Value]) -> Value:
    v = args[0]
    if not isinstance(v, VDecimal):
        raise TypeAssertionFailure("expected Decimal, got " + v.kind())
    return VDecimal(abs(v.value))


define_method(STRING, "length", [], INTEGER, _string_length)
define_method(STRING, "charAt", [INTEGER], CHARACTER, _string_char_at)
define_method(STRING, "substring", [INTEGER], STRING, _string_substring)
define_method(STRING, "substring", [INTEGER, INTEGER], STRING, _string_substring)
define_method(INTEGER, "abs", [], INTEGER, _integer_abs)
define_method(DECIMAL, "abs", [], DECIMAL, _decimal_abs)


# ============================================================
# BUILT-IN FUNCTIONS
# ============================================================


def _range(args: list[Value]) -> Value:
    return VIterable(_as_int(args[0]), _as_int(args[1]))


RANGE: Function = Function("range", [INTEGER, INTEGER], INTEGER_ITERABLE, _range)


def print_function(sink: Callable[[Value], None] | None = None) -> Function:
    """The unary print built-in. Without a sink it is a signature only."""
    if sink is None:
        return Function("print", [ANY], NIL)
    out = sink

    def _print(args: list[Value]) -> Value:
        out(args[0])
        return NIL_VALUE

    return Function("print", [ANY], NIL, _print)


def is_integer_in_range(value: int) -> bool:
    return INTEGER_MIN <= value <= INTEGER_MAX


def is_decimal_finite(value: Decimal) -> bool:
    f = float(value)
    return f != float("inf") and f != float("-inf")
