"""PLC runtime values — boxed, with a queryable runtime kind."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterator, cast

if TYPE_CHECKING:
    from .environment import Type
    from .scope import Scope


# Runtime kinds
K_NIL = "Nil"
K_BOOLEAN = "Boolean"
K_CHARACTER = "Character"
K_STRING = "String"
K_INTEGER = "Integer"
K_DECIMAL = "Decimal"
K_ITERABLE = "IntegerIterable"


class Value:
    """A runtime value with a concrete kind tag."""

    def kind(self) -> str:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class VNil(Value):
    def kind(self) -> str:
        return K_NIL

    def to_string(self) -> str:
        return "nil"


@dataclass(eq=False)
class VBool(Value):
    value: bool

    def kind(self) -> str:
        return K_BOOLEAN

    def to_string(self) -> str:
        return "true" if self.value else "false"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VBool) and self.value == other.value


@dataclass(eq=False)
class VChar(Value):
    value: str

    def __post_init__(self) -> None:
        if len(self.value) != 1:
            raise ValueError("character value must be a single character")

    def kind(self) -> str:
        return K_CHARACTER

    def to_string(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VChar) and self.value == other.value


@dataclass(eq=False)
class VString(Value):
    value: str

    def kind(self) -> str:
        return K_STRING

    def to_string(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VString) and self.value == other.value


@dataclass(eq=False)
class VInt(Value):
    value: int

    def kind(self) -> str:
        return K_INTEGER

    def to_string(self) -> str:
        return str(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VInt) and self.value == other.value


@dataclass(eq=False)
class VDecimal(Value):
    value: Decimal

    def kind(self) -> str:
        return K_DECIMAL

    def to_string(self) -> str:
        return format(self.value, "f")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VDecimal) and self.value == other.value


@dataclass(eq=False)
class VIterable(Value):
    """Half-open integer range. Each iteration starts over."""

    start: int
    end: int

    def kind(self) -> str:
        return K_ITERABLE

    def to_string(self) -> str:
        return f"range({self.start}, {self.end})"

    def __iter__(self) -> Iterator[VInt]:
        i = self.start
        while i < self.end:
            yield VInt(i)
            i += 1

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, VIterable)
            and self.start == other.start
            and self.end == other.end
        )


@dataclass(eq=False)
class VObject(Value):
    """Embedder-provided object of a registered type; fields live in `scope`."""

    typ: Type
    scope: Scope

    def kind(self) -> str:
        return self.typ.name

    def to_string(self) -> str:
        return f"<{self.typ.name}>"


NIL: VNil = VNil()


def value_eq(a: Value, b: Value) -> bool:
    # Equality by value within one kind; different kinds are never equal.
    if type(a) is not type(b):
        return False
    if isinstance(a, VNil):
        return True
    if isinstance(a, VObject):
        return a is b
    return a == cast(Value, b)

