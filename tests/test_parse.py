"""Parser tests: tree shapes the data-driven suite cannot express."""

from decimal import Decimal

import pytest

from plc.ast import (
    Access,
    AssignStmt,
    Binary,
    Call,
    DecimalLit,
    ExprStmt,
    Group,
    IfStmt,
    IntLit,
    Pos,
    ReturnStmt,
    StringLit,
)
from plc.errors import ParseError
from plc.parse import Parser, parse
from plc.tokens import tokenize


def expr(source: str):
    parser = Parser(tokenize(source))
    node = parser.parse_expr()
    assert parser.at_type("EOF"), "trailing tokens after " + source
    return node


def shape(node) -> str:
    """Fully parenthesized rendering of an expression tree."""
    if isinstance(node, Binary):
        return "(" + shape(node.left) + " " + node.op + " " + shape(node.right) + ")"
    if isinstance(node, Group):
        return "[" + shape(node.expr) + "]"
    if isinstance(node, IntLit):
        return node.raw
    if isinstance(node, Access):
        if node.receiver is None:
            return node.name
        return shape(node.receiver) + "." + node.name
    if isinstance(node, Call):
        args = ", ".join(shape(a) for a in node.arguments)
        head = node.name if node.receiver is None else shape(node.receiver) + "." + node.name
        return head + "(" + args + ")"
    return type(node).__name__


def test_multiplication_binds_tighter_than_addition():
    assert shape(expr("1 + 2 * 3")) == "(1 + (2 * 3))"


def test_additive_is_left_associative():
    assert shape(expr("a - b - c")) == "((a - b) - c)"


def test_equality_below_additive():
    assert shape(expr("a + 1 < b * 2")) == "((a + 1) < (b * 2))"


def test_comparisons_chain_left():
    assert shape(expr("a < b == c")) == "((a < b) == c)"


def test_logical_is_loosest_and_flat():
    assert shape(expr("a AND b OR c == d")) == "((a AND b) OR (c == d))"


def test_group_is_kept():
    node = expr("(1 + 2) * 3")
    assert shape(node) == "([(1 + 2)] * 3)"
    assert isinstance(node, Binary)
    assert isinstance(node.left, Group)


def test_secondary_chains_left_to_right():
    assert shape(expr("a.b.c(1).d")) == "a.b.c(1).d"
    node = expr("a.b.c(1).d")
    assert isinstance(node, Access)
    assert isinstance(node.receiver, Call)
    assert node.receiver.name == "c"


def test_call_arguments():
    node = expr("f(1, g(), x.y)")
    assert isinstance(node, Call)
    assert node.receiver is None
    assert [shape(a) for a in node.arguments] == ["1", "g()", "x.y"]


def test_negative_literal_in_expression():
    node = expr("x - -1")
    assert isinstance(node, Binary)
    assert isinstance(node.right, IntLit)
    assert node.right.value == -1


def test_decimal_literal_keeps_raw_text():
    node = expr("1.50")
    assert isinstance(node, DecimalLit)
    assert node.value == Decimal("1.50")
    assert node.raw == "1.50"


def test_binary_position_is_left_operand():
    node = expr("  a + b")
    assert node.pos == Pos(1, 3)


def test_assignment_and_expression_statements():
    src = parse('DEF main() DO x.y = 1; f("s"); RETURN 0; END')
    stmts = src.methods[0].statements
    assert isinstance(stmts[0], AssignStmt)
    assert isinstance(stmts[0].receiver, Access)
    assert isinstance(stmts[1], ExprStmt)
    assert isinstance(stmts[1].expr, Call)
    assert isinstance(stmts[1].expr.arguments[0], StringLit)
    assert isinstance(stmts[2], ReturnStmt)


def test_assignment_target_is_any_expression():
    # Rejecting non-access targets is the analyzer's job
    src = parse("DEF main() DO 1 = 2; END")
    assert isinstance(src.methods[0].statements[0], AssignStmt)


def test_if_with_else():
    src = parse("DEF main() DO IF a DO f(); ELSE g(); h(); END END")
    stmt = src.methods[0].statements[0]
    assert isinstance(stmt, IfStmt)
    assert len(stmt.then_statements) == 1
    assert len(stmt.else_statements) == 2


def test_method_signature():
    src = parse("DEF f(a: Integer, b): String DO END")
    m = src.methods[0]
    assert [(p.name, p.type_name) for p in m.params] == [("a", "Integer"), ("b", None)]
    assert m.return_type_name == "String"
    assert m.statements == []


@pytest.mark.parametrize(
    "source,message",
    [
        ("DEF f() DO LET x = 1; END LET y;", "fields must be declared before methods"),
        ("RETURN 1;", "expected LET or DEF"),
        ("DEF f() DO", "got end of input"),
        ("LET x = ;", "expected expression"),
        ("LET x = 1", "expected ';'"),
        ("DEF f(1) DO END", "expected identifier"),
        ("DEF f() DO f(1,); END", "expected expression"),
    ],
)
def test_parse_errors(source, message):
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert message in str(exc.value)


def test_parse_error_position():
    with pytest.raises(ParseError) as exc:
        parse("LET x = 1;\nLET y = 2")
    assert (exc.value.line, exc.value.col) == (2, 10)
