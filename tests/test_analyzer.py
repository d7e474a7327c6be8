"""Analyzer tests: annotations, parent scopes, and error positions."""

import pytest

from plc import check, parse
from plc.analyzer import Analyzer, binary_result_type
from plc.ast import Access, Binary, Call, DeclStmt, Expr, IntLit, Pos, ReturnStmt
from plc.environment import (
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
    Type,
    get_method,
    register_type,
    unregister_type,
)
from plc.errors import (
    InvalidReturn,
    MissingEntryPoint,
    Overflow,
    TypeMismatch,
    UndefinedVariable,
    UnknownField,
)
from plc.scope import Scope

MAIN = "DEF main() DO RETURN 0; END\n"


def walk_exprs(node):
    """Yield every expression reachable from a statement or expression."""
    for name in ("value", "condition", "expr", "receiver", "left", "right"):
        child = getattr(node, name, None)
        if isinstance(child, Expr):
            yield from _expr_and_below(child)
    for arg in getattr(node, "arguments", []):
        yield from _expr_and_below(arg)
    for list_name in ("statements", "then_statements", "else_statements"):
        for stmt in getattr(node, list_name, []):
            yield from walk_exprs(stmt)


def _expr_and_below(expr):
    yield expr
    yield from walk_exprs(expr)


def test_every_expression_gets_a_type():
    src = check(
        "LET base = 10;\n"
        "DEF f(n: Integer): Integer DO\n"
        "    LET s = 0;\n"
        "    FOR i IN range(0, n) DO s = s + i * base; END\n"
        "    IF s > 100 AND n != 0 DO print(\"big\" + s); END\n"
        "    WHILE s > 0 DO s = s - (1).abs(); END\n"
        "    RETURN s;\n"
        "END\n" + MAIN
    )
    exprs = [e for m in src.methods for stmt in m.statements for e in walk_exprs(stmt)]
    exprs += [f.value for f in src.fields]
    assert len(exprs) > 20
    for e in exprs:
        assert e.type is not None, e


def test_accesses_and_calls_are_bound():
    src = check("LET x = 1;\nDEF main() DO RETURN x; END\n")
    ret = src.methods[0].statements[0]
    assert isinstance(ret, ReturnStmt)
    assert isinstance(ret.value, Access)
    assert ret.value.binding is src.fields[0].variable


def test_call_binding_is_callee_function():
    src = check("DEF f(a) DO RETURN 1; END\nDEF main() DO RETURN f(2); END\n")
    call = src.methods[1].statements[0].value
    assert isinstance(call, Call)
    assert call.binding is src.methods[0].function
    assert call.type is INTEGER


def test_builtin_bindings():
    src = check('LET r = range(0, 3);\nLET n = "ab".length();\n' + MAIN)
    assert src.fields[0].value.binding is RANGE
    assert src.fields[1].value.binding is get_method(STRING, "length", 0)


def test_decl_binds_variable():
    src = check("DEF main() DO LET x: Comparable = 'c'; RETURN 0; END\n")
    decl = src.methods[0].statements[0]
    assert isinstance(decl, DeclStmt)
    assert decl.variable is not None
    assert decl.variable.type is COMPARABLE
    assert decl.value.type is CHARACTER


def test_method_function_signature():
    src = check("DEF f(a: Decimal, b) DO RETURN a; END\n" + MAIN)
    fn = src.methods[0].function
    assert fn.param_types == [DECIMAL, ANY]
    assert fn.return_type is DECIMAL


@pytest.mark.parametrize(
    "op,left,right,expected",
    [
        ("+", INTEGER, INTEGER, INTEGER),
        ("+", DECIMAL, DECIMAL, DECIMAL),
        ("+", STRING, BOOLEAN, STRING),
        ("+", NIL, STRING, STRING),
        ("-", INTEGER, INTEGER, INTEGER),
        ("/", DECIMAL, DECIMAL, DECIMAL),
        ("<", CHARACTER, CHARACTER, BOOLEAN),
        ("==", STRING, STRING, BOOLEAN),
        ("!=", COMPARABLE, COMPARABLE, BOOLEAN),
        ("AND", BOOLEAN, BOOLEAN, BOOLEAN),
        ("OR", BOOLEAN, BOOLEAN, BOOLEAN),
    ],
)
def test_binary_result_type(op, left, right, expected):
    assert binary_result_type(op, left, right) is expected


@pytest.mark.parametrize(
    "op,left,right",
    [
        ("+", INTEGER, DECIMAL),
        ("+", CHARACTER, CHARACTER),
        ("-", STRING, STRING),
        ("*", ANY, INTEGER),
        ("<", INTEGER, DECIMAL),
        ("==", BOOLEAN, BOOLEAN),
        ("==", NIL, NIL),
        ("<", INTEGER_ITERABLE, INTEGER_ITERABLE),
        ("AND", BOOLEAN, INTEGER),
    ],
)
def test_binary_result_type_rejects(op, left, right):
    with pytest.raises(TypeMismatch):
        binary_result_type(op, left, right)


def test_return_outside_method():
    analyzer = Analyzer()
    stmt = ReturnStmt(Pos(4, 2), IntLit(Pos(4, 9), 1, "1"))
    with pytest.raises(InvalidReturn) as exc:
        analyzer.check_stmt(stmt)
    assert exc.value.pos == Pos(4, 2)


def test_integer_literal_bounds():
    check("LET a = 2147483647;\nLET b = -2147483648;\n" + MAIN)
    with pytest.raises(Overflow):
        check("LET a = 2147483648;\n" + MAIN)
    with pytest.raises(Overflow):
        check("LET a = -2147483649;\n" + MAIN)


def test_error_carries_innermost_position():
    source = "DEF main() DO\n    RETURN 1 + (2 * \"s\");\nEND\n"
    with pytest.raises(TypeMismatch) as exc:
        check(source)
    # The offending multiplication starts at the 2 inside the group
    assert exc.value.pos == Pos(2, 17)


def test_argument_mismatch_points_at_argument():
    source = "DEF f(a: Integer) DO RETURN a; END\nDEF main() DO RETURN f(\n  'c'); END\n"
    with pytest.raises(TypeMismatch) as exc:
        check(source)
    assert exc.value.pos == Pos(3, 3)


def test_check_accepts_parsed_source():
    src = parse(MAIN)
    assert check(src) is src
    assert src.methods[0].function.return_type is INTEGER


def test_main_must_return_integer():
    with pytest.raises(MissingEntryPoint):
        check("DEF main() DO RETURN 1.0; END\n")


POINT = Type("AnalyzerPoint", "AnalyzerPoint")
POINT.fields["x"] = Scope().define_variable("x", INTEGER)


@pytest.fixture(autouse=True)
def point_type():
    register_type(POINT)
    yield POINT
    unregister_type(POINT)


def _point_scope():
    parent = Scope()
    parent.define_variable("origin", POINT)
    return POINT, parent


def test_parent_scope_variables_are_visible():
    _, parent = _point_scope()
    src = check("DEF main() DO RETURN origin.x; END\n", parent)
    access = src.methods[0].statements[0].value
    assert isinstance(access, Access)
    assert access.type is INTEGER


def test_parent_scope_field_assignment():
    _, parent = _point_scope()
    check("DEF main() DO origin.x = origin.x + 1; RETURN 0; END\n", parent)
    with pytest.raises(TypeMismatch):
        check('DEF main() DO origin.x = "s"; RETURN 0; END\n', parent)


def test_parent_scope_unknown_field():
    _, parent = _point_scope()
    with pytest.raises(UnknownField):
        check("DEF main() DO RETURN origin.y; END\n", parent)


def test_parent_scope_is_not_required():
    with pytest.raises(UndefinedVariable):
        check("DEF main() DO RETURN origin.x; END\n")


def test_analysis_does_not_mutate_parent_scope():
    _, parent = _point_scope()
    check("LET extra = 1;\n" + MAIN, parent)
    assert "extra" not in parent.variables


def test_binary_annotation_is_operator_result():
    src = check("LET b = 1 < 2;\n" + MAIN)
    value = src.fields[0].value
    assert isinstance(value, Binary)
    assert value.type is BOOLEAN
    assert value.left.type is INTEGER
