"""Emitter tests: source rendering and re-parse stability."""

import pytest

from plc import emit, parse, run
from plc.ast import Access, Binary, Call, CharLit, Field, IntLit, Pos, Source, StringLit
from plc.emit import to_source

P = Pos(1, 1)

PROGRAMS = [
    "LET x = 1;\n",
    "LET rate: Decimal = 0.50;\nLET name: String;\n",
    "DEF main() DO\n    RETURN 0;\nEND\n",
    (
        "LET total = 0;\n"
        "\n"
        "DEF add(a: Integer, b): Integer DO\n"
        "    LET s = a + b * 2;\n"
        "    total = total + s;\n"
        "    RETURN s;\n"
        "END\n"
        "\n"
        "DEF main() DO\n"
        "    FOR i IN range(0, 3) DO\n"
        "        add(i, -1);\n"
        "    END\n"
        "    WHILE total > 10 AND TRUE DO\n"
        "        total = total - 1;\n"
        "    END\n"
        "    IF total == 0 DO\n"
        '        print("zero\\n");\n'
        "    ELSE\n"
        "        print('\\'');\n"
        "    END\n"
        '    RETURN "abc".substring(1).length() - (1 - 2);\n'
        "END\n"
    ),
]


@pytest.mark.parametrize("source", PROGRAMS)
def test_canonical_source_is_reproduced(source):
    assert emit(parse(source)) == source


@pytest.mark.parametrize(
    "source",
    [
        "DEF main() DO RETURN 1+2*3; END",
        "DEF   main ( )DO LET x=(1);x=x.abs();RETURN x;END",
        "LET s = \"tab\\there\";DEF main() DO RETURN s.length(); END",
    ],
)
def test_emit_is_a_fixed_point(source):
    once = emit(parse(source))
    assert emit(parse(once)) == once


def test_emitted_program_behaves_the_same():
    source = (
        "DEF f(n: Integer): Integer DO IF n < 2 DO RETURN n; END "
        "RETURN f(n - 1) + f(n - 2); END DEF main() DO RETURN f(10); END"
    )
    assert run(emit(parse(source))).value == run(source).value


def test_empty_source():
    assert to_source(Source([], [])) == ""


def _name(n):
    return Access(P, None, n)


def test_right_operand_of_equal_precedence_gets_parentheses():
    tree = Binary(P, "-", _name("a"), Binary(P, "-", _name("b"), _name("c")))
    src = Source([Field(P, "x", None, tree)], [])
    assert to_source(src) == "LET x = a - (b - c);\n"


def _render(expr) -> str:
    text = to_source(Source([Field(P, "x", None, expr)], []))
    return text[len("LET x = ") : -len(";\n")]


def test_left_operand_of_equal_precedence_stays_bare():
    tree = Binary(P, "-", Binary(P, "-", _name("a"), _name("b")), _name("c"))
    assert _render(tree) == "a - b - c"


def test_lower_precedence_operand_gets_parentheses():
    tree = Binary(P, "*", Binary(P, "+", _name("a"), _name("b")), _name("c"))
    assert _render(tree) == "(a + b) * c"
    tree = Binary(P, "AND", Binary(P, "<", _name("a"), _name("b")), _name("c"))
    assert _render(tree) == "a < b AND c"


def test_binary_receiver_gets_parentheses():
    tree = Call(P, Binary(P, "+", _name("a"), _name("b")), "abs", [])
    assert _render(tree) == "(a + b).abs()"


def test_negative_literal_receiver():
    tree = Call(P, IntLit(P, -5, "-5"), "abs", [])
    assert _render(tree) == "-5.abs()"
    assert run("DEF main() DO RETURN " + _render(tree) + "; END").value.to_string() == "5"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("a\nb", '"a\\nb"'),
        ("\r\t\b", '"\\r\\t\\b"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("back\\slash", '"back\\\\slash"'),
        ("it's", '"it\'s"'),
    ],
)
def test_string_escapes(value, expected):
    assert _render(StringLit(P, value)) == expected


def test_character_escapes():
    assert _render(CharLit(P, "'")) == "'\\''"
    assert _render(CharLit(P, '"')) == "'\"'"
    assert _render(CharLit(P, "\n")) == "'\\n'"
