"""PLC parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from decimal import Decimal

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
    Pos,
    ReturnStmt,
    Source,
    Stmt,
    StringLit,
    WhileStmt,
)
from .errors import ParseError
from .tokens import (
    TK_CHAR,
    TK_DECIMAL,
    TK_EOF,
    TK_IDENT,
    TK_INT,
    TK_STRING,
    Token,
    tokenize,
)

LOGICAL_OPS: set[str] = {"AND", "OR"}

EQUALITY_OPS: set[str] = {"<", "<=", ">", ">=", "==", "!="}


class Parser:
    """Recursive descent parser for PLC."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        """Keyword or operator check; literal tokens never match."""
        tok = self.current()
        if tok.type == TK_STRING or tok.type == TK_CHAR:
            return False
        return tok.value == value

    def at_any(self, values: set[str]) -> bool:
        tok = self.current()
        if tok.type == TK_STRING or tok.type == TK_CHAR:
            return False
        return tok.value in values

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error("expected '" + value + "', got " + self._describe())
        return self.advance()

    def expect_ident(self) -> Token:
        if not self.at_type(TK_IDENT):
            raise self.error("expected identifier, got " + self._describe())
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _describe(self) -> str:
        tok = self.current()
        if tok.type == TK_EOF:
            return "end of input"
        return "'" + tok.raw + "'"

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    # ── Top Level ────────────────────────────────────────────

    def parse_source(self) -> Source:
        """Source = Field* Method*"""
        fields: list[Field] = []
        methods: list[Method] = []
        while self.at("LET"):
            fields.append(self.parse_field())
        while self.at("DEF"):
            methods.append(self.parse_method())
        if not self.at_type(TK_EOF):
            if self.at("LET"):
                raise self.error("fields must be declared before methods")
            raise self.error("expected LET or DEF, got " + self._describe())
        return Source(fields, methods)

    def parse_field(self) -> Field:
        """Field = 'LET' ident (':' ident)? ('=' Expr)? ';'"""
        pos = self._pos()
        self.expect("LET")
        name, type_name, value = self._parse_binding()
        return Field(pos, name, type_name, value)

    def _parse_binding(self) -> tuple[str, str | None, Expr | None]:
        name = self.expect_ident().value
        type_name: str | None = None
        if self.at(":"):
            self.advance()
            type_name = self.expect_ident().value
        value: Expr | None = None
        if self.at("="):
            self.advance()
            value = self.parse_expr()
        self.expect(";")
        return name, type_name, value

    def parse_method(self) -> Method:
        """Method = 'DEF' ident '(' Params? ')' (':' ident)? 'DO' Stmt* 'END'"""
        pos = self._pos()
        self.expect("DEF")
        name = self.expect_ident().value
        self.expect("(")
        params: list[Param] = []
        if not self.at(")"):
            params.append(self.parse_param())
            while self.at(","):
                self.advance()
                params.append(self.parse_param())
        self.expect(")")
        return_type_name: str | None = None
        if self.at(":"):
            self.advance()
            return_type_name = self.expect_ident().value
        self.expect("DO")
        statements = self.parse_block(("END",))
        self.expect("END")
        return Method(pos, name, params, return_type_name, statements)

    def parse_param(self) -> Param:
        """Param = ident (':' ident)?"""
        pos = self._pos()
        name = self.expect_ident().value
        type_name: str | None = None
        if self.at(":"):
            self.advance()
            type_name = self.expect_ident().value
        return Param(pos, name, type_name)

    # ── Statements ───────────────────────────────────────────

    def parse_block(self, terminators: tuple[str, ...]) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not any(self.at(t) for t in terminators):
            if self.at_type(TK_EOF):
                raise self.error(
                    "expected " + " or ".join(terminators) + ", got end of input"
                )
            stmts.append(self.parse_stmt())
        return stmts

    def parse_stmt(self) -> Stmt:
        if self.at("LET"):
            return self.parse_decl_stmt()
        if self.at("IF"):
            return self.parse_if_stmt()
        if self.at("FOR"):
            return self.parse_for_stmt()
        if self.at("WHILE"):
            return self.parse_while_stmt()
        if self.at("RETURN"):
            return self.parse_return_stmt()
        return self.parse_expr_stmt()

    def parse_decl_stmt(self) -> DeclStmt:
        pos = self._pos()
        self.expect("LET")
        name, type_name, value = self._parse_binding()
        return DeclStmt(pos, name, type_name, value)

    def parse_if_stmt(self) -> IfStmt:
        """If = 'IF' Expr 'DO' Stmt* ('ELSE' Stmt*)? 'END'"""
        pos = self._pos()
        self.expect("IF")
        condition = self.parse_expr()
        self.expect("DO")
        then_statements = self.parse_block(("ELSE", "END"))
        else_statements: list[Stmt] = []
        if self.at("ELSE"):
            self.advance()
            else_statements = self.parse_block(("END",))
        self.expect("END")
        return IfStmt(pos, condition, then_statements, else_statements)

    def parse_for_stmt(self) -> ForStmt:
        """For = 'FOR' ident 'IN' Expr 'DO' Stmt* 'END'"""
        pos = self._pos()
        self.expect("FOR")
        name = self.expect_ident().value
        self.expect("IN")
        value = self.parse_expr()
        self.expect("DO")
        statements = self.parse_block(("END",))
        self.expect("END")
        return ForStmt(pos, name, value, statements)

    def parse_while_stmt(self) -> WhileStmt:
        """While = 'WHILE' Expr 'DO' Stmt* 'END'"""
        pos = self._pos()
        self.expect("WHILE")
        condition = self.parse_expr()
        self.expect("DO")
        statements = self.parse_block(("END",))
        self.expect("END")
        return WhileStmt(pos, condition, statements)

    def parse_return_stmt(self) -> ReturnStmt:
        pos = self._pos()
        self.expect("RETURN")
        value = self.parse_expr()
        self.expect(";")
        return ReturnStmt(pos, value)

    def parse_expr_stmt(self) -> Stmt:
        """ExprStmt = Expr ('=' Expr)? ';'"""
        pos = self._pos()
        expr = self.parse_expr()
        if self.at("="):
            self.advance()
            value = self.parse_expr()
            self.expect(";")
            return AssignStmt(pos, expr, value)
        self.expect(";")
        return ExprStmt(pos, expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_logical()

    def parse_logical(self) -> Expr:
        """Logical = Equality ( ('AND' | 'OR') Equality )*"""
        left = self.parse_equality()
        while self.at_any(LOGICAL_OPS):
            op = self.advance().value
            right = self.parse_equality()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Additive ( CompOp Additive )*"""
        left = self.parse_additive()
        while self.at_any(EQUALITY_OPS):
            op = self.advance().value
            right = self.parse_additive()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_additive(self) -> Expr:
        """Additive = Multiplicative ( ('+' | '-') Multiplicative )*"""
        left = self.parse_multiplicative()
        while self.at("+") or self.at("-"):
            op = self.advance().value
            right = self.parse_multiplicative()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_multiplicative(self) -> Expr:
        """Multiplicative = Secondary ( ('*' | '/') Secondary )*"""
        left = self.parse_secondary()
        while self.at("*") or self.at("/"):
            op = self.advance().value
            right = self.parse_secondary()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_secondary(self) -> Expr:
        """Secondary = Primary ( '.' ident ( '(' Args? ')' )? )*"""
        expr = self.parse_primary()
        while self.at("."):
            self.advance()
            name_tok = self.expect_ident()
            if self.at("("):
                arguments = self.parse_arguments()
                expr = Call(expr.pos, expr, name_tok.value, arguments)
            else:
                expr = Access(expr.pos, expr, name_tok.value)
        return expr

    def parse_arguments(self) -> list[Expr]:
        self.expect("(")
        args: list[Expr] = []
        if not self.at(")"):
            args.append(self.parse_expr())
            while self.at(","):
                self.advance()
                args.append(self.parse_expr())
        self.expect(")")
        return args

    def parse_primary(self) -> Expr:
        pos = self._pos()
        tok = self.current()
        if self.at("NIL"):
            self.advance()
            return NilLit(pos)
        if self.at("TRUE"):
            self.advance()
            return BoolLit(pos, True)
        if self.at("FALSE"):
            self.advance()
            return BoolLit(pos, False)
        if tok.type == TK_INT:
            self.advance()
            return IntLit(pos, int(tok.value), tok.raw)
        if tok.type == TK_DECIMAL:
            self.advance()
            return DecimalLit(pos, Decimal(tok.value), tok.raw)
        if tok.type == TK_CHAR:
            self.advance()
            return CharLit(pos, tok.value)
        if tok.type == TK_STRING:
            self.advance()
            return StringLit(pos, tok.value)
        if tok.type == TK_IDENT:
            self.advance()
            if self.at("("):
                arguments = self.parse_arguments()
                return Call(pos, None, tok.value, arguments)
            return Access(pos, None, tok.value)
        if self.at("("):
            self.advance()
            inner = self.parse_expr()
            self.expect(")")
            return Group(pos, inner)
        raise self.error("expected expression, got " + self._describe())


def parse(source: str) -> Source:
    """Tokenize and parse PLC source text."""
    return Parser(tokenize(source)).parse_source()
