"""PLC tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from .errors import TokenizeError

# Token type constants
TK_INT = "INTEGER"
TK_DECIMAL = "DECIMAL"
TK_CHAR = "CHARACTER"
TK_STRING = "STRING"
TK_IDENT = "IDENTIFIER"
TK_OP = "OPERATOR"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "AND",
    "DEF",
    "DO",
    "ELSE",
    "END",
    "FALSE",
    "FOR",
    "IF",
    "IN",
    "LET",
    "NIL",
    "OR",
    "RETURN",
    "TRUE",
    "WHILE",
}

# Two-character operators; every other non-space character is a one-character operator
MULTI_OPS: list[str] = ["<=", ">=", "==", "!="]

ESCAPE_MAP: dict[str, str] = {
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

WHITESPACE: set[str] = {" ", "\t", "\r", "\n", "\b"}


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int, index: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.index: int = index
        # Literal text as written, before escape resolution
        self.raw: str = value

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_ident_char(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c) or c == "-"


def _ends_operand(tok: Token | None) -> bool:
    """Whether a sign after this token must be a binary operator."""
    if tok is None:
        return False
    if tok.type in (TK_INT, TK_DECIMAL, TK_CHAR, TK_STRING, TK_IDENT):
        return True
    if tok.type in ("NIL", "TRUE", "FALSE"):
        return True
    return tok.type == TK_OP and tok.value == ")"


def _process_escape(src: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Process escape after backslash. Returns (resolved_char, new_pos)."""
    if pos >= len(src):
        raise TokenizeError("unexpected end of input in escape", line, col, pos)
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    raise TokenizeError("invalid escape: \\" + c, line, col, pos)


def tokenize(source: str) -> list[Token]:
    """Tokenize PLC source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c in WHITESPACE:
            pos += 1
            col += 1
            continue

        start_pos = pos
        start_line = line
        start_col = col
        prev = tokens[-1] if tokens else None

        # Number, optionally signed: [+-]?[0-9]+(.[0-9]+)?
        signed = (
            (c == "+" or c == "-")
            and pos + 1 < length
            and _is_digit(source[pos + 1])
            and not _ends_operand(prev)
        )
        if _is_digit(c) or signed:
            pos += 1
            col += 1
            while pos < length and _is_digit(source[pos]):
                pos += 1
                col += 1
            is_decimal = False
            if pos + 1 < length and source[pos] == "." and _is_digit(source[pos + 1]):
                is_decimal = True
                pos += 1
                col += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            raw = source[start_pos:pos]
            kind = TK_DECIMAL if is_decimal else TK_INT
            tokens.append(Token(kind, raw, start_line, start_col, start_pos))
            continue

        # String literal: "..."
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n" or source[pos] == "\r":
                    raise TokenizeError(
                        "unterminated string literal", start_line, start_col, pos
                    )
                if source[pos] == "\\":
                    pos += 1
                    col += 1
                    ch, pos = _process_escape(source, pos, start_line, col)
                    chars.append(ch)
                else:
                    chars.append(source[pos])
                    pos += 1
                col += 1
            if pos >= length:
                raise TokenizeError(
                    "unterminated string literal", start_line, start_col, pos
                )
            pos += 1  # skip closing "
            col += 1
            tok = Token(TK_STRING, "".join(chars), start_line, start_col, start_pos)
            tok.raw = source[start_pos:pos]
            tokens.append(tok)
            continue

        # Character literal: 'c'
        if c == "'":
            pos += 1
            col += 1
            if pos >= length or source[pos] == "\n" or source[pos] == "\r":
                raise TokenizeError(
                    "unterminated character literal", start_line, start_col, pos
                )
            if source[pos] == "\\":
                pos += 1
                col += 1
                char_value, pos = _process_escape(source, pos, start_line, col)
            elif source[pos] == "'":
                raise TokenizeError(
                    "empty character literal", start_line, start_col, pos
                )
            else:
                char_value = source[pos]
                pos += 1
            col += 1
            if pos >= length or source[pos] != "'":
                raise TokenizeError(
                    "unterminated character literal", start_line, start_col, pos
                )
            pos += 1  # skip closing '
            col += 1
            tok = Token(TK_CHAR, char_value, start_line, start_col, start_pos)
            tok.raw = source[start_pos:pos]
            tokens.append(tok)
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_ident_char(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line, start_col, start_pos))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col, start_pos))
            continue

        # Two-character operators
        matched = False
        for op in MULTI_OPS:
            if source[pos : pos + len(op)] == op:
                tokens.append(Token(TK_OP, op, start_line, start_col, start_pos))
                pos += len(op)
                col += len(op)
                matched = True
                break
        if matched:
            continue

        # Any other character is a one-character operator
        tokens.append(Token(TK_OP, c, start_line, start_col, start_pos))
        pos += 1
        col += 1

    tokens.append(Token(TK_EOF, "", line, col, pos))
    return tokens
