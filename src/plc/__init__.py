"""PLC analyzer and interpreter — public API."""

from __future__ import annotations

import logging

from .analyzer import check as _check
from .ast import Source
from .emit import to_source
from .errors import PlcError as PlcError
from .interpreter import RunResult, run as _run
from .parse import parse as _parse
from .scope import Scope
from .tokens import Token, tokenize as _tokenize

logging.getLogger(__name__).addHandler(logging.NullHandler())


def tokenize(source: str) -> list[Token]:
    """Lex PLC source into a token list ending with EOF."""
    return _tokenize(source)


def parse(source: str) -> Source:
    """Parse PLC source code into a Source AST."""
    return _parse(source)


def _as_ast(program: str | Source) -> Source:
    if isinstance(program, Source):
        return program
    return _parse(program)


def check(program: str | Source, parent: Scope | None = None) -> Source:
    """Analyze PLC source or a parsed AST. Returns the annotated AST."""
    return _check(_as_ast(program), parent)


def run(
    program: str | Source,
    *,
    analyze: bool = True,
    parent: Scope | None = None,
) -> RunResult:
    """Run a PLC program, analyzing it first unless analyze=False."""
    source = _as_ast(program)
    if analyze:
        _check(source, parent)
    return _run(source, parent)


def emit(source: Source) -> str:
    """Emit a `Source` AST to PLC textual syntax."""
    return to_source(source)
