"""Java-like input language: public API."""

from __future__ import annotations

from .ast import JBlock, JModule
from .parse import ParseError as ParseError, Parser
from .tokens import TK_EOF, TokenizeError as TokenizeError, tokenize


def _too_deep(parser: Parser) -> ParseError:
    return parser.error("nesting too deep to parse")


def parse(source: str) -> JModule:
    """Parse source code into a JModule AST."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    try:
        return parser.parse_program()
    except RecursionError:
        raise _too_deep(parser) from None


def parse_block(source: str) -> JBlock:
    """Parse a bare `{ ... }` block."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    try:
        block = parser.parse_block()
    except RecursionError:
        raise _too_deep(parser) from None
    if not parser.at_type(TK_EOF):
        raise parser.error("unexpected '" + parser.current().value + "' after block")
    return block
