"""psargs parser: converts a token stream into a NodeSequence."""

from __future__ import annotations

from collections.abc import Iterable

from psargs.ast import (
    AssociativeArray,
    AstNode,
    Literal,
    LiteralType,
    NodeSequence,
    ParameterName,
    Sequence,
    SwitchParameter,
)
from psargs.errors import ParseError
from psargs.lexer import stream, tokenize
from psargs.tokens import Span, Token, TokenType

_LITERAL_TYPES = {
    TokenType.NUMERIC: LiteralType.NUMERIC,
    TokenType.STRING: LiteralType.STRING,
    TokenType.BOOLEAN: LiteralType.BOOLEAN,
    TokenType.NULL: LiteralType.NULL,
}


class Parser:
    """Single-pass recursive descent parser with one token of lookahead."""

    def __init__(self, tokens: Iterable[Token], source: str) -> None:
        self._tokens = iter(tokens)
        self._source = source
        self._current: Token | None = None
        self._advance()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        assert self._current is not None
        return self._current

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_eof(self) -> bool:
        return self._at(TokenType.EOF)

    def _advance(self) -> Token | None:
        prev = self._current
        if prev is not None and prev.type == TokenType.EOF:
            return prev
        try:
            self._current = next(self._tokens)
        except StopIteration:
            if prev is None:
                raise ValueError("token stream must contain at least the EOF token") from None
            raise self._error("token stream ended without EOF", prev.span) from None
        return prev

    def _error(self, message: str, span: Span) -> ParseError:
        return ParseError(message, span, self._source)

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> NodeSequence:
        nodes: list[AstNode] = []
        while not self._at_eof():
            nodes.append(self._parse_argument())
        return NodeSequence(self._source, nodes)

    def _parse_argument(self) -> AstNode:
        tok = self._peek()
        if tok.type == TokenType.PARAMETER_NAME:
            self._advance()
            return ParameterName(tok.value, tok.span)
        if tok.type == TokenType.SWITCH_PARAMETER:
            self._advance()
            if self._at(TokenType.EOF, TokenType.PARAMETER_NAME, TokenType.SWITCH_PARAMETER):
                raise self._error(f"expected a value after '-{tok.value}:'", tok.span)
            value = self._parse_positional()
            return SwitchParameter(tok.value, value, Span(tok.span.start, value.span.end))
        if tok.type == TokenType.LIST_SEPARATOR:
            raise self._error("expected a value before ','", tok.span)
        return self._parse_positional()

    def _parse_positional(self) -> AstNode:
        node = self._parse_value()
        if self._at(TokenType.LIST_SEPARATOR):
            return self._parse_implicit_list(node)
        return node

    def _parse_implicit_list(self, first: AstNode) -> Sequence:
        elements = [first]
        while self._at(TokenType.LIST_SEPARATOR):
            sep = self._advance()
            assert sep is not None
            if self._at(TokenType.EOF, TokenType.PARAMETER_NAME, TokenType.LIST_SEPARATOR):
                raise self._error("expected a value after ','", sep.span)
            elements.append(self._parse_value())
        span = Span(first.span.start, elements[-1].span.end)
        return Sequence(tuple(elements), span)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_value(self) -> AstNode:
        tok = self._peek()

        literal_type = _LITERAL_TYPES.get(tok.type)
        if literal_type is not None:
            self._advance()
            return Literal(literal_type, tok.value, tok.span)

        if tok.type == TokenType.LIST_START:
            return self._parse_sequence()
        if tok.type == TokenType.DICT_START:
            return self._parse_assoc_array()

        if tok.type == TokenType.EOF:
            raise self._error("unexpected end of input", tok.span)
        if tok.type in (TokenType.LIST_END, TokenType.DICT_END):
            raise self._error(f"unexpected '{tok.raw}'", tok.span)
        raise self._error(f"expected a value, found '{tok.raw}'", tok.span)

    def _parse_sequence(self) -> Sequence:
        start = self._advance()
        assert start is not None
        elements: list[AstNode] = []
        while not self._at(TokenType.LIST_END):
            if self._at_eof():
                raise self._error("expected end of list ')'", start.span)
            elements.append(self._parse_value())
        end = self._advance()
        assert end is not None
        return Sequence(tuple(elements), Span(start.span.start, end.span.end))

    def _parse_assoc_array(self) -> AssociativeArray:
        start = self._advance()
        assert start is not None
        entries: list[tuple[AstNode, AstNode]] = []
        while not self._at(TokenType.DICT_END):
            if self._at_eof():
                raise self._error("expected end of dictionary '}'", start.span)
            key = self._parse_value()
            if self._at(TokenType.DICT_END, TokenType.EOF):
                raise self._error("expected dictionary value", key.span)
            value = self._parse_value()
            entries.append((key, value))
        end = self._advance()
        assert end is not None
        return AssociativeArray(tuple(entries), Span(start.span.start, end.span.end))


def parse(source: str, *, buffer_size: int | None = None) -> NodeSequence:
    """Parse a command line. With *buffer_size*, lexing runs on a producer thread."""
    if buffer_size is None:
        return Parser(tokenize(source), source).parse()
    with stream(source, buffer_size=buffer_size) as tokens:
        return Parser(tokens, source).parse()


def parse_args(argv: Iterable[str], *, buffer_size: int | None = None) -> NodeSequence:
    """Join argv fragments with single spaces and parse the result."""
    return parse(" ".join(argv), buffer_size=buffer_size)
