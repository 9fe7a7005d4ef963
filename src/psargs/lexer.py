"""psargs lexer: converts command-line text into a flat token stream."""

from __future__ import annotations

from collections.abc import Iterator

from psargs.errors import LexError
from psargs.stream import DEFAULT_BUFFER_SIZE, TokenStream
from psargs.tokens import (
    DICT_END,
    DICT_START,
    ENTRY_SEPARATOR,
    ESCAPE,
    KEY_SEPARATOR,
    LIST_END,
    LIST_SEPARATOR,
    LIST_START,
    PARAMETER_INDICATOR,
    SWITCH_INDICATOR,
    Position,
    Span,
    Token,
    TokenType,
    is_numeric_text,
    is_value_stop,
    is_whitespace,
)

_LITERALS = {
    "$null": TokenType.NULL,
    "$true": TokenType.BOOLEAN,
    "$false": TokenType.BOOLEAN,
}


class Lexer:
    """Tokenize a command line into Token objects.

    ``tokens()`` is a lazy generator; a LexError is raised at the point the
    consumer advances past the last well-formed token.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._col = 1

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        return list(self.tokens())

    def tokens(self) -> Iterator[Token]:
        """Yield tokens in source order, terminated by EOF."""
        while True:
            self._skip_ws()
            if self._at_eof():
                break

            ch = self._peek()
            if ch == PARAMETER_INDICATOR and not self._starts_number(1):
                yield self._lex_parameter()
            elif ch == LIST_SEPARATOR:
                start = self._current_pos()
                self._advance()
                yield self._emit(TokenType.LIST_SEPARATOR, ch, ch, start)
            elif ch in (LIST_END, DICT_END, KEY_SEPARATOR, ENTRY_SEPARATOR):
                raise self._error(f"unexpected '{ch}'")
            else:
                yield from self._lex_value()

        yield self._emit(TokenType.EOF, "", "")

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _at_eof(self) -> bool:
        return self._pos >= len(self._source)

    def _starts_with(self, text: str) -> bool:
        return self._source.startswith(text, self._pos)

    def _starts_number(self, offset: int) -> bool:
        ch = self._peek(offset)
        return ch.isdigit() or ch == "."

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _skip_ws(self) -> None:
        while is_whitespace(self._peek()):
            self._advance()

    def _emit(self, tt: TokenType, value: str, raw: str, start: Position | None = None) -> Token:
        end = self._current_pos()
        if start is None:
            start = end
        return Token(tt, value, raw, Span(start, end))

    def _raw_since(self, start: Position) -> str:
        return self._source[start.offset : self._pos]

    def _error(self, message: str, pos: Position | None = None) -> LexError:
        if pos is None:
            pos = self._current_pos()
        return LexError(message, pos, self._source)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _lex_parameter(self) -> Token:
        start = self._current_pos()
        self._advance()  # -

        name_chars: list[str] = []
        while not self._at_eof():
            ch = self._peek()
            if is_whitespace(ch) or ch == SWITCH_INDICATOR:
                break
            name_chars.append(self._advance())

        name = "".join(name_chars)
        if not name:
            raise self._error("expected parameter name after '-'", start)

        if self._peek() == SWITCH_INDICATOR:
            self._advance()
            return self._emit(TokenType.SWITCH_PARAMETER, name, self._raw_since(start), start)

        return self._emit(TokenType.PARAMETER_NAME, name, self._raw_since(start), start)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _lex_value(self) -> Iterator[Token]:
        ch = self._peek()

        if ch in ("'", '"'):
            yield self._lex_quoted()
        elif ch == "$":
            yield self._lex_literal()
        elif self._starts_with(LIST_START):
            yield from self._lex_list()
        elif self._starts_with(DICT_START):
            yield from self._lex_dict()
        elif is_value_stop(ch):
            raise self._error("expected a value" if ch else "unexpected end of input")
        else:
            yield self._lex_bare()

    def _lex_quoted(self) -> Token:
        start = self._current_pos()
        quote = self._advance()
        chars: list[str] = []

        while True:
            if self._at_eof():
                raise self._error("unterminated string", start)
            ch = self._advance()
            if ch == ESCAPE:
                if self._at_eof():
                    raise self._error("unterminated string", start)
                chars.append(self._advance())
            elif ch == quote:
                break
            else:
                chars.append(ch)

        return self._emit(TokenType.STRING, "".join(chars), self._raw_since(start), start)

    def _lex_literal(self) -> Token:
        start = self._current_pos()
        while not is_value_stop(self._peek()):
            self._advance()

        raw = self._raw_since(start)
        tt = _LITERALS.get(raw.lower())
        if tt is None:
            raise self._error(f"not a literal token: {raw}", start)
        return self._emit(tt, raw, raw, start)

    def _lex_bare(self) -> Token:
        start = self._current_pos()

        # Peek the undecorated run first: numeric tokens never contain escapes
        end = self._pos
        while end < len(self._source) and not is_value_stop(self._source[end]):
            end += 1
        run = self._source[self._pos : end]
        if is_numeric_text(run):
            while self._pos < end:
                self._advance()
            return self._emit(TokenType.NUMERIC, run, run, start)

        chars: list[str] = []
        while not is_value_stop(self._peek()):
            ch = self._advance()
            if ch == ESCAPE:
                if self._at_eof():
                    raise self._error("dangling escape at end of input")
                chars.append(self._advance())
            else:
                chars.append(ch)

        return self._emit(TokenType.STRING, "".join(chars), self._raw_since(start), start)

    # ------------------------------------------------------------------
    # Lists and dictionaries
    # ------------------------------------------------------------------

    def _lex_list(self) -> Iterator[Token]:
        start = self._current_pos()
        self._advance()
        self._advance()
        yield self._emit(TokenType.LIST_START, LIST_START, LIST_START, start)

        self._skip_ws()
        while not self._at_eof() and self._peek() != LIST_END:
            yield from self._lex_value()
            self._skip_ws()

            if self._peek() == LIST_SEPARATOR:
                self._advance()
                self._skip_ws()
            elif not self._at_eof() and self._peek() != LIST_END:
                raise self._error("expected ',' or ')' in list")

        if self._at_eof():
            raise self._error("expected end of list ')'", start)

        end_start = self._current_pos()
        self._advance()
        yield self._emit(TokenType.LIST_END, LIST_END, LIST_END, end_start)

    def _lex_dict(self) -> Iterator[Token]:
        start = self._current_pos()
        self._advance()
        self._advance()
        yield self._emit(TokenType.DICT_START, DICT_START, DICT_START, start)

        self._skip_ws()
        while not self._at_eof() and self._peek() != DICT_END:
            # key
            yield from self._lex_value()
            self._skip_ws()

            if self._peek() != KEY_SEPARATOR:
                raise self._error("expected '=' after dictionary key")
            self._advance()
            self._skip_ws()

            # value
            if self._at_eof() or self._peek() in (DICT_END, ENTRY_SEPARATOR):
                raise self._error("expected dictionary value")
            yield from self._lex_value()
            self._skip_ws()

            if self._peek() == ENTRY_SEPARATOR:
                self._advance()
                self._skip_ws()
            else:
                break

        if self._at_eof():
            raise self._error("expected end of dictionary '}'", start)
        if self._peek() != DICT_END:
            raise self._error("expected ';' or '}' in dictionary")

        end_start = self._current_pos()
        self._advance()
        yield self._emit(TokenType.DICT_END, DICT_END, DICT_END, end_start)


def tokenize(source: str) -> list[Token]:
    """Convenience function: tokenize source and return the token list."""
    return Lexer(source).tokenize()


def stream(source: str, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> TokenStream:
    """Tokenize *source* on a producer thread, handing tokens over a bounded queue."""
    return TokenStream(Lexer(source).tokens(), buffer_size=buffer_size)
