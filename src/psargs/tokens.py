"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Parameters
    PARAMETER_NAME = auto()  # -Name
    SWITCH_PARAMETER = auto()  # -Name:

    # Literal values
    STRING = auto()  # quoted or bare text, value is unescaped
    NUMERIC = auto()  # [+-]digits with at most one '.'
    BOOLEAN = auto()  # $true / $false
    NULL = auto()  # $null

    # Structure
    LIST_START = auto()  # @(
    LIST_END = auto()  # )
    DICT_START = auto()  # @{
    DICT_END = auto()  # }
    LIST_SEPARATOR = auto()  # top-level ',' (implicit list)

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position

    @property
    def length(self) -> int:
        return self.end.offset - self.start.offset


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with resolved value and original source text."""

    type: TokenType
    value: str
    raw: str
    span: Span

    @property
    def length(self) -> int:
        return self.span.length


PARAMETER_INDICATOR = "-"
LIST_START = "@("
LIST_END = ")"
DICT_START = "@{"
DICT_END = "}"
LIST_SEPARATOR = ","
KEY_SEPARATOR = "="
ENTRY_SEPARATOR = ";"
ESCAPE = "`"
SWITCH_INDICATOR = ":"

# Characters that terminate a bare (unquoted) value
_VALUE_STOP = frozenset(" \t\r\n,;=)}")


def is_whitespace(ch: str) -> bool:
    """Return True if ch separates tokens."""
    return ch != "" and ch.isspace()


def is_value_stop(ch: str) -> bool:
    """Return True if ch ends an unquoted value."""
    return ch == "" or ch in _VALUE_STOP or ch.isspace()


def is_numeric_text(text: str) -> bool:
    """Return True if text is an optional sign, digits, and at most one '.'."""
    body = text[1:] if text[:1] in ("+", "-") else text
    if not body:
        return False
    dots = body.count(".")
    if dots > 1:
        return False
    digits = body.replace(".", "")
    return digits != "" and all(ch in "0123456789" for ch in digits)
