"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from psargs.ast import NodeSequence
from psargs.binder import ParameterSetBinder
from psargs.lexer import tokenize
from psargs.parameters import ParameterSet
from psargs.parser import parse
from psargs.results import ErrorKind, ParameterSetResult
from psargs.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a NodeSequence."""

    def _parse(source: str) -> NodeSequence:
        return parse(source)

    return _parse


@pytest.fixture
def bind():
    """Return a helper that parses source and binds it against one parameter set."""
    binder = ParameterSetBinder()

    def _bind(parameter_set: ParameterSet, source: str) -> ParameterSetResult:
        return binder.bind(parameter_set, parse(source))

    return _bind


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def error_kinds(result: ParameterSetResult) -> list[ErrorKind]:
    """Return the kinds of a result's errors, in order."""
    return [e.kind for e in result.errors]
