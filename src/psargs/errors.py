"""Error types with formatted source context."""

from __future__ import annotations

from typing import Any

from psargs.shapes import type_name
from psargs.tokens import Position, Span

DEFAULT_FILENAME = "<command line>"


def render_excerpt(
    message: str,
    source: str,
    start: Position,
    end: Position | None = None,
    filename: str = DEFAULT_FILENAME,
) -> str:
    """Render *message* with a caret excerpt of *source* between two positions."""
    lines = source.splitlines(keepends=True)
    line_idx = start.line - 1
    col = start.column

    # Build the source line (strip trailing newline for display)
    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    # Underline the full span when on one line, otherwise to end of line
    if end is not None and end.line == start.line:
        underline_len = max(1, end.column - col)
    else:
        underline_len = max(1, len(source_line) - col + 1)

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(start.line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{start.line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


class LexError(Exception):
    """Raised on the first lexing error, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = DEFAULT_FILENAME) -> str:
        # A lex error points at a single character
        end = Position(self.position.line, self.position.column + 1, self.position.offset + 1)
        return render_excerpt(self.message, self.source, self.position, end, filename)


class ParseError(Exception):
    """Raised on the first parse error, with span and source context."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = DEFAULT_FILENAME) -> str:
        return render_excerpt(self.message, self.source, self.span.start, self.span.end, filename)


class ParameterDefinitionError(Exception):
    """A parameter was declared with an invalid name, type or default."""

    def __init__(self, message: str, parameter: Any = None) -> None:
        self.message = message
        self.parameter = parameter
        super().__init__(message)


class ParameterSetDefinitionError(Exception):
    """A parameter set was declared inconsistently (positions, names, command)."""

    def __init__(self, message: str, parameter_set: Any = None) -> None:
        self.message = message
        self.parameter_set = parameter_set
        super().__init__(message)


class UnsupportedTypeError(TypeError):
    """The binding target cannot be constructed from the given AST shape."""

    def __init__(self, message: str, target: Any) -> None:
        self.message = message
        self.target = target
        super().__init__(message)


class ConversionError(ValueError):
    """No conversion path from *value* to *target* exists."""

    def __init__(
        self,
        value: Any,
        target: Any,
        reason: str | None = None,
        causes: tuple[BaseException, ...] = (),
    ) -> None:
        self.value = value
        self.target = target
        self.reason = reason
        self.causes = causes
        message = f"cannot convert {value!r} to {type_name(target)}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConfigError(Exception):
    """A configuration file is malformed or declares invalid parameter sets."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
