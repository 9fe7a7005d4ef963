"""--debug AST dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from psargs.ast import AssociativeArray, AstNode, Literal, NodeSequence, ParameterName, Sequence, SwitchParameter


def dump_ast(sequence: NodeSequence, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable AST tree to *file*."""
    file.write(f"NodeSequence {sequence.source!r}\n")
    for node in sequence:
        _dump_node(node, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: AstNode, depth: int, f: TextIO) -> None:
    pad = _indent(depth)
    if isinstance(node, Literal):
        f.write(f"{pad}Literal {node.value_type.name} {node.value!r}\n")
    elif isinstance(node, ParameterName):
        f.write(f"{pad}ParameterName -{node.name}\n")
    elif isinstance(node, SwitchParameter):
        f.write(f"{pad}SwitchParameter -{node.name}:\n")
        _dump_node(node.value, depth + 1, f)
    elif isinstance(node, Sequence):
        f.write(f"{pad}Sequence ({len(node.elements)})\n")
        for element in node.elements:
            _dump_node(element, depth + 1, f)
    elif isinstance(node, AssociativeArray):
        f.write(f"{pad}AssociativeArray ({len(node.entries)})\n")
        for key, value in node.entries:
            f.write(f"{_indent(depth + 1)}Entry\n")
            _dump_node(key, depth + 2, f)
            _dump_node(value, depth + 2, f)
