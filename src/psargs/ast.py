"""AST node types for parsed command lines."""

from __future__ import annotations

from collections.abc import Iterator, Sequence as _Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import overload

from psargs.tokens import Span


class LiteralType(Enum):
    NUMERIC = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()


@dataclass(frozen=True, slots=True)
class Literal:
    """Scalar value; its type interpretation is deferred to the binder."""

    value_type: LiteralType
    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class Sequence:
    """Ordered list from @(...) or an implicit comma run."""

    elements: tuple[AstNode, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class AssociativeArray:
    """Key/value pairs from @{...}. Duplicate keys are kept."""

    entries: tuple[tuple[AstNode, AstNode], ...]
    span: Span


@dataclass(frozen=True, slots=True)
class ParameterName:
    """Named-argument marker: -Name."""

    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class SwitchParameter:
    """Named flag with an explicit value: -Name:value."""

    name: str
    value: AstNode
    span: Span


AstNode = Literal | Sequence | AssociativeArray | ParameterName | SwitchParameter
ValueNode = Literal | Sequence | AssociativeArray


def is_named(node: AstNode) -> bool:
    return isinstance(node, (ParameterName, SwitchParameter))


@dataclass(frozen=True, slots=True)
class Argument:
    """A logical argument: a name and its value, or a positional value."""

    name: ParameterName | SwitchParameter | None
    value: AstNode | None


class NodeSequence(_Sequence[AstNode]):
    """The top-level nodes of one command line, plus its source text."""

    __slots__ = ("_nodes", "_source")

    def __init__(self, source: str, nodes: tuple[AstNode, ...] | list[AstNode]) -> None:
        self._source = source
        self._nodes = tuple(nodes)

    @property
    def source(self) -> str:
        return self._source

    @property
    def nodes(self) -> tuple[AstNode, ...]:
        return self._nodes

    @overload
    def __getitem__(self, index: int) -> AstNode: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[AstNode, ...]: ...

    def __getitem__(self, index: int | slice) -> AstNode | tuple[AstNode, ...]:
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[AstNode]:
        return iter(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeSequence):
            return NotImplemented
        return self._source == other._source and self._nodes == other._nodes

    def __hash__(self) -> int:
        return hash((self._source, self._nodes))

    def __repr__(self) -> str:
        return f"NodeSequence({self._source!r}, {len(self._nodes)} nodes)"

    def excerpt(self, *nodes: AstNode) -> str:
        """Return the source text covering *nodes* (first start to last end)."""
        if not nodes:
            return ""
        start = min(n.span.start.offset for n in nodes)
        end = max(n.span.end.offset for n in nodes)
        return self._source[start:end]

    @property
    def arguments(self) -> tuple[Argument, ...]:
        """Pair each ``-Name`` with the value node that follows it."""
        args: list[Argument] = []
        i = 0
        while i < len(self._nodes):
            node = self._nodes[i]
            if isinstance(node, SwitchParameter):
                args.append(Argument(node, node.value))
            elif isinstance(node, ParameterName):
                nxt = self._nodes[i + 1] if i + 1 < len(self._nodes) else None
                if nxt is not None and not is_named(nxt):
                    args.append(Argument(node, nxt))
                    i += 1
                else:
                    args.append(Argument(node, None))
            else:
                args.append(Argument(None, node))
            i += 1
        return tuple(args)
