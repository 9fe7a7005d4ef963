"""Binding errors and resolution results."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from psargs.ast import AstNode, NodeSequence
from psargs.errors import DEFAULT_FILENAME, render_excerpt
from psargs.parameters import Parameter, ParameterSet


class ErrorKind(Enum):
    INCOMPATIBLE_TYPE = auto()
    MISSING_REQUIRED_PARAMETER = auto()
    ARGUMENT_NAME_MISMATCH = auto()
    ARGUMENT_POSITION_MISMATCH = auto()
    VALIDATION = auto()
    AMBIGUOUS_NAME = auto()
    MULTIPLE_BINDINGS = auto()
    MISSING_VALUE = auto()
    MISSING_COMMAND = auto()


@dataclass(frozen=True, slots=True)
class BindError:
    """One problem found while binding a command line to a parameter set.

    ``parameters`` and ``nodes`` are what the error is about; either may be
    empty. ``sequence`` is kept so the error can quote the command line.
    """

    kind: ErrorKind
    message: str
    parameters: tuple[Parameter, ...] = ()
    nodes: tuple[AstNode, ...] = ()
    sequence: NodeSequence | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"

    def format(self, filename: str = DEFAULT_FILENAME) -> str:
        """Render the message, with a caret excerpt when nodes are attached."""
        if not self.nodes or self.sequence is None:
            return f"error: {self.message}"
        start = min((n.span.start for n in self.nodes), key=lambda p: p.offset)
        end = max((n.span.end for n in self.nodes), key=lambda p: p.offset)
        return render_excerpt(self.message, self.sequence.source, start, end, filename)


@dataclass(frozen=True, slots=True)
class ParameterSetResult:
    """Outcome of binding one sequence against one parameter set."""

    sequence: NodeSequence
    parameter_set: ParameterSet
    value: Any
    errors: tuple[BindError, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors


class ResolveResult:
    """Per-candidate results, in the order the sets were declared."""

    __slots__ = ("_results",)

    def __init__(self, results: Iterable[ParameterSetResult]) -> None:
        self._results = tuple(results)

    @property
    def is_match(self) -> bool:
        """Exactly one candidate bound without errors."""
        return sum(1 for r in self._results if r.success) == 1

    @property
    def best_match(self) -> ParameterSetResult | None:
        """Fewest errors; the first declared wins a tie."""
        if not self._results:
            return None
        return min(self._results, key=lambda r: len(r.errors))

    @property
    def results(self) -> tuple[ParameterSetResult, ...]:
        return self._results

    def __getitem__(self, index: int) -> ParameterSetResult:
        return self._results[index]

    def __iter__(self) -> Iterator[ParameterSetResult]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __repr__(self) -> str:
        return f"ResolveResult(is_match={self.is_match}, {len(self._results)} results)"
