"""Resolve a command line against every candidate parameter set."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import Executor
from typing import Any, NoReturn, TextIO

from psargs.ast import NodeSequence
from psargs.binder import ParameterSetBinder
from psargs.errors import LexError, ParameterDefinitionError, ParseError, UnsupportedTypeError
from psargs.parameters import ParameterSet
from psargs.parser import parse
from psargs.results import ParameterSetResult, ResolveResult


class ParameterSetCollection:
    """An ordered group of candidate parameter sets."""

    def __init__(self, sets: Iterable[ParameterSet] = (), binder: ParameterSetBinder | None = None) -> None:
        self._sets = list(sets)
        self.binder = binder if binder is not None else ParameterSetBinder()

    @classmethod
    def from_types(cls, *types: type, binder: ParameterSetBinder | None = None) -> ParameterSetCollection:
        """Collect the parameter sets declared on dataclasses."""
        from psargs.descriptors import from_dataclass

        sets: list[ParameterSet] = []
        for tp in types:
            sets.extend(from_dataclass(tp))
        return cls(sets, binder)

    def add(self, parameter_set: ParameterSet) -> None:
        self._sets.append(parameter_set)

    def remove(self, parameter_set: ParameterSet) -> None:
        self._sets.remove(parameter_set)

    def __iter__(self) -> Iterator[ParameterSet]:
        return iter(self._sets)

    def __len__(self) -> int:
        return len(self._sets)

    def __getitem__(self, name: str) -> ParameterSet:
        for parameter_set in self._sets:
            if parameter_set.name == name:
                return parameter_set
        raise KeyError(name)

    def resolve(self, sequence: NodeSequence, *, executor: Executor | None = None) -> ResolveResult:
        """Bind *sequence* against every set; results keep declaration order."""
        if executor is None:
            results: Sequence[ParameterSetResult] = [self.binder.bind(s, sequence) for s in self._sets]
        else:
            results = list(executor.map(lambda s: self.binder.bind(s, sequence), self._sets))
        return ResolveResult(results)


class ArgumentParser:
    """Parse a command line and pick the single matching parameter set."""

    def __init__(
        self,
        *sets: ParameterSet,
        binder: ParameterSetBinder | None = None,
        buffer_size: int | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.sets = ParameterSetCollection(sets, binder)
        self.buffer_size = buffer_size
        self.stderr = stderr

    def parse(self, text: str) -> ResolveResult:
        """Resolve *text*. Lexical and syntax errors are raised."""
        return self.sets.resolve(parse(text, buffer_size=self.buffer_size))

    def parse_args(self, argv: Iterable[str] | None = None) -> Any:
        """Return the bound object of the matching set.

        On failure the diagnostic goes to stderr and SystemExit(2) is raised.
        """
        if argv is None:
            argv = sys.argv[1:]
        text = " ".join(argv)
        try:
            result = self.parse(text)
        except (LexError, ParseError) as exc:
            self._fail(exc.format())
        except (ParameterDefinitionError, UnsupportedTypeError) as exc:
            self._fail(f"error: {exc}")

        if result.is_match:
            best = result.best_match
            assert best is not None
            return best.value

        best = result.best_match
        if best is None:
            self._fail("error: no parameter sets are defined")
        if best.success:
            names = ", ".join(r.parameter_set.name for r in result if r.success)
            self._fail(f"error: the arguments match more than one parameter set: {names}")
        self._fail(best.errors[0].format())

    def _fail(self, message: str) -> NoReturn:
        stream = self.stderr if self.stderr is not None else sys.stderr
        print(message, file=stream)
        raise SystemExit(2)
