"""Parameter and parameter-set declarations."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from psargs.ast import AstNode, is_named
from psargs.errors import LexError, ParameterDefinitionError, ParameterSetDefinitionError, ParseError
from psargs.parser import parse
from psargs.shapes import admits_none, strip_optional, type_name
from psargs.switch import Switch

__all__ = ["MISSING", "Parameter", "ParameterSet", "parameter_names"]

Validator = Callable[[Any], None]

_NAME_FORBIDDEN = set("-:$@'\"`,;=(){}")


class _Missing:
    """Marks a parameter declared without a default."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class Parameter:
    """One declared parameter of a parameter set.

    ``default`` is either a native value, converted to ``type`` when the set
    is bound, or a string of command-line text that is parsed here and bound
    like an argument. For a ``str`` target the text is taken as-is.
    """

    name: str
    type: Any = str
    position: int | None = None
    required: bool = False
    default: Any = MISSING
    validators: tuple[Validator, ...] = ()
    help: str = ""
    attribute: str | None = None
    default_node: AstNode | None = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name or any(ch.isspace() or ch in _NAME_FORBIDDEN for ch in self.name):
            raise ParameterDefinitionError(f"invalid parameter name: {self.name!r}", self)
        if self.position is not None and self.position < 0:
            raise ParameterDefinitionError(f"parameter '{self.name}' has a negative position", self)
        object.__setattr__(self, "validators", tuple(self.validators))
        if self.attribute is None:
            object.__setattr__(self, "attribute", self.name)
        if self.default is None and not admits_none(self.type):
            raise ParameterDefinitionError(
                f"parameter '{self.name}' of type {type_name(self.type)} cannot default to None", self
            )
        if isinstance(self.default, str) and strip_optional(self.type) is not str:
            object.__setattr__(self, "default_node", self._parse_default(self.default))

    def _parse_default(self, text: str) -> AstNode:
        try:
            sequence = parse(text)
        except (LexError, ParseError) as exc:
            raise ParameterDefinitionError(
                f"invalid default for parameter '{self.name}': {exc.message}", self
            ) from exc
        if len(sequence) != 1 or is_named(sequence[0]):
            raise ParameterDefinitionError(
                f"default for parameter '{self.name}' must be a single value: {text!r}", self
            )
        return sequence[0]

    @property
    def is_switch(self) -> bool:
        return strip_optional(self.type) is Switch

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def matches(self, prefix: str) -> bool:
        """Case-insensitive prefix match of a command-line name."""
        return self.name.casefold().startswith(prefix.casefold())


@dataclass(frozen=True, slots=True)
class ParameterSet:
    """A named shape of valid invocation.

    Positions must be unique and contiguous from 0; names are unique
    ignoring case; the optional command word has no whitespace.
    """

    name: str
    parameters: tuple[Parameter, ...]
    command: str | None = None
    target: type | None = None
    help: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        if self.command is not None and (not self.command or any(ch.isspace() for ch in self.command)):
            raise ParameterSetDefinitionError(f"invalid command: {self.command!r}", self)

        names = Counter(p.name.casefold() for p in self.parameters)
        duplicates = sorted(p.name for p in self.parameters if names[p.name.casefold()] > 1)
        if duplicates:
            raise ParameterSetDefinitionError(f"Duplicate parameter names: {', '.join(duplicates)}", self)

        positional = self.positional
        counts = Counter(p.position for p in positional)
        clashes = [p for p in positional if counts[p.position] > 1]
        if clashes:
            listed = ", ".join(f"{p.name} ({p.position})" for p in clashes)
            raise ParameterSetDefinitionError(f"Duplicate parameter positions: {listed}", self)
        for index, param in enumerate(positional):
            if param.position != index:
                raise ParameterSetDefinitionError(f"Missing parameter position: {index}", self)

    @property
    def positional(self) -> tuple[Parameter, ...]:
        """Positional parameters in position order."""
        return tuple(sorted((p for p in self.parameters if p.position is not None), key=_position))

    @property
    def required(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.required)

    def find(self, prefix: str) -> tuple[Parameter, ...]:
        """All parameters whose name starts with *prefix*, ignoring case."""
        return tuple(p for p in self.parameters if p.matches(prefix))

    def __getitem__(self, name: str) -> Parameter:
        for param in self.parameters:
            if param.name.casefold() == name.casefold():
                return param
        raise KeyError(name)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self.parameters)

    def __len__(self) -> int:
        return len(self.parameters)


def _position(param: Parameter) -> int:
    assert param.position is not None
    return param.position


def parameter_names(parameters: Iterable[Parameter]) -> str:
    return ", ".join(p.name for p in parameters)
