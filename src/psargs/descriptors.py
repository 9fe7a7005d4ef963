"""Declare parameter sets on dataclasses.

::

    @parameter_set("Copy", command="copy")
    @dataclass
    class CopyArgs:
        source: str = parameter(position=0, required=True)
        force: Switch = parameter()

    sets = from_dataclass(CopyArgs)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from psargs.errors import ParameterSetDefinitionError
from psargs.parameters import MISSING, Parameter, ParameterSet
from psargs.shapes import resolved_hints

_METADATA_KEY = "psargs"
_SETS_ATTR = "__psargs_sets__"

T = TypeVar("T", bound=type)


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """What ``parameter()`` records in a field's metadata."""

    name: str | None = None
    position: int | None = None
    required: bool = False
    default: Any = MISSING
    validators: tuple[Callable[[Any], None], ...] = ()
    help: str = ""
    sets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SetInfo:
    name: str
    command: str | None = None
    help: str = ""


def parameter(
    *,
    name: str | None = None,
    position: int | None = None,
    required: bool = False,
    default: Any = MISSING,
    validators: Iterable[Callable[[Any], None]] = (),
    help: str = "",
    sets: Iterable[str] = (),
) -> Any:
    """A dataclass field that is also a command-line parameter.

    *default* is the parameter default (native value or command-line text),
    applied when the set is bound. The field itself defaults to None so the
    target can be created without arguments. A field with no *sets* belongs
    to every set declared on the class.
    """
    info = ParameterInfo(name, position, required, default, tuple(validators), help, tuple(sets))
    return dataclasses.field(default=None, metadata={_METADATA_KEY: info})


def parameter_set(name: str, command: str | None = None, help: str = "") -> Callable[[T], T]:
    """Class decorator declaring one parameter set; stack it for several."""

    def decorate(cls: T) -> T:
        declared = list(cls.__dict__.get(_SETS_ATTR, ()))
        # decorators apply bottom-up; keep the order they are written in
        declared.insert(0, SetInfo(name, command, help))
        setattr(cls, _SETS_ATTR, tuple(declared))
        return cls

    return decorate


def from_dataclass(cls: type, name: str | None = None) -> tuple[ParameterSet, ...]:
    """Build the parameter sets declared on *cls*.

    Without a ``parameter_set`` decorator the class declares one set named
    after itself. Passing *name* selects a single declared set.
    """
    if not dataclasses.is_dataclass(cls):
        raise ParameterSetDefinitionError(f"{cls.__name__} is not a dataclass")

    declared: tuple[SetInfo, ...] = cls.__dict__.get(_SETS_ATTR, ()) or (SetInfo(cls.__name__),)
    if name is not None:
        declared = tuple(s for s in declared if s.name == name)
        if not declared:
            raise ParameterSetDefinitionError(f"{cls.__name__} declares no parameter set named '{name}'")

    hints = resolved_hints(cls)
    fields: list[tuple[dataclasses.Field[Any], ParameterInfo]] = []
    for f in dataclasses.fields(cls):
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            raise ParameterSetDefinitionError(
                f"field '{f.name}' of {cls.__name__} needs a default so the target can be created"
            )
        info = f.metadata.get(_METADATA_KEY)
        if isinstance(info, ParameterInfo):
            fields.append((f, info))

    known = {s.name for s in cls.__dict__.get(_SETS_ATTR, ())} or {cls.__name__}
    for f, info in fields:
        unknown = [s for s in info.sets if s not in known]
        if unknown:
            raise ParameterSetDefinitionError(
                f"field '{f.name}' of {cls.__name__} names undeclared parameter sets: {', '.join(unknown)}"
            )

    sets: list[ParameterSet] = []
    for set_info in declared:
        parameters = [
            Parameter(
                info.name or f.name,
                hints.get(f.name, Any),
                position=info.position,
                required=info.required,
                default=info.default,
                validators=info.validators,
                help=info.help,
                attribute=f.name,
            )
            for f, info in fields
            if not info.sets or set_info.name in info.sets
        ]
        sets.append(
            ParameterSet(
                set_info.name,
                parameters,
                command=set_info.command,
                target=cls,
                help=set_info.help,
            )
        )
    return tuple(sets)
