"""PowerShell-style command-line parsing and parameter-set binding."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from psargs.results import ResolveResult

__version__ = "0.1.0"


def resolve(text: str, *sets: Any) -> ResolveResult:
    """Parse *text* and bind it against each parameter set in *sets*.

    Each item is a ParameterSet or a dataclass declaring parameter sets.
    """
    from psargs.descriptors import from_dataclass
    from psargs.parser import parse
    from psargs.resolver import ParameterSetCollection

    collection = ParameterSetCollection()
    for item in sets:
        if isinstance(item, type):
            for parameter_set in from_dataclass(item):
                collection.add(parameter_set)
        else:
            collection.add(item)
    return collection.resolve(parse(text))
