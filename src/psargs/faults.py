"""Value-binding fault records and the error sink that collects them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from psargs.ast import AssociativeArray, AstNode, Literal, Sequence
from psargs.shapes import type_name


@dataclass(frozen=True, slots=True)
class ValueFault:
    """Base for all binder faults. ``node`` is the AST node being bound."""

    node: AstNode | None

    @property
    def message(self) -> str:
        return "invalid value"


@dataclass(frozen=True, slots=True)
class TypeFault(ValueFault):
    """No conversion path from the value to the target."""

    target: Any
    value: Any = None
    reason: str | None = None

    @property
    def message(self) -> str:
        shown = self.value if self.value is not None else _node_text(self.node)
        text = f"cannot convert '{shown}' to {type_name(self.target)}"
        if self.reason:
            text += f": {self.reason}"
        return text


@dataclass(frozen=True, slots=True)
class AddFault(ValueFault):
    """An add operation on the target container raised."""

    target: Any
    operation: str
    exception: BaseException

    @property
    def message(self) -> str:
        return f"{type_name(self.target)}.{self.operation} failed: {self.exception}"


@dataclass(frozen=True, slots=True)
class ActivationFault(ValueFault):
    """Constructing an instance of the target raised."""

    target: Any
    exception: BaseException

    @property
    def message(self) -> str:
        return f"cannot create {type_name(self.target)}: {self.exception}"


@dataclass(frozen=True, slots=True)
class AggregateFault(ValueFault):
    """Every alternative for one element failed; ``faults`` holds each attempt."""

    faults: tuple[ValueFault, ...]

    @property
    def message(self) -> str:
        return "; ".join(f.message for f in self.faults)


def _node_text(node: AstNode | None) -> str | None:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Sequence):
        return "@(...)"
    if isinstance(node, AssociativeArray):
        return "@{...}"
    return None


class ErrorSink:
    """Accumulates faults for one scope of a recursive bind.

    A nested attempt binds into ``child()`` so a failed alternative can be
    reported as a unit instead of leaking into this scope.
    """

    def __init__(self) -> None:
        self._faults: list[ValueFault] = []

    def add(self, fault: ValueFault) -> None:
        self._faults.append(fault)

    def child(self) -> ErrorSink:
        return ErrorSink()

    @property
    def faults(self) -> tuple[ValueFault, ...]:
        return tuple(self._faults)

    def __len__(self) -> int:
        return len(self._faults)
