"""Parameter-set binder: matches one parsed command line against one set.

The walk over the top-level nodes never raises for bad input. Every
problem becomes a BindError on the returned ParameterSetResult, so a
caller can compare candidates and report on the closest one.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

from psargs.ast import AstNode, Literal, NodeSequence, ParameterName, SwitchParameter, is_named
from psargs.builder import InterfaceResolver, ValueBuilder
from psargs.converters import TypeConverter
from psargs.errors import ConversionError, ParameterDefinitionError
from psargs.faults import AggregateFault, ValueFault
from psargs.parameters import Parameter, ParameterSet, parameter_names
from psargs.results import BindError, ErrorKind, ParameterSetResult
from psargs.switch import Switch


def activate(target: type | None) -> Any:
    """Create the object a parameter set binds into."""
    if target is None:
        return SimpleNamespace()
    return target()


@dataclass(frozen=True, slots=True)
class BinderSettings:
    converter: TypeConverter = field(default_factory=TypeConverter)
    resolver: InterfaceResolver = field(default_factory=InterfaceResolver)
    activator: Callable[[type | None], Any] = activate
    validate: bool = True


class _BindState:
    """Mutable bookkeeping for one bind call."""

    def __init__(self, parameter_set: ParameterSet, sequence: NodeSequence, instance: Any) -> None:
        self.parameter_set = parameter_set
        self.sequence = sequence
        self.instance = instance
        self.errors: list[BindError] = []
        self.remaining: list[Parameter] = list(parameter_set.parameters)
        self.unsatisfied: list[Parameter] = list(parameter_set.required)
        self.failed: set[str] = set()

    def error(
        self,
        kind: ErrorKind,
        message: str,
        parameters: tuple[Parameter, ...] = (),
        nodes: tuple[AstNode, ...] = (),
    ) -> None:
        self.errors.append(BindError(kind, message, parameters, nodes, self.sequence))

    def consume(self, param: Parameter) -> bool:
        """Mark *param* as bound; False when it was already bound."""
        if param not in self.remaining:
            return False
        self.remaining.remove(param)
        if param in self.unsatisfied:
            self.unsatisfied.remove(param)
        return True

    def next_positional(self) -> Parameter | None:
        candidates = [p for p in self.remaining if p.position is not None]
        if not candidates:
            return None
        return min(candidates, key=lambda p: p.position)


class ParameterSetBinder:
    """Binds a NodeSequence to a ParameterSet.

    A binder holds no per-call state and may be shared between threads.
    """

    def __init__(self, settings: BinderSettings | None = None) -> None:
        self.settings = settings if settings is not None else BinderSettings()

    def bind(self, parameter_set: ParameterSet, sequence: NodeSequence) -> ParameterSetResult:
        builder = ValueBuilder(self.settings.converter, self.settings.resolver)
        instance = self.settings.activator(parameter_set.target)
        state = _BindState(parameter_set, sequence, instance)

        self._apply_defaults(builder, state)

        nodes = list(sequence)
        index = 0
        if parameter_set.command is not None:
            self._check_command(state, nodes[0] if nodes else None)
            index = 1

        while index < len(nodes):
            node = nodes[index]
            if isinstance(node, (ParameterName, SwitchParameter)):
                index = self._bind_named(builder, state, nodes, index)
            else:
                self._bind_positional(builder, state, node)
                index += 1

        for param in state.unsatisfied:
            state.error(
                ErrorKind.MISSING_REQUIRED_PARAMETER,
                f"Missing required parameter: '{param.name}'",
                (param,),
            )

        if self.settings.validate:
            self._validate(state)

        return ParameterSetResult(sequence, parameter_set, instance, tuple(state.errors))

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _apply_defaults(self, builder: ValueBuilder, state: _BindState) -> None:
        for param in state.parameter_set:
            if param.has_default:
                setattr(state.instance, param.attribute, self._default_value(builder, param))
            elif param.is_switch:
                setattr(state.instance, param.attribute, Switch.ABSENT)
            elif not hasattr(state.instance, param.attribute):
                setattr(state.instance, param.attribute, None)

    def _default_value(self, builder: ValueBuilder, param: Parameter) -> Any:
        if param.default_node is not None:
            result = builder.build(param.type, param.default_node)
            if not result.success:
                reason = "; ".join(f.message for f in result.faults)
                raise ParameterDefinitionError(
                    f"default {param.default!r} for parameter '{param.name}' cannot be bound: {reason}", param
                )
            return result.value
        if param.default is None or isinstance(param.default, str):
            return param.default
        try:
            return self.settings.converter.convert(copy.deepcopy(param.default), param.type)
        except ConversionError as exc:
            raise ParameterDefinitionError(
                f"default {param.default!r} for parameter '{param.name}' cannot be converted: {exc}", param
            ) from exc

    def _check_command(self, state: _BindState, first: AstNode | None) -> None:
        command = state.parameter_set.command
        assert command is not None
        if isinstance(first, Literal) and first.value.casefold() == command.casefold():
            return
        state.error(
            ErrorKind.MISSING_COMMAND,
            f"Missing command: '{command}'",
            nodes=(first,) if first is not None else (),
        )

    def _bind_named(
        self,
        builder: ValueBuilder,
        state: _BindState,
        nodes: list[AstNode],
        index: int,
    ) -> int:
        """Bind the named node at *index*; return the index of the next unvisited node."""
        node = nodes[index]
        assert isinstance(node, (ParameterName, SwitchParameter))
        following = nodes[index + 1] if index + 1 < len(nodes) else None
        takes_following = isinstance(node, ParameterName) and following is not None and not is_named(following)

        matches = state.parameter_set.find(node.name)
        if not matches:
            state.error(
                ErrorKind.ARGUMENT_NAME_MISMATCH,
                f"No parameter matches the name: '-{node.name}'",
                nodes=(node,),
            )
            return index + 1
        if len(matches) > 1:
            state.error(
                ErrorKind.AMBIGUOUS_NAME,
                f"Parameter name '-{node.name}' is ambiguous, it matches: {parameter_names(matches)}",
                matches,
                (node,),
            )
            return index + 1

        param = matches[0]
        if not state.consume(param):
            state.error(
                ErrorKind.MULTIPLE_BINDINGS,
                f"Parameter '{param.name}' is bound more than once",
                (param,),
                (node,),
            )
            if takes_following and not param.is_switch:
                return index + 2
            return index + 1

        if isinstance(node, SwitchParameter):
            self._assign(builder, state, param, node.value)
            return index + 1
        if param.is_switch:
            setattr(state.instance, param.attribute, Switch.PRESENT)
            return index + 1
        if not takes_following:
            state.error(
                ErrorKind.MISSING_VALUE,
                f"Missing a value for parameter '{param.name}'",
                (param,),
                (node,),
            )
            return index + 1

        assert following is not None
        self._assign(builder, state, param, following)
        return index + 2

    def _bind_positional(self, builder: ValueBuilder, state: _BindState, node: AstNode) -> None:
        param = state.next_positional()
        if param is None:
            state.error(
                ErrorKind.ARGUMENT_POSITION_MISMATCH,
                f"No positional parameter accepts the argument: '{state.sequence.excerpt(node)}'",
                nodes=(node,),
            )
            return
        state.consume(param)
        self._assign(builder, state, param, node)

    def _assign(self, builder: ValueBuilder, state: _BindState, param: Parameter, node: AstNode) -> None:
        result = builder.build(param.type, node)
        if result.success:
            setattr(state.instance, param.attribute, result.value)
            return
        state.failed.add(param.name)
        for fault in _flatten(result.faults):
            state.error(
                ErrorKind.INCOMPATIBLE_TYPE,
                _fault_message(state.sequence, param, fault),
                (param,),
                (node,),
            )

    def _validate(self, state: _BindState) -> None:
        for param in state.parameter_set:
            if not param.validators or param.name in state.failed:
                continue
            value = getattr(state.instance, param.attribute, None)
            if value is None:
                continue
            for validator in param.validators:
                try:
                    validator(value)
                except ValueError as exc:
                    state.error(
                        ErrorKind.VALIDATION,
                        f"Invalid value for parameter '{param.name}': {exc}",
                        (param,),
                    )


def _flatten(faults: tuple[ValueFault, ...]) -> list[ValueFault]:
    flat: list[ValueFault] = []
    for fault in faults:
        if isinstance(fault, AggregateFault):
            flat.extend(_flatten(fault.faults))
        else:
            flat.append(fault)
    return flat


def _fault_message(sequence: NodeSequence, param: Parameter, fault: ValueFault) -> str:
    text = sequence.excerpt(fault.node) if fault.node is not None else ""
    return f"Cannot bind '{text}' to parameter '{param.name}': {fault.message}"
