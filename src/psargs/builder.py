"""Value binder: builds typed values from AST nodes."""

from __future__ import annotations

import collections.abc as cabc
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, get_args

from psargs.ast import AssociativeArray, AstNode, Literal, LiteralType, ParameterName, Sequence, SwitchParameter
from psargs.converters import TypeConverter
from psargs.errors import ConversionError, UnsupportedTypeError
from psargs.faults import ActivationFault, AddFault, AggregateFault, ErrorSink, TypeFault, ValueFault
from psargs.lookup import Lookup, MultiMapping
from psargs.numeric import parse_natural
from psargs.shapes import (
    admits_none,
    concrete_class,
    element_type,
    is_any,
    is_array,
    is_pair,
    key_value_types,
    resolved_hints,
    strip_optional,
    type_name,
)

_ADD_METHOD_NAMES = ("append", "add")


class _Failed:
    """Marker returned by internal build steps that recorded a fault."""

    def __repr__(self) -> str:
        return "FAILED"


FAILED: Any = _Failed()


@dataclass(frozen=True, slots=True)
class BuildResult:
    value: Any
    faults: tuple[ValueFault, ...]
    success: bool


def add_operation(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a method as an add operation for list or dictionary binding."""
    func.__psargs_add__ = True  # type: ignore[attr-defined]
    return func


@dataclass(frozen=True, slots=True)
class AddOperation:
    """A discovered way to add one element (or one key/value) to a container."""

    name: str
    parameter_types: tuple[Any, ...]
    invoke: Callable[..., Any]

    @property
    def arity(self) -> int:
        return len(self.parameter_types)


@dataclass(frozen=True, slots=True)
class PairConstructor:
    """Builds a pair element from a bound key and value."""

    parameter_types: tuple[Any, Any]
    factory: Callable[[Any, Any], Any]


class DuplicateKeyError(KeyError):
    def __str__(self) -> str:
        return f"duplicate key {self.args[0]!r}"


class InterfaceResolver:
    """Maps abstract targets to concrete constructible classes."""

    def __init__(self) -> None:
        self._mappings: dict[type, type] = {
            cabc.Iterable: list,
            cabc.Collection: list,
            cabc.Sequence: list,
            cabc.MutableSequence: list,
            cabc.Set: set,
            cabc.MutableSet: set,
            cabc.Mapping: dict,
            cabc.MutableMapping: dict,
            MultiMapping: Lookup,
        }

    def register(self, abstract: type, concrete: type) -> None:
        self._mappings[abstract] = concrete

    def resolve(self, target: Any) -> Any | None:
        """Return the concrete target for *target*, keeping its type arguments."""
        cls = concrete_class(target)
        if cls is None:
            return None
        concrete = self._mappings.get(cls)
        if concrete is None:
            return None
        args = get_args(target)
        if not args:
            return concrete
        return concrete[args]


class ValueBuilder:
    """Converts AST nodes into values of a target type.

    One ``build`` call at a time per instance; faults are collected, never
    raised. Only an unsupported target shape raises UnsupportedTypeError.
    """

    def __init__(
        self,
        converter: TypeConverter | None = None,
        resolver: InterfaceResolver | None = None,
    ) -> None:
        self.converter = converter if converter is not None else TypeConverter()
        self.resolver = resolver if resolver is not None else InterfaceResolver()
        self._active = False

    def build(self, target: Any, node: AstNode) -> BuildResult:
        if self._active:
            raise RuntimeError("ValueBuilder.build() is not reentrant")
        self._active = True
        try:
            sink = ErrorSink()
            value = self._build(target, node, sink)
        finally:
            self._active = False

        if value is FAILED or len(sink):
            return BuildResult(None, sink.faults, False)
        return BuildResult(value, (), True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _build(self, target: Any, node: AstNode, sink: ErrorSink) -> Any:
        if isinstance(node, SwitchParameter):
            return self._build(target, node.value, sink)
        if isinstance(node, Literal):
            return self._build_literal(target, node, sink)
        if isinstance(node, Sequence):
            return self._build_sequence(target, node, sink)
        if isinstance(node, AssociativeArray):
            return self._build_assoc(target, node, sink)
        if isinstance(node, ParameterName):
            sink.add(TypeFault(node, target, f"-{node.name}", "a parameter name is not a value"))
            return FAILED
        raise TypeError(f"unknown AST node: {type(node).__name__}")

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _build_literal(self, target: Any, node: Literal, sink: ErrorSink) -> Any:
        if node.value_type == LiteralType.NULL:
            if admits_none(target):
                return None
            sink.add(TypeFault(node, target, None, "null is not allowed"))
            return FAILED

        try:
            natural = natural_value(node)
        except ValueError as exc:
            sink.add(TypeFault(node, target, node.value, str(exc)))
            return FAILED

        if is_any(target):
            return natural
        if is_collection_target(target):
            return self._build_sequence(target, Sequence((node,), node.span), sink)

        try:
            return self.converter.convert(natural, target)
        except ConversionError as exc:
            sink.add(TypeFault(node, target, natural, exc.reason))
            return FAILED

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def _build_sequence(self, target: Any, node: Sequence, sink: ErrorSink) -> Any:
        target = strip_optional(target)
        if is_any(target):
            target = list

        if is_array(target):
            return self._build_array(target, node, sink)

        target = self._concrete_target(target, node, sink)
        if target is FAILED:
            return FAILED
        if not _has_add_candidates(concrete_class(target)):
            sink.add(TypeFault(node, target, "@(...)", "a list cannot be bound to this type"))
            return FAILED

        instance = self._activate(target, node, sink)
        if instance is FAILED:
            return FAILED
        operations = [op for op in discover_add_operations(instance, target) if op.arity == 1]
        if not operations:
            sink.add(TypeFault(node, target, "@(...)", "no single-argument add operation"))
            return FAILED

        failed = False
        for element in node.elements:
            attempts: list[ValueFault] = []
            for op in operations:
                child = sink.child()
                value = self._build(op.parameter_types[0], element, child)
                if value is FAILED:
                    attempts.extend(child.faults)
                    continue
                try:
                    op.invoke(instance, value)
                except Exception as exc:  # user add operation
                    attempts.append(AddFault(element, target, op.name, exc))
                    continue
                break
            else:
                failed = True
                sink.add(_combine(element, attempts))

        return FAILED if failed else instance

    def _build_array(self, target: Any, node: Sequence, sink: ErrorSink) -> Any:
        item_type = element_type(target)
        items: list[Any] = []
        failed = False
        for element in node.elements:
            value = self._build(item_type, element, sink)
            if value is FAILED:
                failed = True
            else:
                items.append(value)
        return FAILED if failed else tuple(items)

    # ------------------------------------------------------------------
    # Associative arrays
    # ------------------------------------------------------------------

    def _build_assoc(self, target: Any, node: AssociativeArray, sink: ErrorSink) -> Any:
        target = strip_optional(target)
        if is_any(target):
            target = dict

        if is_array(target):
            return self._build_pair_array(target, node, sink)

        target = self._concrete_target(target, node, sink)
        if target is FAILED:
            return FAILED
        if not _has_add_candidates(concrete_class(target)):
            sink.add(TypeFault(node, target, "@{...}", "a dictionary cannot be bound to this type"))
            return FAILED

        instance = self._activate(target, node, sink)
        if instance is FAILED:
            return FAILED
        operations = discover_add_operations(instance, target)
        two_argument = [op for op in operations if op.arity == 2]
        one_argument = [op for op in operations if op.arity == 1]
        if not two_argument and not one_argument:
            sink.add(TypeFault(node, target, "@{...}", "no add operation"))
            return FAILED

        failed = False
        for key, value in node.entries:
            attempts: list[ValueFault] = []
            if not self._add_entry(instance, target, key, value, two_argument, one_argument, attempts):
                failed = True
                if not attempts:
                    attempts.append(TypeFault(key, target, None, "no add operation accepts this entry"))
                sink.add(_combine(key, attempts))

        return FAILED if failed else instance

    def _add_entry(
        self,
        instance: Any,
        target: Any,
        key: AstNode,
        value: AstNode,
        two_argument: list[AddOperation],
        one_argument: list[AddOperation],
        attempts: list[ValueFault],
    ) -> bool:
        for op in two_argument:
            child = ErrorSink()
            bound_key = self._build(op.parameter_types[0], key, child)
            bound_value = self._build(op.parameter_types[1], value, child)
            if bound_key is FAILED or bound_value is FAILED:
                attempts.extend(child.faults)
                continue
            try:
                op.invoke(instance, bound_key, bound_value)
            except Exception as exc:  # user add operation
                attempts.append(AddFault(key, target, op.name, exc))
                continue
            return True

        for op in one_argument:
            pair_ctor = pair_constructor(op.parameter_types[0])
            if pair_ctor is None:
                continue
            pair = self._build_pair(pair_ctor, op.parameter_types[0], key, value, attempts)
            if pair is FAILED:
                continue
            try:
                op.invoke(instance, pair)
            except Exception as exc:  # user add operation
                attempts.append(AddFault(key, target, op.name, exc))
                continue
            return True

        return False

    def _build_pair_array(self, target: Any, node: AssociativeArray, sink: ErrorSink) -> Any:
        pair_type = element_type(target)
        pair_ctor = pair_constructor(pair_type)
        if pair_ctor is None:
            raise UnsupportedTypeError(
                f"{type_name(pair_type)} has no unique two-argument constructor", pair_type
            )

        pairs: list[Any] = []
        failed = False
        for key, value in node.entries:
            attempts: list[ValueFault] = []
            pair = self._build_pair(pair_ctor, pair_type, key, value, attempts)
            if pair is FAILED:
                failed = True
                sink.add(_combine(key, attempts))
            else:
                pairs.append(pair)
        return FAILED if failed else tuple(pairs)

    def _build_pair(
        self,
        pair_ctor: PairConstructor,
        pair_type: Any,
        key: AstNode,
        value: AstNode,
        attempts: list[ValueFault],
    ) -> Any:
        child = ErrorSink()
        bound_key = self._build(pair_ctor.parameter_types[0], key, child)
        bound_value = self._build(pair_ctor.parameter_types[1], value, child)
        if bound_key is FAILED or bound_value is FAILED:
            attempts.extend(child.faults)
            return FAILED
        try:
            return pair_ctor.factory(bound_key, bound_value)
        except Exception as exc:  # user constructor
            attempts.append(ActivationFault(key, pair_type, exc))
            return FAILED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _concrete_target(self, target: Any, node: AstNode, sink: ErrorSink) -> Any:
        cls = concrete_class(target)
        if cls is None:
            sink.add(TypeFault(node, target, None, "unsupported target type"))
            return FAILED
        if inspect.isabstract(cls):
            resolved = self.resolver.resolve(target)
            if resolved is None:
                sink.add(TypeFault(node, target, None, f"no concrete type registered for {type_name(target)}"))
                return FAILED
            return resolved
        return target

    def _activate(self, target: Any, node: AstNode, sink: ErrorSink) -> Any:
        cls = concrete_class(target)
        assert cls is not None
        try:
            return cls()
        except Exception as exc:  # user constructor
            sink.add(ActivationFault(node, target, exc))
            return FAILED


def _combine(node: AstNode, attempts: list[ValueFault]) -> ValueFault:
    if len(attempts) == 1:
        return attempts[0]
    return AggregateFault(node, tuple(attempts))


# ---------------------------------------------------------------------------
# Literal interpretation
# ---------------------------------------------------------------------------


def natural_value(node: Literal) -> Any:
    """The value a literal has before conversion to any target."""
    if node.value_type == LiteralType.NUMERIC:
        return parse_natural(node.value)
    if node.value_type == LiteralType.BOOLEAN:
        return node.value.lower() == "$true"
    if node.value_type == LiteralType.NULL:
        return None
    return node.value


def is_collection_target(target: Any) -> bool:
    """Targets a scalar literal binds to as a one-element list."""
    target = strip_optional(target)
    if is_array(target):
        return True
    cls = concrete_class(target)
    if cls is None or issubclass(cls, (str, bytes, bytearray)):
        return False
    if issubclass(cls, (cabc.Mapping, MultiMapping)):
        return False
    return cls is cabc.Iterable or issubclass(cls, cabc.Collection)


# ---------------------------------------------------------------------------
# Add operations and pair constructors
# ---------------------------------------------------------------------------


def _has_add_candidates(cls: type | None) -> bool:
    if cls is None:
        return False
    if issubclass(cls, cabc.MutableMapping):
        return True
    if any(callable(getattr(cls, name, None)) for name in _ADD_METHOD_NAMES):
        return True
    return any(getattr(getattr(cls, name, None), "__psargs_add__", False) for name in dir(cls))


def discover_add_operations(instance: Any, target: Any) -> list[AddOperation]:
    """Find the add operations of *instance*, typed from *target*'s arguments."""
    cls = type(instance)
    typevars = _typevar_map(cls, target)
    operations: list[AddOperation] = []

    if isinstance(instance, cabc.MutableMapping):
        key_type, value_type = key_value_types(target)
        operations.append(AddOperation("__setitem__", (key_type, value_type), _set_unique))

    names = [name for name in _ADD_METHOD_NAMES if callable(getattr(cls, name, None))]
    names += [
        name
        for name in dir(cls)
        if name not in names and getattr(getattr(cls, name, None), "__psargs_add__", False)
    ]
    for name in names:
        method = getattr(cls, name)
        types = _operation_types(name, method, target, typevars)
        if types is None:
            continue
        operations.append(AddOperation(name, types, _unbound_invoker(name)))
    return operations


def _unbound_invoker(name: str) -> Callable[..., Any]:
    def invoke(instance: Any, *args: Any) -> Any:
        return getattr(instance, name)(*args)

    return invoke


def _set_unique(instance: Any, key: Any, value: Any) -> None:
    if key in instance:
        raise DuplicateKeyError(key)
    instance[key] = value


def _operation_types(name: str, method: Any, target: Any, typevars: dict[Any, Any]) -> tuple[Any, ...] | None:
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        # builtins such as set.add carry no signature on some versions
        if name in _ADD_METHOD_NAMES:
            return (element_type(target),)
        return None
    params = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ]
    if params and params[0].name == "self":
        params = params[1:]
    if len(params) not in (1, 2):
        return None

    hints = resolved_hints(method)
    if len(params) == 1:
        fallbacks: tuple[Any, ...] = (element_type(target),)
    else:
        fallbacks = key_value_types(target)

    types: list[Any] = []
    for param, fallback in zip(params, fallbacks):
        hint = hints.get(param.name)
        if hint is None or isinstance(hint, str):
            types.append(fallback)
        elif isinstance(hint, TypeVar):
            types.append(typevars.get(hint, fallback))
        else:
            types.append(hint)
    return tuple(types)


def _typevar_map(cls: type, target: Any) -> dict[Any, Any]:
    params = getattr(cls, "__parameters__", ())
    args = get_args(target)
    if not params or len(params) != len(args):
        return {}
    return dict(zip(params, args))


def pair_constructor(pair_type: Any) -> PairConstructor | None:
    """The two-argument constructor for *pair_type*, or None when absent or ambiguous."""
    if is_pair(pair_type):
        key_type, value_type = get_args(pair_type)
        return PairConstructor((key_type, value_type), lambda k, v: (k, v))

    cls = concrete_class(pair_type)
    if cls is None or is_any(pair_type) or cls.__module__ == "builtins":
        return None
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return None

    params = list(signature.parameters.values())
    if any(p.kind is p.VAR_POSITIONAL for p in params):
        return None
    positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    required = [p for p in params if p.default is p.empty and p.kind not in (p.VAR_KEYWORD,)]
    if len(positional) < 2 or len(required) > 2:
        return None

    typevars = _typevar_map(cls, pair_type)
    hints = resolved_hints(cls)
    if not hints and "__init__" in vars(cls):
        hints = resolved_hints(cls.__init__)
    types: list[Any] = []
    for param in positional[:2]:
        hint = hints.get(param.name, Any)
        if isinstance(hint, TypeVar):
            hint = typevars.get(hint, Any)
        elif isinstance(hint, str):
            hint = Any
        types.append(hint)
    return PairConstructor((types[0], types[1]), lambda k, v: cls(k, v))
