"""Value conversion: per-type converters and the ordered conversion algorithm."""

from __future__ import annotations

import inspect
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from psargs.errors import ConversionError
from psargs.numeric import INTEGER_KINDS, Single
from psargs.shapes import (
    admits_none,
    concrete_class,
    element_type,
    is_any,
    is_array,
    is_instance,
    is_optional,
    is_union,
    resolved_hints,
    strip_optional,
    type_name,
    union_members,
)
from psargs.switch import Switch

# Exceptions that mean "this conversion path did not work"
CONVERSION_ERRORS = (ConversionError, TypeError, ValueError, ArithmeticError)


class Converter:
    """Converts values into one target type, and optionally out of it.

    Subclasses override the ``can_*`` predicates for the directions they
    support. A target class may carry its own converter in a
    ``__converter__`` class attribute.
    """

    def can_convert_from(self, source: type) -> bool:
        return False

    def convert_from(self, value: Any, target: Any) -> Any:
        raise ConversionError(value, target)

    def can_convert_to(self, target: Any) -> bool:
        return False

    def convert_to(self, value: Any, target: Any) -> Any:
        raise ConversionError(value, target)


class StringConverter(Converter):
    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, str)

    def convert_from(self, value: Any, target: Any) -> Any:
        return str(value)


class BooleanConverter(Converter):
    """Text converts by emptiness: any non-empty text is true."""

    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, str)

    def convert_from(self, value: Any, target: Any) -> Any:
        return value != ""


class IntegerConverter(Converter):
    """Decimal text, or 0x / 0o / 0b prefixed text, into an integer kind."""

    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, str)

    def convert_from(self, value: Any, target: Any) -> Any:
        cls = concrete_class(target) or int
        return cls(parse_integer(value))


class FloatConverter(Converter):
    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, (str, Single))

    def convert_from(self, value: Any, target: Any) -> Any:
        # Single goes through its shortest text so 2.55f reads back as 2.55
        return float(str(value).strip())


class SingleConverter(Converter):
    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, str)

    def convert_from(self, value: Any, target: Any) -> Any:
        return Single(float(value.strip()))


class DecimalConverter(Converter):
    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, (str, Single, float))

    def convert_from(self, value: Any, target: Any) -> Any:
        text = repr(value) if isinstance(value, float) else str(value).strip()
        try:
            return Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"invalid Decimal literal: {text!r}") from exc


class SwitchConverter(Converter):
    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, (bool, str))

    def convert_from(self, value: Any, target: Any) -> Any:
        if isinstance(value, bool):
            return Switch.from_bool(value)
        return Switch.parse(value)

    def can_convert_to(self, target: Any) -> bool:
        return target is bool or target is str

    def convert_to(self, value: Any, target: Any) -> Any:
        if target is bool:
            return value.is_present
        return str(value)


class EnumConverter(Converter):
    """Member name (case-insensitive), then member value."""

    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, (str, int)) and not issubclass(source, bool)

    def convert_from(self, value: Any, target: Any) -> Any:
        cls = concrete_class(target)
        assert cls is not None and issubclass(cls, Enum)
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.name.lower() == lowered:
                    return member
            for member in cls:
                if str(member.value) == value:
                    return member
        return cls(value)

    def can_convert_to(self, target: Any) -> bool:
        return target is str

    def convert_to(self, value: Any, target: Any) -> Any:
        return value.name


class IsoFormatConverter(Converter):
    """ISO 8601 text into datetime, date or time."""

    def can_convert_from(self, source: type) -> bool:
        return issubclass(source, str)

    def convert_from(self, value: Any, target: Any) -> Any:
        cls = concrete_class(target)
        assert cls is not None
        return cls.fromisoformat(value.strip())

    def can_convert_to(self, target: Any) -> bool:
        return target is str

    def convert_to(self, value: Any, target: Any) -> Any:
        return value.isoformat()


def parse_integer(text: str) -> int:
    """Parse decimal or radix-prefixed integer text with an optional sign."""
    text = text.strip()
    sign = 1
    body = text
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body[:2].lower() in ("0x", "0o", "0b"):
        return sign * int(body, 0)
    if not (body.isascii() and body.isdigit()):
        raise ValueError(f"invalid integer literal: {text!r}")
    return sign * int(body, 10)


class ConverterRegistry:
    """Maps target classes to converters; lookups walk the class MRO."""

    def __init__(self) -> None:
        self._converters: dict[type, Converter] = {}

    def register(self, target: type, converter: Converter) -> None:
        self._converters[target] = converter

    def lookup(self, tp: Any) -> Converter | None:
        cls = concrete_class(tp)
        if cls is None:
            return None

        custom = getattr(cls, "__converter__", None)
        if custom is not None:
            return custom() if isinstance(custom, type) else custom

        if cls in self._converters:
            return self._converters[cls]
        # Enums mixed with int or str still convert by member
        if issubclass(cls, Enum) and Enum in self._converters:
            return self._converters[Enum]
        for klass in cls.__mro__[1:]:
            if klass in self._converters:
                return self._converters[klass]
        return None

    def copy(self) -> ConverterRegistry:
        clone = ConverterRegistry()
        clone._converters = dict(self._converters)
        return clone


def default_registry() -> ConverterRegistry:
    registry = ConverterRegistry()
    registry.register(str, StringConverter())
    registry.register(bool, BooleanConverter())
    integers = IntegerConverter()
    for kind in (*INTEGER_KINDS, int):
        registry.register(kind, integers)
    registry.register(float, FloatConverter())
    registry.register(Single, SingleConverter())
    registry.register(Decimal, DecimalConverter())
    registry.register(Switch, SwitchConverter())
    registry.register(Enum, EnumConverter())
    iso = IsoFormatConverter()
    for kind in (datetime, date, time):
        registry.register(kind, iso)
    return registry


class _NotApplicable(Exception):
    """A conversion step does not apply to this value/target pair."""


_NUMBER_TYPES = (int, float, Decimal, Single)


def convert_number(value: Any, target: Any) -> Any:
    """Numeric widening or narrowing; integer targets require an integral, in-range value."""
    cls = concrete_class(target)
    if cls is None or not isinstance(value, _NUMBER_TYPES):
        raise _NotApplicable
    if isinstance(value, Single):
        value = float(value)

    if cls is bool:
        return value != 0
    if issubclass(cls, int):
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{value!r} is not an integral value")
        if isinstance(value, Decimal) and value != value.to_integral_value():
            raise ValueError(f"{value!r} is not an integral value")
        return cls(int(value))
    if cls is float:
        return float(value)
    if cls is Single:
        return Single(value)
    if cls is Decimal:
        return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    raise _NotApplicable


class TypeConverter:
    """Converts a natural value to a target type.

    Steps are tried in a fixed order and the first success wins:

    a. identity, when the value already is an instance of the target
       (a scalar matching an array's element type is wrapped);
    b. the target type's converter, converting from the value's type;
    c. the value type's converter, converting to the target type;
    d. numeric widening or narrowing;
    e. rendering the value as text and parsing it with the target's converter;
    f. a single-argument constructor, whose argument is converted recursively;
    g. a ``parse`` class method, given the value or its text.
    """

    def __init__(self, registry: ConverterRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def convert(self, value: Any, target: Any) -> Any:
        """Return *value* converted to *target*, or raise ConversionError."""
        return self._convert(value, target, frozenset())

    def _convert(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        if value is None:
            if admits_none(target):
                return None
            raise ConversionError(value, target, "null is not allowed")

        if is_optional(target):
            target = strip_optional(target)
        if is_union(target):
            return self._convert_union(value, target, active)

        # a. identity
        if is_instance(value, target):
            return _normalize(value, target)
        if is_array(target) and is_instance(value, element_type(target)):
            return (_normalize(value, element_type(target)),)

        causes: list[BaseException] = []
        steps = (
            self._from_target_converter,
            self._to_source_converter,
            self._numeric,
            self._via_text,
            self._via_constructor,
            self._via_parse,
        )
        for step in steps:
            try:
                return step(value, target, active)
            except _NotApplicable:
                continue
            except CONVERSION_ERRORS as exc:
                causes.append(exc)

        reason = str(causes[-1]) if causes else "no conversion available"
        raise ConversionError(value, target, reason, tuple(causes))

    def _convert_union(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        causes: list[BaseException] = []
        for member in union_members(target):
            try:
                return self._convert(value, member, active)
            except ConversionError as exc:
                causes.append(exc)
        raise ConversionError(value, target, f"no member of {type_name(target)} accepts it", tuple(causes))

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _from_target_converter(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        converter = self.registry.lookup(target)
        if converter is None or not converter.can_convert_from(type(value)):
            raise _NotApplicable
        return converter.convert_from(value, target)

    def _to_source_converter(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        converter = self.registry.lookup(type(value))
        if converter is None or not converter.can_convert_to(target):
            raise _NotApplicable
        return converter.convert_to(value, target)

    def _numeric(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        return convert_number(value, target)

    def _via_text(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        target_converter = self.registry.lookup(target)
        if target_converter is None or not target_converter.can_convert_from(str):
            raise _NotApplicable
        source_converter = self.registry.lookup(type(value))
        if source_converter is not None and source_converter.can_convert_to(str):
            text = source_converter.convert_to(value, str)
        else:
            text = str(value)
        return target_converter.convert_from(text, target)

    def _via_constructor(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        cls = concrete_class(target)
        if cls is None or cls in active or cls.__module__ == "builtins" or inspect.isabstract(cls):
            raise _NotApplicable
        param_type = single_argument_type(cls)
        if param_type is None:
            raise _NotApplicable
        if is_any(param_type):
            argument = value
        else:
            argument = self._convert(value, param_type, active | {cls})
        return cls(argument)

    def _via_parse(self, value: Any, target: Any, active: frozenset[type]) -> Any:
        cls = concrete_class(target)
        parse = getattr(cls, "parse", None) if cls is not None else None
        if parse is None or not callable(parse):
            raise _NotApplicable
        try:
            params = list(inspect.signature(parse).parameters.values())
        except (TypeError, ValueError):
            raise _NotApplicable from None
        if not params:
            raise _NotApplicable
        accepts = resolved_hints(parse).get(params[0].name, Any)
        if not isinstance(value, str) and not is_any(accepts) and is_instance(value, accepts):
            return parse(value)
        return parse(str(value))


def single_argument_type(cls: type) -> Any | None:
    """Type of the single positional argument *cls* can be built from, or None.

    Unannotated arguments report ``Any``.
    """
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return None

    params = list(signature.parameters.values())
    positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    var_positional = [p for p in params if p.kind is p.VAR_POSITIONAL]
    required = [
        p for p in params if p.default is p.empty and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
    ]

    if len(required) > 1 or any(p.kind is p.KEYWORD_ONLY for p in required):
        return None
    if positional:
        chosen = positional[0]
    elif var_positional:
        chosen = var_positional[0]
    else:
        return None

    hints = resolved_hints(cls.__init__) if "__init__" in vars(cls) else {}
    annotation = hints.get(chosen.name, chosen.annotation)
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return Any
    return annotation


def _normalize(value: Any, target: Any) -> Any:
    # Plain builtin targets get plain builtin values (Byte -> int)
    if target in (int, float, str) and type(value) is not target:
        return target(value)
    return value

