"""Fixed-width numeric kinds and natural-type detection for numeric literals."""

from __future__ import annotations

import math
import struct
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar


class FixedInt(int):
    """An int restricted to [MIN, MAX]. Construction out of range raises OverflowError."""

    MIN: ClassVar[int]
    MAX: ClassVar[int]

    def __new__(cls, value: Any = 0, *args: Any) -> FixedInt:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{value!r} is not an integral value")
        if isinstance(value, Decimal) and value != value.to_integral_value():
            raise ValueError(f"{value!r} is not an integral value")
        result = super().__new__(cls, value, *args)
        if not cls.MIN <= result <= cls.MAX:
            raise OverflowError(f"{int(result)} is outside the range of {cls.__name__} [{cls.MIN}, {cls.MAX}]")
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        return int.__repr__(self)

    @classmethod
    def parse(cls, text: str) -> FixedInt:
        if not _is_integer_text(text):
            raise ValueError(f"invalid {cls.__name__} literal: {text!r}")
        return cls(int(text, 10))


class Byte(FixedInt):
    MIN, MAX = 0, 2**8 - 1


class SByte(FixedInt):
    MIN, MAX = -(2**7), 2**7 - 1


class Int16(FixedInt):
    MIN, MAX = -(2**15), 2**15 - 1


class UInt16(FixedInt):
    MIN, MAX = 0, 2**16 - 1


class Int32(FixedInt):
    MIN, MAX = -(2**31), 2**31 - 1


class UInt32(FixedInt):
    MIN, MAX = 0, 2**32 - 1


class Int64(FixedInt):
    MIN, MAX = -(2**63), 2**63 - 1


class UInt64(FixedInt):
    MIN, MAX = 0, 2**64 - 1


INTEGER_KINDS: tuple[type[FixedInt], ...] = (Byte, SByte, Int16, UInt16, Int32, UInt32, Int64, UInt64)


class Single:
    """IEEE 754 single-precision value.

    Stores the float32-rounded value; ``str()`` gives the shortest text that
    round-trips through float32.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any = 0.0) -> None:
        if isinstance(value, Single):
            value = value._value
        try:
            rounded = _round_single(float(value))
            if not math.isfinite(rounded):
                raise OverflowError
            self._value: float = rounded
        except OverflowError:
            raise OverflowError(f"{value!r} is outside the range of Single") from None

    @classmethod
    def parse(cls, text: str) -> Single:
        if not _is_float_text(text):
            raise ValueError(f"invalid Single literal: {text!r}")
        return cls(float(text))

    def __float__(self) -> float:
        return self._value

    def __int__(self) -> int:
        return int(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Single):
            return self._value == other._value
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        return self._value < _comparable(other)

    def __le__(self, other: object) -> bool:
        return self._value <= _comparable(other)

    def __gt__(self, other: object) -> bool:
        return self._value > _comparable(other)

    def __ge__(self, other: object) -> bool:
        return self._value >= _comparable(other)

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Single({self})"

    def __str__(self) -> str:
        for digits in range(1, 10):
            candidate = float(f"{self._value:.{digits}g}")
            if _round_single(candidate) == self._value:
                break
        else:
            candidate = self._value
        text = repr(candidate)
        return text[:-2] if text.endswith(".0") else text


def _comparable(other: object) -> Any:
    if isinstance(other, Single):
        return float(other)
    if isinstance(other, (int, float, Decimal)) and not isinstance(other, bool):
        return other
    raise TypeError(f"cannot compare Single with {type(other).__name__}")


def _round_single(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _is_integer_text(text: str) -> bool:
    body = text[1:] if text[:1] in ("+", "-") else text
    return body.isascii() and body.isdigit()


def _is_float_text(text: str) -> bool:
    body = text[1:] if text[:1] in ("+", "-") else text
    if body.count(".") > 1:
        return False
    digits = body.replace(".", "", 1)
    return digits.isascii() and digits.isdigit()


def _parse_float(text: str) -> float:
    if not _is_float_text(text):
        raise ValueError(f"invalid Double literal: {text!r}")
    value = float(text)
    if not math.isfinite(value):
        raise OverflowError(f"{text!r} is outside the range of Double")
    return value


def _parse_decimal(text: str) -> Decimal:
    if not _is_float_text(text):
        raise ValueError(f"invalid Decimal literal: {text!r}")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"invalid Decimal literal: {text!r}") from exc


def _parse_big_integer(text: str) -> int:
    if not _is_integer_text(text):
        raise ValueError(f"invalid integer literal: {text!r}")
    return int(text, 10)


# Natural numeric types in the order they are attempted
NATURAL_PARSERS: tuple[tuple[type, Any], ...] = (
    *((kind, kind.parse) for kind in INTEGER_KINDS),
    (Single, Single.parse),
    (float, _parse_float),
    (Decimal, _parse_decimal),
    (int, _parse_big_integer),
)


def parse_natural(text: str) -> Any:
    """Return the first successful parse of *text* in natural-type order.

    Raises ValueError when no numeric kind accepts the text.
    """
    for _kind, parser in NATURAL_PARSERS:
        try:
            return parser(text)
        except (ValueError, OverflowError):
            continue
    raise ValueError(f"{text!r} is not a numeric value")
