"""Declarative value checks attached to parameters.

A validator is any callable taking the bound value and raising ValueError
when it is unacceptable. The binder turns each ValueError into a
VALIDATION error on the result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive bounds; either side may be left open with None."""

    min: Any = None
    max: Any = None

    def __call__(self, value: Any) -> None:
        if value is None:
            return
        if self.min is not None and value < self.min:
            raise ValueError(f"{value} is less than the minimum of {self.min}")
        if self.max is not None and value > self.max:
            raise ValueError(f"{value} is greater than the maximum of {self.max}")


@dataclass(frozen=True, slots=True)
class Length:
    min: int | None = None
    max: int | None = None

    def __call__(self, value: Any) -> None:
        if value is None:
            return
        size = len(value)
        if self.min is not None and size < self.min:
            raise ValueError(f"length {size} is less than the minimum of {self.min}")
        if self.max is not None and size > self.max:
            raise ValueError(f"length {size} is greater than the maximum of {self.max}")


@dataclass(frozen=True, slots=True)
class Pattern:
    """The whole of ``str(value)`` must match *regex*."""

    regex: str
    flags: int = 0
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.regex, self.flags))

    def __call__(self, value: Any) -> None:
        if value is None:
            return
        if self._compiled.fullmatch(str(value)) is None:
            raise ValueError(f"'{value}' does not match the pattern '{self.regex}'")


class OneOf:
    """Value must equal one of *choices*; strings compare case-insensitively."""

    __slots__ = ("choices",)

    def __init__(self, *choices: Any) -> None:
        self.choices = choices

    def __call__(self, value: Any) -> None:
        if value is None:
            return
        for choice in self.choices:
            if isinstance(choice, str) and isinstance(value, str):
                if choice.casefold() == value.casefold():
                    return
            elif choice == value:
                return
        shown = ", ".join(str(c) for c in self.choices)
        raise ValueError(f"'{value}' is not one of: {shown}")

    def __repr__(self) -> str:
        return f"OneOf({', '.join(repr(c) for c in self.choices)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OneOf):
            return NotImplemented
        return self.choices == other.choices

    def __hash__(self) -> int:
        return hash(self.choices)


@dataclass(frozen=True, slots=True)
class NotEmpty:
    def __call__(self, value: Any) -> None:
        if value is None:
            raise ValueError("a value is required")
        if isinstance(value, str) and not value.strip():
            raise ValueError("the value must not be empty")
        if hasattr(value, "__len__") and len(value) == 0:
            raise ValueError("the value must not be empty")
