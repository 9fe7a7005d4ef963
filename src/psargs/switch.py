"""The Switch flag value type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class Switch:
    """Presence flag for switch parameters.

    There is no implicit truth value; use ``is_present`` or ``bool(...)``
    through the registered converter.
    """

    is_present: bool = False

    PRESENT: ClassVar[Switch]
    ABSENT: ClassVar[Switch]

    def __bool__(self) -> bool:
        raise TypeError("Switch has no implicit truth value; use .is_present")

    def __str__(self) -> str:
        return "Present" if self.is_present else "Absent"

    @classmethod
    def from_bool(cls, value: bool) -> Switch:
        return cls.PRESENT if value else cls.ABSENT

    @classmethod
    def parse(cls, text: str) -> Switch:
        lowered = text.strip().lower()
        if lowered in ("present", "true", "$true"):
            return cls.PRESENT
        if lowered in ("absent", "false", "$false"):
            return cls.ABSENT
        raise ValueError(f"invalid Switch value: {text!r}")


Switch.PRESENT = Switch(True)
Switch.ABSENT = Switch(False)
