"""Multi-valued mapping: one key, many values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class MultiMapping(ABC, Generic[K, V]):
    """Read-only view of a key to values grouping."""

    @abstractmethod
    def __getitem__(self, key: K) -> tuple[V, ...]: ...

    @abstractmethod
    def __iter__(self) -> Iterator[K]: ...

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool:
        return any(k == key for k in self)

    def items(self) -> Iterator[tuple[K, tuple[V, ...]]]:
        for key in self:
            yield key, self[key]


class Lookup(MultiMapping[K, V]):
    """Insertion-ordered multi-map. Missing keys map to an empty tuple."""

    def __init__(self) -> None:
        self._groups: dict[K, list[V]] = {}

    def add(self, key: K, value: V) -> None:
        self._groups.setdefault(key, []).append(value)

    def __getitem__(self, key: K) -> tuple[V, ...]:
        return tuple(self._groups.get(key, ()))

    def __iter__(self) -> Iterator[K]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Lookup):
            return NotImplemented
        return self._groups == other._groups

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self._groups.items())
        return f"Lookup({{{inner}}})"
