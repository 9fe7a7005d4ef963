"""Introspection helpers over binding targets (classes and typing annotations)."""

from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Union, get_args, get_origin, get_type_hints

NoneType = type(None)


def is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def is_optional(tp: Any) -> bool:
    """True for ``T | None`` / ``Optional[T]`` and for ``None`` itself."""
    if tp is None or tp is NoneType:
        return True
    return is_union(tp) and NoneType in get_args(tp)


def strip_optional(tp: Any) -> Any:
    """Remove ``None`` from a union; non-unions are returned unchanged."""
    if not is_union(tp):
        return tp
    args = tuple(a for a in get_args(tp) if a is not NoneType)
    if len(args) == 1:
        return args[0]
    return Union[args]


def is_any(tp: Any) -> bool:
    return tp is Any or tp is object


def admits_none(tp: Any) -> bool:
    """Whether a null literal may bind to *tp*."""
    return is_any(tp) or is_optional(tp)


def union_members(tp: Any) -> tuple[Any, ...]:
    if is_union(tp):
        return tuple(a for a in get_args(tp) if a is not NoneType)
    return (tp,)


def concrete_class(tp: Any) -> type | None:
    """The runtime class behind *tp* (``list`` for ``list[int]``), or None."""
    origin = get_origin(tp)
    if origin is not None:
        return origin if isinstance(origin, type) else None
    return tp if isinstance(tp, type) else None


def is_array(tp: Any) -> bool:
    """``tuple[T, ...]`` (and bare ``tuple``) is the fixed-size array shape."""
    if tp is tuple:
        return True
    if get_origin(tp) is not tuple:
        return False
    args = get_args(tp)
    return len(args) == 2 and args[1] is Ellipsis


def is_pair(tp: Any) -> bool:
    """``tuple[K, V]``: a fixed two-element tuple."""
    if get_origin(tp) is not tuple:
        return False
    args = get_args(tp)
    return len(args) == 2 and args[1] is not Ellipsis


def element_type(tp: Any) -> Any:
    """Element type of an array or single-parameter generic container."""
    args = get_args(tp)
    if is_array(tp):
        return args[0] if args else Any
    if len(args) == 1:
        return args[0]
    return Any


def key_value_types(tp: Any) -> tuple[Any, Any]:
    args = get_args(tp)
    if len(args) == 2 and args[1] is not Ellipsis:
        return args[0], args[1]
    return Any, Any


def is_abstract(tp: Any) -> bool:
    cls = concrete_class(tp)
    return cls is not None and inspect.isabstract(cls)


def is_instance(value: Any, tp: Any) -> bool:
    """isinstance() that understands Any, unions and parameterized generics.

    Parameterized containers only check the container class, not elements.
    """
    if is_any(tp):
        return True
    if tp is None or tp is NoneType:
        return value is None
    if is_union(tp):
        return any(is_instance(value, member) for member in get_args(tp))
    cls = concrete_class(tp)
    if cls is None:
        return False
    # bool is an int subclass; never let it pass as a number
    if isinstance(value, bool) and cls is not bool and issubclass(cls, int):
        return False
    return isinstance(value, cls)


def resolved_hints(obj: Any) -> dict[str, Any]:
    """get_type_hints() that tolerates unresolvable forward references."""
    try:
        return get_type_hints(obj)
    except (NameError, TypeError, AttributeError):
        return dict(getattr(obj, "__annotations__", {}) or {})


def type_name(tp: Any) -> str:
    """Readable name for *tp*, for use in messages."""
    if tp is None or tp is NoneType:
        return "None"
    if tp is Ellipsis:
        return "..."
    if tp is Any:
        return "Any"
    if is_union(tp):
        return " | ".join(type_name(a) for a in get_args(tp))
    origin = get_origin(tp)
    if origin is not None:
        args = get_args(tp)
        base = type_name(origin)
        if not args:
            return base
        return f"{base}[{', '.join(type_name(a) for a in args)}]"
    if isinstance(tp, type):
        return tp.__name__
    if isinstance(tp, typing.TypeVar):
        return tp.__name__
    return repr(tp)
