"""Parameter sets and settings from a ``psargs.toml`` file.

::

    [settings]
    buffer_size = 64
    validate = true

    [[set]]
    name = "Copy"
    command = "copy"

    [[set.parameter]]
    name = "Source"
    type = "str"
    position = 0
    required = true

    [[set.parameter]]
    name = "Retries"
    type = "Int32"
    default = "3"
    min = 0
    max = 10
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Union

from psargs.errors import ConfigError
from psargs.lookup import Lookup
from psargs.numeric import Byte, Int16, Int32, Int64, SByte, Single, UInt16, UInt32, UInt64
from psargs.parameters import MISSING, Parameter, ParameterSet
from psargs.switch import Switch
from psargs.validators import Length, OneOf, Pattern, Range

CONFIG_FILENAME = "psargs.toml"

TYPE_NAMESPACE: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "Decimal": Decimal,
    "Switch": Switch,
    "Byte": Byte,
    "SByte": SByte,
    "Int16": Int16,
    "UInt16": UInt16,
    "Int32": Int32,
    "UInt32": UInt32,
    "Int64": Int64,
    "UInt64": UInt64,
    "Single": Single,
    "list": list,
    "set": set,
    "frozenset": frozenset,
    "tuple": tuple,
    "dict": dict,
    "Lookup": Lookup,
    "Path": Path,
    "datetime": datetime,
    "date": date,
    "time": time,
    "Any": Any,
    "None": None,
}

_TYPE_TOKEN = re.compile(r"\s*(?:(\.\.\.)|([A-Za-z_][A-Za-z0-9_]*)|([\[\],|]))")


@dataclass(frozen=True, slots=True)
class Settings:
    buffer_size: int | None = None
    validate: bool = True


def load_config(config_path: Path | None, search_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict when there is none."""
    path = config_path if config_path is not None else search_dir / CONFIG_FILENAME

    if not path.is_file():
        if config_path is not None:
            raise ConfigError("config file not found", str(path))
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc), str(path)) from exc


def settings_from_config(config: dict[str, Any]) -> Settings:
    raw = config.get("settings", {})
    if not isinstance(raw, dict):
        raise ConfigError("[settings] must be a table")

    buffer_size = raw.get("buffer_size")
    if buffer_size is not None and (not isinstance(buffer_size, int) or buffer_size < 1):
        raise ConfigError("settings.buffer_size must be a positive integer")
    validate = raw.get("validate", True)
    if not isinstance(validate, bool):
        raise ConfigError("settings.validate must be true or false")
    return Settings(buffer_size=buffer_size, validate=validate)


def sets_from_config(config: dict[str, Any]) -> tuple[ParameterSet, ...]:
    """Build the ``[[set]]`` tables of *config* into parameter sets."""
    raw_sets = config.get("set", [])
    if not isinstance(raw_sets, list):
        raise ConfigError("'set' must be an array of tables ([[set]])")

    sets: list[ParameterSet] = []
    for index, raw in enumerate(raw_sets):
        if not isinstance(raw, dict):
            raise ConfigError(f"set #{index + 1} must be a table")
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigError(f"set #{index + 1} needs a 'name'")
        command = raw.get("command")
        if command is not None and not isinstance(command, str):
            raise ConfigError(f"set '{name}': 'command' must be a string")

        raw_params = raw.get("parameter", [])
        if not isinstance(raw_params, list):
            raise ConfigError(f"set '{name}': 'parameter' must be an array of tables")
        parameters = [_parameter_from_config(name, p) for p in raw_params]
        sets.append(ParameterSet(name, parameters, command=command, help=str(raw.get("help", ""))))
    return tuple(sets)


def _parameter_from_config(set_name: str, raw: Any) -> Parameter:
    if not isinstance(raw, dict):
        raise ConfigError(f"set '{set_name}': each parameter must be a table")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"set '{set_name}': a parameter needs a 'name'")

    type_text = raw.get("type", "str")
    if not isinstance(type_text, str):
        raise ConfigError(f"parameter '{name}': 'type' must be a string")
    position = raw.get("position")
    if position is not None and not isinstance(position, int):
        raise ConfigError(f"parameter '{name}': 'position' must be an integer")

    return Parameter(
        name,
        resolve_type_name(type_text),
        position=position,
        required=bool(raw.get("required", False)),
        default=raw.get("default", MISSING),
        validators=_validators_from_config(name, raw),
        help=str(raw.get("help", "")),
    )


def _validators_from_config(name: str, raw: dict[str, Any]) -> tuple[Any, ...]:
    validators: list[Any] = []
    if "min" in raw or "max" in raw:
        validators.append(Range(raw.get("min"), raw.get("max")))
    if "min_length" in raw or "max_length" in raw:
        validators.append(Length(raw.get("min_length"), raw.get("max_length")))
    if "pattern" in raw:
        pattern = raw["pattern"]
        if not isinstance(pattern, str):
            raise ConfigError(f"parameter '{name}': 'pattern' must be a string")
        try:
            validators.append(Pattern(pattern))
        except re.error as exc:
            raise ConfigError(f"parameter '{name}': invalid pattern: {exc}") from exc
    if "choices" in raw:
        choices = raw["choices"]
        if not isinstance(choices, list):
            raise ConfigError(f"parameter '{name}': 'choices' must be an array")
        validators.append(OneOf(*choices))
    return tuple(validators)


def resolve_type_name(text: str) -> Any:
    """Evaluate a type expression such as ``list[int]`` or ``dict[str, Int32] | None``."""
    tokens = _type_tokens(text)
    tp, pos = _parse_union(tokens, 0, text)
    if pos != len(tokens):
        raise ConfigError(f"unexpected '{tokens[pos]}' in type '{text}'")
    return tp


def _type_tokens(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = text.rstrip()
    while pos < len(stripped):
        m = _TYPE_TOKEN.match(stripped, pos)
        if m is None:
            raise ConfigError(f"invalid type '{text}'")
        tokens.append(m.group(m.lastindex or 0))
        pos = m.end()
    if not tokens:
        raise ConfigError("empty type")
    return tokens


def _parse_union(tokens: list[str], pos: int, text: str) -> tuple[Any, int]:
    members = []
    tp, pos = _parse_type(tokens, pos, text)
    members.append(tp)
    while pos < len(tokens) and tokens[pos] == "|":
        tp, pos = _parse_type(tokens, pos + 1, text)
        members.append(tp)
    if len(members) == 1:
        return members[0], pos
    return Union[tuple(members)], pos


def _parse_type(tokens: list[str], pos: int, text: str) -> tuple[Any, int]:
    if pos >= len(tokens):
        raise ConfigError(f"unexpected end of type '{text}'")
    name = tokens[pos]
    if name not in TYPE_NAMESPACE:
        raise ConfigError(f"unknown type '{name}' in '{text}'")
    tp = TYPE_NAMESPACE[name]
    pos += 1
    if pos >= len(tokens) or tokens[pos] != "[":
        return tp, pos

    args: list[Any] = []
    pos += 1
    while True:
        if pos < len(tokens) and tokens[pos] == "...":
            args.append(Ellipsis)
            pos += 1
        else:
            arg, pos = _parse_union(tokens, pos, text)
            args.append(arg)
        if pos < len(tokens) and tokens[pos] == ",":
            pos += 1
            continue
        if pos < len(tokens) and tokens[pos] == "]":
            pos += 1
            break
        raise ConfigError(f"expected ',' or ']' in type '{text}'")
    try:
        return tp[tuple(args)] if len(args) > 1 else tp[args[0]], pos
    except TypeError as exc:
        raise ConfigError(f"invalid type arguments in '{text}': {exc}") from exc
