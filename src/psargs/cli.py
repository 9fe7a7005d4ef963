"""Command-line interface: resolve a command line against configured parameter sets."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

from psargs.errors import (
    ConfigError,
    LexError,
    ParameterDefinitionError,
    ParameterSetDefinitionError,
    ParseError,
    UnsupportedTypeError,
)
from psargs.lookup import MultiMapping
from psargs.numeric import FixedInt, Single
from psargs.switch import Switch

_OPTIONS_WITH_VALUE = ("--config", "--set")
_FLAGS = ("--debug", "--json", "-h", "--help")


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    config_path: Path | None
    set_name: str | None
    arguments: list[str]
    debug: bool
    json: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="psargs",
        usage="%(prog)s [--config FILE] [--set NAME] [--debug] [--json] [--] ARGS...",
        description="Resolve a PowerShell-style command line against parameter sets",
        epilog="Everything after the options (or after '--') is the command line to resolve.",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover psargs.toml)",
    )
    p.add_argument("--set", metavar="NAME", help="Only try the named parameter set")
    p.add_argument("--debug", action="store_true", help="Dump AST to stderr")
    p.add_argument("--json", action="store_true", help="Print the bound values as JSON")
    return p


def split_argv(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split *argv* into psargs' own options and the command line to resolve.

    The command line starts at the first token that is not one of our
    options, or right after a ``--``.
    """
    own: list[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            return own, argv[i + 1 :]
        if arg in _OPTIONS_WITH_VALUE:
            own.extend(argv[i : i + 2])
            i += 2
        elif arg in _FLAGS or arg.startswith(tuple(f"{o}=" for o in _OPTIONS_WITH_VALUE)):
            own.append(arg)
            i += 1
        else:
            break
    return own, argv[i:]


def resolve_options(argv: list[str]) -> CliOptions:
    own, rest = split_argv(argv)
    args = build_parser().parse_args(own)
    return CliOptions(
        config_path=Path(args.config) if args.config else None,
        set_name=args.set,
        arguments=rest,
        debug=args.debug,
        json=args.json,
    )


def format_value(value: Any) -> str:
    """Render a bound value in command-line syntax."""
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, MultiMapping):
        entries = "; ".join(f"{format_value(k)}={format_value(list(v))}" for k, v in value.items())
        return f"@{{{entries}}}"
    if isinstance(value, Mapping):
        entries = "; ".join(f"{format_value(k)}={format_value(v)}" for k, v in value.items())
        return f"@{{{entries}}}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"@({', '.join(format_value(v) for v in value)})"
    return str(value)


def to_json(value: Any) -> Any:
    """Convert a bound value into something ``json.dumps`` accepts."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, Switch):
        return value.is_present
    if isinstance(value, FixedInt):
        return int(value)
    if isinstance(value, Single):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, MultiMapping):
        return {str(k): [to_json(v) for v in vs] for k, vs in value.items()}
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return str(value)


def run(options: CliOptions) -> int:
    """Load the configured sets, resolve the command line and print the match."""
    from psargs.binder import BinderSettings, ParameterSetBinder
    from psargs.config import load_config, sets_from_config, settings_from_config
    from psargs.debug import dump_ast
    from psargs.parser import parse
    from psargs.resolver import ParameterSetCollection

    config = load_config(options.config_path, Path("."))
    settings = settings_from_config(config)
    sets = sets_from_config(config)
    if options.set_name is not None:
        sets = tuple(s for s in sets if s.name == options.set_name)
        if not sets:
            raise ConfigError(f"no parameter set named '{options.set_name}'")
    if not sets:
        raise ConfigError("no parameter sets configured")

    try:
        sequence = parse(" ".join(options.arguments), buffer_size=settings.buffer_size)
    except (LexError, ParseError) as exc:
        print(exc.format(), file=sys.stderr)
        return 1

    if options.debug:
        dump_ast(sequence, file=sys.stderr)

    binder = ParameterSetBinder(BinderSettings(validate=settings.validate))
    result = ParameterSetCollection(sets, binder).resolve(sequence)
    best = result.best_match
    assert best is not None

    if not result.is_match:
        if best.success:
            names = ", ".join(r.parameter_set.name for r in result if r.success)
            print(f"error: the arguments match more than one parameter set: {names}", file=sys.stderr)
        else:
            for error in best.errors:
                print(error.format(), file=sys.stderr)
        return 2

    values = {p.name: getattr(best.value, p.attribute, None) for p in best.parameter_set}
    if options.json:
        payload = {"set": best.parameter_set.name, "values": {k: to_json(v) for k, v in values.items()}}
        print(json.dumps(payload, indent=2))
    else:
        print(f"# {best.parameter_set.name}")
        for name, value in values.items():
            print(f"{name} = {format_value(value)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    options = resolve_options(sys.argv[1:] if argv is None else argv)
    try:
        return run(options)
    except (ConfigError, ParameterDefinitionError, ParameterSetDefinitionError, UnsupportedTypeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def main_entry() -> None:
    sys.exit(main())
