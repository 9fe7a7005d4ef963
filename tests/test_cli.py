"""Tests for the CLI module: option splitting, exit codes, output formats."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from psargs.cli import CliOptions, build_parser, format_value, main, resolve_options, split_argv, to_json
from psargs.lookup import Lookup
from psargs.numeric import Byte, Single
from psargs.switch import Switch

CONFIG = """\
[[set]]
name = "Copy"
command = "copy"

[[set.parameter]]
name = "Source"
position = 0
required = true

[[set.parameter]]
name = "Ids"
type = "list[int]"
default = "@()"

[[set.parameter]]
name = "Force"
type = "Switch"

[[set]]
name = "Remove"
command = "remove"

[[set.parameter]]
name = "Path"
position = 0
required = true
"""


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "psargs.toml").write_text(CONFIG)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Option handling
# ---------------------------------------------------------------------------


class TestSplitArgv:
    def test_stops_at_first_argument(self) -> None:
        assert split_argv(["--json", "copy", "--json"]) == (["--json"], ["copy", "--json"])

    def test_options_with_values(self) -> None:
        own, rest = split_argv(["--config", "x.toml", "--set=Copy", "-Source", "a"])
        assert own == ["--config", "x.toml", "--set=Copy"]
        assert rest == ["-Source", "a"]

    def test_double_dash(self) -> None:
        assert split_argv(["--debug", "--", "--json"]) == (["--debug"], ["--json"])

    def test_no_options(self) -> None:
        assert split_argv(["-Name", "x"]) == ([], ["-Name", "x"])


class TestResolveOptions:
    def test_defaults(self) -> None:
        assert resolve_options(["a"]) == CliOptions(None, None, ["a"], False, False)

    def test_all_options(self) -> None:
        options = resolve_options(["--config", "c.toml", "--set", "Copy", "--debug", "--json", "copy", "a"])
        assert options.config_path == Path("c.toml")
        assert options.set_name == "Copy"
        assert options.debug
        assert options.json
        assert options.arguments == ["copy", "a"]

    def test_parser_prog(self) -> None:
        assert build_parser().prog == "psargs"


# ---------------------------------------------------------------------------
# Value rendering
# ---------------------------------------------------------------------------


class TestFormatValue:
    def test_scalars(self) -> None:
        assert format_value(None) == "$null"
        assert format_value(True) == "$true"
        assert format_value(Byte(3)) == "3"
        assert format_value(Switch.PRESENT) == "Present"

    def test_containers(self) -> None:
        assert format_value([1, "a"]) == "@(1, a)"
        assert format_value({"a": [1]}) == "@{a=@(1)}"

    def test_lookup(self) -> None:
        lookup: Lookup[str, int] = Lookup()
        lookup.add("a", 1)
        lookup.add("a", 2)
        assert format_value(lookup) == "@{a=@(1, 2)}"


class TestToJson:
    def test_values(self) -> None:
        assert to_json(Switch.ABSENT) is False
        assert type(to_json(Byte(3))) is int
        assert to_json(Single(2.5)) == 2.5
        assert to_json(Decimal("1.10")) == "1.10"
        assert to_json({"a": (1, Path("p"))}) == {"a": [1, "p"]}


# ---------------------------------------------------------------------------
# Exit codes and output
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_match_returns_0(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["copy", "a.txt", "-Ids", "1,2", "-Force"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines() == ["# Copy", "Source = a.txt", "Ids = @(1, 2)", "Force = Present"]

    def test_syntax_error_returns_1(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["copy", "'open"]) == 1
        assert "unterminated string" in capsys.readouterr().err

    def test_no_match_returns_2(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["copy"]) == 2
        assert "Missing required parameter: 'Source'" in capsys.readouterr().err

    def test_missing_config_returns_2(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--config", str(tmp_path / "none.toml"), "x"]) == 2
        assert "config file not found" in capsys.readouterr().err

    def test_unsupported_shape_returns_2(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = tmp_path / "ids.toml"
        config.write_text('[[set]]\nname = "Ids"\n\n[[set.parameter]]\nname = "Ids"\ntype = "tuple[int, ...]"\n')
        assert main(["--config", str(config), "-Ids", "@{a=1}"]) == 2
        assert "error: int has no unique two-argument constructor" in capsys.readouterr().err

    def test_no_sets_returns_2(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert main(["x"]) == 2
        assert "no parameter sets configured" in capsys.readouterr().err


class TestOutput:
    def test_json(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--json", "remove", "b.txt"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {"set": "Remove", "values": {"Path": "b.txt"}}

    def test_set_filter(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--set", "Remove", "copy", "a"]) == 2
        assert "Missing command: 'remove'" in capsys.readouterr().err

    def test_unknown_set(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--set", "Nope", "x"]) == 2
        assert "no parameter set named 'Nope'" in capsys.readouterr().err

    def test_debug_dumps_ast(self, workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--debug", "remove", "b.txt"]) == 0
        err = capsys.readouterr().err
        assert err.startswith("NodeSequence 'remove b.txt'")
        assert "Literal STRING 'b.txt'" in err
