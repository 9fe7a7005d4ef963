"""Tests for declaring parameter sets on dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from psargs.descriptors import ParameterInfo, from_dataclass, parameter, parameter_set
from psargs.errors import ParameterSetDefinitionError
from psargs.parameters import MISSING
from psargs.switch import Switch
from psargs.validators import Range

from tests.conftest import error_kinds


@parameter_set("Copy", command="copy", help="Copy a file")
@parameter_set("Move", command="move")
@dataclass
class FileArgs:
    source: str = parameter(position=0, required=True)
    destination: str = parameter(position=1)
    force: Switch = parameter()
    retries: int = parameter(name="Retries", default=3, validators=(Range(0, 5),), sets=("Copy",))
    note: str = "not a parameter"


class TestFromDataclass:
    def test_sets_in_written_order(self):
        sets = from_dataclass(FileArgs)
        assert [s.name for s in sets] == ["Copy", "Move"]
        assert [s.command for s in sets] == ["copy", "move"]
        assert sets[0].help == "Copy a file"
        assert all(s.target is FileArgs for s in sets)

    def test_parameters(self):
        copy, move = from_dataclass(FileArgs)
        assert [p.name for p in copy] == ["source", "destination", "force", "Retries"]
        assert [p.name for p in move] == ["source", "destination", "force"]
        retries = copy["Retries"]
        assert retries.type is int
        assert retries.attribute == "retries"
        assert retries.default == 3
        assert copy["force"].is_switch
        assert copy["source"].required

    def test_field_metadata(self):
        info = parameter(position=0).metadata["psargs"]
        assert isinstance(info, ParameterInfo)
        assert info.default is MISSING
        assert info.position == 0

    def test_parameter_without_default(self):
        copy, _ = from_dataclass(FileArgs)
        assert not copy["source"].has_default
        assert copy["Retries"].has_default

    def test_select_one_set(self):
        (move,) = from_dataclass(FileArgs, name="Move")
        assert move.name == "Move"
        with pytest.raises(ParameterSetDefinitionError, match="no parameter set named 'Rename'"):
            from_dataclass(FileArgs, name="Rename")

    def test_undecorated_class(self):
        @dataclass
        class Plain:
            name: str = parameter()

        (pset,) = from_dataclass(Plain)
        assert pset.name == "Plain"
        assert pset.command is None

    def test_not_a_dataclass(self):
        class Loose:
            pass

        with pytest.raises(ParameterSetDefinitionError, match="not a dataclass"):
            from_dataclass(Loose)

    def test_field_without_default(self):
        @dataclass
        class Strict:
            name: str

        with pytest.raises(ParameterSetDefinitionError, match="needs a default"):
            from_dataclass(Strict)

    def test_default_factory_allowed(self):
        @dataclass
        class Tags:
            tags: list[str] = field(default_factory=list)
            name: str = parameter()

        (pset,) = from_dataclass(Tags)
        assert [p.name for p in pset] == ["name"]

    def test_unknown_set_name(self):
        @parameter_set("A")
        @dataclass
        class Bad:
            x: str = parameter(sets=("B",))

        with pytest.raises(ParameterSetDefinitionError, match="undeclared parameter sets: B"):
            from_dataclass(Bad)


class TestBinding:
    def test_bind_into_dataclass(self, bind):
        copy, _ = from_dataclass(FileArgs)
        result = bind(copy, "copy a.txt b.txt -Force")
        assert result.success
        assert result.value == FileArgs("a.txt", "b.txt", Switch.PRESENT, 3)
        assert result.value.note == "not a parameter"

    def test_validator_from_descriptor(self, bind):
        copy, _ = from_dataclass(FileArgs)
        result = bind(copy, "copy a -Retries 9")
        assert [k.name for k in error_kinds(result)] == ["VALIDATION"]
