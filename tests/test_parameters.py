"""Tests for parameter and parameter-set declarations."""

from __future__ import annotations

import pytest

from psargs.ast import AssociativeArray, Literal, Sequence
from psargs.errors import ParameterDefinitionError, ParameterSetDefinitionError
from psargs.parameters import MISSING, Parameter, ParameterSet, parameter_names
from psargs.switch import Switch


class TestParameter:
    def test_defaults(self):
        param = Parameter("Name")
        assert param.type is str
        assert param.position is None
        assert not param.required
        assert not param.has_default
        assert param.attribute == "Name"

    def test_declared_without_default(self):
        param = Parameter("Count", int, 0, True)
        assert param.default is MISSING
        assert repr(param.default) == "MISSING"
        assert Parameter("Count", int, default=0).has_default

    @pytest.mark.parametrize("name", ["", "two words", "-Name", "a:b", "x=y", "$v"])
    def test_invalid_name(self, name):
        with pytest.raises(ParameterDefinitionError, match="invalid parameter name"):
            Parameter(name)

    def test_negative_position(self):
        with pytest.raises(ParameterDefinitionError, match="negative position"):
            Parameter("Name", position=-1)

    def test_none_default_needs_optional_type(self):
        with pytest.raises(ParameterDefinitionError, match="cannot default to None"):
            Parameter("Count", int, default=None)
        assert Parameter("Count", int | None, default=None).has_default

    def test_switch(self):
        assert Parameter("Verbose", Switch).is_switch
        assert Parameter("Verbose", Switch | None).is_switch
        assert not Parameter("Verbose", bool).is_switch

    def test_prefix_matching_ignores_case(self):
        param = Parameter("Action")
        assert param.matches("act")
        assert param.matches("ACTION")
        assert not param.matches("Actions")


class TestTextualDefaults:
    def test_string_default_taken_as_is(self):
        param = Parameter("Name", default="@(not parsed")
        assert param.default_node is None

    def test_parsed_for_other_types(self):
        assert isinstance(Parameter("Count", int, default="3").default_node, Literal)
        assert isinstance(Parameter("Ids", list[int], default="@(1, 2)").default_node, Sequence)
        assert isinstance(Parameter("Map", dict[str, int], default="@{}").default_node, AssociativeArray)

    def test_invalid_text(self):
        with pytest.raises(ParameterDefinitionError, match="invalid default for parameter 'Ids'"):
            Parameter("Ids", list[int], default="@(1,")

    def test_must_be_a_single_value(self):
        with pytest.raises(ParameterDefinitionError, match="must be a single value"):
            Parameter("Count", int, default="1 2")
        with pytest.raises(ParameterDefinitionError, match="must be a single value"):
            Parameter("Count", int, default="-Other")


class TestParameterSet:
    def test_positional_order(self):
        pset = ParameterSet(
            "Copy",
            (Parameter("Destination", position=1), Parameter("Source", position=0), Parameter("Force", Switch)),
        )
        assert [p.name for p in pset.positional] == ["Source", "Destination"]

    def test_duplicate_names_ignore_case(self):
        with pytest.raises(ParameterSetDefinitionError, match="Duplicate parameter names: Name, name"):
            ParameterSet("Bad", (Parameter("Name"), Parameter("name")))

    def test_duplicate_positions(self):
        with pytest.raises(ParameterSetDefinitionError, match="Duplicate parameter positions"):
            ParameterSet("Bad", (Parameter("A", position=0), Parameter("B", position=0)))

    def test_missing_position(self):
        with pytest.raises(ParameterSetDefinitionError, match="Missing parameter position: 0"):
            ParameterSet("Bad", (Parameter("A", position=1),))

    def test_gap_in_positions(self):
        with pytest.raises(ParameterSetDefinitionError, match="Missing parameter position: 1"):
            ParameterSet("Bad", (Parameter("A", position=0), Parameter("B", position=2)))

    @pytest.mark.parametrize("command", ["", "two words", "tab\there"])
    def test_invalid_command(self, command):
        with pytest.raises(ParameterSetDefinitionError, match="invalid command"):
            ParameterSet("Bad", (), command=command)

    def test_lookup(self):
        pset = ParameterSet("Run", (Parameter("Action"), Parameter("Activate"), Parameter("Name")))
        assert pset["action"].name == "Action"
        assert [p.name for p in pset.find("act")] == ["Action", "Activate"]
        assert len(pset) == 3
        assert [p.name for p in pset] == ["Action", "Activate", "Name"]
        with pytest.raises(KeyError):
            pset["Missing"]

    def test_required(self):
        pset = ParameterSet("Run", (Parameter("A", required=True), Parameter("B")))
        assert [p.name for p in pset.required] == ["A"]

    def test_parameter_names(self):
        assert parameter_names([Parameter("A"), Parameter("B")]) == "A, B"
