"""Resolution across parameter sets and the ArgumentParser front end."""

from __future__ import annotations

import io
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import pytest

import psargs
from psargs.descriptors import parameter, parameter_set
from psargs.errors import LexError
from psargs.parameters import Parameter, ParameterSet
from psargs.parser import parse
from psargs.resolver import ArgumentParser, ParameterSetCollection
from psargs.results import ErrorKind
from psargs.switch import Switch

from tests.conftest import error_kinds


@pytest.fixture
def by_name():
    return ParameterSet("ByName", (Parameter("Action", required=True), Parameter("Name", required=True)))


@pytest.fixture
def by_path():
    return ParameterSet("ByPath", (Parameter("Action", required=True), Parameter("Path", required=True)))


@pytest.fixture
def collection(by_name, by_path):
    return ParameterSetCollection([by_name, by_path])


class TestResolve:
    def test_unique_match(self, collection, by_name):
        result = collection.resolve(parse('-Action Execute -Name "a b c"'))
        assert result.is_match
        best = result.best_match
        assert best.parameter_set is by_name
        assert best.errors == ()
        assert best.value.Name == "a b c"
        assert error_kinds(result[1]).count(ErrorKind.MISSING_REQUIRED_PARAMETER) == 1

    def test_results_keep_declaration_order(self, collection):
        result = collection.resolve(parse("-Action x -Path p"))
        assert [r.parameter_set.name for r in result] == ["ByName", "ByPath"]
        assert result.best_match.parameter_set.name == "ByPath"

    def test_no_match_picks_fewest_errors(self, collection):
        result = collection.resolve(parse("-Name n"))
        assert not result.is_match
        assert result.best_match.parameter_set.name == "ByName"
        assert error_kinds(result.best_match) == [ErrorKind.MISSING_REQUIRED_PARAMETER]

    def test_two_successes_are_not_a_match(self):
        loose = ParameterSetCollection([ParameterSet("A", (Parameter("X"),)), ParameterSet("B", (Parameter("X"),))])
        result = loose.resolve(parse("-X 1"))
        assert not result.is_match
        assert result.best_match.parameter_set.name == "A"

    def test_empty_collection(self):
        result = ParameterSetCollection().resolve(parse("a"))
        assert not result.is_match
        assert result.best_match is None
        assert len(result) == 0

    def test_executor(self, collection):
        sequence = parse('-Action Execute -Name "a b c"')
        with ThreadPoolExecutor(max_workers=2) as executor:
            threaded = collection.resolve(sequence, executor=executor)
        serial = collection.resolve(sequence)
        assert [r.errors for r in threaded] == [r.errors for r in serial]
        assert threaded.is_match


class TestCollection:
    def test_add_remove_lookup(self, by_name, by_path):
        collection = ParameterSetCollection([by_name])
        collection.add(by_path)
        assert [s.name for s in collection] == ["ByName", "ByPath"]
        assert collection["ByPath"] is by_path
        collection.remove(by_name)
        assert len(collection) == 1
        with pytest.raises(KeyError):
            collection["ByName"]

    def test_from_types(self):
        @parameter_set("Get", command="get")
        @parameter_set("Set", command="set")
        @dataclass
        class Item:
            key: str = parameter(position=0, required=True)
            value: str = parameter(position=1, required=True, sets=("Set",))

        collection = ParameterSetCollection.from_types(Item)
        assert [s.name for s in collection] == ["Get", "Set"]
        result = collection.resolve(parse("set color blue"))
        assert result.is_match
        assert result.best_match.value == Item("color", "blue")


class TestArgumentParser:
    @pytest.fixture
    def parser(self, by_name, by_path):
        return ArgumentParser(by_name, by_path, stderr=io.StringIO())

    def test_parse_args_returns_value(self, parser):
        value = parser.parse_args(["-Action", "Execute", "-Path", "/tmp"])
        assert value.Path == "/tmp"

    def test_parse_raises_syntax_errors(self, parser):
        with pytest.raises(LexError):
            parser.parse("-Action 'open")

    def test_lex_error_exits(self, parser):
        with pytest.raises(SystemExit) as info:
            parser.parse_args(["-Action", "'open"])
        assert info.value.code == 2
        assert "unterminated string" in parser.stderr.getvalue()

    def test_reports_first_error_of_best_match(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["-Action", "x", "-Name"])
        output = parser.stderr.getvalue()
        assert output.startswith("error: Missing a value for parameter 'Name'")
        assert "-Name" in output

    def test_ambiguous_sets(self):
        stderr = io.StringIO()
        parser = ArgumentParser(
            ParameterSet("A", (Parameter("Verbose", Switch),)),
            ParameterSet("B", (Parameter("Verbose", Switch),)),
            stderr=stderr,
        )
        with pytest.raises(SystemExit):
            parser.parse_args(["-Verbose"])
        assert stderr.getvalue() == "error: the arguments match more than one parameter set: A, B\n"

    def test_no_sets(self):
        stderr = io.StringIO()
        with pytest.raises(SystemExit):
            ArgumentParser(stderr=stderr).parse_args([])
        assert stderr.getvalue() == "error: no parameter sets are defined\n"

    def test_unsupported_shape_exits(self):
        stderr = io.StringIO()
        parser = ArgumentParser(ParameterSet("Ids", (Parameter("Ids", tuple[int, ...]),)), stderr=stderr)
        with pytest.raises(SystemExit) as info:
            parser.parse_args(["-Ids", "@{a=1}"])
        assert info.value.code == 2
        assert stderr.getvalue() == "error: int has no unique two-argument constructor\n"

    def test_buffered_parse(self, by_name):
        parser = ArgumentParser(by_name, buffer_size=1)
        assert parser.parse("-Action a -Name b").is_match


class TestPackageResolve:
    def test_accepts_sets_and_dataclasses(self, by_name):
        @dataclass
        class Other:
            path: str = parameter(required=True)

        result = psargs.resolve("-path p", by_name, Other)
        assert result.is_match
        assert result.best_match.value == Other("p")
