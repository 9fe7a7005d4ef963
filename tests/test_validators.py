"""Tests for the declarative value validators."""

from __future__ import annotations

import re
from decimal import Decimal

import pytest

from psargs.numeric import Byte
from psargs.validators import Length, NotEmpty, OneOf, Pattern, Range


class TestRange:
    def test_bounds_are_inclusive(self):
        check = Range(1, 10)
        check(1)
        check(10)
        with pytest.raises(ValueError, match="less than the minimum of 1"):
            check(0)
        with pytest.raises(ValueError, match="greater than the maximum of 10"):
            check(11)

    def test_open_sides(self):
        Range(min=0)(10**9)
        Range(max=Decimal("1.5"))(Decimal("-3"))

    def test_numeric_kinds(self):
        with pytest.raises(ValueError):
            Range(0, 100)(Byte(200))

    def test_none_skipped(self):
        Range(1, 2)(None)


class TestLength:
    def test_string_and_list(self):
        Length(1, 3)("abc")
        Length(max=2)([1, 2])
        with pytest.raises(ValueError, match="length 4 is greater than the maximum of 3"):
            Length(1, 3)("abcd")
        with pytest.raises(ValueError, match="length 0 is less than the minimum of 1"):
            Length(min=1)([])


class TestPattern:
    def test_full_match(self):
        check = Pattern(r"[a-z]+\d")
        check("abc1")
        with pytest.raises(ValueError, match="does not match the pattern"):
            check("abc1x")

    def test_flags(self):
        Pattern("abc", re.IGNORECASE)("ABC")

    def test_non_string_value(self):
        Pattern(r"\d+")(Byte(42))

    def test_invalid_regex(self):
        with pytest.raises(re.error):
            Pattern("(")

    def test_equality_ignores_compiled(self):
        assert Pattern("a+") == Pattern("a+")


class TestOneOf:
    def test_strings_ignore_case(self):
        check = OneOf("Fast", "Slow")
        check("fast")
        with pytest.raises(ValueError, match="'medium' is not one of: Fast, Slow"):
            check("medium")

    def test_numbers(self):
        OneOf(1, 2)(Byte(2))
        with pytest.raises(ValueError):
            OneOf(1, 2)(3)

    def test_value_semantics(self):
        assert OneOf("a", 1) == OneOf("a", 1)
        assert hash(OneOf("a")) == hash(OneOf("a"))
        assert repr(OneOf("a", 1)) == "OneOf('a', 1)"


class TestNotEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            NotEmpty()(value)

    def test_accepts(self):
        NotEmpty()("x")
        NotEmpty()([0])
        NotEmpty()(0)
