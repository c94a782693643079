"""Tests for the value model: normalisation, stringify and truthiness."""

from dataclasses import dataclass
from datetime import date

import msgspec
import pytest
from pydantic import BaseModel

from bibtmpl.values import MISSING, format_number, is_falsy, stringify, to_value


class TestToValue:
    def test_plain_builtins_pass_through(self):
        data = {"a": [1, 2.5, "x", None, True], "b": {"c": "d"}}
        assert to_value(data) == data

    def test_tuples_become_lists(self):
        assert to_value({"a": (1, 2)}) == {"a": [1, 2]}

    def test_dates_become_iso_strings(self):
        assert to_value({"d": date(2024, 3, 1)}) == {"d": "2024-03-01"}

    def test_dataclass_and_struct(self):
        @dataclass
        class Author:
            family: str

        class Item(msgspec.Struct):
            title: str

        assert to_value(Author("Smith")) == {"family": "Smith"}
        assert to_value(Item("Dune")) == {"title": "Dune"}

    def test_pydantic_model(self):
        class Person(BaseModel):
            family: str
            given: str | None = None

        assert to_value({"p": Person(family="Roe")}) == {
            "p": {"family": "Roe", "given": None}
        }

    def test_non_string_keys_are_stringified(self):
        assert to_value({1: "one"}) == {"1": "one"}

    def test_unsupported_object_raises_type_error(self):
        with pytest.raises(TypeError):
            to_value({"f": object()})


class TestStringify:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("text", "text"),
            (True, "true"),
            (False, "false"),
            (None, ""),
            (MISSING, ""),
            (42, "42"),
            (3.0, "3"),
            (2.5, "2.5"),
            (-0.125, "-0.125"),
        ],
    )
    def test_scalars(self, value, expected):
        assert stringify(value) == expected

    def test_containers_are_compact_json(self):
        assert stringify(["a", 1]) == '["a",1]'
        assert stringify({"k": "v"}) == '{"k":"v"}'

    def test_non_finite_numbers(self):
        assert format_number(float("nan")) == "NaN"
        assert format_number(float("inf")) == "Infinity"
        assert format_number(float("-inf")) == "-Infinity"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1e-7, "1e-7"),
            (1.5e-7, "1.5e-7"),
            (-2.5e-8, "-2.5e-8"),
            (0.000001, "0.000001"),
            (0.0001, "0.0001"),
            (1e20, "100000000000000000000"),
            (1e21, "1e+21"),
            (1.25e22, "1.25e+22"),
            (123.456, "123.456"),
            (-0.0, "0"),
        ],
    )
    def test_exponent_form(self, value, expected):
        assert format_number(value) == expected


class TestFalsy:
    @pytest.mark.parametrize("value", [MISSING, None, False, 0, 0.0, "", [], float("nan")])
    def test_falsy_set(self, value):
        assert is_falsy(value)

    @pytest.mark.parametrize("value", [True, 1, -1, 0.5, "0", " ", [0], {}, {"a": 1}])
    def test_everything_else_is_truthy(self, value):
        assert not is_falsy(value)

    def test_missing_is_a_singleton(self):
        assert type(MISSING)() is MISSING
        assert repr(MISSING) == "MISSING"
