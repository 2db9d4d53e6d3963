"""Tests for configuration value classification, transformation and merging."""

import pytest

from definition.values import (
    ValueKind,
    is_falsy,
    kind_of,
    lookup,
    lookup_dotted,
    merge_config,
    render_scalar,
    transform_value,
)


class TestKindOf:
    """Value classification."""

    @pytest.mark.parametrize(
        "value,kind",
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOL),
            (0, ValueKind.NUMBER),
            (1.5, ValueKind.NUMBER),
            ("x", ValueKind.STRING),
            ([1], ValueKind.ARRAY),
            ({"a": 1}, ValueKind.OBJECT),
        ],
    )
    def test_kinds(self, value, kind):
        assert kind_of(value) is kind

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            kind_of(object())


class TestTransformValue:
    """Type coercion applied to defaults and merged overrides."""

    def test_list_becomes_compact_json(self):
        assert transform_value([1, 2]) == "[1,2]"
        assert transform_value([{"name": "a"}], "array") == '[{"name":"a"}]'

    def test_integer_formatting(self):
        assert transform_value(3.0, "integer") == "3"
        assert transform_value(604800, "integer") == "604800"

    def test_number_formatting(self):
        assert transform_value(0.1, "number") == "0.10"
        assert transform_value(2, "number") == "2.00"

    def test_strings_pass_through(self):
        assert transform_value("0.10", "number") == "0.10"
        assert transform_value("abc", "integer") == "abc"

    def test_booleans_are_not_numbers(self):
        assert transform_value(True, "integer") is True
        assert transform_value(False, "number") is False

    def test_undeclared_numbers_unchanged(self):
        assert transform_value(7) == 7

    def test_idempotent(self):
        once = transform_value([1, 2])
        assert transform_value(once) == once


class TestMergeConfig:
    """Right-biased recursive merge."""

    def test_nested_merge(self):
        base = {"a": {"b": 1, "c": 2}}
        override = {"a": {"c": 3, "d": 4}}
        assert merge_config(base, override) == {"a": {"b": 1, "c": 3, "d": 4}}

    def test_override_wins_for_non_maps(self):
        assert merge_config({"a": {"b": 1}}, {"a": "flat"}) == {"a": "flat"}
        assert merge_config({"a": "flat"}, {"a": {"b": 1}}) == {"a": {"b": 1}}

    def test_override_values_are_transformed(self):
        assert merge_config({}, {"hosts": ["a", "b"]}) == {"hosts": '["a","b"]'}

    def test_inputs_not_mutated(self):
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        merge_config(base, override)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}

    def test_none_inputs(self):
        assert merge_config(None, {"a": 1}) == {"a": 1}
        assert merge_config({"a": 1}, None) == {"a": 1}


class TestLookupAndRendering:
    """Path lookups, falsiness and scalar rendering."""

    def test_lookup(self):
        config = {"mantl": {"load-balancer": "external"}}
        assert lookup(config, ["mantl", "load-balancer"]) == "external"
        assert lookup_dotted(config, "mantl.load-balancer") == "external"
        assert lookup(config, ["mantl", "missing"]) is None
        assert lookup(config, ["mantl", "load-balancer", "deeper"]) is None

    @pytest.mark.parametrize("value", [None, False, "", [], {}])
    def test_falsy(self, value):
        assert is_falsy(value)

    @pytest.mark.parametrize("value", [0, 0.0, True, "x", "   ", [0], {"a": None}])
    def test_truthy(self, value):
        assert not is_falsy(value)

    def test_render_scalar(self):
        assert render_scalar(None) == ""
        assert render_scalar(True) == "true"
        assert render_scalar(3.0) == "3"
        assert render_scalar(0.5) == "0.5"
        assert render_scalar({"a": [1]}) == '{"a":[1]}'
