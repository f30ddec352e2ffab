"""
Unit tests for the key scheme and value normalization.
"""

import pytest

from readmodel import keys
from readmodel.apply import index_values


class TestFormatValue:
    """Tests for format_value."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Honda", "Honda"),
            (1234, "1234"),
            (1.5, "1.5"),
            (1.0, "1"),
            (-3.0, "-3"),
            (True, "true"),
            (False, "false"),
        ],
    )
    def test_format(self, value, expected):
        assert keys.format_value(value) == expected


class TestKeys:
    """Tests for key builders."""

    def test_entity_key(self):
        assert keys.entity_key("car", 1234) == "car:1234"

    def test_sort_hash_key(self):
        assert keys.sort_hash_key("car:1234") == "h:car:1234"

    def test_index_key(self):
        assert keys.index_key("car", "priceRange", "1,000-5,000") == "x:car-priceRange:1,000-5,000"

    def test_sort_by_pattern(self):
        assert keys.sort_by_pattern("make") == "h:*->make"

    def test_index_pattern(self):
        """Pattern covers every value of one index only."""
        assert keys.index_pattern("car", "year") == "x:car-year:*"

    def test_type_index_pattern(self):
        assert keys.type_index_pattern("car") == "x:car-*"

    def test_patterns_escape_glob_characters(self):
        """Glob syntax inside names matches literally."""
        assert keys.index_pattern("car*", "a?b") == r"x:car\*-a\?b:*"
        assert keys.type_index_pattern("[car]") == r"x:\[car\]-*"

    def test_decode(self):
        assert keys.decode(b"car:1") == "car:1"
        assert keys.decode("car:1") == "car:1"


class TestResultSetKey:
    """Tests for result_set_key."""

    def test_intersection_only(self):
        assert keys.result_set_key([], ["x:car-a:1", "x:car-b:2"]) == "r:x:car-a:1|x:car-b:2"

    def test_union_only(self):
        assert keys.result_set_key(["x:car-c:1", "x:car-c:4"], []) == "r:x:car-c:1_x:car-c:4"

    def test_union_then_intersection(self):
        key = keys.result_set_key(["x:car-c:1", "x:car-c:4"], ["x:car-a:1"])

        assert key == "r:x:car-c:1_x:car-c:4|x:car-a:1"

    def test_separators_inside_sources_are_escaped(self):
        key = keys.result_set_key([], ["x:car-price_range:1", "x:car-year:1"])

        assert key == r"r:x:car-price\_range:1|x:car-year:1"

    @pytest.mark.parametrize(
        "first,second",
        [
            (([], ["x:c-a:1|x:c-b:2", "x:c-d:3"]), ([], ["x:c-a:1", "x:c-b:2|x:c-d:3"])),
            ((["x:c-f:a_b", "x:c-f:c"], []), (["x:c-f:a", "b_x:c-f:c"], [])),
            ((["x:c-f:1", "x:c-f:2"], ["x:c-a:1"]), ([], ["x:c-f:1_x:c-f:2", "x:c-a:1"])),
        ],
    )
    def test_distinct_sources_never_share_a_key(self, first, second):
        """Values containing '_' or '|' cannot forge another query's key."""
        assert keys.result_set_key(*first) != keys.result_set_key(*second)

    def test_prefix_outside_index_namespace(self):
        """Result sets never match index scan patterns."""
        assert not keys.result_set_key([], ["x:car-a:1"]).startswith(keys.INDEX_PREFIX)


class TestIndexValues:
    """Tests for index_values."""

    def test_none(self):
        assert index_values(None) == []

    def test_scalar(self):
        assert index_values(99) == ["99"]

    def test_list(self):
        assert index_values([1, 2, 3]) == ["1", "2", "3"]

    def test_drops_none_and_duplicates(self):
        assert index_values([1, None, 1, 2]) == ["1", "2"]

    def test_same_value_different_types(self):
        """1 and "1" land in the same set."""
        assert index_values([1, "1"]) == ["1"]

    def test_empty_list(self):
        assert index_values([]) == []
