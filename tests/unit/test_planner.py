"""
Unit tests for query compilation.

Compilation never touches the store, so the client is a bare mock.
"""

from unittest.mock import MagicMock

import pytest

from readmodel.errors import EmptyCriteriaError, ValidationError
from readmodel.query.planner import QueryPlanner


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def planner(client):
    return QueryPlanner(client, expire_seconds=5)


class TestCompile:
    """Tests for QueryPlanner.compile."""

    def test_single_scalar_is_direct(self, planner, client):
        """One scalar criterion uses the index set itself."""
        plan = planner.compile("car", {"priceRange": "1,000-5,000"})

        assert plan.direct
        assert plan.key == "x:car-priceRange:1,000-5,000"
        assert plan.unions == []
        assert client.method_calls == []

    def test_one_value_list_is_direct(self, planner):
        plan = planner.compile("car", {"priceRange": ["1,000-5,000"]})

        assert plan.direct
        assert plan.key == "x:car-priceRange:1,000-5,000"

    def test_duplicate_list_values_collapse(self, planner):
        """[1, 1] is treated as the scalar 1."""
        plan = planner.compile("car", {"featureId": [1, 1]})

        assert plan.direct
        assert plan.key == "x:car-featureId:1"

    def test_intersection(self, planner):
        plan = planner.compile("car", {"priceRange": "1,000-5,000", "year": 1})

        assert not plan.direct
        assert plan.intersections == ["x:car-priceRange:1,000-5,000", "x:car-year:1"]
        assert plan.key == "r:x:car-priceRange:1,000-5,000|x:car-year:1"
        assert plan.union_key == ""

    def test_union(self, planner):
        plan = planner.compile("car", {"featureId": [1, 4]})

        assert plan.unions == ["x:car-featureId:1", "x:car-featureId:4"]
        assert plan.intersections == []
        assert plan.union_key == "r:x:car-featureId:1_x:car-featureId:4"
        assert plan.key == plan.union_key

    def test_union_and_intersection(self, planner):
        plan = planner.compile("car", {"year": 1, "featureId": [1, 4]})

        assert plan.union_key == "r:x:car-featureId:1_x:car-featureId:4"
        assert plan.key == "r:x:car-featureId:1_x:car-featureId:4|x:car-year:1"

    def test_key_is_deterministic(self, planner):
        """Same criteria give the same key."""
        criteria = {"priceRange": "1,000-5,000", "featureId": [1, 4], "year": 1}

        assert planner.compile("car", criteria).key == planner.compile("car", dict(criteria)).key

    def test_boolean_value(self, planner):
        plan = planner.compile("car", {"electric": True})

        assert plan.key == "x:car-electric:true"

    def test_integral_float_value(self, planner):
        """99.0 selects the same set as 99."""
        plan = planner.compile("car", {"year": 99.0})

        assert plan.key == "x:car-year:99"

    def test_none_criteria_raises(self, planner):
        with pytest.raises(ValidationError):
            planner.compile("car", None)

    def test_empty_criteria_raises(self, planner):
        with pytest.raises(EmptyCriteriaError, match="criteria was empty"):
            planner.compile("car", {})

    @pytest.mark.parametrize("value", [[], None, [None]])
    def test_empty_value_raises(self, planner, value):
        """A criterion without any usable value is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            planner.compile("car", {"featureId": value})

        assert exc_info.value.field_name == "featureId"
