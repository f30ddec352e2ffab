"""
Unit tests for the type registry.

Tests cover:
- Type registration
- Registration validation
- Sort mode precomputation
- Lookup
"""

import pytest

from readmodel.errors import ConfigurationError, NotRegisteredError
from readmodel.schema.registry import TypeRegistry
from readmodel.schema.types import EntityTypeDef, IndexField, SortField


def car_type(**overrides):
    values = dict(
        id_field="id",
        indexed_fields=(IndexField("priceRange"),),
        sort_fields=(SortField("make", alpha=True), SortField("price")),
        default_sort_field="make",
    )
    values.update(overrides)
    return EntityTypeDef(**values)


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_register_type(self):
        """Can register and look up a type."""
        registry = TypeRegistry()
        Car = car_type()

        registered = registry.register("car", Car)

        assert registered.name == "car"
        assert registered.definition == Car
        assert registry.get("car") is registered
        assert registry.require("car") is registered
        assert "car" in registry
        assert len(registry) == 1

    def test_sort_modes_precomputed(self):
        """Alpha flag of every sort field is available by name."""
        registry = TypeRegistry()

        registered = registry.register("car", car_type())

        assert registered.sort_modes == {"make": True, "price": False}
        assert registered.is_alpha("make") is True
        assert registered.is_alpha("price") is False

    def test_default_sort_field_not_declared_raises(self):
        """default_sort_field must be one of the sort fields."""
        registry = TypeRegistry()

        with pytest.raises(ConfigurationError, match="color is not specified as a sort field"):
            registry.register("car", car_type(default_sort_field="color"))

        assert "car" not in registry

    def test_no_sort_fields_raises(self):
        """A default sort field cannot be declared without sort fields."""
        registry = TypeRegistry()

        with pytest.raises(ConfigurationError):
            registry.register("car", car_type(sort_fields=()))

    @pytest.mark.parametrize(
        "type_name,definition",
        [
            ("", car_type()),
            (None, car_type()),
            ("car", None),
            ("car", car_type(id_field=None)),
            ("car", car_type(id_field="")),
            ("car", car_type(default_sort_field=None)),
        ],
    )
    def test_incomplete_registration_raises(self, type_name, definition):
        """Missing type, definition, id_field or default_sort_field fails."""
        registry = TypeRegistry()

        with pytest.raises(ConfigurationError):
            registry.register(type_name, definition)

    def test_error_carries_type_name(self):
        """ConfigurationError reports the offending type."""
        registry = TypeRegistry()

        with pytest.raises(ConfigurationError) as exc_info:
            registry.register("car", car_type(default_sort_field="color"))

        assert exc_info.value.type_name == "car"
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_register_again_replaces(self):
        """Registering the same name twice keeps the latest definition."""
        registry = TypeRegistry()
        registry.register("car", car_type())

        registry.register("car", car_type(default_sort_field="price"))

        assert registry.require("car").definition.default_sort_field == "price"
        assert len(registry) == 1

    def test_require_unknown_raises(self):
        """require() fails for unregistered types."""
        registry = TypeRegistry()

        with pytest.raises(NotRegisteredError) as exc_info:
            registry.require("boat")

        assert exc_info.value.type_name == "boat"

    def test_get_unknown_returns_none(self):
        """get() returns None for unregistered types."""
        assert TypeRegistry().get("boat") is None

    def test_iterate_types(self):
        """Can iterate over registered types."""
        registry = TypeRegistry()
        registry.register("car", car_type())
        registry.register("truck", car_type())

        assert {t.name for t in registry.types()} == {"car", "truck"}
