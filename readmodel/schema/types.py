"""
Type definitions for read model entity types.

This module defines how an entity type is described to the read model:
- ValueSource: how a value is read from an entity (FieldLookup, ComputedValue)
- IndexField: a field entities can be filtered by
- SortField: a field results can be ordered by
- EntityTypeDef: identity, index fields and sort fields of one entity type

Entities themselves are plain mappings (decoded JSON objects). Every place
that needs an id, an index value or a sort value goes through a ValueSource,
so direct field reads and derived values are handled the same way.

Example:
    >>> Car = EntityTypeDef(
    ...     id_field="id",
    ...     indexed_fields=(
    ...         IndexField("priceRange"),
    ...         IndexField("year", get_value=lambda car: car["yearOfManufacture"]),
    ...         IndexField("featureId", get_value=lambda car: car["featureIds"]),
    ...     ),
    ...     sort_fields=(SortField("make", alpha=True), SortField("price")),
    ...     default_sort_field="make",
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

Extractor = Callable[[Mapping[str, Any]], Any]


class ValueSource:
    """Reads one value out of an entity."""

    def extract(self, entity: Mapping[str, Any]) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class FieldLookup(ValueSource):
    """Reads a top-level field; a missing field yields None."""

    field_name: str

    def extract(self, entity: Mapping[str, Any]) -> Any:
        return entity.get(self.field_name)


@dataclass(frozen=True)
class ComputedValue(ValueSource):
    """Derives a value by calling a function with the entity."""

    func: Extractor

    def extract(self, entity: Mapping[str, Any]) -> Any:
        return self.func(entity)


def value_source(spec: Union[str, Extractor, ValueSource]) -> ValueSource:
    """Build a ValueSource from a field name or a callable.

    Raises:
        TypeError: If spec is neither a string nor callable
    """
    if isinstance(spec, ValueSource):
        return spec
    if isinstance(spec, str):
        return FieldLookup(spec)
    if callable(spec):
        return ComputedValue(spec)
    raise TypeError(f"Cannot read values with {type(spec).__name__}; expected field name or callable")


@dataclass(frozen=True)
class IndexField:
    """A field entities are indexed by.

    If the extracted value is a list, tuple or set, the entity is indexed
    under every element. A scalar gives a single membership and None gives
    none.

    Attributes:
        field_name: Index name used in criteria and in index keys
        get_value: Optional extractor; defaults to reading field_name
    """

    field_name: str
    get_value: Optional[Extractor] = None

    @property
    def source(self) -> ValueSource:
        return value_source(self.get_value or self.field_name)


@dataclass(frozen=True)
class SortField:
    """A field query results can be sorted by.

    Attributes:
        field_name: Sort field name, stored in the entity's sort projection
        alpha: Compare lexically (True) or numerically (False)
        get_value: Optional extractor; defaults to reading field_name
    """

    field_name: str
    alpha: bool = False
    get_value: Optional[Extractor] = None

    @property
    def source(self) -> ValueSource:
        return value_source(self.get_value or self.field_name)


@dataclass(frozen=True)
class EntityTypeDef:
    """Shape of one entity type.

    Attributes:
        id_field: Field name holding the id, or a callable returning it
        indexed_fields: Fields maintained as index sets
        sort_fields: Fields stored in the sort projection
        default_sort_field: Sort field used when a query names none

    Validation happens on registration (see TypeRegistry.register) so an
    incomplete definition can still be built and inspected.
    """

    id_field: Union[str, Extractor, None]
    indexed_fields: tuple[IndexField, ...] = ()
    sort_fields: tuple[SortField, ...] = ()
    default_sort_field: Optional[str] = None

    @property
    def id_source(self) -> ValueSource:
        return value_source(self.id_field)

    def get_sort_field(self, name: str) -> Optional[SortField]:
        for sort_field in self.sort_fields:
            if sort_field.field_name == name:
                return sort_field
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntityTypeDef:
        """Create from a plain mapping.

        Accepts the keys id_field, indexed_fields, sort_fields and
        default_sort_field. Field entries may be IndexField/SortField
        instances or mappings with field_name, get_value and (sort only)
        alpha.
        """

        def _index(entry: Any) -> IndexField:
            if isinstance(entry, IndexField):
                return entry
            return IndexField(field_name=entry["field_name"], get_value=entry.get("get_value"))

        def _sort(entry: Any) -> SortField:
            if isinstance(entry, SortField):
                return entry
            return SortField(
                field_name=entry["field_name"],
                alpha=bool(entry.get("alpha", False)),
                get_value=entry.get("get_value"),
            )

        return cls(
            id_field=data.get("id_field"),
            indexed_fields=tuple(_index(e) for e in data.get("indexed_fields") or ()),
            sort_fields=tuple(_sort(e) for e in data.get("sort_fields") or ()),
            default_sort_field=data.get("default_sort_field"),
        )
