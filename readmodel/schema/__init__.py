"""
Schema module for the read model.

This module describes entity types to the read model:
- Value sources (FieldLookup, ComputedValue) for reading ids and field values
- Field specs (IndexField, SortField) and EntityTypeDef
- TypeRegistry for registration and lookup

Invariants:
    - Every registered type has a default sort field among its sort fields
    - Index and sort values are always read through a ValueSource
"""

from .registry import RegisteredType, TypeRegistry
from .types import (
    ComputedValue,
    EntityTypeDef,
    FieldLookup,
    IndexField,
    SortField,
    ValueSource,
    value_source,
)

__all__ = [
    # Types
    "ValueSource",
    "FieldLookup",
    "ComputedValue",
    "value_source",
    "IndexField",
    "SortField",
    "EntityTypeDef",
    # Registry
    "TypeRegistry",
    "RegisteredType",
]
