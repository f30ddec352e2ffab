"""
Read Model - indexed, sortable, paginated read models on Redis.

This package turns Redis into a queryable store for denormalized entities:
- Entity types are registered with an id, indexed fields and sort fields
- Writes keep one Redis set per (type, indexed field, value) exact
- Queries combine those sets by union/intersection, cache the combination
  for a few seconds, then SORT and page it

Key layout:
    {type}:{id}                 entity JSON
    h:{type}:{id}               sort projection hash
    x:{type}-{index}:{value}    index set of entity keys
    r:{sources}                 cached result set (TTL)

Invariants:
    - Every write is one MULTI/EXEC batch
    - Index membership always matches the latest written values
    - Cached result sets expire and are never invalidated by writes

How to change safely:
    - Keep the key layout stable; existing Redis data depends on it
    - Keep validation ahead of the first Redis command in every operation
"""

__version__ = "1.0.0"

from .client import ReadModel
from .config import ReadModelSettings
from .errors import (
    ConfigurationError,
    EmptyCriteriaError,
    NotRegisteredError,
    ReadModelError,
    StoreError,
    UnknownSortFieldError,
    ValidationError,
)
from .observability import setup_logging
from .query import CacheStats, Paging, QueryResult, Sort, SortDirection
from .schema import (
    ComputedValue,
    EntityTypeDef,
    FieldLookup,
    IndexField,
    SortField,
    TypeRegistry,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "ReadModel",
    "ReadModelSettings",
    "setup_logging",
    # Schema
    "EntityTypeDef",
    "IndexField",
    "SortField",
    "FieldLookup",
    "ComputedValue",
    "TypeRegistry",
    # Query
    "Sort",
    "SortDirection",
    "Paging",
    "QueryResult",
    "CacheStats",
    # Errors
    "ReadModelError",
    "ConfigurationError",
    "ValidationError",
    "NotRegisteredError",
    "EmptyCriteriaError",
    "UnknownSortFieldError",
    "StoreError",
]
