"""
Query module for the read model - the read path.

This module handles:
- Compiling criteria into union/intersection plans over index sets
- Materializing and caching result sets with a TTL
- Sorting, paging and resolving results

Invariants:
    - Sort and paging are validated before any store command
    - total is the size of the full result set, independent of paging
"""

from .executor import (
    Paging,
    QueryResult,
    Sort,
    SortDirection,
    SortPageExecutor,
    SortSpec,
)
from .planner import CacheStats, QueryPlan, QueryPlanner

__all__ = [
    # Planning
    "QueryPlan",
    "QueryPlanner",
    "CacheStats",
    # Execution
    "Sort",
    "SortDirection",
    "Paging",
    "SortSpec",
    "QueryResult",
    "SortPageExecutor",
]
