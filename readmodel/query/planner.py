"""
Query planning for the read model.

A criteria mapping (index name -> value or list of values) is compiled into a
QueryPlan of union and intersection sources over index sets:
- a list with more than one distinct value becomes union sources
- a scalar, or a list with one distinct value, becomes an intersection source

Materialization stores the combined set under a canonical key derived from
the ordered, deduplicated sources, with a TTL. Identical criteria issued
while that key is alive reuse it instead of recomputing. Liveness and
cardinality are read together in one MULTI, and a set about to expire is
rebuilt rather than reused, so an expired entry is never read as empty.

Invariants:
    - The plan's key depends only on the criteria (and their order)
    - Every materialized result set has the configured TTL; expiry is left to
      Redis
    - Cached result sets are never invalidated by writes, so results may be
      stale for up to one TTL
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from redis.asyncio import Redis

from .. import keys
from ..apply.reconciler import index_values
from ..errors import EmptyCriteriaError, ValidationError

logger = logging.getLogger(__name__)

# Cached sets closer than this to expiry are rebuilt instead of reused.
MIN_REUSE_TTL_MS = 250


@dataclass
class CacheStats:
    """Counts of result set materializations and reuses.

    Attributes:
        materialized: SUNIONSTORE/SINTERSTORE calls issued
        reused: Times a live cached result set was used instead
    """

    materialized: int = 0
    reused: int = 0


@dataclass
class QueryPlan:
    """Compiled criteria.

    Attributes:
        unions: Index keys combined by union
        intersections: Index keys combined by intersection
        union_key: Cache key of the union ('' when there are no unions)
        key: Key of the final result set
    """

    unions: List[str] = field(default_factory=list)
    intersections: List[str] = field(default_factory=list)
    union_key: str = ""
    key: str = ""

    @property
    def direct(self) -> bool:
        """True when the result is a single index set used as-is."""
        return not self.unions and len(self.intersections) == 1


def _append_unique(target: List[str], item: str) -> None:
    if item not in target:
        target.append(item)


class QueryPlanner:
    """Compiles criteria and materializes result sets.

    Example:
        >>> planner = QueryPlanner(client, expire_seconds=5)
        >>> plan = planner.compile("car", {"priceRange": "1,000-5,000", "featureId": [1, 4]})
        >>> total = await planner.materialize(plan)
    """

    def __init__(
        self,
        client: Redis,
        expire_seconds: int,
        stats: Optional[CacheStats] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self.expire_seconds = expire_seconds
        self.stats = stats if stats is not None else CacheStats()
        self._log = log or logger

    def compile(self, type_name: str, criteria: Optional[Mapping[str, Any]]) -> QueryPlan:
        """Compile criteria into a plan. Does not touch the store.

        Raises:
            ValidationError: If criteria is None or a criterion is an empty list
            EmptyCriteriaError: If criteria has no entries
        """
        if criteria is None:
            raise ValidationError("criteria param required for get", "criteria")
        if not criteria:
            raise EmptyCriteriaError()

        plan = QueryPlan()
        for index_name, value in criteria.items():
            values = index_values(value)
            if not values:
                raise ValidationError(
                    f"criteria value for '{index_name}' cannot be empty", index_name
                )
            sources = [keys.index_key(type_name, index_name, v) for v in values]
            if len(sources) > 1:
                for source in sources:
                    _append_unique(plan.unions, source)
            else:
                _append_unique(plan.intersections, sources[0])

        if plan.direct:
            plan.key = plan.intersections[0]
        else:
            plan.key = keys.result_set_key(plan.unions, plan.intersections)
        if plan.unions:
            plan.union_key = keys.result_set_key(plan.unions, ())
        return plan

    async def materialize(self, plan: QueryPlan) -> int:
        """Make sure plan.key holds the result set and return its cardinality."""
        if plan.direct:
            return await self._client.scard(plan.key)

        if plan.unions:
            union_count = await self._ensure_union(plan.union_key, plan.unions)
            if not plan.intersections or union_count == 0:
                return union_count
            return await self._ensure_intersection(
                plan.key, plan.intersections + [plan.union_key], plan
            )

        return await self._ensure_intersection(plan.key, plan.intersections)

    async def _live_count(self, result_key: str) -> Optional[int]:
        """Cardinality of a cached result set that outlives this query, else None.

        TTL and cardinality are read in one MULTI. A set that is missing,
        empty or within MIN_REUSE_TTL_MS of expiry is reported as absent.
        """
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.pttl(result_key)
            pipe.scard(result_key)
            ttl, count = await pipe.execute()
        if not count or 0 <= ttl < MIN_REUSE_TTL_MS:
            return None
        return count

    async def _ensure_union(self, result_key: str, sources: List[str]) -> int:
        count = await self._live_count(result_key)
        if count is not None:
            self.stats.reused += 1
            self._log.debug(f"using existing union {result_key}")
            return count
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.sunionstore(result_key, sources)
            pipe.expire(result_key, self.expire_seconds)
            count, _ = await pipe.execute()
        self.stats.materialized += 1
        return count

    async def _ensure_intersection(
        self,
        result_key: str,
        sources: List[str],
        plan: Optional[QueryPlan] = None,
    ) -> int:
        """Materialize an intersection; plan is given when a union is a source."""
        count = await self._live_count(result_key)
        if count is not None:
            self.stats.reused += 1
            self._log.debug(f"using existing intersection {result_key}")
            return count

        union_key = plan.union_key if plan is not None else None
        async with self._client.pipeline(transaction=True) as pipe:
            if union_key:
                pipe.exists(union_key)
            pipe.sinterstore(result_key, sources)
            pipe.expire(result_key, self.expire_seconds)
            results = await pipe.execute()
        self.stats.materialized += 1
        if not union_key or results[0]:
            return results[-2]

        # The union expired between its check and the SINTERSTORE above.
        self._log.debug(f"union {union_key} expired, rebuilding {result_key}")
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.sunionstore(union_key, plan.unions)
            pipe.expire(union_key, self.expire_seconds)
            pipe.sinterstore(result_key, sources)
            pipe.expire(result_key, self.expire_seconds)
            _, _, count, _ = await pipe.execute()
        self.stats.materialized += 1
        return count
