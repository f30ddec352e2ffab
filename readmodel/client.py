"""
ReadModel - the public interface of the read model.

This module wires the registry, the write path and the read path to one Redis
client:
- register: describe an entity type
- set / delete: write and remove entities
- set_index / set_inverted_index: maintain externally sourced indexes
- get: query by criteria with sorting and paging
- quit: close the Redis connection the ReadModel created

Example:
    >>> async with ReadModel(ReadModelSettings(page_size=20)) as model:
    ...     model.register("car", Car)
    ...     await model.set("car", {"id": 1234, "make": "Honda", "priceRange": "1,000-5,000"})
    ...     result = await model.get("car", {"priceRange": "1,000-5,000"}, Sort("make"))
    ...     result.total, [car["id"] for car in result.items]

Invariants:
    - Argument validation happens before any Redis command is sent
    - Redis errors propagate to the caller unchanged
    - A client passed in by the caller is never closed by quit()
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from redis.asyncio import Redis

from .apply import EntityWriter, IndexReconciler
from .config import ReadModelSettings
from .errors import ValidationError
from .query import CacheStats, Paging, QueryPlanner, QueryResult, Sort, SortPageExecutor
from .schema import EntityTypeDef, RegisteredType, TypeRegistry

logger = logging.getLogger(__name__)


class ReadModel:
    """Indexed, sortable, paginated read model over Redis.

    Attributes:
        settings: Settings the instance was built with
        registry: Entity types known to this instance
        stats: Result set cache counters
    """

    def __init__(
        self,
        settings: Optional[ReadModelSettings] = None,
        *,
        client: Optional[Redis] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the read model.

        Args:
            settings: Configuration (loaded from environment if not provided)
            client: Existing redis.asyncio client to use instead of connecting
            log: Logger receiving diagnostic output of every component
        """
        self.settings = settings or ReadModelSettings()
        self.registry = TypeRegistry(log)
        self.stats = CacheStats()
        self._component_log = log
        self._log = log or logger
        self._external_client = client
        self._client: Optional[Redis] = client
        self._owns_client = False
        self._reconciler: Optional[IndexReconciler] = None
        self._writer: Optional[EntityWriter] = None
        self._planner: Optional[QueryPlanner] = None
        self._executor: Optional[SortPageExecutor] = None
        self._log.debug(
            "read model config",
            extra={
                "redis": self.settings.redis_endpoint,
                "page_size": self.settings.page_size,
                "temp_set_expire_seconds": self.settings.temp_set_expire_seconds,
                "external_client": client is not None,
            },
        )

    async def __aenter__(self) -> ReadModel:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.quit()

    @property
    def client(self) -> Redis:
        """The Redis client, created on first use."""
        if self._client is None:
            if self.settings.redis_url:
                self._client = Redis.from_url(self.settings.redis_url, decode_responses=True)
            else:
                self._client = Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    password=self.settings.redis_password,
                    db=self.settings.redis_db,
                    decode_responses=True,
                )
            self._owns_client = True
            self._log.info(f"Created Redis client for {self.settings.redis_endpoint}")
        return self._client

    def _get_reconciler(self) -> IndexReconciler:
        if self._reconciler is None:
            self._reconciler = IndexReconciler(self.client, self._component_log)
        return self._reconciler

    def _get_writer(self) -> EntityWriter:
        if self._writer is None:
            self._writer = EntityWriter(
                self.client, self.registry, self._get_reconciler(), self._component_log
            )
        return self._writer

    def _get_planner(self) -> QueryPlanner:
        if self._planner is None:
            self._planner = QueryPlanner(
                self.client,
                self.settings.temp_set_expire_seconds,
                stats=self.stats,
                log=self._component_log,
            )
        return self._planner

    def _get_executor(self) -> SortPageExecutor:
        if self._executor is None:
            self._executor = SortPageExecutor(
                self.client, self.settings.page_size, self._component_log
            )
        return self._executor

    def register(
        self,
        type_name: str,
        definition: Union[EntityTypeDef, Mapping[str, Any], None],
    ) -> RegisteredType:
        """Register an entity type.

        Args:
            type_name: Name of the entity type
            definition: EntityTypeDef, or a mapping accepted by
                EntityTypeDef.from_dict

        Raises:
            ConfigurationError: If the definition is invalid
        """
        if definition is not None and not isinstance(definition, EntityTypeDef):
            definition = EntityTypeDef.from_dict(definition)
        return self.registry.register(type_name, definition)

    async def set(self, type_name: str, entity: Optional[Mapping[str, Any]]) -> str:
        """Store an entity and update its indexes. Returns the entity key.

        Raises:
            ValidationError: If type or entity is missing
            NotRegisteredError: If the type was never registered
        """
        return await self._get_writer().set(type_name, entity)

    async def set_index(
        self,
        type_name: str,
        entity_id: Any,
        index_name: str,
        value: Any,
    ) -> None:
        """Index one entity by one or more external values.

        Raises:
            ValidationError: If any argument is missing
        """
        await self._get_reconciler().set_index(type_name, entity_id, index_name, value)

    async def set_inverted_index(
        self,
        type_name: str,
        index_name: str,
        value: Any,
        entity_ids: Optional[Iterable[Any]],
    ) -> None:
        """Set exactly which entities are indexed by one external value.

        Raises:
            ValidationError: If any argument is missing or entity_ids is empty
        """
        await self._get_reconciler().set_inverted_index(
            type_name, index_name, value, entity_ids
        )

    async def delete(self, type_name: str, entity_id: Any) -> None:
        """Delete an entity, its sort projection and its index memberships.

        Raises:
            ValidationError: If type or id is missing
        """
        await self._get_writer().delete(type_name, entity_id)

    async def get(
        self,
        type_name: str,
        criteria: Optional[Mapping[str, Any]],
        sort: Union[Sort, Mapping[str, int], None] = None,
        paging: Union[Paging, Mapping[str, Any], None] = None,
    ) -> QueryResult:
        """Get a sorted page of entities matching the criteria.

        Args:
            type_name: Registered entity type
            criteria: {index_name: value | [values]}; a list with several
                values matches any of them, separate fields must all match
            sort: Sort or {field_name: 1 | -1}; defaults to the type's
                default sort field, ascending
            paging: Paging or {"page_number": n, "page_size": n}

        Returns:
            QueryResult with the page items and the total match count

        Raises:
            ValidationError: If type or criteria is missing, or paging is invalid
            NotRegisteredError: If the type was never registered
            EmptyCriteriaError: If criteria is empty
            UnknownSortFieldError: If the sort field was not declared
        """
        if not type_name:
            raise ValidationError("type param required for get", "type")
        if criteria is None:
            raise ValidationError("criteria param required for get", "criteria")
        self._log.debug(f"get {type_name} {dict(criteria)!r}")

        registered = self.registry.require(type_name)
        if not isinstance(sort, Sort):
            sort = Sort.from_mapping(sort)
        if not isinstance(paging, Paging):
            paging = Paging.from_mapping(paging)

        planner = self._get_planner()
        executor = self._get_executor()
        spec = executor.resolve(registered, sort, paging)
        plan = planner.compile(type_name, criteria)
        self._log.debug(f"result set key {plan.key}")

        total = await planner.materialize(plan)
        cached = not plan.direct and total > 0
        entity_keys = await executor.sort_page(plan.key, spec, cached=cached)
        if entity_keys is None:
            self._log.debug(f"result set {plan.key} expired before sort, rebuilding")
            total = await planner.materialize(plan)
            entity_keys = await executor.sort_page(plan.key, spec)
        return await executor.load(entity_keys, total)

    async def quit(self) -> None:
        """Close the Redis client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._log.info("Redis connection closed")
        self._client = self._external_client
        self._owns_client = False
        self._reconciler = None
        self._writer = None
        self._planner = None
        self._executor = None

    close = quit
