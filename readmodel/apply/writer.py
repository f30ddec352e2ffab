"""
Entity writes for the read model.

The EntityWriter owns the entity write path:
- set: store the JSON payload, the sort projection and the index memberships
- delete: remove the payload, the sort projection and every membership

Each call sends its mutations as one MULTI/EXEC pipeline, so a concurrent
reader sees either the state before or after the write, never a mix. The
existence check that picks add vs reconcile runs before the pipeline and is
not guarded against a concurrent writer on the same entity.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline

from .. import keys
from ..errors import ValidationError
from ..schema import RegisteredType, TypeRegistry
from .reconciler import IndexReconciler

logger = logging.getLogger(__name__)


class EntityWriter:
    """Writes and deletes entities of registered types.

    Example:
        >>> writer = EntityWriter(client, registry, IndexReconciler(client))
        >>> await writer.set("car", {"id": 1234, "make": "Honda", "priceRange": "1,000-5,000"})
        >>> await writer.delete("car", 1234)
    """

    def __init__(
        self,
        client: Redis,
        registry: TypeRegistry,
        reconciler: IndexReconciler,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._registry = registry
        self._reconciler = reconciler
        self._log = log or logger

    async def set(self, type_name: str, entity: Optional[Mapping[str, Any]]) -> str:
        """Store an entity and bring its indexes up to date.

        Args:
            type_name: Registered entity type
            entity: The entity mapping (must be JSON serializable)

        Returns:
            The entity key

        Raises:
            ValidationError: If type or entity is missing, or the id is None
            NotRegisteredError: If the type was never registered
        """
        if not type_name:
            raise ValidationError("type param required for set", "type")
        if entity is None:
            raise ValidationError("entity param required for set", "entity")

        registered = self._registry.require(type_name)
        definition = registered.definition

        entity_id = definition.id_source.extract(entity)
        if entity_id is None:
            raise ValidationError(f"entity has no id for type '{type_name}'", "id")
        entity_key = keys.entity_key(type_name, entity_id)
        payload = json.dumps(entity)

        exists = await self._client.exists(entity_key)

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(entity_key, payload)
            self._queue_sort_projection(pipe, registered, entity_key, entity)

            for index in definition.indexed_fields:
                value = index.source.extract(entity)
                if exists:
                    await self._reconciler.reconcile(
                        pipe, type_name, entity_key, index.field_name, value
                    )
                else:
                    self._reconciler.add(pipe, type_name, entity_key, index.field_name, value)

            await pipe.execute()

        self._log.debug(f"{'updated' if exists else 'created'} {entity_key}")
        return entity_key

    def _queue_sort_projection(
        self,
        pipe: Pipeline,
        registered: RegisteredType,
        entity_key: str,
        entity: Mapping[str, Any],
    ) -> None:
        hash_key = keys.sort_hash_key(entity_key)
        for sort_field in registered.definition.sort_fields:
            sort_value = sort_field.source.extract(entity)
            if sort_value is None:
                pipe.hdel(hash_key, sort_field.field_name)
            else:
                pipe.hset(hash_key, sort_field.field_name, keys.format_value(sort_value))

    async def delete(self, type_name: str, entity_id: Any) -> None:
        """Delete an entity with its sort projection and index memberships.

        Memberships are found by scanning every index set of the type, so
        externally maintained indexes (set_index, set_inverted_index) are
        cleaned up too.

        Raises:
            ValidationError: If type or id is missing
        """
        if not type_name:
            raise ValidationError("type param required for delete", "type")
        if entity_id is None or entity_id == "":
            raise ValidationError("id param required for delete", "id")

        entity_key = keys.entity_key(type_name, entity_id)

        async with self._client.pipeline(transaction=True) as pipe:
            async for index_key in self._client.scan_iter(
                match=keys.type_index_pattern(type_name)
            ):
                pipe.srem(index_key, entity_key)
            pipe.delete(keys.sort_hash_key(entity_key))
            pipe.delete(entity_key)
            await pipe.execute()

        self._log.debug(f"deleted {entity_key}")
