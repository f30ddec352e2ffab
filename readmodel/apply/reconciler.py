"""
Index set maintenance for the read model.

Index sets map one value of one indexed field to the entity keys currently
holding that value (x:{type}-{index}:{value}). This module keeps them exact:
- add: put an entity into the sets of its values (new entity)
- reconcile: drop the entity from every set of that index whose value it no
  longer has, then add (existing entity)
- set_index / set_inverted_index: maintain indexes for values that are not
  part of the entity payload

Reconciliation discovers the previous values by scanning the index prefix
instead of remembering them, so a write never depends on client-side state.

Invariants:
    - An entity is in x:{type}-{index}:{v} iff its current value(s) include v
    - Mutations are queued on the caller's MULTI pipeline; scans run before
      the pipeline executes
    - Values that stay the same are never removed, so readers see no flicker
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline

from .. import keys
from ..errors import ValidationError

logger = logging.getLogger(__name__)


def index_values(value: Any) -> List[str]:
    """Normalize an extracted index value to the distinct strings to index.

    Lists, tuples and sets yield one entry per non-None element. A scalar
    yields one entry and None yields none.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        items: Iterable[Any] = value
    else:
        items = (value,)
    result: List[str] = []
    for item in items:
        if item is None:
            continue
        formatted = keys.format_value(item)
        if formatted not in result:
            result.append(formatted)
    return result


class IndexReconciler:
    """Queues index set updates for entities.

    Example:
        >>> reconciler = IndexReconciler(client)
        >>> async with client.pipeline(transaction=True) as pipe:
        ...     await reconciler.reconcile(pipe, "car", "car:1", "featureId", [3, 4, 5])
        ...     await pipe.execute()
    """

    def __init__(self, client: Redis, log: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._log = log or logger

    def add(
        self,
        pipe: Pipeline,
        type_name: str,
        entity_key: str,
        index_name: str,
        value: Any,
    ) -> None:
        """Queue SADDs putting entity_key into the set of every value."""
        for formatted in index_values(value):
            pipe.sadd(keys.index_key(type_name, index_name, formatted), entity_key)

    async def reconcile(
        self,
        pipe: Pipeline,
        type_name: str,
        entity_key: str,
        index_name: str,
        value: Any,
    ) -> None:
        """Queue removal from stale value sets, then add the new values."""
        wanted = {
            keys.index_key(type_name, index_name, formatted)
            for formatted in index_values(value)
        }
        async for found in self._client.scan_iter(
            match=keys.index_pattern(type_name, index_name)
        ):
            existing = keys.decode(found)
            if existing in wanted:
                continue
            self._log.debug(f"removing {entity_key} from {existing}")
            pipe.srem(existing, entity_key)
        self.add(pipe, type_name, entity_key, index_name, value)

    async def set_index(
        self,
        type_name: str,
        entity_id: Any,
        index_name: str,
        value: Any,
    ) -> None:
        """Index one entity by one or more externally sourced values.

        The entity is added when it has no stored payload yet, otherwise its
        memberships for index_name are reconciled. An empty list removes the
        entity from every value of index_name.

        Raises:
            ValidationError: If any argument is missing
        """
        if not type_name:
            raise ValidationError("type param required for set_index", "type")
        if entity_id is None or entity_id == "":
            raise ValidationError("entity_id param required for set_index", "entity_id")
        if not index_name:
            raise ValidationError("index_name param required for set_index", "index_name")
        if value is None:
            raise ValidationError("value param required for set_index", "value")

        entity_key = keys.entity_key(type_name, entity_id)
        exists = await self._client.exists(entity_key)
        async with self._client.pipeline(transaction=True) as pipe:
            if exists:
                await self.reconcile(pipe, type_name, entity_key, index_name, value)
            else:
                self.add(pipe, type_name, entity_key, index_name, value)
            await pipe.execute()
        self._log.debug(f"set index {index_name}={value!r} for {entity_key}")

    async def set_inverted_index(
        self,
        type_name: str,
        index_name: str,
        value: Any,
        entity_ids: Optional[Iterable[Any]],
    ) -> None:
        """Replace the members of one value set with the given entities.

        This overwrites: entities previously in the set and not listed lose
        the membership. Other index sets are untouched.

        Raises:
            ValidationError: If any argument is missing or entity_ids is empty
        """
        if not type_name:
            raise ValidationError("type param required for set_inverted_index", "type")
        if not index_name:
            raise ValidationError(
                "index_name param required for set_inverted_index", "index_name"
            )
        if value is None:
            raise ValidationError("value param required for set_inverted_index", "value")
        if entity_ids is None:
            raise ValidationError(
                "entity_ids param required for set_inverted_index", "entity_ids"
            )
        entity_keys = [keys.entity_key(type_name, entity_id) for entity_id in entity_ids]
        if not entity_keys:
            raise ValidationError(
                "entity_ids param cannot be empty for set_inverted_index", "entity_ids"
            )

        index_key = keys.index_key(type_name, index_name, value)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(index_key)
            pipe.sadd(index_key, *entity_keys)
            await pipe.execute()
        self._log.debug(f"set inverted index {index_key} to {len(entity_keys)} entities")
