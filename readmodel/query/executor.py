"""
Sorting, paging and resolving query results.

The executor runs SORT over a materialized result set, weighting each member
by a field of its sort projection (BY h:*->{field}), then resolves the page
of entity keys to payloads with MGET.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from redis.asyncio import Redis

from .. import keys
from ..errors import UnknownSortFieldError, ValidationError
from ..schema import RegisteredType

logger = logging.getLogger(__name__)


class SortDirection(Enum):
    """Sort direction of query results."""

    ASC = 1
    DESC = -1


@dataclass(frozen=True)
class Sort:
    """Requested ordering.

    Attributes:
        field: Sort field name (None = the type's default sort field)
        direction: Ascending or descending
    """

    field: Optional[str] = None
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, int]]) -> Sort:
        """Create from {field_name: 1 | -1}; only the first entry is used."""
        if not data:
            return cls()
        field_name, direction = next(iter(data.items()))
        return cls(
            field=field_name,
            direction=SortDirection.DESC if direction == -1 else SortDirection.ASC,
        )


@dataclass(frozen=True)
class Paging:
    """Requested page window.

    Attributes:
        page_number: 1-based page number
        page_size: Items per page (None = configured default)
    """

    page_number: int = 1
    page_size: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Paging:
        """Create from {"page_number": n, "page_size": n}; both optional."""
        if not data:
            return cls()
        return cls(
            page_number=data.get("page_number") or 1,
            page_size=data.get("page_size"),
        )


@dataclass
class QueryResult:
    """One page of query results.

    Attributes:
        items: Entities of the page, in sort order
        total: Size of the whole result set before paging
    """

    items: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class SortSpec:
    """A Sort and Paging checked against a registered type."""

    field: str
    alpha: bool
    desc: bool
    offset: int
    count: int


class SortPageExecutor:
    """Sorts, pages and resolves result sets."""

    def __init__(
        self,
        client: Redis,
        default_page_size: int,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self.default_page_size = default_page_size
        self._log = log or logger

    def resolve(
        self,
        registered: RegisteredType,
        sort: Optional[Sort] = None,
        paging: Optional[Paging] = None,
    ) -> SortSpec:
        """Validate sort and paging for a type without touching the store.

        Raises:
            UnknownSortFieldError: If the sort field was not declared
            ValidationError: If page number or page size is below 1
        """
        sort = sort or Sort()
        paging = paging or Paging()

        sort_field = sort.field or registered.definition.default_sort_field
        if sort_field not in registered.sort_modes:
            raise UnknownSortFieldError(sort_field, registered.name)

        page_size = paging.page_size if paging.page_size is not None else self.default_page_size
        if page_size < 1:
            raise ValidationError(f"page_size must be >= 1, got {page_size}", "page_size")
        if paging.page_number < 1:
            raise ValidationError(
                f"page_number must be >= 1, got {paging.page_number}", "page_number"
            )

        return SortSpec(
            field=sort_field,
            alpha=registered.is_alpha(sort_field),
            desc=sort.direction is SortDirection.DESC,
            offset=(paging.page_number - 1) * page_size,
            count=page_size,
        )

    async def sort_page(
        self,
        result_key: str,
        spec: SortSpec,
        cached: bool = False,
    ) -> Optional[List[str]]:
        """Sort and page result_key, returning the entity keys of the page.

        SORT runs in one MULTI with an EXISTS of result_key. For a cached
        result set (cached=True) a missing key means it expired after it was
        materialized, and None is returned so the caller can rebuild it.
        """
        by = keys.sort_by_pattern(spec.field)
        self._log.debug(
            f"sort {result_key} BY {by}{' ALPHA' if spec.alpha else ''}"
            f"{' DESC' if spec.desc else ''} LIMIT {spec.offset} {spec.count}"
        )
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.sort(
                result_key,
                start=spec.offset,
                num=spec.count,
                by=by,
                desc=spec.desc,
                alpha=spec.alpha,
            )
            pipe.exists(result_key)
            entity_keys, present = await pipe.execute()
        if cached and not present:
            return None
        self._log.debug(f"found {len(entity_keys)} items")
        return entity_keys

    async def load(self, entity_keys: List[str], total: int) -> QueryResult:
        """Fetch the entities of a page with MGET."""
        if not entity_keys:
            return QueryResult(items=[], total=total)

        payloads = await self._client.mget(entity_keys)
        # A payload can be gone if the entity was deleted after the result
        # set was materialized.
        items = [json.loads(payload) for payload in payloads if payload is not None]
        return QueryResult(items=items, total=total)
