"""
Redis key scheme for the read model.

Key layout:
    {type}:{id}                     JSON payload of an entity
    h:{type}:{id}                   sort projection hash (sort field -> value)
    x:{type}-{index}:{value}        index set, members are entity keys
    r:{sources}                     cached union/intersection result set

Index values and ids are stringified with format_value() on both the write
and the query path, so the same logical value always lands in the same set.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

SORT_HASH_PREFIX = "h:"
INDEX_PREFIX = "x:"
RESULT_SET_PREFIX = "r:"

UNION_SEPARATOR = "_"
INTERSECTION_SEPARATOR = "|"

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")
_SEPARATOR_SPECIAL = re.compile(r"([\\_|])")


def format_value(value: Any) -> str:
    """Stringify an id or index value for use inside a key.

    Booleans become "true"/"false" and integral floats drop the fraction, so
    1, 1.0 and "1" all land in the same set.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_glob(text: str) -> str:
    """Escape characters that SCAN MATCH treats as glob syntax."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


def escape_separators(source: str) -> str:
    """Escape result set key separators inside one source key."""
    return _SEPARATOR_SPECIAL.sub(r"\\\1", source)


def entity_key(type_name: str, entity_id: Any) -> str:
    return f"{type_name}:{format_value(entity_id)}"


def sort_hash_key(key_of_entity: str) -> str:
    return SORT_HASH_PREFIX + key_of_entity


def sort_by_pattern(field_name: str) -> str:
    """SORT BY pattern reading a field from each member's sort projection."""
    return f"{SORT_HASH_PREFIX}*->{field_name}"


def index_prefix(type_name: str, index_name: str) -> str:
    return f"{INDEX_PREFIX}{type_name}-{index_name}:"


def index_key(type_name: str, index_name: str, value: Any) -> str:
    return index_prefix(type_name, index_name) + format_value(value)


def index_pattern(type_name: str, index_name: str) -> str:
    """SCAN pattern matching every value set of one index."""
    return escape_glob(index_prefix(type_name, index_name)) + "*"


def type_index_pattern(type_name: str) -> str:
    """SCAN pattern matching every index set of an entity type."""
    return escape_glob(f"{INDEX_PREFIX}{type_name}-") + "*"


def result_set_key(unions: Iterable[str], intersections: Iterable[str]) -> str:
    """Canonical cache key for a combination of source sets.

    Union sources are joined with '_', intersection sources with '|'. When
    both are present the union part comes first. Separators and backslashes
    inside a source are backslash-escaped, so distinct criteria never share a
    key.
    """
    union_part = UNION_SEPARATOR.join(escape_separators(s) for s in unions)
    intersection_part = INTERSECTION_SEPARATOR.join(
        escape_separators(s) for s in intersections
    )
    if union_part and intersection_part:
        return f"{RESULT_SET_PREFIX}{union_part}{INTERSECTION_SEPARATOR}{intersection_part}"
    return RESULT_SET_PREFIX + union_part + intersection_part


def decode(key: Any) -> str:
    """Return a key as str whether or not the client decodes responses."""
    if isinstance(key, bytes):
        return key.decode("utf-8")
    return key
