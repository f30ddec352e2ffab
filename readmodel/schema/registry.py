"""
Type registry for the read model.

The TypeRegistry holds every entity type a ReadModel knows about. It provides:
- Registration with validation of the type definition
- Lookup by type name
- Precomputed sort modes (alpha vs numeric) per sort field

Invariants:
    - default_sort_field always names a declared sort field
    - A registered type's sort modes match its sort_fields
    - Each ReadModel owns its registry; there is no process-wide registry

Example:
    >>> registry = TypeRegistry()
    >>> registry.register("car", Car)
    >>> registry.require("car").sort_modes
    {'make': True, 'price': False}
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ..errors import ConfigurationError, NotRegisteredError
from .types import EntityTypeDef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredType:
    """An entity type accepted by the registry.

    Attributes:
        name: Type name, used as the key namespace
        definition: The registered definition
        sort_modes: Sort field name -> alpha flag
    """

    name: str
    definition: EntityTypeDef
    sort_modes: Dict[str, bool] = field(default_factory=dict)

    def is_alpha(self, sort_field: str) -> bool:
        return self.sort_modes[sort_field]


class TypeRegistry:
    """Registry of entity types by name.

    Thread-safety:
        - Registration is guarded by an internal lock
        - Lookups are lock-free
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._types: Dict[str, RegisteredType] = {}
        self._lock = threading.Lock()
        self._log = log or logger

    def register(self, type_name: str, definition: Optional[EntityTypeDef]) -> RegisteredType:
        """Register an entity type.

        Registering an existing name replaces the previous definition.

        Args:
            type_name: Name of the entity type
            definition: Shape of the entity type

        Returns:
            The registered type

        Raises:
            ConfigurationError: If the definition is incomplete or
                default_sort_field is not a declared sort field
        """
        if not type_name:
            raise ConfigurationError("type required for register")
        if definition is None:
            raise ConfigurationError("definition required for register", type_name)
        if definition.id_field is None or definition.id_field == "":
            raise ConfigurationError("id_field required for register", type_name)
        if not definition.default_sort_field:
            raise ConfigurationError("default_sort_field required for register", type_name)
        if definition.get_sort_field(definition.default_sort_field) is None:
            raise ConfigurationError(
                f"{definition.default_sort_field} is not specified as a sort field",
                type_name,
            )

        registered = RegisteredType(
            name=type_name,
            definition=definition,
            sort_modes={s.field_name: s.alpha for s in definition.sort_fields},
        )
        with self._lock:
            if type_name in self._types:
                self._log.info(f"Replacing registered entity type: {type_name}")
            self._types[type_name] = registered
        self._log.debug(
            f"Registered entity type: {type_name} "
            f"(indexed={[i.field_name for i in definition.indexed_fields]}, "
            f"sort={list(registered.sort_modes)})"
        )
        return registered

    def get(self, type_name: str) -> Optional[RegisteredType]:
        """Get a registered type by name, or None."""
        return self._types.get(type_name)

    def require(self, type_name: str) -> RegisteredType:
        """Get a registered type by name.

        Raises:
            NotRegisteredError: If the type was never registered
        """
        registered = self._types.get(type_name)
        if registered is None:
            raise NotRegisteredError(type_name)
        return registered

    def types(self) -> Iterator[RegisteredType]:
        """Iterate over all registered types."""
        yield from list(self._types.values())

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def __len__(self) -> int:
        return len(self._types)
