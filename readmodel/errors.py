"""
Error types for the read model.

This module defines all exception types raised by the read model:
- ReadModelError: Base exception
- ConfigurationError: Bad or incomplete type registration
- ValidationError: Missing or invalid call arguments
- NotRegisteredError: Operation on an unregistered entity type
- EmptyCriteriaError: Query without criteria
- UnknownSortFieldError: Sort on a field that was not declared

Store failures are not wrapped. Anything Redis raises reaches the caller
as-is; StoreError is an alias for redis-py's base exception so callers can
catch it without importing redis.

Invariants:
    - All read model errors inherit from ReadModelError
    - Validation errors are raised before any store command is sent
    - Error messages are actionable
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from redis.exceptions import RedisError

StoreError = RedisError


class ReadModelError(Exception):
    """Base exception for all read model errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "READMODEL_ERROR"
        self.details = details or {}


class ConfigurationError(ReadModelError):
    """Entity type registration is invalid.

    Raised when:
    - Type name is empty
    - Definition, id_field or default_sort_field is missing
    - default_sort_field is not a declared sort field
    """

    def __init__(self, message: str, type_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details={"type_name": type_name},
        )
        self.type_name = type_name


class ValidationError(ReadModelError):
    """A required argument is missing or invalid."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name},
        )
        self.field_name = field_name


class NotRegisteredError(ReadModelError):
    """The entity type was never registered."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"'{type_name}' is not registered in the read model",
            code="NOT_REGISTERED",
            details={"type_name": type_name},
        )
        self.type_name = type_name


class EmptyCriteriaError(ReadModelError):
    """Query criteria contained no fields."""

    def __init__(self, message: str = "criteria was empty") -> None:
        super().__init__(message, code="EMPTY_CRITERIA")


class UnknownSortFieldError(ReadModelError):
    """Sort requested on a field not declared as a sort field.

    Attributes:
        field_name: The requested sort field
        type_name: The entity type being queried
    """

    def __init__(self, field_name: str, type_name: str) -> None:
        super().__init__(
            f"'{field_name}' is not a configured sort field for entity type '{type_name}'",
            code="UNKNOWN_SORT_FIELD",
            details={"field_name": field_name, "type_name": type_name},
        )
        self.field_name = field_name
        self.type_name = type_name
