"""
Error hierarchy for the Transactional Record Store.

`DomainError` subclasses describe outcomes a caller is expected to handle
(bad input, missing ids, conflicting writes, violated business rules). Inside a
unit of work they trigger a rollback and are returned as a `Failure` result.

`IllegalStateError` signals misuse of the API (e.g. nesting units of work) and
always propagates.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """Base class for every error raised by the record store."""

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return str(self)


class DomainError(StoreError):
    """Errors that roll back a unit of work and surface as a failure result."""


class ValidationError(DomainError):
    """Malformed record, missing required field or invalid query arguments."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.details: List[Dict[str, Any]] = details or []


class NotFoundError(DomainError):
    """An operation referenced an identifier that does not exist."""

    def __init__(self, record_type: str, record_id: int) -> None:
        super().__init__(f"{record_type} with id={record_id} not found")
        self.record_type = record_type
        self.record_id = record_id


class ConflictError(DomainError):
    """A concurrent commit changed data this unit of work depended on."""


class BusinessRuleError(DomainError):
    """Caller-supplied post-condition failed inside a unit of work."""


class IllegalStateError(StoreError):
    """API misuse, such as starting a unit of work inside another one."""


__all__ = [
    "StoreError",
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BusinessRuleError",
    "IllegalStateError",
]
