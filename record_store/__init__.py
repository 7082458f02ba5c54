"""
Transactional Record Store - small CRUD and unit-of-work core over flat records.

This package provides:

- Generic repositories (create / get / update / delete / list / save_all)
- A transaction coordinator that commits or rolls back a unit of work as one
- Equality and inclusive range query filters over committed snapshots
- In-memory and PostgreSQL storage backends
- Request handlers and a CLI over the shipped record types
  (tasks, employees, books, guestbook entries, users)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from record_store.config import Settings, get_settings
from record_store.context import AppContext, build_context
from record_store.domain import (
    Book,
    Employee,
    GuestbookEntry,
    Record,
    Task,
    User,
)
from record_store.errors import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    IllegalStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from record_store.query import QueryFilter, by_field_equals, by_range, first_by_field_equals
from record_store.repository import (
    AbstractRepository,
    MemoryBackend,
    RecordRepository,
    StorageBackend,
)
from record_store.transactions import (
    Failure,
    Outcome,
    Success,
    TransactionCoordinator,
    UnitOfWork,
)
from record_store.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Application wiring
    "AppContext",
    "build_context",
    # Records
    "Record",
    "Task",
    "Employee",
    "Book",
    "GuestbookEntry",
    "User",
    # Errors
    "StoreError",
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BusinessRuleError",
    "IllegalStateError",
    # Repositories
    "RecordRepository",
    "AbstractRepository",
    "StorageBackend",
    "MemoryBackend",
    # Transactions
    "TransactionCoordinator",
    "UnitOfWork",
    "Success",
    "Failure",
    "Outcome",
    # Queries
    "QueryFilter",
    "by_field_equals",
    "first_by_field_equals",
    "by_range",
    # Logging
    "configure_logging",
    "get_logger",
]
