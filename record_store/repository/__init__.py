"""
Repository package for the Transactional Record Store.

Re-exports the repository/backend contracts and the concrete backends so
downstream code can import from `record_store.repository` directly.
"""

from record_store.repository.abstract import (
    AbstractRepository,
    AutocommitRepository,
    RecordRepository,
    StorageBackend,
    TransactionContext,
)
from record_store.repository.memory import MemoryBackend
from record_store.repository.postgres import PostgresBackend

__all__ = [
    # Contracts
    "AbstractRepository",
    "AutocommitRepository",
    "RecordRepository",
    "StorageBackend",
    "TransactionContext",
    # Backends
    "MemoryBackend",
    "PostgresBackend",
]
