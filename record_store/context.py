"""
Application context.

Built once at process start and passed explicitly to handlers and CLI
commands; it owns the storage backend, the transaction coordinator and the
notifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from record_store.config import Settings, get_settings
from record_store.domain.records import Record
from record_store.notifications import LoggingNotifier, Notifier
from record_store.query import QueryFilter
from record_store.repository.abstract import AutocommitRepository, StorageBackend
from record_store.repository.memory import MemoryBackend
from record_store.repository.postgres import PostgresBackend
from record_store.transactions.coordinator import TransactionCoordinator
from record_store.utils.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R", bound=Record)


def create_backend(settings: Settings) -> StorageBackend:
    """Instantiate the backend named by `settings.store_backend`."""
    if settings.store_backend == "memory":
        return MemoryBackend()
    if settings.store_backend == "postgres":
        return PostgresBackend(settings=settings)
    raise ValueError(f"Unknown store backend '{settings.store_backend}'. Available: memory, postgres")


@dataclass
class AppContext:
    settings: Settings
    backend: StorageBackend
    coordinator: TransactionCoordinator
    notifier: Notifier

    def repository(self, record_type: Type[R]) -> AutocommitRepository[R]:
        """Repository over committed state; each mutating call autocommits."""
        return self.backend.repository(record_type)

    def query(self, record_type: Type[R]) -> QueryFilter[R]:
        return QueryFilter(self.repository(record_type))

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_context(
    settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
    notifier: Optional[Notifier] = None,
) -> AppContext:
    """
    Wire settings, backend, coordinator and notifier together.

    Explicit `backend` / `notifier` arguments take precedence over settings.
    """
    settings = settings or get_settings()
    backend = backend or create_backend(settings)
    notifier = notifier or LoggingNotifier(sender=settings.notify_sender)
    log.debug("Application context built", extra={"backend": backend.name})
    return AppContext(
        settings=settings,
        backend=backend,
        coordinator=TransactionCoordinator(backend),
        notifier=notifier,
    )


__all__ = ["AppContext", "build_context", "create_backend"]
