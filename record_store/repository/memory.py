"""
In-memory storage backend.

Each record type owns a `_Collection`: an insertion-ordered row map that is
never mutated in place. Commits build a new map and swap it in, so readers
always see a complete committed state and a transaction can keep the map it
first saw as a consistent snapshot.

Concurrency is optimistic: a transaction remembers each collection's version
when it first touches it, and commit fails with ConflictError if another commit
bumped the version of a collection it read in the meantime. Blind creates
(fresh ids, nothing read) are merged onto the latest committed rows instead. Commit itself holds the locks of every
touched collection (acquired in name order) while it validates and publishes.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Type

from record_store.domain.records import Record
from record_store.errors import ConflictError, IllegalStateError
from record_store.repository.abstract import (
    AbstractRepository,
    R,
    StorageBackend,
    TransactionContext,
)
from record_store.utils.logging import get_logger

log = get_logger(__name__)


class _Collection:
    """Authoritative committed rows for one record type."""

    def __init__(self, record_type: Type[Record]) -> None:
        self.record_type = record_type
        self.name = record_type.table_name or record_type.__name__
        self.rows: Dict[int, Record] = {}
        self.version = 0
        self.lock = threading.Lock()
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def reserve_id(self) -> int:
        # Reserved ids are burned even if the transaction rolls back.
        with self._id_lock:
            return next(self._ids)

    def publish(self, rows: Dict[int, Record]) -> None:
        """Swap in a new committed row map. Caller must hold `lock`."""
        self.rows = rows
        self.version += 1


@dataclass
class _PendingChanges:
    collection: _Collection
    base_version: int
    base_rows: Dict[int, Record]
    # None marks a delete; key order follows first write.
    writes: Dict[int, Optional[Record]] = field(default_factory=dict)
    # Set once the transaction observed committed rows (get, list, update, delete).
    read: bool = False

    def lookup(self, record_id: int) -> Optional[Record]:
        self.read = True
        if record_id in self.writes:
            return self.writes[record_id]
        return self.base_rows.get(record_id)

    def view(self) -> Iterator[Record]:
        self.read = True
        for record_id, record in self.base_rows.items():
            if record_id in self.writes:
                pending = self.writes[record_id]
                if pending is not None:
                    yield pending
            else:
                yield record
        for record_id, pending in self.writes.items():
            if record_id not in self.base_rows and pending is not None:
                yield pending

    def merged(self) -> Dict[int, Record]:
        rows = dict(self.collection.rows)
        for record_id, pending in self.writes.items():
            if pending is None:
                rows.pop(record_id, None)
            else:
                rows[record_id] = pending
        return rows


class MemoryRepository(AbstractRepository[R]):
    """
    Transactional view of one collection; writes land in the owning context.
    """

    def __init__(self, context: "MemoryTransaction", record_type: Type[R]) -> None:
        self._context = context
        self.record_type = record_type

    def _changes(self) -> _PendingChanges:
        return self._context._changes_for(self.record_type)

    def create(self, record: R) -> R:
        prepared = self._prepare_new(record)
        changes = self._changes()
        stored = prepared.with_id(changes.collection.reserve_id())
        changes.writes[stored.id] = stored
        log.debug(
            "buffered create",
            extra={"collection": changes.collection.name, "record_id": stored.id},
        )
        return stored

    def get(self, record_id: int) -> Optional[R]:
        return self._changes().lookup(record_id)  # type: ignore[return-value]

    def update(self, record_id: int, record: R) -> Optional[R]:
        changes = self._changes()
        prepared = self._prepare_replacement(record_id, record)
        if changes.lookup(record_id) is None:
            return None
        changes.writes[record_id] = prepared
        return prepared

    def delete(self, record_id: int) -> bool:
        changes = self._changes()
        if changes.lookup(record_id) is None:
            return False
        changes.writes[record_id] = None
        return True

    def list(self) -> List[R]:
        return list(self._changes().view())  # type: ignore[arg-type]


class MemoryTransaction(TransactionContext):
    """Buffers mutations per collection until commit."""

    def __init__(self, backend: "MemoryBackend") -> None:
        self._backend = backend
        self._pending: Dict[str, _PendingChanges] = {}
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise IllegalStateError("transaction context is already closed")

    def _changes_for(self, record_type: Type[Record]) -> _PendingChanges:
        self._ensure_open()
        collection = self._backend.collection(record_type)
        changes = self._pending.get(collection.name)
        if changes is None:
            with collection.lock:
                changes = _PendingChanges(
                    collection=collection,
                    base_version=collection.version,
                    base_rows=collection.rows,
                )
            self._pending[collection.name] = changes
        return changes

    def repository(self, record_type: Type[R]) -> MemoryRepository[R]:
        self._ensure_open()
        return MemoryRepository(self, record_type)

    @property
    def mutation_count(self) -> int:
        return sum(len(changes.writes) for changes in self._pending.values())

    def commit(self) -> None:
        self._ensure_open()
        dirty = [changes for changes in self._pending.values() if changes.writes]
        if not dirty:
            self._close()
            return

        # Every collection that was read is validated, not only the dirty ones:
        # writes may depend on rows read from another collection.
        touched = sorted(self._pending.values(), key=lambda c: c.collection.name)
        with ExitStack() as stack:
            for changes in touched:
                stack.enter_context(changes.collection.lock)
            for changes in touched:
                if changes.read and changes.collection.version != changes.base_version:
                    raise ConflictError(
                        f"collection '{changes.collection.name}' changed since this "
                        f"transaction read it (version {changes.base_version} -> "
                        f"{changes.collection.version})"
                    )
            for changes in dirty:
                changes.collection.publish(changes.merged())
        self._close()

    def rollback(self) -> None:
        self._close()

    def _close(self) -> None:
        self._pending.clear()
        self._closed = True


class MemoryBackend(StorageBackend):
    """
    Process-local backend; collections are created lazily per record type.
    """

    name: str = "memory"

    def __init__(self) -> None:
        self._collections: Dict[Type[Record], _Collection] = {}
        self._lock = threading.Lock()

    def collection(self, record_type: Type[Record]) -> _Collection:
        with self._lock:
            found = self._collections.get(record_type)
            if found is None:
                found = _Collection(record_type)
                self._collections[record_type] = found
            return found

    def begin(self) -> MemoryTransaction:
        return MemoryTransaction(self)


__all__ = ["MemoryBackend", "MemoryRepository", "MemoryTransaction"]
