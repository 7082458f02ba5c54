"""
Repository and backend contracts for the Transactional Record Store.

A storage backend hands out `TransactionContext` objects; each context exposes
repositories whose mutations stay pending until the context commits. Concrete
backends (in-memory, PostgreSQL) implement `AbstractRepository`,
`TransactionContext` and `StorageBackend`.

Used outside a unit of work, a backend's repository runs every call as its own
single-operation transaction (see `AutocommitRepository`).
"""

from __future__ import annotations

import abc
from typing import (
    Callable,
    Generic,
    Iterable,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
    runtime_checkable,
)

from record_store.domain.records import Record
from record_store.errors import IllegalStateError, NotFoundError, ValidationError
from record_store.repository.scope import in_transaction

R = TypeVar("R", bound=Record)
T = TypeVar("T")


@runtime_checkable
class RecordRepository(Protocol[R]):
    """
    Capability set every repository offers for one record type.

    Attributes
    ----------
    record_type : type
        The record class stored by this repository.
    """

    record_type: Type[R]

    def create(self, record: R) -> R:
        """Assign a fresh id, store the record and return the stored value."""
        ...

    def get(self, record_id: int) -> Optional[R]:
        """Return the record or None; never raises for a missing id."""
        ...

    def update(self, record_id: int, record: R) -> Optional[R]:
        """Replace every field of an existing record; None when absent."""
        ...

    def delete(self, record_id: int) -> bool:
        """Remove a record; False when absent."""
        ...

    def list(self) -> List[R]:
        """Snapshot of all records in insertion order."""
        ...

    def save_all(self, records: Iterable[R]) -> List[R]:
        """Create several records, all or nothing."""
        ...


class AbstractRepository(abc.ABC, Generic[R]):
    """
    ABC helper for repository implementations.

    Subclasses implement the storage primitives; input checks shared by every
    backend live here.
    """

    record_type: Type[R]

    @abc.abstractmethod
    def create(self, record: R) -> R:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, record_id: int) -> Optional[R]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, record_id: int, record: R) -> Optional[R]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, record_id: int) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list(self) -> List[R]:  # pragma: no cover - interface only
        raise NotImplementedError

    def save_all(self, records: Iterable[R]) -> List[R]:
        prepared = [self._prepare_new(record) for record in records]
        return [self.create(record) for record in prepared]

    def require(self, record_id: int) -> R:
        """Like `get`, but raises NotFoundError for a missing id."""
        found = self.get(record_id)
        if found is None:
            raise NotFoundError(self.record_type.__name__, record_id)
        return found

    def count(self) -> int:
        return len(self.list())

    def _check_type(self, record: Record) -> None:
        if not isinstance(record, self.record_type):
            raise ValidationError(
                f"{type(self).__name__} for {self.record_type.__name__} "
                f"cannot store {type(record).__name__}"
            )

    def _prepare_new(self, record: R) -> R:
        self._check_type(record)
        if record.id is not None:
            raise ValidationError(
                f"new {self.record_type.__name__} must not carry an id (got {record.id})"
            )
        return record.revalidate()

    def _prepare_replacement(self, record_id: int, record: R) -> R:
        self._check_type(record)
        return record.revalidate().with_id(record_id)


class TransactionContext(abc.ABC):
    """
    Pending mutations of one unit of work.

    Born when the work begins; ends with exactly one `commit` or `rollback`.
    Nothing buffered here is visible to other callers before `commit`.
    """

    @abc.abstractmethod
    def repository(self, record_type: Type[R]) -> AbstractRepository[R]:
        """Repository view whose writes are buffered in this context."""
        raise NotImplementedError

    @abc.abstractmethod
    def commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        """Discard pending mutations. Safe to call on a closed context."""
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def mutation_count(self) -> int:
        raise NotImplementedError


class StorageBackend(abc.ABC):
    """
    Owns the authoritative collections and starts transaction contexts.
    """

    name: str

    @abc.abstractmethod
    def begin(self) -> TransactionContext:
        raise NotImplementedError

    def repository(self, record_type: Type[R]) -> "AutocommitRepository[R]":
        return AutocommitRepository(self, record_type)

    def close(self) -> None:
        """Release backend resources (connections, pools)."""


class AutocommitRepository(AbstractRepository[R]):
    """
    Repository that wraps every call in its own short transaction.

    Errors surface directly to the caller; a failed write leaves nothing behind.
    Writes are refused inside a unit of work, where they would commit on their
    own and survive the unit's rollback; use `uow[RecordType]` there instead.
    """

    def __init__(self, backend: StorageBackend, record_type: Type[R]) -> None:
        self._backend = backend
        self.record_type = record_type

    def _read(self, op: Callable[[AbstractRepository[R]], T]) -> T:
        context = self._backend.begin()
        try:
            return op(context.repository(self.record_type))
        finally:
            context.rollback()

    def _write(self, op: Callable[[AbstractRepository[R]], T]) -> T:
        if in_transaction():
            raise IllegalStateError(
                f"autocommit write to {self.record_type.__name__} inside a unit of work; "
                "use the unit's repository instead"
            )
        context = self._backend.begin()
        try:
            result = op(context.repository(self.record_type))
            context.commit()
        except BaseException:
            context.rollback()
            raise
        return result

    def create(self, record: R) -> R:
        return self._write(lambda repo: repo.create(record))

    def get(self, record_id: int) -> Optional[R]:
        return self._read(lambda repo: repo.get(record_id))

    def update(self, record_id: int, record: R) -> Optional[R]:
        return self._write(lambda repo: repo.update(record_id, record))

    def delete(self, record_id: int) -> bool:
        return self._write(lambda repo: repo.delete(record_id))

    def list(self) -> List[R]:
        return self._read(lambda repo: repo.list())

    def save_all(self, records: Iterable[R]) -> List[R]:
        batch = list(records)
        return self._write(lambda repo: repo.save_all(batch))

    def count(self) -> int:
        return self._read(lambda repo: repo.count())


__all__ = [
    "RecordRepository",
    "AbstractRepository",
    "AutocommitRepository",
    "TransactionContext",
    "StorageBackend",
]
