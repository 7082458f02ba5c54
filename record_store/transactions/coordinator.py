"""
Transaction coordinator: runs a unit of work as one atomic unit.

Usage:
    from record_store.transactions import TransactionCoordinator

    coordinator = TransactionCoordinator(backend)

    def hire(uow):
        employees = uow[Employee]
        first = employees.create(Employee.build(...))
        second = employees.create(Employee.build(...))
        if second.salary > 60_000:
            uow.fail("salary above threshold")
        return [first, second]

    outcome = coordinator.run(hire)
    if not outcome.ok:
        print(outcome.kind, outcome.message)

Domain errors raised by the work roll everything back and come back as a
`Failure`. Programming errors (nested units of work, non-store exceptions) roll
back too but propagate to the caller.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from record_store.domain.records import Record
from record_store.errors import BusinessRuleError, DomainError, IllegalStateError
from record_store.repository.abstract import (
    AbstractRepository,
    StorageBackend,
    TransactionContext,
)
from record_store.repository.scope import active_tx as _active_tx
from record_store.repository.scope import in_transaction
from record_store.transactions.outcome import Failure, Outcome, Success
from record_store.utils.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R", bound=Record)
T = TypeVar("T")

_Callback = Tuple[Callable[..., Any], Tuple[Any, ...], Dict[str, Any]]


class UnitOfWork:
    """
    Handle passed to a unit of work.

    Exposes repositories bound to the running transaction and collects
    side effects to fire once it has committed.
    """

    def __init__(self, tx_id: str, context: TransactionContext) -> None:
        self.tx_id = tx_id
        self._context = context
        self._repositories: Dict[Type[Record], AbstractRepository[Any]] = {}
        self._after_commit: List[_Callback] = []

    def repository(self, record_type: Type[R]) -> AbstractRepository[R]:
        repo = self._repositories.get(record_type)
        if repo is None:
            repo = self._context.repository(record_type)
            self._repositories[record_type] = repo
        return repo

    __getitem__ = repository

    def after_commit(self, callback: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """
        Schedule a fire-and-forget side effect for after a successful commit.

        Callbacks never run if the unit of work rolls back, and a raising
        callback is logged without undoing the commit.
        """
        self._after_commit.append((callback, args, kwargs))

    def fail(self, message: str) -> None:
        """Abort the unit of work with a BusinessRuleError."""
        raise BusinessRuleError(message)

    @property
    def mutation_count(self) -> int:
        return self._context.mutation_count

    def _fire_after_commit(self) -> None:
        for callback, args, kwargs in self._after_commit:
            name = getattr(callback, "__name__", repr(callback))
            try:
                callback(*args, **kwargs)
            except Exception:  # noqa: BLE001 - side effects must not escape a committed unit
                log.exception(
                    f"[TX AFTER-COMMIT FAILED] {name}",
                    extra={"tx_id": self.tx_id, "callback": name},
                )
        self._after_commit.clear()


class TransactionCoordinator:
    """
    Executes units of work against a storage backend, one decision point each.

    Parameters
    ----------
    backend : StorageBackend
        Where transaction contexts come from.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def run(self, unit_of_work: Callable[[UnitOfWork], T], label: Optional[str] = None) -> Outcome[T]:
        """
        Run `unit_of_work` atomically.

        Parameters
        ----------
        unit_of_work : callable
            Receives a `UnitOfWork`; its return value becomes `Success.value`.
        label : str | None
            Name used in log lines; defaults to the callable's name.

        Returns
        -------
        Success | Failure
            `Failure` when a DomainError stopped the work or the commit.

        Raises
        ------
        IllegalStateError
            If a unit of work is already active for this caller.
        """
        current = _active_tx.get()
        if current is not None:
            raise IllegalStateError(
                f"nested unit of work is not supported (transaction {current} is active)"
            )

        tx_id = uuid.uuid4().hex[:12]
        name = label or getattr(unit_of_work, "__name__", "unit_of_work")
        token = _active_tx.set(tx_id)
        start = time.perf_counter()
        try:
            context = self._backend.begin()
            uow = UnitOfWork(tx_id, context)
            log.info(f"[TX BEGIN] {name}", extra={"tx_id": tx_id, "backend": self._backend.name})
            try:
                value = unit_of_work(uow)
                mutations = context.mutation_count
                context.commit()
            except DomainError as exc:
                context.rollback()
                log.warning(
                    f"[TX ROLLBACK] {name}: {exc}",
                    extra={"tx_id": tx_id, "error_kind": type(exc).__name__},
                )
                return Failure(exc)
            except BaseException as exc:
                context.rollback()
                log.error(
                    f"[TX ROLLBACK] {name}: unexpected {type(exc).__name__}",
                    extra={"tx_id": tx_id, "error_kind": type(exc).__name__},
                )
                raise
        finally:
            _active_tx.reset(token)

        log.info(
            f"[TX COMMIT] {name}",
            extra={
                "tx_id": tx_id,
                "mutations": mutations,
                "duration_seconds": round(time.perf_counter() - start, 4),
            },
        )
        uow._fire_after_commit()
        return Success(value)


__all__ = ["TransactionCoordinator", "UnitOfWork", "in_transaction"]
