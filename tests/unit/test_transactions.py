from __future__ import annotations

import contextvars
import threading
from typing import List

import pytest

from record_store.domain.models import Book, Employee, Task
from record_store.errors import (
    BusinessRuleError,
    ConflictError,
    IllegalStateError,
    NotFoundError,
    ValidationError,
)
from record_store.repository.memory import MemoryBackend
from record_store.transactions.coordinator import TransactionCoordinator, UnitOfWork, in_transaction
from record_store.transactions.outcome import Failure, Success

ROLLBACK_MESSAGE = "Simulating an error to test rollback!"
SALARY_CAP = 60000.0


def _john() -> Employee:
    return Employee.build(first_name="John", last_name="Doe", department="Engineering", salary=75000.0)


def _jane() -> Employee:
    return Employee.build(first_name="Jane", last_name="Smith", department="Marketing", salary=65000.0)


def test_successful_unit_commits_every_record(backend: MemoryBackend, coordinator: TransactionCoordinator):
    def hire(uow: UnitOfWork) -> List[Employee]:
        return [uow[Employee].create(_john()), uow[Employee].create(_jane())]

    outcome = coordinator.run(hire)

    assert isinstance(outcome, Success)
    assert outcome.ok
    stored = backend.repository(Employee).list()
    assert stored == outcome.value
    assert all(e.id is not None for e in stored)


def test_business_rule_failure_rolls_back_everything(
    backend: MemoryBackend, coordinator: TransactionCoordinator
):
    seen_ids: List[int] = []

    def hire(uow: UnitOfWork) -> None:
        employees = uow[Employee]
        john = employees.create(_john())
        seen_ids.append(john.id)
        jane = employees.create(_jane())
        if jane.salary > SALARY_CAP:
            raise BusinessRuleError(ROLLBACK_MESSAGE)

    outcome = coordinator.run(hire)

    assert isinstance(outcome, Failure)
    assert not outcome.ok
    assert outcome.message == ROLLBACK_MESSAGE
    assert outcome.kind == "BusinessRuleError"
    assert seen_ids == [1]
    assert backend.repository(Employee).list() == []


def test_failure_unwrap_reraises_original_error(coordinator: TransactionCoordinator):
    def fail(uow: UnitOfWork) -> None:
        uow.fail("nope")

    outcome = coordinator.run(fail)
    with pytest.raises(BusinessRuleError, match="nope"):
        outcome.unwrap()


@pytest.mark.parametrize(
    "error",
    [ValidationError("bad"), NotFoundError("Employee", 3), ConflictError("raced")],
)
def test_every_domain_error_becomes_failure(
    backend: MemoryBackend, coordinator: TransactionCoordinator, error: Exception
):
    def work(uow: UnitOfWork) -> None:
        uow[Employee].create(_john())
        raise error

    outcome = coordinator.run(work)

    assert isinstance(outcome, Failure)
    assert outcome.error is error
    assert backend.repository(Employee).count() == 0


def test_unexpected_exception_rolls_back_and_propagates(
    backend: MemoryBackend, coordinator: TransactionCoordinator
):
    def broken(uow: UnitOfWork) -> None:
        uow[Employee].create(_john())
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError, match="bug"):
        coordinator.run(broken)
    assert backend.repository(Employee).count() == 0
    assert not in_transaction()


def test_unit_reads_its_own_pending_writes(backend: MemoryBackend, coordinator: TransactionCoordinator):
    def work(uow: UnitOfWork) -> int:
        created = uow[Employee].create(_john())
        assert uow[Employee].get(created.id) == created
        # Not visible outside the unit before commit.
        assert backend.repository(Employee).get(created.id) is None
        uow[Employee].update(created.id, _jane())
        assert uow[Employee].get(created.id).first_name == "Jane"
        return created.id

    outcome = coordinator.run(work)

    assert outcome.ok
    assert backend.repository(Employee).require(outcome.value).first_name == "Jane"


def test_delete_inside_failed_unit_is_discarded(backend: MemoryBackend, coordinator: TransactionCoordinator):
    existing = backend.repository(Employee).create(_john())

    def work(uow: UnitOfWork) -> None:
        assert uow[Employee].delete(existing.id) is True
        assert uow[Employee].list() == []
        uow.fail("undo")

    assert not coordinator.run(work).ok
    assert backend.repository(Employee).get(existing.id) == existing


def test_unit_spanning_collections_is_atomic(backend: MemoryBackend, coordinator: TransactionCoordinator):
    def work(uow: UnitOfWork) -> None:
        uow[Employee].create(_john())
        uow[Book].create(Book.build(title="T", author="A", price=10.0))
        uow.fail("both go")

    coordinator.run(work)

    assert backend.repository(Employee).count() == 0
    assert backend.repository(Book).count() == 0


def test_nested_run_is_illegal_and_rolls_back_outer(
    backend: MemoryBackend, coordinator: TransactionCoordinator
):
    def inner(uow: UnitOfWork) -> None:
        uow[Employee].create(_jane())

    def outer(uow: UnitOfWork) -> None:
        uow[Employee].create(_john())
        coordinator.run(inner)

    with pytest.raises(IllegalStateError, match="nested"):
        coordinator.run(outer)
    assert backend.repository(Employee).count() == 0


def test_autocommit_write_inside_unit_is_illegal_and_rolls_back(
    backend: MemoryBackend, coordinator: TransactionCoordinator
):
    repo = backend.repository(Employee)

    def mixed(uow: UnitOfWork) -> None:
        uow[Employee].create(_john())
        repo.create(_jane())
        raise BusinessRuleError(ROLLBACK_MESSAGE)

    with pytest.raises(IllegalStateError, match="inside a unit of work"):
        coordinator.run(mixed)
    assert repo.list() == []


def test_autocommit_reads_and_writes_outside_unit_still_work(
    backend: MemoryBackend, coordinator: TransactionCoordinator
):
    repo = backend.repository(Employee)

    def peek(uow: UnitOfWork) -> int:
        return repo.count()

    assert coordinator.run(peek).value == 0
    created = repo.create(_john())
    assert repo.delete(created.id) is True


def test_runs_are_allowed_again_after_a_unit_finishes(coordinator: TransactionCoordinator):
    assert coordinator.run(lambda uow: in_transaction()).value is True
    assert not in_transaction()
    assert coordinator.run(lambda uow: 42).value == 42


def test_after_commit_runs_once_on_success(coordinator: TransactionCoordinator):
    calls: List[int] = []

    def work(uow: UnitOfWork) -> Task:
        task = uow[Task].create(Task.build(title="Write docs", assignee_email="a@example.com"))
        uow.after_commit(calls.append, task.id)
        assert calls == []
        return task

    outcome = coordinator.run(work)

    assert calls == [outcome.value.id]


def test_after_commit_never_runs_on_rollback(coordinator: TransactionCoordinator):
    calls: List[str] = []

    def work(uow: UnitOfWork) -> None:
        uow.after_commit(calls.append, "sent")
        uow.fail("abort")

    coordinator.run(work)

    assert calls == []


def test_failing_after_commit_keeps_the_commit(backend: MemoryBackend, coordinator: TransactionCoordinator):
    def explode() -> None:
        raise OSError("smtp down")

    def work(uow: UnitOfWork) -> Task:
        uow.after_commit(explode)
        return uow[Task].create(Task.build(title="Call back", assignee_email="b@example.com"))

    outcome = coordinator.run(work)

    assert outcome.ok
    assert backend.repository(Task).get(outcome.value.id) == outcome.value


def test_concurrent_conflicting_commit_fails(backend: MemoryBackend, coordinator: TransactionCoordinator):
    existing = backend.repository(Employee).create(_john())
    reader_ready = threading.Event()
    writer_done = threading.Event()
    results = {}

    def slow_update(uow: UnitOfWork) -> None:
        current = uow[Employee].require(existing.id)
        reader_ready.set()
        writer_done.wait(timeout=5)
        uow[Employee].update(existing.id, current.model_copy(update={"salary": current.salary + 1}))

    def fast_update(uow: UnitOfWork) -> None:
        uow[Employee].update(existing.id, _jane())

    def run_slow() -> None:
        results["slow"] = coordinator.run(slow_update)

    worker = threading.Thread(target=run_slow)
    worker.start()
    assert reader_ready.wait(timeout=5)
    results["fast"] = coordinator.run(fast_update)
    writer_done.set()
    worker.join(timeout=5)

    assert results["fast"].ok
    assert isinstance(results["slow"], Failure)
    assert results["slow"].kind == "ConflictError"
    assert backend.repository(Employee).require(existing.id).first_name == "Jane"


def test_read_only_unit_never_conflicts(backend: MemoryBackend, coordinator: TransactionCoordinator):
    repo = backend.repository(Employee)
    repo.create(_john())

    def read_then_wait(uow: UnitOfWork) -> int:
        count = len(uow[Employee].list())
        # Another caller, outside any unit of work.
        writer = threading.Thread(target=contextvars.Context().run, args=(repo.create, _jane()))
        writer.start()
        writer.join(timeout=5)
        return count

    outcome = coordinator.run(read_then_wait)

    assert outcome.ok
    assert outcome.value == 1
    assert repo.count() == 2


def test_end_to_end_rollback_scenario():
    backend = MemoryBackend()
    coordinator = TransactionCoordinator(backend)
    assigned: List[int] = []

    def hire(uow: UnitOfWork) -> None:
        employees = uow[Employee]
        assigned.append(employees.create(_john()).id)
        jane = employees.create(_jane())
        if not jane.salary <= SALARY_CAP:
            uow.fail(ROLLBACK_MESSAGE)

    outcome = coordinator.run(hire)

    assert assigned == [1]
    assert isinstance(outcome, Failure)
    assert outcome.message == ROLLBACK_MESSAGE
    assert backend.repository(Employee).list() == []
