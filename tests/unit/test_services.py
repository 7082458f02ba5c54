from __future__ import annotations

import pytest

from record_store.context import AppContext
from record_store.domain.models import Employee
from record_store.errors import NotFoundError
from record_store.services import ROLLBACK_MESSAGE, EmployeeService

SALARY_CAP = 60000.0


@pytest.fixture
def service(ctx: AppContext) -> EmployeeService:
    return EmployeeService(ctx)


def _employee(first: str, salary: float) -> Employee:
    return Employee.build(first_name=first, last_name="Doe", department="Engineering", salary=salary)


def test_save_creates_then_updates(service: EmployeeService):
    created = service.save(_employee("John", 75000.0))
    updated = service.save(created.model_copy(update={"salary": 80000.0}))

    assert updated.id == created.id
    assert service.get_by_id(created.id).salary == 80000.0
    assert service.get_all() == [updated]


def test_save_with_unknown_id_raises(service: EmployeeService):
    with pytest.raises(NotFoundError):
        service.save(_employee("Ghost", 1.0).with_id(42))


def test_delete(service: EmployeeService):
    created = service.save(_employee("John", 75000.0))
    assert service.delete(created.id) is True
    assert service.get_by_id(created.id) is None


def test_hire_pair_over_cap_rolls_back_both(service: EmployeeService):
    outcome = service.hire_pair(
        Employee.build(first_name="John", last_name="Doe", department="Engineering", salary=75000.0),
        Employee.build(first_name="Jane", last_name="Smith", department="Marketing", salary=65000.0),
        max_salary=SALARY_CAP,
    )

    assert not outcome.ok
    assert outcome.message == ROLLBACK_MESSAGE
    assert service.get_all() == []


def test_hire_pair_within_cap_commits_both(service: EmployeeService):
    outcome = service.hire_pair(_employee("A", 90000.0), _employee("B", 50000.0), max_salary=SALARY_CAP)

    assert outcome.ok
    assert [e.id for e in outcome.value] == [1, 2]
    assert service.get_all() == outcome.value
