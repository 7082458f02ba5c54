"""
Per-entity services built on the repository, coordinator and query filters.

`EmployeeService` mirrors the classic CRUD service (list, get, save, delete)
and adds the two-step hire that rolls back when a salary cap is exceeded.
`BookService` provides the catalog lookups (by title, by author, by price).
"""

from __future__ import annotations

from typing import List, Optional

from record_store.context import AppContext
from record_store.domain.models import Book, Employee
from record_store.errors import NotFoundError
from record_store.transactions.coordinator import UnitOfWork
from record_store.transactions.outcome import Outcome

ROLLBACK_MESSAGE = "Simulating an error to test rollback!"


class EmployeeService:
    def __init__(self, ctx: AppContext) -> None:
        self._ctx = ctx
        self._repo = ctx.repository(Employee)

    def get_all(self) -> List[Employee]:
        return self._repo.list()

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._repo.get(employee_id)

    def save(self, employee: Employee) -> Employee:
        """Create when the employee has no id, otherwise replace it."""
        if employee.id is None:
            return self._repo.create(employee)
        updated = self._repo.update(employee.id, employee)
        if updated is None:
            raise NotFoundError(Employee.__name__, employee.id)
        return updated

    def delete(self, employee_id: int) -> bool:
        return self._repo.delete(employee_id)

    def hire_pair(self, first: Employee, second: Employee, max_salary: float) -> Outcome[List[Employee]]:
        """
        Create two employees in one unit of work.

        The salary cap is checked only after both rows are written, so a
        violation exercises a real rollback: neither employee survives.
        """

        def hire(uow: UnitOfWork) -> List[Employee]:
            employees = uow[Employee]
            saved = [employees.create(first), employees.create(second)]
            if saved[1].salary > max_salary:
                uow.fail(ROLLBACK_MESSAGE)
            return saved

        return self._ctx.coordinator.run(hire, label="hire_pair")


class BookService:
    def __init__(self, ctx: AppContext) -> None:
        self._ctx = ctx
        self._query = ctx.query(Book)

    def find_by_title(self, title: str) -> Optional[Book]:
        """First book with this exact title; titles are not unique."""
        return self._query.first_by_field_equals("title", title)

    def find_by_author(self, author: str) -> List[Book]:
        return self._query.by_field_equals("author", author)

    def find_by_price_range(self, low: float, high: float) -> List[Book]:
        return self._query.by_range("price", low, high)


__all__ = ["EmployeeService", "BookService", "ROLLBACK_MESSAGE"]
