from __future__ import annotations

import random

from record_store.context import AppContext
from record_store.domain.models import Book, Employee, Task
from scripts import seed_data

EXPECTED_BOOKS = 4
EXPECTED_EMPLOYEES = 3
EXPECTED_TASKS = 2


def test_generation_is_deterministic():
    first = seed_data._generate_books(random.Random(123), EXPECTED_BOOKS)
    second = seed_data._generate_books(random.Random(123), EXPECTED_BOOKS)
    assert first == second
    assert all(book.id is None for book in first)


def test_seed_writes_every_batch(ctx: AppContext, notifier):
    rng = random.Random(7)
    written = seed_data._seed(
        ctx,
        [
            seed_data._generate_books(rng, EXPECTED_BOOKS),
            seed_data._generate_employees(rng, EXPECTED_EMPLOYEES),
            seed_data._generate_tasks(rng, EXPECTED_TASKS),
        ],
    )

    assert written == EXPECTED_BOOKS + EXPECTED_EMPLOYEES + EXPECTED_TASKS
    assert ctx.repository(Book).count() == EXPECTED_BOOKS
    assert ctx.repository(Employee).count() == EXPECTED_EMPLOYEES
    assert ctx.repository(Task).count() == EXPECTED_TASKS
    # Seeded tasks never schedule reminders.
    assert notifier.sent == []
