"""
Sample data seeding script for the Transactional Record Store.

Generates a deterministic catalog of books, a staff list and a few tasks, and
saves each batch through the transaction coordinator so a bad row leaves the
store untouched.
"""

from __future__ import annotations

import random
import sys
import time
from typing import List

import typer

from record_store.config import get_settings
from record_store.context import AppContext, build_context
from record_store.domain.models import Book, Employee, Task
from record_store.domain.records import Record
from record_store.transactions.coordinator import UnitOfWork
from record_store.utils.logging import configure_logging

app = typer.Typer(help="Seed sample books, employees and tasks.")

_AUTHORS = ["Craig Walls", "Joshua Bloch", "Martin Fowler", "Kathy Sierra", "Robert Martin"]
_TOPICS = ["Spring", "Java", "Refactoring", "Patterns", "Testing", "Databases"]
_DEPARTMENTS = ["Engineering", "Marketing", "Sales", "Finance", "Support"]
_FIRST_NAMES = ["John", "Jane", "Ada", "Alan", "Grace", "Linus", "Barbara", "Ken"]
_LAST_NAMES = ["Doe", "Smith", "Lovelace", "Turing", "Hopper", "Torvalds", "Liskov", "Thompson"]


def _generate_books(rng: random.Random, count: int) -> List[Book]:
    books = []
    for i in range(count):
        books.append(
            Book.build(
                title=f"{rng.choice(_TOPICS)} in Action, Vol. {i + 1}",
                author=rng.choice(_AUTHORS),
                price=round(rng.uniform(9.99, 79.99), 2),
                isbn=f"978-{rng.randint(0, 9)}-{rng.randint(10000, 99999)}-{rng.randint(100, 999)}-{i % 10}",
            )
        )
    return books


def _generate_employees(rng: random.Random, count: int) -> List[Employee]:
    return [
        Employee.build(
            first_name=rng.choice(_FIRST_NAMES),
            last_name=rng.choice(_LAST_NAMES),
            department=rng.choice(_DEPARTMENTS),
            salary=float(rng.randrange(40_000, 120_000, 500)),
        )
        for _ in range(count)
    ]


def _generate_tasks(rng: random.Random, count: int) -> List[Task]:
    return [
        Task.build(
            title=f"Review {rng.choice(_TOPICS).lower()} notes #{i + 1}",
            description="Seeded task.",
            assignee_email=f"{rng.choice(_FIRST_NAMES).lower()}@example.com",
        )
        for i in range(count)
    ]


def _seed(ctx: AppContext, batches: List[List[Record]]) -> int:
    """
    Save every batch in a single unit of work; returns rows written.

    Seeded tasks are sample data with generated addresses, so no reminder is
    scheduled for them. Reminders are sent only for tasks created through
    `handlers.create`.
    """

    def save_batches(uow: UnitOfWork) -> int:
        written = 0
        for batch in batches:
            if batch:
                written += len(uow[type(batch[0])].save_all(batch))
        return written

    outcome = ctx.coordinator.run(save_batches, label="seed")
    if not outcome.ok:
        raise typer.BadParameter(f"seeding rolled back: {outcome.message}")
    return outcome.value


@app.command()
def main(
    books: int = typer.Option(20, "--books", "-b", help="Number of books to generate."),
    employees: int = typer.Option(10, "--employees", "-e", help="Number of employees to generate."),
    tasks: int = typer.Option(5, "--tasks", "-t", help="Number of tasks to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
) -> None:
    """
    Generate sample records and save them through the coordinator.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    rng = random.Random(seed)

    start = time.perf_counter()
    with build_context(settings) as ctx:
        init_schema = getattr(ctx.backend, "init_schema", None)
        if init_schema is not None:
            init_schema()
        written = _seed(
            ctx,
            [
                _generate_books(rng, books),
                _generate_employees(rng, employees),
                _generate_tasks(rng, tasks),
            ],
        )
    duration = time.perf_counter() - start
    typer.echo(f"Seeded {written} records into '{settings.store_backend}' in {duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
