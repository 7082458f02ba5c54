"""
Record types shipped with the Transactional Record Store.

Each type is an independent, flat record mapped one-to-one onto a table row:
tasks with an assignee to remind, employees, catalog books, guestbook entries,
and users.
"""
from __future__ import annotations

from typing import ClassVar, Dict, List, Type

from pydantic import Field

from record_store.domain.records import NonBlank, Record
from record_store.errors import ValidationError


class Task(Record):
    """
    A to-do item; creating one sends a reminder to `assignee_email`.
    """

    table_name: ClassVar[str] = "tasks"
    kind: ClassVar[str] = "task"

    title: NonBlank = Field(..., description="Short task title.")
    description: str = Field("", description="Free-form details.")
    assignee_email: NonBlank = Field(..., description="Where reminders are sent.")
    completed: bool = Field(False, description="Whether the task is done.")


class Employee(Record):
    table_name: ClassVar[str] = "employees"
    kind: ClassVar[str] = "employee"

    first_name: NonBlank = Field(..., description="Given name.")
    last_name: NonBlank = Field(..., description="Family name.")
    department: NonBlank = Field(..., description="Owning department.")
    salary: float = Field(..., ge=0, description="Annual salary.")


class Book(Record):
    table_name: ClassVar[str] = "books"
    kind: ClassVar[str] = "book"

    title: NonBlank = Field(..., description="Book title.")
    author: NonBlank = Field(..., description="Author's full name.")
    price: float = Field(..., ge=0, description="Catalog price.")
    isbn: str = Field("", description="Optional ISBN.")


class GuestbookEntry(Record):
    table_name: ClassVar[str] = "guestbook_entries"
    kind: ClassVar[str] = "guestbook_entry"

    name: NonBlank = Field(..., description="Visitor name.")
    message: NonBlank = Field(..., description="Message left by the visitor.")
    email: str = Field("", description="Optional contact address.")


class User(Record):
    table_name: ClassVar[str] = "users"
    kind: ClassVar[str] = "user"

    username: NonBlank = Field(..., description="Login name.")
    email: NonBlank = Field(..., description="Primary e-mail address.")
    display_name: str = Field("", description="Name shown in the UI.")


RECORD_TYPES: Dict[str, Type[Record]] = {
    model.kind: model for model in (Task, Employee, Book, GuestbookEntry, User)
}


def available_kinds() -> List[str]:
    """List registered record kinds."""
    return sorted(RECORD_TYPES)


def resolve_record_type(kind: str) -> Type[Record]:
    normalized = kind.strip().lower().replace("-", "_")
    if normalized not in RECORD_TYPES:
        raise ValidationError(
            f"Unknown record kind '{kind}'. Available: {', '.join(available_kinds())}"
        )
    return RECORD_TYPES[normalized]


__all__ = [
    "Task",
    "Employee",
    "Book",
    "GuestbookEntry",
    "User",
    "RECORD_TYPES",
    "available_kinds",
    "resolve_record_type",
]
