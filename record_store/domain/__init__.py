"""
Domain package for the Transactional Record Store.

Exports the record base class and the concrete record types used by the
repositories, the transaction coordinator and the request handlers. Keep this
package focused on data definitions and validation concerns.
"""

from record_store.domain.models import (
    RECORD_TYPES,
    Book,
    Employee,
    GuestbookEntry,
    Task,
    User,
    available_kinds,
    resolve_record_type,
)
from record_store.domain.records import Record

__all__ = [
    "Record",
    "Task",
    "Employee",
    "Book",
    "GuestbookEntry",
    "User",
    "RECORD_TYPES",
    "available_kinds",
    "resolve_record_type",
]
