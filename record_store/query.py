"""
Query filters over record snapshots.

Filters are stateless and never mutate anything: they take a sequence of
records (usually `repository.list()`, the committed state) and return the
matching ones in the order they were given.

Usage:
    from record_store.query import QueryFilter, by_range

    books = QueryFilter(ctx.repository(Book))
    books.by_field_equals("author", "Craig Walls")
    by_range(catalog, "price", 30, 50)
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from record_store.domain.records import Record
from record_store.errors import ValidationError
from record_store.repository.abstract import RecordRepository

R = TypeVar("R", bound=Record)


def _is_number(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return isinstance(value, Real) and not isinstance(value, bool)


def _check_field(record_type: Optional[Type[Record]], records: Sequence[Record], field: str) -> None:
    if record_type is None and records:
        record_type = type(records[0])
    if record_type is not None:
        # Raises ValidationError for unknown fields.
        record_type.field_type(field)


def by_field_equals(
    records: Iterable[R], field: str, value: Any, record_type: Optional[Type[R]] = None
) -> List[R]:
    """
    Records whose `field` equals `value`; empty list when nothing matches.
    """
    snapshot = list(records)
    _check_field(record_type, snapshot, field)
    return [record for record in snapshot if getattr(record, field) == value]


def first_by_field_equals(
    records: Iterable[R], field: str, value: Any, record_type: Optional[Type[R]] = None
) -> Optional[R]:
    """
    First match or None. Several matches are not an error; uniqueness of the
    field is not enforced by the store.
    """
    matches = by_field_equals(records, field, value, record_type=record_type)
    return matches[0] if matches else None


def by_range(
    records: Iterable[R],
    field: str,
    low: Any,
    high: Any,
    record_type: Optional[Type[R]] = None,
) -> List[R]:
    """
    Records with `low <= field <= high` (inclusive, numeric fields only).

    Raises
    ------
    ValidationError
        If the bounds are not numbers (NaN included), `low > high`, or the field is unknown
        or not numeric.
    """
    if not (_is_number(low) and _is_number(high)):
        raise ValidationError(f"range bounds must be numbers (got {low!r}, {high!r})")
    if low > high:
        raise ValidationError(f"invalid range: low ({low}) > high ({high})")

    snapshot = list(records)
    record_type = record_type or (type(snapshot[0]) if snapshot else None)
    if record_type is not None and not record_type.is_numeric_field(field):
        raise ValidationError(f"{record_type.__name__}.{field} is not a numeric field")
    return [record for record in snapshot if low <= getattr(record, field) <= high]


class QueryFilter(Generic[R]):
    """
    Filters bound to a repository; each call reads its current snapshot.
    """

    def __init__(self, repository: RecordRepository[R]) -> None:
        self._repository = repository

    @property
    def record_type(self) -> Type[R]:
        return self._repository.record_type

    def by_field_equals(self, field: str, value: Any) -> List[R]:
        return by_field_equals(self._repository.list(), field, value, record_type=self.record_type)

    def first_by_field_equals(self, field: str, value: Any) -> Optional[R]:
        return first_by_field_equals(
            self._repository.list(), field, value, record_type=self.record_type
        )

    def by_range(self, field: str, low: Any, high: Any) -> List[R]:
        return by_range(self._repository.list(), field, low, high, record_type=self.record_type)


__all__ = ["QueryFilter", "by_field_equals", "first_by_field_equals", "by_range"]
