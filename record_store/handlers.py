"""
Request handlers: the transport boundary of the record store.

Each handler takes structured input (a record kind, field values, an id or
filter criteria), runs the matching repository / coordinator operation, and
returns a `Response` whose status mirrors an HTTP outcome:

    ok (200), created (201), invalid (422), not_found (404),
    conflict (409), failed (400)

Reads go straight to committed state; writes run through the coordinator so a
failure never leaves partial data behind. Creating a task schedules a reminder
for after the commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Type, Union

import pydantic
from pydantic import TypeAdapter

from record_store.context import AppContext
from record_store.domain.models import Task, resolve_record_type
from record_store.domain.records import Record
from record_store.errors import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from record_store.notifications import task_reminder
from record_store.transactions.coordinator import UnitOfWork
from record_store.transactions.outcome import Failure, Outcome

Body = Union[Dict[str, Any], list]

_HTTP_STATUS = {
    "ok": 200,
    "created": 201,
    "failed": 400,
    "not_found": 404,
    "conflict": 409,
    "invalid": 422,
}

_ERROR_STATUS = {
    ValidationError: "invalid",
    NotFoundError: "not_found",
    ConflictError: "conflict",
    BusinessRuleError: "failed",
}


@dataclass(frozen=True)
class Response:
    status: str
    body: Body

    @property
    def ok(self) -> bool:
        return self.status in ("ok", "created")

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]


def _serialize(record: Record) -> Dict[str, Any]:
    return record.model_dump()


def _error(exc: DomainError) -> Response:
    status = next(
        (name for cls, name in _ERROR_STATUS.items() if isinstance(exc, cls)),
        "failed",
    )
    return Response(status, {"error": str(exc), "kind": type(exc).__name__})


def _from_outcome(outcome: Outcome[Any], status: str = "ok") -> Response:
    if isinstance(outcome, Failure):
        return _error(outcome.error)
    value = outcome.value
    if isinstance(value, Record):
        return Response(status, _serialize(value))
    return Response(status, value)


def _coerce(record_type: Type[Record], field: str, value: Any) -> Any:
    """Convert a raw (often textual) filter value to the field's type."""
    field_type = record_type.field_type(field)
    try:
        return TypeAdapter(field_type).validate_python(value)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"{record_type.__name__}.{field}: cannot interpret {value!r} as {field_type.__name__}"
        ) from exc


def create(ctx: AppContext, kind: str, fields: Mapping[str, Any]) -> Response:
    """Create a record from a full field set (no id)."""
    try:
        record_type = resolve_record_type(kind)
        if fields.get("id") is not None:
            raise ValidationError("id is assigned by the store and must not be supplied")
        record = record_type.build(**{k: v for k, v in fields.items() if k != "id"})
    except ValidationError as exc:
        return _error(exc)

    def create_record(uow: UnitOfWork) -> Record:
        stored = uow[record_type].create(record)
        if isinstance(stored, Task):
            uow.after_commit(task_reminder, ctx.notifier, stored)
        return stored

    return _from_outcome(ctx.coordinator.run(create_record, label=f"create {record_type.kind}"), "created")


def read(ctx: AppContext, kind: str, record_id: int) -> Response:
    try:
        record_type = resolve_record_type(kind)
        return Response("ok", _serialize(ctx.repository(record_type).require(record_id)))
    except DomainError as exc:
        return _error(exc)


def list_records(ctx: AppContext, kind: str) -> Response:
    try:
        record_type = resolve_record_type(kind)
    except ValidationError as exc:
        return _error(exc)
    return Response("ok", [_serialize(r) for r in ctx.repository(record_type).list()])


def find(ctx: AppContext, kind: str, field: str, value: Any) -> Response:
    """Exact-match lookup; returns every match in insertion order."""
    try:
        record_type = resolve_record_type(kind)
        matches = ctx.query(record_type).by_field_equals(field, _coerce(record_type, field, value))
    except ValidationError as exc:
        return _error(exc)
    return Response("ok", [_serialize(r) for r in matches])


def in_range(ctx: AppContext, kind: str, field: str, low: Any, high: Any) -> Response:
    """Inclusive numeric range lookup, e.g. books priced between two bounds."""
    try:
        record_type = resolve_record_type(kind)
        matches = ctx.query(record_type).by_range(
            field,
            _coerce(record_type, field, low),
            _coerce(record_type, field, high),
        )
    except ValidationError as exc:
        return _error(exc)
    return Response("ok", [_serialize(r) for r in matches])


def update(ctx: AppContext, kind: str, record_id: int, fields: Mapping[str, Any]) -> Response:
    """Replace every field of an existing record."""
    try:
        record_type = resolve_record_type(kind)
        record = record_type.build(**{k: v for k, v in fields.items() if k != "id"})
    except ValidationError as exc:
        return _error(exc)

    def replace_record(uow: UnitOfWork) -> Record:
        updated = uow[record_type].update(record_id, record)
        if updated is None:
            raise NotFoundError(record_type.__name__, record_id)
        return updated

    return _from_outcome(ctx.coordinator.run(replace_record, label=f"update {record_type.kind}"))


def delete(ctx: AppContext, kind: str, record_id: int) -> Response:
    try:
        record_type = resolve_record_type(kind)
    except ValidationError as exc:
        return _error(exc)

    def delete_record(uow: UnitOfWork) -> Dict[str, Any]:
        if not uow[record_type].delete(record_id):
            raise NotFoundError(record_type.__name__, record_id)
        return {"deleted": record_id}

    return _from_outcome(ctx.coordinator.run(delete_record, label=f"delete {record_type.kind}"))


__all__ = [
    "Response",
    "create",
    "read",
    "list_records",
    "find",
    "in_range",
    "update",
    "delete",
]
