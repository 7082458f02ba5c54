from __future__ import annotations

import json
import sys
from typing import Any, Dict, List, Optional

import typer

from record_store import handlers
from record_store.config import get_settings
from record_store.context import AppContext, build_context
from record_store.domain.models import Employee, available_kinds
from record_store.handlers import Response
from record_store.reporter import print_records
from record_store.services import EmployeeService
from record_store.utils.logging import configure_logging

app = typer.Typer(help="Transactional Record Store CLI.")

FIELD_OPTION = typer.Option(
    None,
    "--field",
    "-f",
    help="Field assignment as key=value; repeat for every field.",
)


def _context() -> AppContext:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return build_context(settings)


def _parse_fields(assignments: Optional[List[str]]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for item in assignments or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="--field")
        fields[key.strip()] = value
    return fields


def _emit(response: Response) -> None:
    typer.echo(json.dumps(response.body, indent=2, default=str))
    if not response.ok:
        raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"backend={settings.store_backend} | "
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"statement_timeout={settings.db_statement_timeout_ms}ms | "
        f"kinds={', '.join(available_kinds())}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the tables for every record kind (postgres backend only).
    """
    with _context() as ctx:
        init_schema = getattr(ctx.backend, "init_schema", None)
        if init_schema is None:
            typer.echo(f"Backend '{ctx.backend.name}' has no schema to initialize.")
            return
        init_schema()
        typer.echo("Schema ready.")


@app.command()
def create(kind: str, field: Optional[List[str]] = FIELD_OPTION) -> None:
    """
    Create a record of KIND from --field assignments.
    """
    with _context() as ctx:
        _emit(handlers.create(ctx, kind, _parse_fields(field)))


@app.command()
def get(kind: str, record_id: int) -> None:
    """
    Show one record by id.
    """
    with _context() as ctx:
        _emit(handlers.read(ctx, kind, record_id))


@app.command("list")
def list_(
    kind: str,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    List every record of KIND in insertion order.
    """
    with _context() as ctx:
        response = handlers.list_records(ctx, kind)
        if as_json or not response.ok:
            _emit(response)
            return
        print_records(response.body, title=kind.replace("_", " ").title())


@app.command()
def update(kind: str, record_id: int, field: Optional[List[str]] = FIELD_OPTION) -> None:
    """
    Replace every field of an existing record.
    """
    with _context() as ctx:
        _emit(handlers.update(ctx, kind, record_id, _parse_fields(field)))


@app.command()
def delete(kind: str, record_id: int) -> None:
    """
    Delete a record by id.
    """
    with _context() as ctx:
        _emit(handlers.delete(ctx, kind, record_id))


@app.command()
def find(kind: str, field_name: str, value: str) -> None:
    """
    Records of KIND whose FIELD_NAME equals VALUE.
    """
    with _context() as ctx:
        _emit(handlers.find(ctx, kind, field_name, value))


@app.command("range")
def range_(kind: str, field_name: str, low: float, high: float) -> None:
    """
    Records of KIND with LOW <= FIELD_NAME <= HIGH.
    """
    with _context() as ctx:
        _emit(handlers.in_range(ctx, kind, field_name, low, high))


@app.command("demo-rollback")
def demo_rollback(
    max_salary: float = typer.Option(60_000.0, "--max-salary", help="Salary cap for the second hire."),
) -> None:
    """
    Hire two employees in one unit of work; exceeding the cap rolls both back.
    """
    with _context() as ctx:
        service = EmployeeService(ctx)
        outcome = service.hire_pair(
            Employee.build(first_name="John", last_name="Doe", department="Engineering", salary=75000.0),
            Employee.build(first_name="Jane", last_name="Smith", department="Marketing", salary=65000.0),
            max_salary=max_salary,
        )
        if outcome.ok:
            typer.echo(f"Committed: {[e.model_dump() for e in outcome.value]}")
        else:
            typer.echo(f"Rolled back ({outcome.kind}): {outcome.message}")
        typer.echo(f"Employees stored: {len(service.get_all())}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
