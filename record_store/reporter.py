from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table


def _format_cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def build_table(rows: Sequence[Dict[str, Any]], title: str, columns: Optional[List[str]] = None) -> Table:
    """
    Build a rich table of serialized records, one column per field.

    The `id` column comes first; numeric columns are right-aligned.
    """
    if columns is None:
        columns = list(rows[0].keys()) if rows else ["id"]
    if "id" in columns:
        columns = ["id"] + [c for c in columns if c != "id"]

    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"{len(rows)} record(s), insertion order",
    )
    for name in columns:
        sample = next((r.get(name) for r in rows if r.get(name) is not None), None)
        numeric = isinstance(sample, (int, float)) and not isinstance(sample, bool)
        table.add_column(
            name,
            justify="right" if numeric else "left",
            style="cyan" if name == "id" else None,
            no_wrap=name == "id",
        )
    for row in rows:
        table.add_row(*(_format_cell(row.get(name)) for name in columns))
    return table


def print_records(rows: Sequence[Dict[str, Any]], title: str, console: Optional[Console] = None) -> None:
    """
    Render serialized records as a rich table.
    """
    console = console or Console()

    if not rows:
        console.print(f"[yellow]No {title.lower()} to display.[/yellow]")
        return

    console.print(build_table(rows, title))


__all__ = ["build_table", "print_records"]
