"""
Unit-of-work scope tracking.

Holds the id of the unit of work active in the current thread / asyncio task.
The coordinator sets it; repositories consult it to refuse autocommit writes
that would escape an open unit of work.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

active_tx: ContextVar[Optional[str]] = ContextVar("record_store_active_tx", default=None)


def in_transaction() -> bool:
    """Whether the current logical caller is inside a unit of work."""
    return active_tx.get() is not None


__all__ = ["active_tx", "in_transaction"]
