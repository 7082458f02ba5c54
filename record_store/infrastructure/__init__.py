"""
Infrastructure package for the Transactional Record Store.

Centralizes database connectivity concerns (connections, pooling, timeouts).
Keep this layer focused on I/O and resource management, decoupled from
repository and coordinator logic.
"""

from record_store.infrastructure.db_factory import (
    apply_statement_timeout,
    connection_retry,
    create_pool,
    get_sync_connection,
)

__all__ = [
    "apply_statement_timeout",
    "connection_retry",
    "create_pool",
    "get_sync_connection",
]
