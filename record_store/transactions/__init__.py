"""
Transactions package for the Transactional Record Store.

Exports the coordinator, the unit-of-work handle and the result types.
"""

from record_store.transactions.coordinator import (
    TransactionCoordinator,
    UnitOfWork,
    in_transaction,
)
from record_store.transactions.outcome import Failure, Outcome, Success

__all__ = [
    "TransactionCoordinator",
    "UnitOfWork",
    "in_transaction",
    "Success",
    "Failure",
    "Outcome",
]
