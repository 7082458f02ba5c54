"""
Result types returned by `TransactionCoordinator.run`.

A unit of work either commits and yields `Success(value)`, or rolls back and
yields `Failure(error)` carrying the domain error that stopped it. Callers must
inspect the result; failures are not raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar, Union

from record_store.errors import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: DomainError

    ok: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def unwrap(self):
        """Re-raise the error that rolled the unit of work back."""
        raise self.error


Outcome = Union[Success[T], Failure]


__all__ = ["Success", "Failure", "Outcome"]
