"""
Explicit transactional unit for multi-record financial mutations.

Escrow, Order and Dispute records for one order must never disagree, so
every function that mutates them takes an AtomicUnit as its first argument.
The unit is only obtainable from atomic_unit(), which opens the database
transaction, so a mutation path cannot silently run in autocommit mode.

Usage:
    from core.transactions import atomic_unit

    with atomic_unit() as unit:
        result = EscrowLedger.confirm_delivery(unit, escrow, actor=buyer)
        unit.on_commit(lambda: notify(...))

    # Inside a service
    def mark_funded(cls, unit: AtomicUnit, escrow: Escrow) -> TransitionResult:
        unit.ensure_active()
        ...
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import DEFAULT_DB_ALIAS, transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


class TransactionRequiredError(RuntimeError):
    """Raised when a mutating function runs outside its atomic unit."""


@dataclass(frozen=True)
class AtomicUnit:
    """
    Handle for one open database transaction.

    Attributes:
        using: Database alias the transaction was opened on
    """

    using: str = DEFAULT_DB_ALIAS

    @property
    def is_active(self) -> bool:
        """Whether the connection is currently inside an atomic block."""
        return transaction.get_connection(self.using).in_atomic_block

    def ensure_active(self) -> None:
        """
        Fail loudly if called outside the transaction this unit represents.

        Raises:
            TransactionRequiredError: No atomic block is open on the alias
        """
        if not self.is_active:
            raise TransactionRequiredError(
                f"Mutation attempted outside an atomic unit (using={self.using!r})"
            )

    def on_commit(self, func: Callable[[], None]) -> None:
        """Run func after the surrounding transaction commits."""
        transaction.on_commit(func, using=self.using)

    def savepoint(self) -> transaction.Atomic:
        """
        Nested atomic block for a write whose failure is an expected outcome.

        A database error raised inside it rolls back to the savepoint and
        leaves the enclosing unit usable.
        """
        self.ensure_active()
        return transaction.atomic(using=self.using)


@contextmanager
def atomic_unit(using: str | None = None) -> Generator[AtomicUnit, None, None]:
    """
    Open a database transaction and yield its AtomicUnit.

    Nested calls create savepoints, exactly like transaction.atomic().

    Args:
        using: Database alias (default connection when None)

    Yields:
        AtomicUnit bound to the open transaction
    """
    alias = using or DEFAULT_DB_ALIAS
    with transaction.atomic(using=alias):
        yield AtomicUnit(using=alias)
