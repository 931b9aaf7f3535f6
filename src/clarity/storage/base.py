"""Storage interface for the transactions table."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from ..models import NewTransaction, Transaction, TransactionUpdate

TABLE_COLUMNS: tuple[str, ...] = (
    "date",
    "description",
    "amount",
    "type",
    "category",
    "subcategory",
    "account_id",
    "user_id",
)


@runtime_checkable
class TransactionStore(Protocol):
    """Persistence operations used by the API.

    Implementations store ``amount`` as a magnitude; callers hand them
    ``NewTransaction``/``TransactionUpdate`` models that already enforce it.
    """

    def insert_many(self, transactions: Sequence[NewTransaction]) -> int:
        """Insert all records in a single call; returns the number inserted."""
        ...

    def list_transactions(self, user_id: str | None = None) -> list[Transaction]:
        """All transactions (optionally for one user), newest first."""
        ...

    def spending_by_category(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """``{category, amount}`` rows for every debit."""
        ...

    def add(self, transaction: NewTransaction) -> Transaction:
        """Insert one record and return it with its id."""
        ...

    def update(self, transaction_id: int | str, updates: TransactionUpdate) -> Transaction:
        """Apply a partial update; raises ``TransactionNotFoundError`` if absent."""
        ...

    def delete(self, transaction_id: int | str) -> bool:
        """Delete a record by id."""
        ...


def to_row(transaction: NewTransaction) -> dict[str, Any]:
    """Column mapping for an insert."""
    return transaction.model_dump(mode="json")
