"""Local DuckDB transaction store.

Mirrors the Supabase ``transactions`` table in a DuckDB file so the API can
run without a hosted database (local development, demos, tests). A new
connection is opened per operation.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb

from ..errors import StorageError, TransactionNotFoundError
from ..models import NewTransaction, Transaction, TransactionUpdate
from .base import TABLE_COLUMNS, to_row

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
    CREATE SEQUENCE IF NOT EXISTS transactions_id_seq START 1;
    CREATE TABLE IF NOT EXISTS transactions (
        id BIGINT PRIMARY KEY DEFAULT nextval('transactions_id_seq'),
        "date" VARCHAR NOT NULL,
        description VARCHAR,
        amount DOUBLE NOT NULL,
        "type" VARCHAR NOT NULL,
        category VARCHAR,
        subcategory VARCHAR,
        account_id VARCHAR,
        user_id VARCHAR
    );
"""

_QUOTED_COLUMNS = ", ".join(f'"{c}"' for c in TABLE_COLUMNS)
_SELECT_COLUMNS = f"id, {_QUOTED_COLUMNS}"


def _records(result: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
    columns = [desc[0] for desc in result.description]
    return [dict(zip(columns, row, strict=False)) for row in result.fetchall()]


def _row_id(transaction_id: int | str) -> int:
    try:
        return int(transaction_id)
    except (TypeError, ValueError) as e:
        raise TransactionNotFoundError(transaction_id) from e


class DuckDBTransactionStore:
    """Transaction store backed by a local DuckDB file."""

    def __init__(self, database_path: Path):
        """Initialize the store and create the table if needed.

        Args:
            database_path: Path to the DuckDB database file
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(_SCHEMA_SQL)
        logger.info(f"Using DuckDB transaction store at {self.database_path}")

    @contextmanager
    def _connect(self) -> Iterator[duckdb.DuckDBPyConnection]:
        try:
            conn = duckdb.connect(str(self.database_path))
        except duckdb.Error as e:
            raise StorageError(f"Failed to open {self.database_path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    def insert_many(self, transactions: Sequence[NewTransaction]) -> int:
        """Insert all records inside one database transaction.

        Raises:
            StorageError: If the insert fails; nothing is written in that case
        """
        rows = [to_row(t) for t in transactions]
        if not rows:
            return 0
        placeholders = ", ".join("?" for _ in TABLE_COLUMNS)
        sql = f"INSERT INTO transactions ({_QUOTED_COLUMNS}) VALUES ({placeholders})"
        params = [[row[c] for c in TABLE_COLUMNS] for row in rows]

        with self._connect() as conn:
            conn.execute("BEGIN TRANSACTION")
            try:
                conn.executemany(sql, params)
                conn.execute("COMMIT")
            except duckdb.Error as e:
                conn.execute("ROLLBACK")
                logger.error(f"DuckDB insert error: {e}")
                raise StorageError("Failed to save transactions", details=str(e)) from e

        logger.info(f"Successfully saved {len(rows)} transactions")
        return len(rows)

    def list_transactions(self, user_id: str | None = None) -> list[Transaction]:
        """Fetch transactions ordered newest first."""
        sql = f"SELECT {_SELECT_COLUMNS} FROM transactions"
        params: list[object] = []
        if user_id:
            sql += " WHERE user_id = ?"
            params.append(user_id)
        sql += ' ORDER BY "date" DESC, id DESC'

        with self._connect() as conn:
            try:
                records = _records(conn.execute(sql, params))
            except duckdb.Error as e:
                raise StorageError(f"Failed to fetch transactions: {e}") from e
        return [Transaction.model_validate(r) for r in records]

    def spending_by_category(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """Fetch category and amount for every debit."""
        sql = """SELECT category, amount FROM transactions WHERE "type" = 'debit'"""
        params: list[object] = []
        if user_id:
            sql += " AND user_id = ?"
            params.append(user_id)

        with self._connect() as conn:
            try:
                records = _records(conn.execute(sql, params))
            except duckdb.Error as e:
                raise StorageError(f"Failed to fetch spending by category: {e}") from e
        return [
            {"category": r["category"] or "Other", "amount": float(r["amount"])}
            for r in records
        ]

    def add(self, transaction: NewTransaction) -> Transaction:
        """Insert one transaction and return it with its id."""
        row = to_row(transaction)
        placeholders = ", ".join("?" for _ in TABLE_COLUMNS)
        sql = (
            f"INSERT INTO transactions ({_QUOTED_COLUMNS}) VALUES ({placeholders}) "
            f"RETURNING {_SELECT_COLUMNS}"
        )
        with self._connect() as conn:
            try:
                records = _records(conn.execute(sql, [row[c] for c in TABLE_COLUMNS]))
            except duckdb.Error as e:
                raise StorageError(f"Failed to add transaction: {e}") from e
        return Transaction.model_validate(records[0])

    def update(
        self, transaction_id: int | str, updates: TransactionUpdate
    ) -> Transaction:
        """Apply a partial update to one transaction.

        Raises:
            TransactionNotFoundError: If no row has ``transaction_id``
            StorageError: If the update fails
        """
        changes = {k: v for k, v in updates.changes().items() if k in TABLE_COLUMNS}
        with self._connect() as conn:
            try:
                if changes:
                    assignments = ", ".join(f'"{k}" = ?' for k in changes)
                    sql = (
                        f"UPDATE transactions SET {assignments} WHERE id = ? "
                        f"RETURNING {_SELECT_COLUMNS}"
                    )
                    params = [*changes.values(), _row_id(transaction_id)]
                else:
                    sql = f"SELECT {_SELECT_COLUMNS} FROM transactions WHERE id = ?"
                    params = [_row_id(transaction_id)]
                records = _records(conn.execute(sql, params))
            except duckdb.Error as e:
                raise StorageError(f"Failed to update transaction: {e}") from e
        if not records:
            raise TransactionNotFoundError(transaction_id)
        return Transaction.model_validate(records[0])

    def delete(self, transaction_id: int | str) -> bool:
        """Delete one transaction by id."""
        with self._connect() as conn:
            try:
                conn.execute(
                    "DELETE FROM transactions WHERE id = ?", [_row_id(transaction_id)]
                )
            except duckdb.Error as e:
                raise StorageError(f"Failed to delete transaction: {e}") from e
        return True
