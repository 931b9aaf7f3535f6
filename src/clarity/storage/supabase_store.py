"""Supabase-backed transaction store.

Reads go through the anon-key client; writes use the service role key when one
is configured so row-level security does not block server-side inserts.
"""

import logging
from collections.abc import Sequence
from typing import Any

from supabase import Client, PostgrestAPIError, create_client

from ..config import SupabaseConfig
from ..errors import StorageError, TransactionNotFoundError
from ..models import NewTransaction, Transaction, TransactionUpdate
from .base import to_row

logger = logging.getLogger(__name__)


def _api_error_details(error: PostgrestAPIError) -> Any:
    to_json = getattr(error, "json", None)
    if callable(to_json):
        return to_json()
    return str(error)


class SupabaseTransactionStore:
    """Transaction store backed by the Supabase ``transactions`` table."""

    def __init__(
        self,
        config: SupabaseConfig,
        client: Client | None = None,
        admin_client: Client | None = None,
    ):
        """Initialize the store.

        Args:
            config: Supabase project configuration
            client: Client built with the anon key; created from ``config`` if omitted
            admin_client: Client used for writes; defaults to a service-role
                client when ``config.service_role_key`` is set, else ``client``
        """
        self.config = config
        self.table = config.table
        self.client: Client = client or create_client(config.url, config.anon_key)

        if admin_client is not None:
            self.admin_client = admin_client
        elif config.service_role_key:
            logger.info("Using service role key for transaction writes")
            self.admin_client = create_client(config.url, config.service_role_key)
        else:
            logger.info("Service role key not configured; writes use the anon client")
            self.admin_client = self.client

    def insert_many(self, transactions: Sequence[NewTransaction]) -> int:
        """Insert all records with one Supabase call.

        Args:
            transactions: Records to insert

        Returns:
            int: Number of records sent

        Raises:
            StorageError: If Supabase rejects the insert
        """
        rows = [to_row(t) for t in transactions]
        if not rows:
            return 0
        try:
            self.admin_client.table(self.table).insert(rows).execute()
        except PostgrestAPIError as e:
            logger.error(f"Supabase insert error: {e}")
            raise StorageError(
                "Failed to save transactions", details=_api_error_details(e)
            ) from e
        logger.info(f"Successfully saved {len(rows)} transactions")
        return len(rows)

    def list_transactions(self, user_id: str | None = None) -> list[Transaction]:
        """Fetch transactions ordered newest first.

        Args:
            user_id: Restrict to one owner when given

        Returns:
            list[Transaction]: Stored transactions

        Raises:
            StorageError: If the query fails
        """
        query = self.client.table(self.table).select("*").order("date", desc=True)
        if user_id:
            query = query.eq("user_id", user_id)
        try:
            response = query.execute()
        except PostgrestAPIError as e:
            logger.error(f"Supabase select error: {e}")
            raise StorageError(
                f"Failed to fetch transactions: {e}", details=_api_error_details(e)
            ) from e
        rows = response.data or []
        logger.debug(f"Fetched {len(rows)} transactions for user {user_id}")
        return [Transaction.model_validate(row) for row in rows]

    def spending_by_category(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """Fetch category and amount for every debit."""
        query = self.client.table(self.table).select("category, amount").eq(
            "type", "debit"
        )
        if user_id:
            query = query.eq("user_id", user_id)
        try:
            response = query.execute()
        except PostgrestAPIError as e:
            raise StorageError(
                f"Failed to fetch spending by category: {e}",
                details=_api_error_details(e),
            ) from e
        return [
            {"category": row.get("category") or "Other", "amount": float(row["amount"])}
            for row in response.data or []
        ]

    def add(self, transaction: NewTransaction) -> Transaction:
        """Insert one transaction and return the stored row."""
        try:
            response = (
                self.admin_client.table(self.table).insert([to_row(transaction)]).execute()
            )
        except PostgrestAPIError as e:
            raise StorageError(
                f"Failed to add transaction: {e}", details=_api_error_details(e)
            ) from e
        return Transaction.model_validate(response.data[0])

    def update(
        self, transaction_id: int | str, updates: TransactionUpdate
    ) -> Transaction:
        """Apply a partial update to one transaction.

        Raises:
            TransactionNotFoundError: If no row has ``transaction_id``
            StorageError: If the update fails
        """
        try:
            response = (
                self.admin_client.table(self.table)
                .update(updates.changes())
                .eq("id", transaction_id)
                .execute()
            )
        except PostgrestAPIError as e:
            raise StorageError(
                f"Failed to update transaction: {e}", details=_api_error_details(e)
            ) from e
        if not response.data:
            raise TransactionNotFoundError(transaction_id)
        return Transaction.model_validate(response.data[0])

    def delete(self, transaction_id: int | str) -> bool:
        """Delete one transaction by id."""
        try:
            self.admin_client.table(self.table).delete().eq(
                "id", transaction_id
            ).execute()
        except PostgrestAPIError as e:
            raise StorageError(
                f"Failed to delete transaction: {e}", details=_api_error_details(e)
            ) from e
        return True
