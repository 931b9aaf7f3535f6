"""Tests for the Supabase transaction store with mocked clients."""

from unittest.mock import MagicMock

import pytest
from supabase import PostgrestAPIError

from clarity.config import SupabaseConfig
from clarity.errors import StorageError, TransactionNotFoundError
from clarity.models import NewTransaction, TransactionUpdate
from clarity.storage import SupabaseTransactionStore

CONFIG = SupabaseConfig(url="https://example.supabase.co", anon_key="anon")


def _new(amount: float) -> NewTransaction:
    return NewTransaction(
        date="2024-01-05", description="Lunch", amount=amount, type="debit", user_id="u1"
    )


@pytest.fixture
def anon_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def admin_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def supabase_store(anon_client: MagicMock, admin_client: MagicMock) -> SupabaseTransactionStore:
    return SupabaseTransactionStore(CONFIG, client=anon_client, admin_client=admin_client)


class TestSupabaseTransactionStore:
    """Query construction and error mapping."""

    @pytest.mark.unit
    def test_insert_many_sends_one_batch_with_magnitudes(
        self, supabase_store: SupabaseTransactionStore, admin_client: MagicMock
    ) -> None:
        count = supabase_store.insert_many([_new(-12.0), _new(8.0)])

        assert count == 2
        admin_client.table.assert_called_once_with("transactions")
        rows = admin_client.table.return_value.insert.call_args.args[0]
        assert [r["amount"] for r in rows] == [12.0, 8.0]
        assert rows[0]["type"] == "debit"
        assert rows[0]["user_id"] == "u1"

    @pytest.mark.unit
    def test_insert_failure_raises_storage_error(
        self, supabase_store: SupabaseTransactionStore, admin_client: MagicMock
    ) -> None:
        error = PostgrestAPIError({"message": "permission denied", "code": "42501"})
        admin_client.table.return_value.insert.return_value.execute.side_effect = error

        with pytest.raises(StorageError) as exc:
            supabase_store.insert_many([_new(1.0)])

        assert exc.value.details["code"] == "42501"

    @pytest.mark.unit
    def test_list_transactions_filters_by_user(
        self, supabase_store: SupabaseTransactionStore, anon_client: MagicMock
    ) -> None:
        query = anon_client.table.return_value.select.return_value.order.return_value
        query.eq.return_value.execute.return_value = MagicMock(
            data=[
                {
                    "id": 1,
                    "date": "2024-01-05",
                    "description": "Lunch",
                    "amount": 12.0,
                    "type": "debit",
                    "category": None,
                    "user_id": "u1",
                }
            ]
        )

        rows = supabase_store.list_transactions("u1")

        anon_client.table.return_value.select.return_value.order.assert_called_once_with(
            "date", desc=True
        )
        query.eq.assert_called_once_with("user_id", "u1")
        assert rows[0].category == "Other"

    @pytest.mark.unit
    def test_update_missing_row(
        self, supabase_store: SupabaseTransactionStore, admin_client: MagicMock
    ) -> None:
        chain = admin_client.table.return_value.update.return_value.eq.return_value
        chain.execute.return_value = MagicMock(data=[])

        with pytest.raises(TransactionNotFoundError):
            supabase_store.update(42, TransactionUpdate(category="Travel"))

    @pytest.mark.unit
    def test_writes_default_to_anon_client(self, anon_client: MagicMock) -> None:
        store = SupabaseTransactionStore(CONFIG, client=anon_client)
        assert store.admin_client is anon_client
