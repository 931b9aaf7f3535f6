"""Transaction persistence backends."""

from ..config import ClaritySettings
from .base import TransactionStore
from .duckdb_store import DuckDBTransactionStore
from .supabase_store import SupabaseTransactionStore


def create_store(settings: ClaritySettings) -> TransactionStore:
    """Build the store selected by ``settings.storage.backend``.

    Args:
        settings: Application settings

    Returns:
        TransactionStore: The configured store
    """
    if settings.storage.backend == "duckdb":
        return DuckDBTransactionStore(settings.storage.duckdb_path)
    return SupabaseTransactionStore(settings.supabase)


__all__ = [
    "DuckDBTransactionStore",
    "SupabaseTransactionStore",
    "TransactionStore",
    "create_store",
]
