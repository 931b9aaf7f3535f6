"""Stored transaction routes for the authenticated user."""

import logging
import re
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from ...analytics import (
    DashboardSummary,
    build_dashboard,
    filter_transactions,
    rank_spending,
    unique_categories,
)
from ...errors import StorageError, TransactionNotFoundError
from ...models import NewTransaction, Transaction, TransactionUpdate
from ...storage import TransactionStore
from ..auth import AuthenticatedUser, get_current_user
from ..dependencies import get_store
from ..errors import ApiError, bad_request

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

router = APIRouter(tags=["transactions"], dependencies=[Depends(get_current_user)])


def _storage_failure(error: str, exc: StorageError) -> ApiError:
    logger.error(f"{error}: {exc}")
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details=exc.details)


def validate_month(month: str | None = None) -> str | None:
    """Reject month filters that are neither ``YYYY-MM`` nor ``all``."""
    if month is None or month == "all" or MONTH_PATTERN.match(month):
        return month
    raise bad_request("Invalid month", details="month must be YYYY-MM or 'all'")


@router.get("/api/transactions")
def list_transactions(
    search: str | None = Query(None),
    category: str | None = Query(None),
    type: str | None = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
    store: TransactionStore = Depends(get_store),
) -> dict[str, Any]:
    """The caller's transactions, newest first, with optional filters."""
    try:
        transactions = store.list_transactions(user.id)
    except StorageError as e:
        raise _storage_failure("Unable to fetch transactions", e) from e
    filtered = filter_transactions(
        transactions, search=search, category=category, type=type
    )
    return {
        "transactions": [t.model_dump() for t in filtered],
        "count": len(filtered),
        "categories": unique_categories(transactions),
    }


@router.post("/api/transactions", status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction: NewTransaction,
    user: AuthenticatedUser = Depends(get_current_user),
    store: TransactionStore = Depends(get_store),
) -> Transaction:
    """Record a manual transaction owned by the caller."""
    owned = transaction.model_copy(update={"user_id": user.id})
    try:
        return store.add(owned)
    except StorageError as e:
        raise _storage_failure("Unable to create transaction", e) from e


@router.get("/api/transactions/spending-by-category")
def spending_by_category(
    user: AuthenticatedUser = Depends(get_current_user),
    store: TransactionStore = Depends(get_store),
) -> dict[str, Any]:
    """Debit totals per category for the caller, largest first."""
    try:
        rows = store.spending_by_category(user.id)
    except StorageError as e:
        raise _storage_failure("Unable to fetch spending by category", e) from e
    return {"spending": rank_spending(rows)}


@router.patch("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str,
    updates: TransactionUpdate,
    store: TransactionStore = Depends(get_store),
) -> Transaction:
    """Apply a partial update to one stored transaction."""
    if not updates.changes():
        raise bad_request("No fields to update")
    try:
        return store.update(transaction_id, updates)
    except TransactionNotFoundError as e:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Transaction not found") from e
    except StorageError as e:
        raise _storage_failure("Unable to update transaction", e) from e


@router.delete("/api/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    store: TransactionStore = Depends(get_store),
) -> dict[str, Any]:
    """Delete one stored transaction."""
    try:
        store.delete(transaction_id)
    except TransactionNotFoundError as e:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Transaction not found") from e
    except StorageError as e:
        raise _storage_failure("Unable to delete transaction", e) from e
    return {"success": True}


@router.get("/api/dashboard")
def dashboard(
    month: str | None = Depends(validate_month),
    user: AuthenticatedUser = Depends(get_current_user),
    store: TransactionStore = Depends(get_store),
) -> DashboardSummary:
    """Dashboard figures for the caller's stored transactions."""
    try:
        transactions = store.list_transactions(user.id)
    except StorageError as e:
        raise _storage_failure("Unable to build dashboard", e) from e
    return build_dashboard(transactions, month)
