"""Plaid proxy routes.

The browser never sees Plaid credentials: it asks these routes to create Link
tokens, exchange public tokens, pull transactions and accounts, and persist
the fetched transactions.
"""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import ValidationError

from ...config import ClaritySettings
from ...errors import PlaidProviderError, StorageError
from ...plaid import PlaidGateway, PlaidTransactionSchema, to_transactions
from ...storage import TransactionStore
from ..auth import AuthenticatedUser, get_current_user
from ..dependencies import get_app_settings, get_plaid, get_store
from ..errors import ApiError, bad_request, upstream_failure
from ..rate_limit import AUTH, DATABASE, PLAID, limit
from ..schemas import (
    AccountsRequest,
    ExchangeTokenRequest,
    LinkTokenRequest,
    SaveTransactionsRequest,
    SyncTransactionsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plaid", tags=["plaid"])

# Limiters run before authentication so rejected tokens still count.
PLAID_CALL = [Depends(limit(PLAID)), Depends(get_current_user)]
TOKEN_CALL = [Depends(limit(AUTH)), *PLAID_CALL]
DATABASE_CALL = [Depends(limit(DATABASE)), Depends(get_current_user)]


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise bad_request(
            "Invalid date format", details=f"{field} must be YYYY-MM-DD, got {value!r}"
        ) from e


@router.post("/create-link-token", dependencies=TOKEN_CALL)
def create_link_token(
    payload: LinkTokenRequest | None = None,
    plaid: PlaidGateway = Depends(get_plaid),
) -> dict[str, Any]:
    """Create a Plaid Link token for the given user."""
    user_id = payload.user_id if payload else None
    if not user_id:
        raise bad_request("User ID is required")
    try:
        link_token = plaid.create_link_token(user_id)
    except PlaidProviderError as e:
        raise upstream_failure("Unable to create link token", e.details) from e
    return link_token.model_dump(mode="json")


@router.post("/exchange-token", dependencies=TOKEN_CALL)
def exchange_token(
    payload: ExchangeTokenRequest | None = None,
    plaid: PlaidGateway = Depends(get_plaid),
) -> dict[str, Any]:
    """Exchange a Link public token for an access token."""
    public_token = payload.public_token if payload else None
    if not public_token:
        raise bad_request("Public token is required")
    try:
        result = plaid.exchange_public_token(public_token)
    except PlaidProviderError as e:
        raise upstream_failure("Unable to exchange token", e.details) from e
    return result.model_dump(by_alias=True)


@router.post("/sync-transactions", dependencies=PLAID_CALL)
def sync_transactions(
    payload: SyncTransactionsRequest | None = None,
    plaid: PlaidGateway = Depends(get_plaid),
) -> dict[str, Any]:
    """Fetch one page of transactions for a date range."""
    payload = payload or SyncTransactionsRequest()
    if not (payload.access_token and payload.start_date and payload.end_date):
        raise bad_request("Access token, start date, and end date are required")

    start = _parse_date(payload.start_date, "start_date")
    end = _parse_date(payload.end_date, "end_date")
    if start > end:
        raise bad_request("Invalid date range", details="start_date is after end_date")

    try:
        page = plaid.get_transactions(payload.access_token, start, end)
    except PlaidProviderError as e:
        raise upstream_failure("Unable to sync transactions", e.details) from e
    return page.to_response()


@router.post("/save-transactions", dependencies=DATABASE_CALL)
def save_transactions(
    payload: SaveTransactionsRequest | None = None,
    store: TransactionStore = Depends(get_store),
    settings: ClaritySettings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Convert Plaid records and bulk-insert them for a user.

    Every call inserts; re-saving the same records creates duplicates.
    """
    payload = payload or SaveTransactionsRequest()
    if payload.transactions is None or not payload.user_id:
        raise bad_request("Transactions and userId are required")

    max_batch = settings.server.max_save_transactions
    if len(payload.transactions) > max_batch:
        raise bad_request(
            "Too many transactions",
            message=f"Maximum {max_batch} transactions per request",
        )

    try:
        records = [
            PlaidTransactionSchema.model_validate(item) for item in payload.transactions
        ]
    except ValidationError as e:
        raise bad_request(
            "Invalid transaction payload", details=e.errors(include_url=False)
        ) from e

    rows = to_transactions(records, payload.user_id)
    try:
        count = store.insert_many(rows)
    except StorageError as e:
        logger.error(f"Saving transactions failed: {e}")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Unable to save transactions",
            details=e.details,
        ) from e

    logger.info(f"Saved {count} transactions for user {payload.user_id}")
    return {"success": True, "count": count}


@router.post("/accounts", dependencies=PLAID_CALL)
def get_accounts(
    payload: AccountsRequest | None = None,
    plaid: PlaidGateway = Depends(get_plaid),
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, Any]:
    """List accounts linked under an access token."""
    access_token = payload.access_token if payload else None
    if not access_token:
        raise bad_request("Access token is required")
    try:
        accounts = plaid.get_accounts(access_token)
    except PlaidProviderError as e:
        raise upstream_failure("Unable to fetch accounts", e.details) from e
    logger.debug(f"Returning {len(accounts)} accounts to user {user.id}")
    return {"accounts": [a.model_dump(mode="json") for a in accounts]}
