"""Plaid integration: SDK gateway, response schemas and record transforms."""

from .client import PlaidGateway
from .schemas import (
    AccountSchema,
    LinkTokenResponse,
    PlaidTransactionSchema,
    TokenExchangeResult,
    TransactionsPage,
)
from .transform import to_transaction, to_transactions

__all__ = [
    "AccountSchema",
    "LinkTokenResponse",
    "PlaidGateway",
    "PlaidTransactionSchema",
    "TokenExchangeResult",
    "TransactionsPage",
    "to_transaction",
    "to_transactions",
]
