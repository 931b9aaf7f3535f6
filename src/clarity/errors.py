"""Exception types shared across Clarity Finance.

Provider and storage failures are raised as these types so the API layer can
map them onto HTTP responses without knowing which SDK produced them.
"""

from typing import Any


class ClarityError(Exception):
    """Base class for all application errors."""


class PlaidProviderError(ClarityError):
    """A Plaid API call failed.

    Attributes:
        details: The provider's error payload (``error_code``, ``error_message``,
            ...) when it could be parsed, otherwise the exception text.
        status: HTTP status returned by Plaid, if any.
    """

    def __init__(self, message: str, details: Any = None, status: int | None = None):
        super().__init__(message)
        self.details = details if details is not None else message
        self.status = status


class StorageError(ClarityError):
    """A persistence provider call failed."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details if details is not None else message


class TransactionNotFoundError(StorageError):
    """No transaction matched the requested id."""

    def __init__(self, transaction_id: int | str):
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class AuthenticationError(ClarityError):
    """A bearer token could not be validated."""
