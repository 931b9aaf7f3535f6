"""Map Plaid transaction records onto the stored transaction shape."""

from collections.abc import Iterable

from ..models import NewTransaction, TransactionType
from .schemas import PlaidTransactionSchema

DEFAULT_CATEGORY = "Other"


def to_transaction(record: PlaidTransactionSchema, user_id: str) -> NewTransaction:
    """Convert one Plaid record into an insertable transaction.

    The sign of Plaid's amount selects the type (positive amounts are stored
    as credits, zero and negative as debits) and the stored amount is the
    magnitude. The first two entries of Plaid's category list become
    ``category``/``subcategory``.

    Args:
        record: Validated Plaid transaction
        user_id: Owner of the transaction

    Returns:
        NewTransaction: The record ready for a bulk insert
    """
    categories = record.category
    return NewTransaction(
        date=record.transaction_date.isoformat(),
        description=record.name or record.merchant_name or "",
        amount=abs(record.amount),
        type=TransactionType.CREDIT if record.amount > 0 else TransactionType.DEBIT,
        category=categories[0] if categories else DEFAULT_CATEGORY,
        subcategory=categories[1] if len(categories) > 1 else "",
        account_id=record.account_id,
        user_id=user_id,
    )


def to_transactions(
    records: Iterable[PlaidTransactionSchema], user_id: str
) -> list[NewTransaction]:
    """Convert a batch of Plaid records."""
    return [to_transaction(record, user_id) for record in records]
