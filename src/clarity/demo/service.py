"""Demo data service backed by a bundled transaction dataset.

Demo mode shows a static, pre-generated set of transactions instead of live
Plaid/Supabase data. The helpers here return the same shapes as the live path
so the dashboard aggregation does not care which source it is fed.
"""

import json
import logging
from datetime import date
from importlib import resources
from pathlib import Path
from typing import Any

from ..analytics import category_totals
from ..models import DemoAccount, Transaction, TransactionType

logger = logging.getLogger(__name__)

DEMO_ACCOUNT_ID = "checking_001"
DEMO_ACCOUNT_NAME = "Demo Checking Account"


def _load_bundled_dataset() -> dict[str, Any]:
    text = resources.files("clarity.demo").joinpath("transactions.json").read_text(
        encoding="utf-8"
    )
    return json.loads(text)


def _as_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


class DemoDataService:
    """Serve the demo dataset and the synthetic demo account."""

    def __init__(
        self,
        dataset_path: Path | None = None,
        records: list[dict[str, Any]] | None = None,
    ):
        """Load the demo dataset.

        Args:
            dataset_path: JSON file with a top-level ``transactions`` list;
                the bundled dataset is used when omitted
            records: Raw transaction records, taking precedence over any file
        """
        if records is None:
            if dataset_path is not None:
                payload = json.loads(Path(dataset_path).read_text(encoding="utf-8"))
            else:
                payload = _load_bundled_dataset()
            records = payload.get("transactions", [])

        self._transactions = [Transaction.model_validate(r) for r in records]
        logger.debug(f"Loaded {len(self._transactions)} demo transactions")

    def get_demo_transactions(self) -> list[Transaction]:
        """Demo transactions with signed amounts (credits +, debits -)."""
        return [
            t.model_copy(update={"amount": t.signed_amount})
            for t in self._transactions
        ]

    def get_demo_accounts(self) -> list[DemoAccount]:
        """The single synthetic account whose balance is the signed sum."""
        total_balance = sum(t.signed_amount for t in self._transactions)
        return [
            DemoAccount(
                id=DEMO_ACCOUNT_ID,
                name=DEMO_ACCOUNT_NAME,
                type="depository",
                balance=total_balance,
            )
        ]

    def get_demo_net_worth(self) -> float:
        """Sum of demo account balances."""
        return sum(account.balance for account in self.get_demo_accounts())

    def get_transactions_by_date_range(
        self, start_date: str | date, end_date: str | date
    ) -> list[Transaction]:
        """Signed demo transactions dated within ``[start_date, end_date]``.

        Raises:
            ValueError: If either bound is not an ISO-8601 date
        """
        start = _as_date(start_date)
        end = _as_date(end_date)
        return [
            t
            for t in self.get_demo_transactions()
            if start <= _as_date(t.date) <= end
        ]

    def get_category_spending(self) -> dict[str, float]:
        """Expense total per category, as computed for live data."""
        return category_totals(self.get_demo_transactions())

    def count(self, type: TransactionType | None = None) -> int:
        """Number of demo transactions, optionally of one type."""
        if type is None:
            return len(self._transactions)
        return sum(1 for t in self._transactions if t.type == type.value)
