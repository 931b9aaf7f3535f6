"""Tests for the transaction domain models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from clarity.models import (
    NewTransaction,
    Transaction,
    TransactionType,
    TransactionUpdate,
)


class TestTransaction:
    """Read-side transaction model."""

    @pytest.mark.unit
    def test_null_columns_get_defaults(self) -> None:
        t = Transaction.model_validate({
            "id": 7,
            "date": "2024-02-03",
            "description": None,
            "amount": 10.0,
            "type": "debit",
            "category": None,
            "subcategory": None,
            "account_id": None,
        })

        assert t.description == ""
        assert t.category == "Other"
        assert t.subcategory == ""
        assert t.account_id == ""

    @pytest.mark.unit
    def test_month_and_signed_amount(self) -> None:
        credit = Transaction(date="2024-03-15", amount=100.0, type=TransactionType.CREDIT)
        debit = Transaction(date="2024-03-16", amount=40.0, type=TransactionType.DEBIT)

        assert credit.month == "2024-03"
        assert credit.signed_amount == 100.0
        assert debit.signed_amount == -40.0

    @pytest.mark.unit
    def test_date_objects_become_iso_strings(self) -> None:
        from_date = Transaction(date=date(2024, 1, 2), amount=1.0, type="credit")
        from_datetime = Transaction(
            date=datetime(2024, 1, 2, 13, 45), amount=1.0, type="credit"
        )

        assert from_date.date == "2024-01-02"
        assert from_datetime.date == "2024-01-02"

    @pytest.mark.unit
    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            Transaction(date="2024-01-01", amount=1.0, type="transfer")


class TestNewTransaction:
    """Insert shape normalization."""

    @pytest.mark.unit
    @pytest.mark.parametrize("amount", [-25.5, 25.5])
    def test_amount_is_stored_as_magnitude(self, amount: float) -> None:
        t = NewTransaction(date="2024-01-01", amount=amount, type="debit")
        assert t.amount == 25.5

    @pytest.mark.unit
    def test_rejects_non_iso_date(self) -> None:
        with pytest.raises(ValidationError):
            NewTransaction(date="01/15/2024", amount=1.0, type="debit")

    @pytest.mark.unit
    def test_type_serializes_as_string(self) -> None:
        t = NewTransaction(date="2024-01-01", amount=1.0, type=TransactionType.CREDIT)
        assert t.model_dump()["type"] == "credit"


class TestTransactionUpdate:
    @pytest.mark.unit
    def test_changes_only_include_set_fields(self) -> None:
        update = TransactionUpdate(category="Travel", amount=-12.0)
        assert update.changes() == {"category": "Travel", "amount": 12.0}

    @pytest.mark.unit
    def test_empty_update_has_no_changes(self) -> None:
        assert TransactionUpdate().changes() == {}
