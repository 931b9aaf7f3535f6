"""Domain models for stored transactions.

The transactions table is the only domain entity. ``amount`` is persisted as a
non-negative magnitude and the direction lives in ``type``; every write shape
here normalizes the amount with ``abs()`` before it reaches a store.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionType(str, Enum):
    """Direction of a transaction."""

    CREDIT = "credit"
    DEBIT = "debit"


class BaseRecord(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
        str_strip_whitespace=True,
        from_attributes=True,
        populate_by_name=True,
    )

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        """Accept date/datetime objects and store the ISO calendar date."""
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        return v


class Transaction(BaseRecord):
    """A transaction as read back from storage or the demo dataset."""

    id: int | str | None = None
    date: str = Field(..., description="ISO-8601 calendar date")
    description: str = ""
    amount: float
    type: TransactionType
    category: str = "Other"
    subcategory: str = ""
    account_id: str = ""
    user_id: str | None = None

    @field_validator("description", "subcategory", "account_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Stored rows may carry NULL text columns."""
        return "" if v is None else v

    @field_validator("category", mode="before")
    @classmethod
    def none_to_other(cls, v: Any) -> Any:
        """Uncategorized rows group under "Other"."""
        return v or "Other"

    @property
    def month(self) -> str:
        """The ``YYYY-MM`` bucket this transaction falls in."""
        return self.date[:7]

    @property
    def signed_amount(self) -> float:
        """Amount with the sign implied by ``type``."""
        magnitude = abs(self.amount)
        return magnitude if self.type == TransactionType.CREDIT.value else -magnitude


class NewTransaction(BaseRecord):
    """Insert shape for the transactions table (no id)."""

    date: str
    description: str = ""
    amount: float
    type: TransactionType
    category: str = "Other"
    subcategory: str = ""
    account_id: str = ""
    user_id: str | None = None

    @field_validator("amount")
    @classmethod
    def store_magnitude(cls, v: float) -> float:
        """Amounts are always stored as positive magnitudes."""
        return abs(v)

    @field_validator("date")
    @classmethod
    def validate_iso_date(cls, v: str) -> str:
        """Reject dates that are not ISO-8601."""
        date.fromisoformat(v[:10])
        return v


class TransactionUpdate(BaseRecord):
    """Partial update for a stored transaction."""

    date: str | None = None
    description: str | None = None
    amount: float | None = None
    type: TransactionType | None = None
    category: str | None = None
    subcategory: str | None = None
    account_id: str | None = None

    @field_validator("amount")
    @classmethod
    def store_magnitude(cls, v: float | None) -> float | None:
        """Amounts are always stored as positive magnitudes."""
        return None if v is None else abs(v)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on this update."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class DemoAccount(BaseModel):
    """The synthetic account shown in demo mode."""

    id: str
    name: str
    type: str
    balance: float
