"""Typed views of the Plaid payloads the API proxies.

SDK responses are validated here before they reach a route handler, and the
save-transactions endpoint validates the records the browser posts back with
the same transaction model. Only the fields the frontend and the record
transform use are typed; anything else Plaid sends is kept as-is and
returned to the browser.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseSchema(BaseModel):
    """Lenient base for Plaid payloads: unknown keys pass through untouched."""

    model_config = ConfigDict(
        extra="allow",
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _plain_string(v: Any) -> Any:
    """SDK enum-like values (``AccountType`` etc.) become their string value."""
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, Enum):
        return v.value
    value = getattr(v, "value", None)
    return value if isinstance(value, str) else str(v)


class BalanceSchema(BaseSchema):
    available: float | None = None
    current: float | None = None
    limit: float | None = None
    iso_currency_code: str | None = None


class AccountSchema(BaseSchema):
    """A linked bank account."""

    account_id: str
    name: str
    official_name: str | None = None
    mask: str | None = None
    type: str
    subtype: str | None = None
    balances: BalanceSchema = Field(default_factory=BalanceSchema)

    @field_validator("type", "subtype", mode="before")
    @classmethod
    def account_kind_as_string(cls, v: Any) -> Any:
        return _plain_string(v)


class PlaidTransactionSchema(BaseSchema):
    """One record from ``/transactions/get``.

    ``amount`` keeps Plaid's sign; the direction is resolved when the record
    is converted for storage.
    """

    transaction_id: str | None = None
    account_id: str
    amount: float
    iso_currency_code: str | None = None
    transaction_date: date = Field(..., alias="date")
    authorized_date: date | None = None
    name: str | None = None
    merchant_name: str | None = None
    category: list[str] = Field(default_factory=list)
    category_id: str | None = None
    personal_finance_category: dict[str, Any] | None = None
    payment_channel: str | None = None
    pending: bool = False
    logo_url: str | None = None

    @field_validator("payment_channel", mode="before")
    @classmethod
    def channel_as_string(cls, v: Any) -> Any:
        return _plain_string(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_as_list(cls, v: Any) -> Any:
        """Plaid sends a list, null, or (from older clients) a bare string."""
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v if item is not None]
        return [str(v)]

    @field_validator("personal_finance_category", mode="before")
    @classmethod
    def finance_category_as_dict(cls, v: Any) -> Any:
        if v is None or isinstance(v, dict):
            return v
        to_dict = getattr(v, "to_dict", None)
        return to_dict() if callable(to_dict) else None


class LinkTokenResponse(BaseSchema):
    """Response of Plaid's ``/link/token/create``."""

    link_token: str
    expiration: datetime | None = None
    request_id: str | None = None


class TokenExchangeResult(BaseModel):
    """Access token and item id, serialized in camelCase for the browser."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    item_id: str = Field(..., alias="itemId")


class TransactionsPage(BaseModel):
    """The first page of a ``/transactions/get`` range."""

    transactions: list[PlaidTransactionSchema]
    accounts: list[AccountSchema]
    total_transactions: int = 0

    def to_response(self) -> dict[str, Any]:
        """Serialize with Plaid's field names (``date`` rather than ``transaction_date``)."""
        return {
            "transactions": [
                t.model_dump(mode="json", by_alias=True) for t in self.transactions
            ],
            "accounts": [a.model_dump(mode="json") for a in self.accounts],
            "total_transactions": self.total_transactions,
        }
