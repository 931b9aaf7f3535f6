"""Request bodies accepted by the API.

Fields are optional at the schema level so that missing values produce the
route's own 400 message instead of a generic validation error.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RequestBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LinkTokenRequest(RequestBody):
    user_id: str | None = Field(None, alias="userId")


class ExchangeTokenRequest(RequestBody):
    public_token: str | None = None


class SyncTransactionsRequest(RequestBody):
    access_token: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class SaveTransactionsRequest(RequestBody):
    transactions: list[dict[str, Any]] | None = None
    user_id: str | None = Field(None, alias="userId")


class AccountsRequest(RequestBody):
    access_token: str | None = None
