"""Plaid API gateway using straightforward SDK calls.

This module wraps the Plaid Python SDK with the handful of calls the backend
proxies: Link token creation, public token exchange, a single page of
transactions, and account lookup. Each call validates the SDK response into
the schemas in ``clarity.plaid.schemas``. Failures are raised as
``PlaidProviderError`` with Plaid's error payload attached; nothing is retried.
"""

import json
import logging
from datetime import date
from typing import Any

from plaid.api import plaid_api
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.exceptions import ApiException
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import (
    ItemPublicTokenExchangeRequest,
)
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from pydantic import ValidationError

from ..config import PlaidConfig
from ..errors import PlaidProviderError
from .schemas import (
    AccountSchema,
    LinkTokenResponse,
    TokenExchangeResult,
    TransactionsPage,
)

logger = logging.getLogger(__name__)

PLAID_HOSTS: dict[str, str] = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}


def _to_plain(response: Any) -> dict[str, Any]:
    """Turn an SDK response model into a plain dictionary."""
    if isinstance(response, dict):
        return response
    to_dict = getattr(response, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {k: v for k, v in vars(response).items() if not k.startswith("_")}


def parse_api_exception(exc: ApiException) -> Any:
    """Extract Plaid's JSON error body from an SDK exception.

    Args:
        exc: The exception raised by the SDK

    Returns:
        The decoded error payload, or the exception text if the body is not JSON
    """
    body = getattr(exc, "body", None)
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str) and body:
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            return body
    return str(exc)


class PlaidGateway:
    """Thin Plaid API client used by the API route handlers."""

    def __init__(self, config: PlaidConfig, client: Any | None = None):
        """Initialize the gateway.

        Args:
            config: Plaid credentials and Link configuration
            client: Pre-built ``PlaidApi`` instance; built from ``config`` if omitted
        """
        self.config = config
        if client is None:
            configuration = Configuration(
                host=self._get_plaid_environment(),
                api_key={
                    "clientId": config.client_id,
                    "secret": config.secret,
                },
            )
            client = plaid_api.PlaidApi(ApiClient(configuration))
        self.client: Any = client

        logger.info(f"Initialized Plaid gateway for {config.environment} environment")

    def _get_plaid_environment(self) -> str:
        """Get the Plaid API base URL for the configured environment.

        Returns:
            str: The Plaid API base URL
        """
        return PLAID_HOSTS.get(self.config.environment.lower(), PLAID_HOSTS["sandbox"])

    def _call(self, operation: str, method_name: str, request: Any) -> Any:
        method = getattr(self.client, method_name)
        try:
            return method(request)
        except ApiException as e:
            details = parse_api_exception(e)
            logger.error(f"Plaid {operation} failed: {details}")
            raise PlaidProviderError(
                f"Plaid {operation} failed", details=details, status=e.status
            ) from e
        except Exception as e:
            logger.error(f"Plaid {operation} failed: {e}")
            raise PlaidProviderError(f"Plaid {operation} failed", details=str(e)) from e

    def create_link_token(self, user_id: str) -> LinkTokenResponse:
        """Create a Link token for the given application user.

        Args:
            user_id: Application user id passed to Plaid as ``client_user_id``

        Returns:
            LinkTokenResponse: The link token and its expiration

        Raises:
            PlaidProviderError: If Plaid rejects the request
        """
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=user_id),
            client_name=self.config.client_name,
            products=[Products(p) for p in self.config.products],
            country_codes=[CountryCode(c) for c in self.config.country_codes],
            language=self.config.language,
        )
        response = self._call("link token create", "link_token_create", request)
        try:
            return LinkTokenResponse.model_validate(_to_plain(response))
        except ValidationError as e:
            logger.error(f"Unexpected Plaid link token payload: {e}")
            raise PlaidProviderError(
                "Unexpected Plaid link token payload",
                details=json.loads(e.json(include_url=False)),
            ) from e

    def exchange_public_token(self, public_token: str) -> TokenExchangeResult:
        """Exchange a one-time Link public token for an access token.

        Args:
            public_token: Token returned by the Link UI

        Returns:
            TokenExchangeResult: The access token and item id

        Raises:
            PlaidProviderError: If Plaid rejects the token
        """
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        logger.debug("Exchanging public token with Plaid")
        response = _to_plain(
            self._call("public token exchange", "item_public_token_exchange", request)
        )
        try:
            result = TokenExchangeResult.model_validate(response)
        except ValidationError as e:
            logger.error(f"Unexpected Plaid token exchange payload: {e}")
            raise PlaidProviderError(
                "Unexpected Plaid token exchange payload",
                details=json.loads(e.json(include_url=False)),
            ) from e
        logger.info(f"Token exchange successful, item ID: {result.item_id}")
        return result

    def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> TransactionsPage:
        """Fetch one page of transactions for a date range.

        Only the first page Plaid returns is fetched; ``total_transactions``
        tells the caller how many exist in the range.

        Args:
            access_token: Plaid access token for the item
            start_date: First day of the range (inclusive)
            end_date: Last day of the range (inclusive)

        Returns:
            TransactionsPage: Validated transactions, accounts and total count

        Raises:
            PlaidProviderError: If the API call fails
        """
        request = TransactionsGetRequest(
            access_token=access_token,
            start_date=start_date,
            end_date=end_date,
        )
        logger.debug(f"Fetching transactions from Plaid: {start_date} to {end_date}")
        response = _to_plain(
            self._call("transactions get", "transactions_get", request)
        )
        try:
            page = TransactionsPage.model_validate({
                "transactions": response.get("transactions") or [],
                "accounts": response.get("accounts") or [],
                "total_transactions": response.get("total_transactions") or 0,
            })
        except ValidationError as e:
            logger.error(f"Unexpected Plaid transactions payload: {e}")
            raise PlaidProviderError(
                "Unexpected Plaid transactions payload",
                details=json.loads(e.json(include_url=False)),
            ) from e
        logger.info(f"Transactions fetched successfully: {len(page.transactions)}")
        return page

    def get_accounts(self, access_token: str) -> list[AccountSchema]:
        """Fetch the accounts linked under an access token.

        Args:
            access_token: Plaid access token for the item

        Returns:
            list[AccountSchema]: Validated accounts

        Raises:
            PlaidProviderError: If the API call fails
        """
        request = AccountsGetRequest(access_token=access_token)
        response = _to_plain(self._call("accounts get", "accounts_get", request))
        try:
            accounts = [
                AccountSchema.model_validate(acct)
                for acct in response.get("accounts") or []
            ]
        except ValidationError as e:
            logger.error(f"Unexpected Plaid accounts payload: {e}")
            raise PlaidProviderError(
                "Unexpected Plaid accounts payload",
                details=json.loads(e.json(include_url=False)),
            ) from e
        logger.info(f"Accounts fetched successfully: {len(accounts)}")
        return accounts
