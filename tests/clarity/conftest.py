"""Shared pytest fixtures for Clarity Finance tests."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from clarity.api import create_app
from clarity.api.auth import TestModeAuthenticator
from clarity.config import (
    ClaritySettings,
    PlaidConfig,
    ServerConfig,
    StorageConfig,
    SupabaseConfig,
    clear_settings_cache,
)
from clarity.demo import DemoDataService
from clarity.plaid import PlaidGateway
from clarity.storage import DuckDBTransactionStore

LEGACY_ENV_VARS = (
    "PLAID_CLIENT_ID",
    "PLAID_SECRET",
    "PLAID_ENV",
    "VITE_SUPABASE_URL",
    "SUPABASE_URL",
    "VITE_SUPABASE_ANON_KEY",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "PORT",
    "NODE_ENV",
    "FRONTEND_URL",
    "TEST_MODE",
    "TEST_USER_ID",
)

TEST_USER_ID = "user-123"


@pytest.fixture(autouse=True)
def clean_settings_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate every test from the host environment and the settings cache."""
    for name in LEGACY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


def _plaid_transaction(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "transaction_id": "txn_1",
        "account_id": "acc_1",
        "amount": 12.5,
        "iso_currency_code": "USD",
        "date": "2024-01-15",
        "name": "Coffee Shop",
        "merchant_name": "Blue Bottle",
        "category": ["Food and Drink", "Coffee Shop"],
        "pending": False,
    }
    record.update(overrides)
    return record


@pytest.fixture
def plaid_transaction() -> Callable[..., dict[str, Any]]:
    """Factory for Plaid ``/transactions/get`` records with sensible defaults."""
    return _plaid_transaction


@pytest.fixture
def settings(tmp_path: Path) -> ClaritySettings:
    """Test-mode settings backed by a temporary DuckDB file."""
    return ClaritySettings(
        plaid=PlaidConfig(client_id="test_client_id", secret="test_secret"),
        supabase=SupabaseConfig(url="https://example.supabase.co", anon_key="anon"),
        storage=StorageConfig(backend="duckdb", duckdb_path=tmp_path / "test.duckdb"),
        server=ServerConfig(test_mode=True, test_user_id=TEST_USER_ID),
    )


@pytest.fixture
def plaid_client() -> MagicMock:
    """Stand-in for the Plaid SDK's ``PlaidApi``."""
    return MagicMock()


@pytest.fixture
def plaid_gateway(settings: ClaritySettings, plaid_client: MagicMock) -> PlaidGateway:
    return PlaidGateway(settings.plaid, client=plaid_client)


@pytest.fixture
def store(settings: ClaritySettings) -> DuckDBTransactionStore:
    return DuckDBTransactionStore(settings.storage.duckdb_path)


@pytest.fixture
def client(
    settings: ClaritySettings,
    plaid_gateway: PlaidGateway,
    store: DuckDBTransactionStore,
) -> Generator[TestClient, None, None]:
    """API client with a mocked Plaid SDK and a real DuckDB store."""
    app = create_app(
        settings,
        plaid=plaid_gateway,
        store=store,
        authenticator=TestModeAuthenticator(TEST_USER_ID),
        demo=DemoDataService(),
    )
    with TestClient(app) as test_client:
        yield test_client
