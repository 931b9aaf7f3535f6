"""FastAPI dependencies resolving the collaborators stored on ``app.state``."""

from fastapi import Request

from ..config import ClaritySettings
from ..demo import DemoDataService
from ..plaid import PlaidGateway
from ..storage import TransactionStore


def get_app_settings(request: Request) -> ClaritySettings:
    return request.app.state.settings


def get_plaid(request: Request) -> PlaidGateway:
    return request.app.state.plaid


def get_store(request: Request) -> TransactionStore:
    return request.app.state.store


def get_demo(request: Request) -> DemoDataService:
    return request.app.state.demo
