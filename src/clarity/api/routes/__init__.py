"""API routers."""

from . import demo, health, plaid, transactions

ROUTERS = [health.router, plaid.router, transactions.router, demo.router]

__all__ = ["ROUTERS"]
