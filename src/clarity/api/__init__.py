"""HTTP API: FastAPI application, routes and middleware."""

from .app import create_app

__all__ = ["create_app"]
