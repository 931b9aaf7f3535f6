"""Bundled demo dataset and the service that serves it."""

from .service import DemoDataService

__all__ = ["DemoDataService"]
