"""FastAPI application factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..config import ClaritySettings, get_settings
from ..demo import DemoDataService
from ..plaid import PlaidGateway
from ..storage import TransactionStore, create_store
from .auth import Authenticator, build_authenticator
from .errors import register_error_handlers
from .middleware import request_logging_middleware, security_headers_middleware
from .rate_limit import RateLimits, global_rate_limit_middleware
from .routes import ROUTERS

logger = logging.getLogger(__name__)


def create_app(
    settings: ClaritySettings | None = None,
    plaid: PlaidGateway | None = None,
    store: TransactionStore | None = None,
    authenticator: Authenticator | None = None,
    demo: DemoDataService | None = None,
    rate_limits: RateLimits | None = None,
) -> FastAPI:
    """Build the API application.

    Collaborators not passed in are built from ``settings``.

    Args:
        settings: Application settings; loaded from the environment if omitted
        plaid: Plaid gateway
        store: Transaction store
        authenticator: Bearer token authenticator
        demo: Demo data service
        rate_limits: Rate limiter set

    Returns:
        FastAPI: The configured application
    """
    settings = settings or get_settings()
    server = settings.server

    app = FastAPI(title="Clarity Finance API", version=__version__)
    app.state.settings = settings
    app.state.plaid = plaid or PlaidGateway(settings.plaid)
    app.state.store = store or create_store(settings)
    app.state.authenticator = authenticator or build_authenticator(settings)
    app.state.demo = demo or DemoDataService()
    app.state.rate_limits = rate_limits or RateLimits.from_settings(settings)

    register_error_handlers(app)

    # Last registered middleware runs first.
    if not server.is_production:
        app.middleware("http")(request_logging_middleware)
    app.middleware("http")(global_rate_limit_middleware)
    app.middleware("http")(security_headers_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server.allowed_origins(),
        allow_origin_regex=server.cors_origin_regex if server.is_production else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    for router in ROUTERS:
        app.include_router(router)

    if server.static_dir is not None:
        if server.static_dir.is_dir():
            app.mount(
                "/", StaticFiles(directory=server.static_dir, html=True), name="static"
            )
            logger.info(f"Serving frontend from {server.static_dir}")
        else:
            logger.warning(f"Static directory {server.static_dir} not found, skipping")

    logger.info(
        f"Clarity Finance API configured ({server.environment}, "
        f"storage={settings.storage.backend}, plaid={settings.plaid.environment})"
    )
    return app
