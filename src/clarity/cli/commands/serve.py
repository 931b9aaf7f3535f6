"""Run the API server."""

import logging
from typing import Annotated

import typer
import uvicorn

from ...config import get_settings
from ...logging import LoggingConfig, setup_logging

logger = logging.getLogger(__name__)


def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Interface to bind (default from settings)"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to listen on (default from settings)"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Restart the server when code changes"),
    ] = False,
) -> None:
    """Start the Clarity Finance API server.

    Required Plaid and Supabase credentials are checked before the server
    starts; the command exits with status 1 if any are missing.

    Examples:
        clarity serve
        clarity serve --port 8080 --reload
    """
    try:
        settings = get_settings()
        settings.validate_required_credentials()
    except ValueError as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    setup_logging(
        LoggingConfig.from_settings(settings.logging, force_reconfigure=True),
        verbose=verbose,
    )

    bind_host = host or settings.server.host
    bind_port = port or settings.server.port
    logger.info(f"🚀 Server running on port {bind_port}")
    logger.info(f"📊 Environment: {settings.server.environment}")
    logger.info(f"🏦 Plaid Environment: {settings.plaid.environment}")

    uvicorn.run(
        "clarity.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level="debug" if verbose else settings.logging.level.lower(),
        log_config=None,
    )
