"""
API Service - Main entry point.

Usage:
    # Serve on the configured host and port
    jobfit-api

    # Development server with auto-reload
    jobfit-api --port 8080 --reload
"""

import click
import uvicorn

from shared.config import get_settings
from shared.logging import setup_logging


@click.command()
@click.option(
    "--host",
    "-h",
    type=str,
    default=None,
    help="Bind address (overrides settings)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to listen on (overrides settings)",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Restart the server when source files change",
)
def main(host: str, port: int, reload: bool):
    """Job Fit Analyzer - HTTP API server."""
    setup_logging()
    settings = get_settings()

    uvicorn.run(
        "api.server:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
