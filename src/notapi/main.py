"""
Main entry point for NotAPI.

This module provides the CLI entry point and the application factory used
by process managers. It handles configuration loading and logging setup.

In production mode the gateway binds the configured public interface and
the keep-alive ping is armed. In any other mode it binds the loopback
interface for manual testing and the keep-alive ping never runs.
"""

import sys

from aiohttp import web
from pydantic import ValidationError

from notapi import __version__
from notapi.api.server import create_app
from notapi.config import load_config
from notapi.utils.exceptions import ConfigurationError
from notapi.utils.logging import setup_logging, get_logger


async def app_factory() -> web.Application:
    """
    Application factory for external runners.

    Example:
        ```bash
        gunicorn notapi.main:app_factory --worker-class aiohttp.GunicornWebWorker
        ```
    """
    config = load_config()
    setup_logging(config.logging)
    return create_app(config)


def main() -> None:
    """
    Main entry point for NotAPI.

    Example:
        Command line usage:
        ```bash
        notapi
        ```
    """
    try:
        config = load_config()
    except (ValidationError, ConfigurationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.logging)
    logger = get_logger(__name__)

    host = config.server.host if config.is_production else "127.0.0.1"
    logger.info("NotAPI starting up",
                version=__version__,
                environment=config.environment,
                url=f"http://{host}:{config.server.port}")

    try:
        web.run_app(create_app(config), host=host, port=config.server.port, print=None)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        logger.info("NotAPI shutdown complete")


if __name__ == "__main__":
    main()
