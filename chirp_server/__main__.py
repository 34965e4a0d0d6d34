"""
Chirp Server Entry Point

Allows running the server directly via `python -m chirp_server`.
Loads configuration (.env + environment), configures logging to stderr and
serves the HTTP API until interrupted.
"""

import asyncio
import logging
import sys

from .core.config import ConfigError, ServerConfig
from .core.constants import SERVER_NAME, SERVER_VERSION
from .transport.http_api import HTTPServer


def setup_logging(level: str = "INFO"):
    """Configure logging to stderr"""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


async def main():
    """Main entry point"""
    try:
        config = ServerConfig.from_env()
    except ConfigError as e:
        setup_logging()
        logging.getLogger("main").critical(f"Invalid configuration: {e}")
        sys.exit(2)

    setup_logging(config.log_level)
    logger = logging.getLogger("main")

    try:
        server = HTTPServer(config)
        logger.info(
            f"Starting {SERVER_NAME} v{SERVER_VERSION} on {config.host}:{config.port}..."
        )
        await server.serve_forever()

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
