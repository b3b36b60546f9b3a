"""
Run script for the Content Radar control endpoint.
Serves the Quart application with hypercorn.
"""
import argparse
import asyncio
import logging
from typing import Optional

from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig

from api.app import create_app
from services.config import Config, load_config
from services.context import AppContext
from services.logging import setup_logging

logger = logging.getLogger(__name__)


async def serve_api(config: Config, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False) -> None:
    host = host or config.API_HOST
    port = port or config.API_PORT

    hypercorn_config = HypercornConfig()
    hypercorn_config.bind = [f"{host}:{port}"]
    hypercorn_config.use_reloader = debug
    hypercorn_config.accesslog = "-"
    hypercorn_config.errorlog = "-"

    async with AppContext(config) as context:
        logger.info(f"Starting Content Radar control endpoint on http://{host}:{port}")
        await serve(create_app(context), hypercorn_config)


def main():
    parser = argparse.ArgumentParser(description="Content Radar control endpoint")
    parser.add_argument("--host", default=None,
                        help="Host to bind to (default: API_HOST from config)")
    parser.add_argument("--port", type=int, default=None,
                        help="Port to bind to (default: API_PORT from config)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable the reloader")

    args = parser.parse_args()

    config = load_config()
    setup_logging(config.LOG_LEVEL)

    asyncio.run(serve_api(config, host=args.host, port=args.port, debug=args.debug))


if __name__ == "__main__":
    main()
