"""
Board Relay - Server Entry Point
Runs the WebSocket relay between editors and hardware boards.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from relay.communication.server import RelayServer
from relay.config import RelayConfig
from relay.context import RelayContext

logger = logging.getLogger("relay.server")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Quiet down noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def build_config(args: argparse.Namespace) -> RelayConfig:
    """Environment configuration, overridden by command line arguments."""
    config = RelayConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.origin is not None:
        config.allowed_origin = args.origin
    if args.board_timeout is not None:
        config.board_timeout = args.board_timeout
    if args.driver is not None:
        config.driver = args.driver
    if args.log_level is not None:
        config.log_level = args.log_level.upper()
    if args.verbose:
        config.log_level = "DEBUG"
    return config


async def serve(config: RelayConfig) -> None:
    """Serve the relay until uvicorn receives a shutdown signal."""
    context = RelayContext.create(config)
    relay = RelayServer(context)

    server = uvicorn.Server(
        uvicorn.Config(
            relay.app,
            host=config.host,
            port=config.port,
            log_level="warning",  # Reduce uvicorn log noise
        )
    )

    logger.info(
        f"Relay listening at {config.host}:{config.port} "
        f"(driver: {context.driver.name}, origin: {config.allowed_origin})"
    )
    await server.serve()
    logger.info("Relay stopped")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Board Relay - WebSocket bridge to hardware boards"
    )
    parser.add_argument("--host", help="Host to listen on (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 3074)")
    parser.add_argument(
        "--origin",
        help="Origin allowed by CORS headers (default: http://localhost:3232)",
    )
    parser.add_argument(
        "--board-timeout",
        type=float,
        help="Seconds to wait for a board to connect (default: 3)",
    )
    parser.add_argument(
        "--driver",
        choices=["mock"],
        help="Hardware driver library (default: mock)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    # Load .env file from the working directory, then the project root
    load_dotenv()
    load_dotenv(Path(__file__).parent.parent / ".env")

    config = build_config(parse_args(argv))
    configure_logging(config.log_level)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 2

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
