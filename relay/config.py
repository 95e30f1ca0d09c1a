"""
Board Relay - Configuration
Relay settings with environment variable support.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from shared.constants import (
    DEFAULT_ALLOWED_ORIGIN,
    DEFAULT_BOARD_TIMEOUT,
    DEFAULT_RELAY_HOST,
    DEFAULT_RELAY_PORT,
)


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class RelayConfig:
    """Configuration for the relay server."""

    # Listener
    host: str = DEFAULT_RELAY_HOST
    port: int = DEFAULT_RELAY_PORT
    allowed_origin: str = DEFAULT_ALLOWED_ORIGIN

    # Boards
    board_timeout: float = DEFAULT_BOARD_TIMEOUT  # seconds

    # Driver selection
    driver: str = "mock"
    mock_boards: list[str] = field(default_factory=list)  # empty = any board id
    mock_connect_delay: float = 0.0

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            RELAY_HOST: Host to listen on
            RELAY_PORT: Port to listen on
            RELAY_ALLOWED_ORIGIN: Origin allowed by CORS headers
            RELAY_BOARD_TIMEOUT: Board connection timeout (seconds)
            RELAY_DRIVER: Driver library ("mock")
            RELAY_MOCK_BOARDS: Comma separated board ids the mock driver knows
            RELAY_MOCK_CONNECT_DELAY: Mock board connection delay (seconds)
            RELAY_LOG_LEVEL: Root log level
        """
        return cls(
            host=os.getenv("RELAY_HOST", DEFAULT_RELAY_HOST),
            port=int(os.getenv("RELAY_PORT", str(DEFAULT_RELAY_PORT))),
            allowed_origin=os.getenv("RELAY_ALLOWED_ORIGIN", DEFAULT_ALLOWED_ORIGIN),
            board_timeout=float(
                os.getenv("RELAY_BOARD_TIMEOUT", str(DEFAULT_BOARD_TIMEOUT))
            ),
            driver=os.getenv("RELAY_DRIVER", "mock").lower(),
            mock_boards=_split_list(os.getenv("RELAY_MOCK_BOARDS")),
            mock_connect_delay=float(os.getenv("RELAY_MOCK_CONNECT_DELAY", "0.0")),
            log_level=os.getenv("RELAY_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")

        if self.board_timeout <= 0:
            errors.append("board_timeout must be positive")

        if self.mock_connect_delay < 0:
            errors.append("mock_connect_delay cannot be negative")

        if self.driver not in ("mock",):
            errors.append(f"Unknown driver: {self.driver}")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0
