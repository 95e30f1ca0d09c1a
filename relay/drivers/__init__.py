"""
Board Relay - Driver Module
Hardware driver abstraction and the built-in mock driver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import (
    SIGNAL_ERROR,
    SIGNAL_EXIT,
    SIGNAL_READY,
    BoardConfig,
    BoardHandle,
    Component,
    DriverLibrary,
    operation,
)
from .mock import COMPONENT_KINDS, MockBoard, MockDriverLibrary

if TYPE_CHECKING:
    from relay.config import RelayConfig


def create_driver(config: RelayConfig) -> DriverLibrary:
    """
    Create the driver library named by the configuration.

    Raises:
        ValueError: if the driver name is unknown
    """
    if config.driver == "mock":
        return MockDriverLibrary(
            boards=config.mock_boards or None,
            connect_delay=config.mock_connect_delay,
        )
    raise ValueError(f"Unknown driver: {config.driver}")


__all__ = [
    # Base classes
    "BoardConfig",
    "BoardHandle",
    "Component",
    "DriverLibrary",
    "operation",
    "SIGNAL_READY",
    "SIGNAL_ERROR",
    "SIGNAL_EXIT",
    # Mock implementations
    "COMPONENT_KINDS",
    "MockBoard",
    "MockDriverLibrary",
    # Factory
    "create_driver",
]
