"""Shared fixtures for relay tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from relay.config import RelayConfig
from relay.context import RelayContext
from relay.drivers import MockDriverLibrary


def _sent_messages(connection: Any) -> list[dict[str, Any]]:
    return [json.loads(call.args[0]) for call in connection.send_text.await_args_list]


def _make_request(type_: str, request_id: str, board: str = "A", **fields: Any) -> str:
    return json.dumps({"type": type_, "id": request_id, "board": board, **fields})


@pytest.fixture
def sent():
    """Decode every frame sent to a mock connection."""
    return _sent_messages


@pytest.fixture
def request_frame():
    """Build a raw request frame."""
    return _make_request


@pytest.fixture
def make_connection():
    """Factory for mock client connections."""

    def factory() -> AsyncMock:
        connection = AsyncMock()
        connection.send_text = AsyncMock()
        return connection

    return factory


@pytest.fixture
def mock_connection(make_connection):
    """Create a mock client connection."""
    return make_connection()


@pytest.fixture
def relay_config():
    """Relay configuration with a short board timeout."""
    return RelayConfig(board_timeout=0.01)


@pytest.fixture
def driver():
    """Mock driver that only knows board "A"."""
    return MockDriverLibrary(boards={"A"})


@pytest.fixture
def manual_driver():
    """Mock driver whose boards are signalled by hand."""
    return MockDriverLibrary(auto_ready=False)


@pytest.fixture
def context(relay_config, driver):
    """Relay context on the auto-ready mock driver."""
    return RelayContext.create(relay_config, driver)


@pytest.fixture
def manual_context(relay_config, manual_driver):
    """Relay context on the hand-signalled mock driver."""
    return RelayContext.create(relay_config, manual_driver)


@pytest.fixture
def mock_publish():
    """Create a mock event sink."""
    return MagicMock()
