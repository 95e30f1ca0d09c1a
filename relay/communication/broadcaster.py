"""
Board Relay - Connection Broadcaster
Delivers every response and event to all open client connections.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from shared.messages import Response, serialize

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can take a text frame (a FastAPI WebSocket, say)."""

    async def send_text(self, data: str) -> None: ...


class ConnectionBroadcaster:
    """
    Live set of client connections.

    The protocol has no per-client addressing: every message goes to every
    connection. One connection failing to receive never stops delivery to
    the others.
    """

    def __init__(self) -> None:
        self._connections: set[Connection] = set()
        self._pending: set[asyncio.Task[int]] = set()

    def __len__(self) -> int:
        return len(self._connections)

    @property
    def connections(self) -> frozenset[Connection]:
        return frozenset(self._connections)

    def register(self, connection: Connection) -> None:
        self._connections.add(connection)

    def unregister(self, connection: Connection) -> None:
        """Forget a connection. Safe to call more than once."""
        self._connections.discard(connection)

    async def broadcast(self, message: Response) -> int:
        """
        Send a message to every open connection.

        Returns:
            Number of connections the message was delivered to
        """
        text = serialize(message)
        connections = list(self._connections)
        if not connections:
            return 0

        results = await asyncio.gather(
            *(connection.send_text(text) for connection in connections),
            return_exceptions=True,
        )

        delivered = 0
        for connection, result in zip(connections, results):
            if isinstance(result, Exception):
                logger.warning(f"Dropping client after failed send: {result}")
                self.unregister(connection)
            else:
                delivered += 1
        return delivered

    def publish(self, message: Response) -> None:
        """Schedule a broadcast from synchronous code (driver callbacks)."""
        task = asyncio.get_running_loop().create_task(self.broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled broadcast to finish."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        self._connections.clear()
