"""
Board Relay - Board Registry
Process-wide map of board id to its single connection session.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from relay.drivers import (
    SIGNAL_ERROR,
    SIGNAL_EXIT,
    SIGNAL_READY,
    BoardConfig,
    BoardHandle,
    DriverLibrary,
)
from shared.constants import DEFAULT_BOARD_TIMEOUT
from shared.errors import BoardUnavailable

from .components import ComponentCache, Publish

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle of a board session."""

    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


def _consume_exception(future: asyncio.Future[BoardSession]) -> None:
    # Failed sessions nobody awaits anymore must not log "never retrieved"
    if not future.cancelled():
        future.exception()


class BoardSession:
    """
    One board connection, shared by every request naming the board.

    The session is awaitable state: wait_ready() resolves once the driver
    reports ready, or raises BoardUnavailable once it fails.
    """

    def __init__(self, board_id: str, handle: BoardHandle, publish: Publish) -> None:
        self.board_id = board_id
        self.handle = handle
        self.state = ConnectionState.CONNECTING
        self.components = ComponentCache(board_id, handle, publish)

        self._ready: asyncio.Future[BoardSession] = (
            asyncio.get_running_loop().create_future()
        )
        self._ready.add_done_callback(_consume_exception)

    @property
    def is_ready(self) -> bool:
        return self.state == ConnectionState.READY

    async def wait_ready(self) -> BoardSession:
        # Shielded so one cancelled waiter can't cancel the shared attempt
        return await asyncio.shield(self._ready)

    def mark_ready(self) -> None:
        if self._ready.done():
            return
        self.state = ConnectionState.READY
        self._ready.set_result(self)

    def mark_failed(self, error: BoardUnavailable) -> None:
        self.state = ConnectionState.FAILED
        if not self._ready.done():
            self._ready.set_exception(error)

    def mark_closed(self) -> None:
        self.state = ConnectionState.CLOSED


class BoardRegistry:
    """
    Maps board ids to sessions; at most one connection attempt per id.

    Sessions are inserted before the first suspension point, so requests
    for a new board arriving back to back share a single attempt.
    """

    def __init__(
        self,
        driver: DriverLibrary,
        publish: Publish,
        timeout: float = DEFAULT_BOARD_TIMEOUT,
    ) -> None:
        """
        Initialize the registry.

        Args:
            driver: Driver library opening board connections
            publish: Sink for event notifications raised by components
            timeout: Driver connection timeout in seconds
        """
        self._driver = driver
        self._publish = publish
        self._timeout = timeout
        self._sessions: dict[str, BoardSession] = {}

    def __contains__(self, board_id: object) -> bool:
        return board_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, board_id: str) -> BoardSession | None:
        return self._sessions.get(board_id)

    def board_ids(self) -> list[str]:
        return list(self._sessions)

    async def acquire(self, board_id: str) -> BoardSession:
        """
        Get the ready session for a board, connecting on first use.

        Raises:
            BoardUnavailable: if the connection attempt failed
        """
        session = self._sessions.get(board_id)
        if session is None:
            session = self._open(board_id)
        return await session.wait_ready()

    def _open(self, board_id: str) -> BoardSession:
        logger.info(f"Connecting board {board_id} via {self._driver.name}")
        try:
            handle = self._driver.connect(BoardConfig(id=board_id, timeout=self._timeout))
        except Exception as e:
            logger.error(f"Driver refused board {board_id}: {e}")
            raise BoardUnavailable(board_id, f"could not connect: {e}") from e

        session = BoardSession(board_id, handle, self._publish)
        self._sessions[board_id] = session

        handle.on(SIGNAL_READY, lambda: self._on_ready(session))
        handle.on(
            SIGNAL_ERROR,
            lambda reason="not found": self._on_error(session, str(reason)),
        )
        handle.on(SIGNAL_EXIT, lambda: self._on_exit(session))
        return session

    def _evict(self, session: BoardSession) -> None:
        if self._sessions.get(session.board_id) is session:
            del self._sessions[session.board_id]

    def _on_ready(self, session: BoardSession) -> None:
        logger.info(f"Board {session.board_id} connected")
        session.mark_ready()

    def _on_error(self, session: BoardSession, reason: str) -> None:
        logger.warning(f"Board {session.board_id} failed: {reason}")
        self._evict(session)
        session.mark_failed(BoardUnavailable(session.board_id, reason))

    def _on_exit(self, session: BoardSession) -> None:
        self._evict(session)
        if session.is_ready:
            logger.warning(f"Board {session.board_id} exited")
            session.mark_closed()
        else:
            # Exiting before ready would otherwise leave waiters hanging
            logger.warning(f"Board {session.board_id} exited while connecting")
            session.mark_failed(BoardUnavailable(session.board_id, "exited"))

    async def close(self) -> None:
        """Disconnect every board and forget all sessions."""
        sessions = list(self._sessions.values())
        self._sessions.clear()

        for session in sessions:
            try:
                await session.handle.disconnect()
            except Exception as e:
                logger.warning(f"Failed to disconnect board {session.board_id}: {e}")

            if session.state == ConnectionState.CONNECTING:
                session.mark_failed(BoardUnavailable(session.board_id, "disconnected"))
            elif session.is_ready:
                session.mark_closed()

        if sessions:
            logger.info(f"Disconnected {len(sessions)} board(s)")
