"""
Board Relay - Request Router
Decodes client requests, runs them against the boards and broadcasts the outcome.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

from relay.boards import BoardRegistry
from shared.errors import DecodeError, RelayError
from shared.messages import (
    CallRequest,
    ConnectRequest,
    ListenEventRequest,
    Request,
    Response,
    create_error,
    create_success,
    parse_request,
)

from .broadcaster import ConnectionBroadcaster

logger = logging.getLogger(__name__)


class RequestRouter:
    """
    Routes decoded requests to the connect / call / listenevent flows.

    Every request ends in exactly one response broadcast to all clients.
    Failures of any kind become error responses; nothing escapes to the
    listener.
    """

    def __init__(
        self,
        registry: BoardRegistry,
        broadcaster: ConnectionBroadcaster,
    ) -> None:
        self._registry = registry
        self._broadcaster = broadcaster
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, raw: str | bytes) -> asyncio.Task[None]:
        """
        Handle a raw message in its own task.

        Requests don't wait for each other; only requests on the same board
        share the board's connection attempt.
        """
        task = asyncio.get_running_loop().create_task(self.handle(raw))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def handle(self, raw: str | bytes) -> None:
        """Decode, dispatch and answer one raw message."""
        try:
            request = parse_request(raw)
        except DecodeError as e:
            logger.warning(f"Rejecting undecodable message: {e}")
            await self._broadcaster.broadcast(create_error(e.request_id, e))
            return

        response: Response
        try:
            response = await self.dispatch(request)
        except RelayError as e:
            logger.warning(f"Request {request.id} ({request.type.value}) failed: {e}")
            response = create_error(request.id, e)
        except Exception as e:
            logger.exception(f"Request {request.id} ({request.type.value}) raised")
            response = create_error(request.id, e)

        await self._broadcaster.broadcast(response)

    async def dispatch(self, request: Request) -> Response:
        """Run a request and return its success response."""
        if isinstance(request, ConnectRequest):
            return await self._handle_connect(request)

        elif isinstance(request, CallRequest):
            return await self._handle_call(request)

        elif isinstance(request, ListenEventRequest):
            return await self._handle_listen_event(request)

        raise DecodeError(f"unsupported request {type(request).__name__}", request.id)

    async def _handle_connect(self, request: ConnectRequest) -> Response:
        await self._registry.acquire(request.board)
        return create_success(request.id)

    async def _handle_call(self, request: CallRequest) -> Response:
        session = await self._registry.acquire(request.board)
        handle = session.components.get(request.component, request.component_args)

        result: Any = handle.invoke(request.function, request.function_args)
        if inspect.isawaitable(result):
            result = await result

        logger.debug(
            f"Board {request.board}: {request.component}.{request.function}"
            f"({request.function_args}) -> {result!r}"
        )
        return create_success(request.id, result)

    async def _handle_listen_event(self, request: ListenEventRequest) -> Response:
        session = await self._registry.acquire(request.board)
        handle = session.components.get(request.component, request.component_args)
        handle.subscribe(request.event_id, request.event_name)
        return create_success(request.id)

    async def cancel_pending(self) -> None:
        """Cancel requests still in flight (shutdown only)."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} pending request(s)")
