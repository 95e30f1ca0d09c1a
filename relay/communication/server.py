"""
Board Relay - Relay Server
FastAPI app exposing the relay over WebSocket, plus the HTTP side channel.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse, Response

if TYPE_CHECKING:
    from relay.context import RelayContext

logger = logging.getLogger(__name__)


class RelayServer:
    """
    Transport for the relay.

    Provides:
    - WebSocket on any path: one JSON request per text frame in, every
      response and event out to every client
    - HTTP POST on any path: JSON body echoed back
    - HTTP OPTIONS on any path: empty CORS preflight answer
    """

    def __init__(self, context: RelayContext) -> None:
        """
        Initialize the relay server.

        Args:
            context: Relay state shared by every connection
        """
        self._context = context
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    @property
    def context(self) -> RelayContext:
        return self._context

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        context = self._context

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            yield
            await context.shutdown()

        app = FastAPI(
            title="Board Relay",
            description="WebSocket relay between editors and hardware boards",
            version="1.0.0",
            lifespan=lifespan,
        )

        @app.middleware("http")
        async def add_cors_headers(
            request: Request,
            call_next: Callable[[Request], Awaitable[Response]],
        ) -> Response:
            logger.info(f"{request.method} {request.url.path}")
            response = await call_next(request)
            response.headers["Access-Control-Allow-Origin"] = context.config.allowed_origin
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            return response

        @app.options("/{path:path}")
        async def preflight(path: str) -> Response:
            """Answer CORS preflight requests."""
            return Response(status_code=200)

        @app.post("/{path:path}")
        async def echo(path: str, request: Request) -> JSONResponse:
            """Echo a JSON body back unchanged."""
            body = await request.body()
            try:
                payload = json.loads(body)
            except ValueError as e:
                return JSONResponse(
                    {"error": f"invalid JSON body: {e}"},
                    status_code=400,
                )
            return JSONResponse(payload)

        @app.websocket("/{path:path}")
        async def websocket_relay(websocket: WebSocket) -> None:
            """WebSocket endpoint carrying relay requests and broadcasts."""
            broadcaster = context.broadcaster
            router = context.router

            await websocket.accept()
            broadcaster.register(websocket)
            logger.info(f"Client connected ({len(broadcaster)} total)")

            try:
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        break

                    data = message.get("text")
                    if data is None:
                        data = message.get("bytes")
                    if data is not None:
                        router.submit(data)
            finally:
                broadcaster.unregister(websocket)
                logger.info(f"Client disconnected ({len(broadcaster)} total)")

        return app
