"""Tests for the relay's FastAPI transport."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from relay.communication.server import RelayServer
from relay.context import RelayContext


@pytest.fixture
def relay_server(relay_config, driver):
    return RelayServer(RelayContext.create(relay_config, driver))


@pytest.fixture
def client(relay_server):
    with TestClient(relay_server.app) as client:
        yield client


def connect_frame(request_id: str, board: str = "A") -> str:
    return json.dumps({"type": "connect", "id": request_id, "board": board})


class TestHttp:
    """Tests for the plain HTTP side of the listener."""

    def test_options_preflight(self, client):
        response = client.options("/")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "http://localhost:3232"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_options_any_path(self, client):
        assert client.options("/api/project").status_code == 200

    def test_post_echoes_json(self, client):
        payload = {"name": "blink", "files": {"main.ts": "led.on()"}, "version": 2}

        response = client.post("/project", json=payload)

        assert response.status_code == 200
        assert response.json() == payload
        assert response.headers["content-type"].startswith("application/json")
        assert response.headers["access-control-allow-origin"] == "http://localhost:3232"

    def test_post_invalid_json(self, client):
        response = client.post("/", content=b"{oops")

        assert response.status_code == 400
        assert "invalid JSON" in response.json()["error"]
        assert response.headers["access-control-allow-origin"] == "http://localhost:3232"

    def test_configured_origin(self, relay_config, driver):
        relay_config.allowed_origin = "http://localhost:8080"
        server = RelayServer(RelayContext.create(relay_config, driver))

        with TestClient(server.app) as client:
            response = client.options("/")

        assert response.headers["access-control-allow-origin"] == "http://localhost:8080"


class TestWebSocket:
    """Tests for the WebSocket relay endpoint."""

    def test_connect_round_trip(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_text(connect_frame("1"))
            assert ws.receive_json() == {"id": "1", "status": 200}

    def test_any_path_upgrades(self, client):
        with client.websocket_connect("/editor/ws") as ws:
            ws.send_text(connect_frame("1"))
            assert ws.receive_json() == {"id": "1", "status": 200}

    def test_binary_frame(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_bytes(connect_frame("1").encode("utf-8"))
            assert ws.receive_json() == {"id": "1", "status": 200}

    def test_call_then_error(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_text(json.dumps({
                "type": "call",
                "id": "2",
                "board": "A",
                "component": "Led",
                "componentArgs": {"pin": 13},
                "function": "on",
                "functionArgs": [],
            }))
            assert ws.receive_json() == {"id": "2", "status": 200}

            ws.send_text(connect_frame("3", board="B"))
            response = ws.receive_json()
            assert response["id"] == "3"
            assert response["status"] == 500
            assert response["error"]["board"] == "B"

    def test_malformed_message_gets_structured_error(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_text("not json")
            response = ws.receive_json()

        assert response["status"] == 400
        assert response["error"]["name"] == "DecodeError"

    def test_responses_reach_every_client(self, client):
        with client.websocket_connect("/") as first:
            with client.websocket_connect("/") as second:
                # Round trip on the second socket so both are registered
                second.send_text(connect_frame("0"))
                assert second.receive_json() == {"id": "0", "status": 200}
                assert first.receive_json() == {"id": "0", "status": 200}

                first.send_text(connect_frame("1"))
                assert first.receive_json() == {"id": "1", "status": 200}
                assert second.receive_json() == {"id": "1", "status": 200}

    def test_disconnect_unregisters(self, relay_server, client):
        with client.websocket_connect("/") as ws:
            ws.send_text(connect_frame("1"))
            ws.receive_json()
            assert len(relay_server.context.broadcaster) == 1

        # A fresh round trip guarantees the first socket's teardown ran
        with client.websocket_connect("/") as ws:
            ws.send_text(connect_frame("2"))
            ws.receive_json()
            assert len(relay_server.context.broadcaster) == 1

    def test_shutdown_releases_boards(self, relay_server):
        with TestClient(relay_server.app) as client:
            with client.websocket_connect("/") as ws:
                ws.send_text(connect_frame("1"))
                ws.receive_json()
            assert "A" in relay_server.context.registry

        assert len(relay_server.context.registry) == 0
