"""
Board Relay - Wire Message Types
Python dataclass definitions for the JSON protocol spoken over WebSocket.

Requests flow client -> relay; responses and event notifications flow
relay -> every connected client. Use parse_request() / serialize() for the
wire format.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shared.constants import STATUS_BAD_REQUEST, STATUS_ERROR, STATUS_OK
from shared.errors import DecodeError, RelayError


# =============================================================================
# ENUMS
# =============================================================================


class RequestType(str, Enum):
    """Value of the ``type`` tag on inbound requests."""

    CONNECT = "connect"
    CALL = "call"
    LISTEN_EVENT = "listenevent"


# =============================================================================
# REQUEST MESSAGES (Client -> Relay)
# =============================================================================


def _require_str(data: dict[str, Any], key: str, request_id: str | None) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise DecodeError(f"missing or invalid field {key!r}", request_id)
    return value


def _component_args(data: dict[str, Any], request_id: str | None) -> Any:
    # Scalars are allowed too (a bare pin number, for instance)
    args = data.get("componentArgs")
    if args is None:
        return {}
    if isinstance(args, list):
        raise DecodeError("componentArgs must be an object or a scalar", request_id)
    return args


@dataclass
class ConnectRequest:
    """Open (or reuse) the connection to a board."""

    id: str
    board: str

    type = RequestType.CONNECT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "id": self.id, "board": self.board}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConnectRequest:
        request_id = _require_str(data, "id", None)
        return cls(id=request_id, board=_require_str(data, "board", request_id))


@dataclass
class CallRequest:
    """Invoke a function on a board component."""

    id: str
    board: str
    component: str
    function: str
    component_args: Any = field(default_factory=dict)
    function_args: list[Any] = field(default_factory=list)

    type = RequestType.CALL

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "id": self.id,
            "board": self.board,
            "component": self.component,
            "componentArgs": self.component_args,
            "function": self.function,
            "functionArgs": self.function_args,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CallRequest:
        request_id = _require_str(data, "id", None)
        function_args = data.get("functionArgs")
        if function_args is None:
            function_args = []
        if not isinstance(function_args, list):
            raise DecodeError("functionArgs must be an array", request_id)
        return cls(
            id=request_id,
            board=_require_str(data, "board", request_id),
            component=_require_str(data, "component", request_id),
            function=_require_str(data, "function", request_id),
            component_args=_component_args(data, request_id),
            function_args=function_args,
        )


@dataclass
class ListenEventRequest:
    """Subscribe to an event emitted by a board component."""

    id: str
    board: str
    component: str
    event_id: str
    event_name: str
    component_args: Any = field(default_factory=dict)

    type = RequestType.LISTEN_EVENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "id": self.id,
            "board": self.board,
            "component": self.component,
            "componentArgs": self.component_args,
            "eventId": self.event_id,
            "eventName": self.event_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ListenEventRequest:
        request_id = _require_str(data, "id", None)
        return cls(
            id=request_id,
            board=_require_str(data, "board", request_id),
            component=_require_str(data, "component", request_id),
            event_id=_require_str(data, "eventId", request_id),
            event_name=_require_str(data, "eventName", request_id),
            component_args=_component_args(data, request_id),
        )


# Union type for all inbound requests
Request = ConnectRequest | CallRequest | ListenEventRequest

_REQUEST_CLASSES: dict[RequestType, Any] = {
    RequestType.CONNECT: ConnectRequest,
    RequestType.CALL: CallRequest,
    RequestType.LISTEN_EVENT: ListenEventRequest,
}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def parse_request(raw: str | bytes) -> Request:
    """
    Decode a raw WebSocket frame into a typed request.

    Raises:
        DecodeError: if the frame is not JSON, not an object, has an unknown
            ``type`` tag or lacks a required field. The request id is attached
            whenever it could be read.
    """
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("request must be a JSON object")

    request_id = data.get("id") if isinstance(data.get("id"), str) else None
    try:
        request_type = RequestType(data.get("type"))
    except ValueError:
        raise DecodeError(
            f"unknown request type {data.get('type')!r}", request_id
        ) from None

    return _REQUEST_CLASSES[request_type].from_dict(data)


# =============================================================================
# RESPONSE MESSAGES (Relay -> Clients)
# =============================================================================


@dataclass
class SuccessResponse:
    """Terminal response for a request that completed."""

    id: str
    status: int = STATUS_OK
    resp: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "status": self.status}
        if self.resp is not None:
            result["resp"] = self.resp
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SuccessResponse:
        return cls(
            id=data.get("id", ""),
            status=data.get("status", STATUS_OK),
            resp=data.get("resp"),
        )


@dataclass
class ErrorResponse:
    """Terminal response for a request that failed."""

    id: str | None
    error: dict[str, Any] = field(default_factory=dict)
    status: int = STATUS_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "status": self.status, "error": self.error}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ErrorResponse:
        return cls(
            id=data.get("id"),
            error=data.get("error", {}),
            status=data.get("status", STATUS_ERROR),
        )


@dataclass
class EventNotification:
    """Unsolicited notification that a subscribed component event fired."""

    board: str
    event_id: str
    event_name: str
    status: int = STATUS_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "event",
            "status": self.status,
            "board": self.board,
            "eventId": self.event_id,
            "eventName": self.event_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventNotification:
        return cls(
            board=data.get("board", ""),
            event_id=data.get("eventId", ""),
            event_name=data.get("eventName", ""),
            status=data.get("status", STATUS_OK),
        )


# Union type for all outbound messages
Response = SuccessResponse | ErrorResponse | EventNotification


def serialize(message: Response) -> str:
    """Serialize an outbound message to a JSON text frame."""
    return json.dumps(message.to_dict(), allow_nan=False)


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def create_success(request_id: str, resp: Any = None) -> SuccessResponse:
    """Create a success response, dropping return values JSON can't carry."""
    if resp is not None:
        try:
            json.dumps(resp, allow_nan=False)
        except (TypeError, ValueError):
            resp = None
    return SuccessResponse(id=request_id, resp=resp)


def create_error(request_id: str | None, error: BaseException) -> ErrorResponse:
    """Create an error response from any exception."""
    if isinstance(error, RelayError):
        detail = error.to_dict()
    else:
        detail = {"name": type(error).__name__, "message": str(error)}

    status = STATUS_BAD_REQUEST if isinstance(error, DecodeError) else STATUS_ERROR
    return ErrorResponse(id=request_id, error=detail, status=status)


def create_event(board: str, event_id: str, event_name: str) -> EventNotification:
    """Create an event notification."""
    return EventNotification(board=board, event_id=event_id, event_name=event_name)
