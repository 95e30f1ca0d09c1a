"""
Board Relay - Wire Messages
JSON message definitions for client <-> relay communication.
"""

from .types import (
    # Enums
    RequestType,
    # Requests
    CallRequest,
    ConnectRequest,
    ListenEventRequest,
    Request,
    parse_request,
    # Responses
    ErrorResponse,
    EventNotification,
    Response,
    SuccessResponse,
    serialize,
    # Factory helpers
    create_error,
    create_event,
    create_success,
)

__all__ = [
    # Enums
    "RequestType",
    # Requests
    "ConnectRequest",
    "CallRequest",
    "ListenEventRequest",
    "Request",
    "parse_request",
    # Responses
    "SuccessResponse",
    "ErrorResponse",
    "EventNotification",
    "Response",
    "serialize",
    # Factory helpers
    "create_success",
    "create_error",
    "create_event",
]
