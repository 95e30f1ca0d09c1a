"""
Board Relay - Error Types
Failures raised while handling relay requests.

Every error carries a to_dict() form which is sent to clients as the
``error`` field of an error response.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base for every failure reported back to clients."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "message": self.message}


class BoardUnavailable(RelayError):
    """The board could not be connected (not found, timed out or exited)."""

    def __init__(self, board_id: str, reason: str = "not found") -> None:
        super().__init__(f"board {board_id} {reason}")
        self.board_id = board_id
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "board": self.board_id}


class UnknownComponentKind(RelayError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"unknown component kind {kind!r}")
        self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "component": self.kind}


class UnknownFunction(RelayError):
    def __init__(self, kind: str, function: str) -> None:
        super().__init__(f"{kind} has no function {function!r}")
        self.kind = kind
        self.function = function

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "component": self.kind,
            "function": self.function,
        }


class CallFailed(RelayError):
    """A driver operation, constructor or event registration raised."""

    def __init__(self, kind: str, target: str, reason: str) -> None:
        super().__init__(f"{kind}.{target} failed: {reason}")
        self.kind = kind
        self.target = target
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "component": self.kind,
            "function": self.target,
        }


class DecodeError(RelayError):
    """An inbound message could not be decoded into a request."""

    def __init__(self, reason: str, request_id: str | None = None) -> None:
        super().__init__(reason)
        self.request_id = request_id
