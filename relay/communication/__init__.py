"""
Board Relay - Communication Module
Request routing, broadcast delivery and the WebSocket/HTTP listener.
"""

from .broadcaster import Connection, ConnectionBroadcaster
from .router import RequestRouter

__all__ = [
    "Connection",
    "ConnectionBroadcaster",
    "RequestRouter",
]
