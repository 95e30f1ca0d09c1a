"""
Board Relay - Boards Module
Board sessions, component caches and event subscriptions.
"""

from .components import (
    ComponentCache,
    ComponentHandle,
    EventSubscription,
    EventSubscriptionTracker,
    fingerprint,
)
from .registry import BoardRegistry, BoardSession, ConnectionState

__all__ = [
    "BoardRegistry",
    "BoardSession",
    "ConnectionState",
    "ComponentCache",
    "ComponentHandle",
    "EventSubscription",
    "EventSubscriptionTracker",
    "fingerprint",
]
