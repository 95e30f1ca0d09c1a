"""
Board Relay - Component Cache
Per-board cache of driver components and their event subscriptions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from relay.drivers import BoardHandle, Component
from shared.messages import Response, create_event

logger = logging.getLogger(__name__)

Publish = Callable[[Response], None]


def fingerprint(kind: str, args: Any) -> str:
    """Identity of a component: its kind plus its construction arguments."""
    return json.dumps(
        {"name": kind, "args": args},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


@dataclass(frozen=True)
class EventSubscription:
    """
    Driver listener forwarding one component event to every client.

    The board id and client-chosen identifiers travel with the
    subscription itself.
    """

    board_id: str
    subscriber_id: str
    event_name: str
    publish: Publish

    def __call__(self, *args: Any) -> None:
        logger.debug(
            f"Board {self.board_id}: event {self.event_name} for {self.subscriber_id}"
        )
        self.publish(create_event(self.board_id, self.subscriber_id, self.event_name))


class EventSubscriptionTracker:
    """Registered (subscriber id, event name) pairs of one component."""

    def __init__(self, board_id: str, publish: Publish) -> None:
        self._board_id = board_id
        self._publish = publish
        self._subscriptions: dict[tuple[str, str], EventSubscription] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        component: Component,
        subscriber_id: str,
        event_name: str,
    ) -> bool:
        """
        Forward event_name from component to clients, tagged with subscriber_id.

        Subscribing the same pair twice is a no-op.

        Returns:
            True if a new driver listener was registered

        Raises:
            CallFailed: if the component kind has no such event
        """
        key = (subscriber_id, event_name)
        if key in self._subscriptions:
            return False

        subscription = EventSubscription(
            board_id=self._board_id,
            subscriber_id=subscriber_id,
            event_name=event_name,
            publish=self._publish,
        )
        component.add_listener(event_name, subscription)
        self._subscriptions[key] = subscription
        logger.info(
            f"Board {self._board_id}: {component.kind} '{event_name}' "
            f"subscribed as {subscriber_id}"
        )
        return True


class ComponentHandle:
    """A constructed driver component owned by one board session."""

    def __init__(
        self,
        key: str,
        kind: str,
        component: Component,
        subscriptions: EventSubscriptionTracker,
    ) -> None:
        self.key = key
        self.kind = kind
        self.component = component
        self.subscriptions = subscriptions

    def invoke(self, function: str, args: list[Any]) -> Any:
        return self.component.invoke(function, args)

    def subscribe(self, subscriber_id: str, event_name: str) -> bool:
        return self.subscriptions.subscribe(self.component, subscriber_id, event_name)


class ComponentCache:
    """
    At most one component per (kind, args) fingerprint on one board.

    Arguments are compared by value: key order and object identity don't
    matter.
    """

    def __init__(self, board_id: str, board: BoardHandle, publish: Publish) -> None:
        self._board_id = board_id
        self._board = board
        self._publish = publish
        self._handles: dict[str, ComponentHandle] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def get(self, kind: str, args: Any = None) -> ComponentHandle:
        """
        Get the component for kind/args, constructing it on first use.

        Raises:
            UnknownComponentKind: if the driver has no such kind
            CallFailed: if construction failed (nothing is cached)
        """
        if args is None:
            args = {}
        args = self._board.normalize_args(kind, args)

        key = fingerprint(kind, args)
        handle = self._handles.get(key)
        if handle is None:
            component = self._board.construct_component(kind, args)
            handle = ComponentHandle(
                key,
                kind,
                component,
                EventSubscriptionTracker(self._board_id, self._publish),
            )
            self._handles[key] = handle
            logger.info(f"Board {self._board_id}: created {kind} {key}")
        return handle
