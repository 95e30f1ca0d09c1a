"""
Board Relay - Driver Base Classes
Abstract interfaces for the hardware driver library the relay talks to.

A driver library opens board handles; a board handle signals "ready",
"error" or "exit" and constructs components; a component exposes a fixed
table of named operations and a fixed set of event names.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from shared.constants import DEFAULT_BOARD_TIMEOUT
from shared.errors import CallFailed, RelayError, UnknownFunction

logger = logging.getLogger(__name__)

# Board lifecycle signals
SIGNAL_READY = "ready"
SIGNAL_ERROR = "error"
SIGNAL_EXIT = "exit"


@dataclass
class BoardConfig:
    """Options handed to the driver when opening a board."""

    id: str
    timeout: float = DEFAULT_BOARD_TIMEOUT  # seconds
    repl: bool = False


def operation(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a component method as invokable by name from clients."""
    func._relay_operation = True  # type: ignore[attr-defined]
    return func


class Component:
    """
    Base class for all driver components (LEDs, buttons, sensors, ...).

    Subclasses mark their client-callable methods with @operation. The
    capability table is built once per class, so invoke() can reject an
    unknown name before touching the hardware.
    """

    kind: ClassVar[str] = "Component"
    events: ClassVar[frozenset[str]] = frozenset()
    operations: ClassVar[dict[str, Callable[..., Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "kind" not in cls.__dict__:
            cls.kind = cls.__name__

        table: dict[str, Callable[..., Any]] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                if getattr(value, "_relay_operation", False):
                    table[attr] = value
        cls.operations = table

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        self._board = board
        self._options = options
        self._listeners: dict[str, list[Callable[..., None]]] = defaultdict(list)

    @property
    def board(self) -> BoardHandle:
        return self._board

    @property
    def options(self) -> dict[str, Any]:
        return self._options

    def invoke(self, name: str, args: list[Any]) -> Any:
        """
        Invoke a declared operation by name with positional arguments.

        Raises:
            UnknownFunction: if name is not in the capability table
            CallFailed: if the operation itself raised
        """
        func = self.operations.get(name)
        if func is None:
            raise UnknownFunction(self.kind, name)

        try:
            return func(self, *args)
        except RelayError:
            raise
        except Exception as e:
            raise CallFailed(self.kind, name, str(e)) from e

    def add_listener(self, event: str, callback: Callable[..., None]) -> None:
        """Register a listener for one of the declared events."""
        if event not in self.events:
            raise CallFailed(self.kind, event, "unknown event")
        self._listeners[event].append(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> None:
        """Fire every listener registered for event."""
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"{self.kind} '{event}' listener failed: {e}")


class BoardHandle(ABC):
    """
    Driver-level connection to one board.

    Connecting happens in the background; the outcome is reported through
    the lifecycle signals registered with on().
    """

    def __init__(self, config: BoardConfig) -> None:
        self._config = config
        self._signal_handlers: dict[str, list[Callable[..., None]]] = defaultdict(list)

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def config(self) -> BoardConfig:
        return self._config

    def on(self, signal: str, callback: Callable[..., None]) -> None:
        """Register a handler for "ready", "error" or "exit"."""
        self._signal_handlers[signal].append(callback)

    def _signal(self, signal: str, *args: Any) -> None:
        for callback in list(self._signal_handlers.get(signal, ())):
            callback(*args)

    def normalize_args(self, kind: str, args: Any) -> Any:
        """
        Canonical form of component arguments.

        Arguments that construct the same component must normalize to
        equal values, since the component cache keys on the result.
        """
        return args

    @abstractmethod
    def construct_component(self, kind: str, args: Any) -> Component:
        """
        Construct a driver component of the given kind on this board.

        Raises:
            UnknownComponentKind: if the driver has no such kind
            CallFailed: if the constructor rejected the arguments
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the board."""
        pass


class DriverLibrary(ABC):
    """Entry point of a hardware driver library."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get driver name for logging."""
        pass

    @abstractmethod
    def connect(self, config: BoardConfig) -> BoardHandle:
        """
        Start connecting to a board.

        Must not block: the returned handle signals the outcome later,
        so callers can attach signal handlers first.
        """
        pass
