"""
Board Relay - Mock Driver
Virtual boards and components for running the relay without hardware.

The mock driver keeps counters of connection attempts and component
constructions, and exposes simulate_* / signal_* controls so tests and
demos can drive board lifecycle and component events by hand.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any, Iterable

from shared.errors import CallFailed, UnknownComponentKind

from .base import (
    SIGNAL_ERROR,
    SIGNAL_EXIT,
    SIGNAL_READY,
    BoardConfig,
    BoardHandle,
    Component,
    DriverLibrary,
    operation,
)

logger = logging.getLogger(__name__)


# =============================================================================
# COMPONENTS
# =============================================================================


class PinComponent(Component):
    """Component attached to a single pin. Requires a ``pin`` option."""

    kind = "PinComponent"

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        if options.get("pin") is None:
            raise ValueError(f"{type(self).__name__} requires a pin")
        super().__init__(board, options)

    @property
    def pin(self) -> Any:
        return self._options["pin"]


class Led(PinComponent):
    """Mock LED."""

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        super().__init__(board, options)
        self.is_on = False
        self.is_blinking = False
        self.level = 255

    @operation
    def on(self) -> None:
        self.is_on = True
        self.is_blinking = False
        logger.debug(f"Led {self.pin} on")

    @operation
    def off(self) -> None:
        self.is_on = False
        self.is_blinking = False
        logger.debug(f"Led {self.pin} off")

    @operation
    def toggle(self) -> None:
        self.is_on = not self.is_on
        logger.debug(f"Led {self.pin} toggled {'on' if self.is_on else 'off'}")

    @operation
    def blink(self, ms: int = 100) -> None:
        if ms <= 0:
            raise ValueError("blink interval must be positive")
        self.is_blinking = True
        logger.debug(f"Led {self.pin} blinking every {ms}ms")

    @operation
    def stop(self) -> None:
        self.is_blinking = False

    @operation
    def brightness(self, value: int) -> None:
        if not 0 <= value <= 255:
            raise ValueError("brightness must be between 0 and 255")
        self.level = value
        self.is_on = value > 0


class Button(PinComponent):
    """Mock push button."""

    events = frozenset({"press", "release", "hold"})

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        super().__init__(board, options)
        self.is_down = False

    @operation
    def read(self) -> bool:
        return self.is_down

    # Simulation controls for testing/demos

    def simulate_press(self) -> None:
        self.is_down = True
        self.emit("press")

    def simulate_release(self) -> None:
        self.is_down = False
        self.emit("release")

    def simulate_hold(self) -> None:
        self.is_down = True
        self.emit("hold")


class Sensor(PinComponent):
    """Mock analog sensor reporting values in a scalable range."""

    events = frozenset({"change", "data"})

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        super().__init__(board, options)
        self.raw = 0
        self.low = 0.0
        self.high = 1023.0

    @operation
    def read(self) -> float:
        return self.low + (self.high - self.low) * self.raw / 1023

    @operation
    def scale(self, low: float, high: float) -> None:
        if low >= high:
            raise ValueError("scale low must be below high")
        self.low = low
        self.high = high

    def simulate_value(self, raw: int) -> None:
        changed = raw != self.raw
        self.raw = raw
        self.emit("data")
        if changed:
            self.emit("change")


class Servo(PinComponent):
    """Mock hobby servo with a 0-180 degree range."""

    events = frozenset({"move:complete"})

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        super().__init__(board, options)
        low, high = options.get("range", (0, 180))
        self.range = (low, high)
        self.position = options.get("startAt", (low + high) // 2)
        self.is_sweeping = False

    @operation
    def to(self, degrees: float, ms: int = 0) -> None:
        low, high = self.range
        if not low <= degrees <= high:
            raise ValueError(f"{degrees} is outside servo range {low}-{high}")
        self.position = degrees
        self.is_sweeping = False
        self.emit("move:complete")

    @operation
    def center(self) -> None:
        self.to((self.range[0] + self.range[1]) / 2)

    @operation
    def min(self) -> None:
        self.to(self.range[0])

    @operation
    def max(self) -> None:
        self.to(self.range[1])

    @operation
    def sweep(self) -> None:
        self.is_sweeping = True

    @operation
    def stop(self) -> None:
        self.is_sweeping = False


class Piezo(PinComponent):
    """Mock piezo buzzer."""

    def __init__(self, board: BoardHandle, options: dict[str, Any]) -> None:
        super().__init__(board, options)
        self.frequency = 0

    @operation
    def tone(self, frequency: int, duration: int) -> None:
        if frequency < 0 or duration < 0:
            raise ValueError("frequency and duration must be non-negative")
        self.frequency = frequency

    @operation
    def play(self, tune: dict[str, Any]) -> None:
        if not isinstance(tune, dict) or "song" not in tune:
            raise ValueError("tune must be an object with a song")
        self.frequency = 1

    @operation
    def off(self) -> None:
        self.frequency = 0


COMPONENT_KINDS: dict[str, type[Component]] = {
    cls.kind: cls for cls in (Led, Button, Sensor, Servo, Piezo)
}


# =============================================================================
# BOARDS
# =============================================================================


class MockBoard(BoardHandle):
    """Virtual board. Signals are fired by the library or by hand."""

    def __init__(self, library: MockDriverLibrary, config: BoardConfig) -> None:
        super().__init__(config)
        self._library = library
        self._timer: asyncio.TimerHandle | None = None
        self.components: list[Component] = []
        self.connected = False

    def normalize_args(self, kind: str, args: Any) -> Any:
        # A bare scalar stands for the pin number
        return args if isinstance(args, dict) else {"pin": args}

    def construct_component(self, kind: str, args: Any) -> Component:
        cls = COMPONENT_KINDS.get(kind)
        if cls is None:
            raise UnknownComponentKind(kind)

        options = self.normalize_args(kind, args)
        try:
            component = cls(self, dict(options))
        except (TypeError, ValueError) as e:
            raise CallFailed(kind, "constructor", str(e)) from e

        self.components.append(component)
        self._library.constructed[kind] += 1
        logger.debug(f"Board {self.id}: constructed {kind} {options}")
        return component

    async def disconnect(self) -> None:
        self._cancel_timer()
        if self.connected:
            self.signal_exit()
        else:
            self._library.release(self)

    def schedule(self, delay: float, signal: str, *args: Any) -> None:
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        self._timer = loop.call_later(delay, self._fire, signal, *args)

    def _fire(self, signal: str, *args: Any) -> None:
        self._timer = None
        if signal == SIGNAL_READY:
            self.signal_ready()
        elif signal == SIGNAL_ERROR:
            self.signal_error(*args)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # Simulation controls for testing/demos

    def signal_ready(self) -> None:
        self.connected = True
        self._signal(SIGNAL_READY)

    def signal_error(self, reason: str = "not found") -> None:
        self.connected = False
        self._library.release(self)
        self._signal(SIGNAL_ERROR, reason)

    def signal_exit(self) -> None:
        self.connected = False
        self._library.release(self)
        self._signal(SIGNAL_EXIT)


class MockDriverLibrary(DriverLibrary):
    """
    Mock driver library for running without hardware.

    Args:
        boards: Board ids that exist. None means every id exists.
        auto_ready: Fire ready/error on a timer. When False, the caller
            signals each board through its signal_* controls.
        connect_delay: Seconds before an existing board reports ready.
    """

    def __init__(
        self,
        boards: Iterable[str] | None = None,
        auto_ready: bool = True,
        connect_delay: float = 0.0,
    ) -> None:
        self._boards = set(boards) if boards is not None else None
        self._auto_ready = auto_ready
        self._connect_delay = connect_delay

        self.connect_count = 0
        self.constructed: Counter[str] = Counter()

        # Live boards only, the newest per id
        self._live: dict[str, MockBoard] = {}

    @property
    def name(self) -> str:
        return "MockDriverLibrary"

    def board_exists(self, board_id: str) -> bool:
        return self._boards is None or board_id in self._boards

    def connect(self, config: BoardConfig) -> MockBoard:
        board = MockBoard(self, config)
        self.connect_count += 1
        self._live[config.id] = board

        if self._auto_ready:
            if self.board_exists(config.id):
                board.schedule(self._connect_delay, SIGNAL_READY)
            else:
                # Unknown boards only give up once the driver timeout elapses
                board.schedule(config.timeout, SIGNAL_ERROR, "not found")
        return board

    @property
    def live_boards(self) -> list[MockBoard]:
        return list(self._live.values())

    def latest(self, board_id: str) -> MockBoard | None:
        """Get the newest live connection for a board id."""
        return self._live.get(board_id)

    def release(self, board: MockBoard) -> None:
        """Forget a board that failed or exited, unless it was replaced."""
        if self._live.get(board.id) is board:
            del self._live[board.id]
