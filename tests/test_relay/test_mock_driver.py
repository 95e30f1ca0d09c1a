"""Tests for the driver base classes and the mock driver."""

from __future__ import annotations

import asyncio

import pytest

from relay.drivers import (
    COMPONENT_KINDS,
    SIGNAL_ERROR,
    SIGNAL_READY,
    BoardConfig,
    Component,
    MockDriverLibrary,
    operation,
)
from relay.drivers.mock import Button, Led, Servo
from shared.errors import CallFailed, UnknownComponentKind, UnknownFunction


@pytest.fixture
def board():
    return MockDriverLibrary(auto_ready=False).connect(BoardConfig(id="A"))


class TestCapabilityTable:
    """Tests for per-kind operation tables."""

    def test_kind_defaults_to_class_name(self):
        assert Led.kind == "Led"
        assert set(COMPONENT_KINDS) == {"Led", "Button", "Sensor", "Servo", "Piezo"}

    def test_operations_are_marked_methods_only(self):
        assert set(Led.operations) == {"on", "off", "toggle", "blink", "stop", "brightness"}
        assert "simulate_press" not in Button.operations

    def test_operations_are_inherited(self):
        class Dimmer(Led):
            @operation
            def fade(self, value: int) -> None:
                self.level = value

        assert "fade" in Dimmer.operations
        assert "on" in Dimmer.operations
        assert "fade" not in Led.operations
        assert Dimmer.kind == "Dimmer"

    def test_invoke_unknown_name(self, board):
        led = board.construct_component("Led", {"pin": 13})
        with pytest.raises(UnknownFunction):
            led.invoke("__init__", [])

    def test_invoke_wrong_arguments(self, board):
        led = board.construct_component("Led", {"pin": 13})
        with pytest.raises(CallFailed):
            led.invoke("brightness", [])

    def test_invoke_returns_result(self, board):
        button = board.construct_component("Button", {"pin": 2})
        assert button.invoke("read", []) is False

    def test_add_listener_rejects_undeclared_event(self, board):
        led = board.construct_component("Led", {"pin": 13})
        with pytest.raises(CallFailed):
            led.add_listener("press", lambda: None)

    def test_failing_listener_does_not_stop_others(self, board):
        button = board.construct_component("Button", {"pin": 2})
        calls = []

        def broken() -> None:
            raise RuntimeError("boom")

        button.add_listener("press", broken)
        button.add_listener("press", lambda: calls.append("press"))
        button.simulate_press()

        assert calls == ["press"]

    def test_base_component_has_no_operations(self):
        assert Component.operations == {}


class TestMockComponents:
    """Tests for mock component behavior."""

    def test_led_toggle_and_brightness(self, board):
        led = board.construct_component("Led", {"pin": 13})
        led.invoke("toggle", [])
        assert led.is_on is True

        led.invoke("brightness", [0])
        assert led.is_on is False
        assert led.level == 0

    def test_servo_range(self, board):
        servo = board.construct_component("Servo", {"pin": 9, "range": [20, 160]})
        servo.invoke("max", [])
        assert servo.position == 160

        with pytest.raises(CallFailed):
            servo.invoke("to", [170])
        assert servo.position == 160

    def test_servo_emits_move_complete(self, board):
        servo = board.construct_component("Servo", {"pin": 9})
        moves = []
        servo.add_listener("move:complete", lambda: moves.append(servo.position))

        servo.invoke("to", [45])

        assert moves == [45]

    def test_sensor_change_only_on_new_value(self, board):
        sensor = board.construct_component("Sensor", {"pin": "A0"})
        fired = []
        sensor.add_listener("change", lambda: fired.append("change"))
        sensor.add_listener("data", lambda: fired.append("data"))

        sensor.simulate_value(10)
        sensor.simulate_value(10)

        assert fired == ["data", "change", "data"]

    def test_piezo_play_requires_song(self, board):
        piezo = board.construct_component("Piezo", {"pin": 3})
        with pytest.raises(CallFailed):
            piezo.invoke("play", [{}])

    def test_unknown_kind(self, board):
        with pytest.raises(UnknownComponentKind):
            board.construct_component("Laser", {})


class TestMockBoards:
    """Tests for mock board lifecycle signals."""

    @pytest.mark.asyncio
    async def test_known_board_signals_ready(self):
        driver = MockDriverLibrary(boards={"A"})
        signals = []

        board = driver.connect(BoardConfig(id="A"))
        board.on(SIGNAL_READY, lambda: signals.append("ready"))
        await asyncio.sleep(0.01)

        assert signals == ["ready"]
        assert board.connected

    @pytest.mark.asyncio
    async def test_unknown_board_errors_after_timeout(self):
        driver = MockDriverLibrary(boards={"A"})
        signals = []

        board = driver.connect(BoardConfig(id="B", timeout=0.01))
        board.on(SIGNAL_ERROR, lambda reason: signals.append(reason))
        await asyncio.sleep(0)
        assert signals == []

        await asyncio.sleep(0.05)
        assert signals == ["not found"]

    @pytest.mark.asyncio
    async def test_disconnect_cancels_pending_signal(self):
        driver = MockDriverLibrary(connect_delay=0.01)
        signals = []

        board = driver.connect(BoardConfig(id="A"))
        board.on(SIGNAL_READY, lambda: signals.append("ready"))
        await board.disconnect()
        await asyncio.sleep(0.05)

        assert signals == []

    def test_connection_counters(self):
        driver = MockDriverLibrary(auto_ready=False)
        driver.connect(BoardConfig(id="A"))
        second = driver.connect(BoardConfig(id="A"))

        assert driver.connect_count == 2
        assert driver.latest("A") is second
        assert driver.latest("B") is None

    def test_failed_and_exited_boards_are_released(self):
        driver = MockDriverLibrary(auto_ready=False)
        failed = driver.connect(BoardConfig(id="A"))
        failed.signal_error()
        exited = driver.connect(BoardConfig(id="B"))
        exited.signal_ready()
        exited.signal_exit()

        assert driver.latest("A") is None
        assert driver.latest("B") is None
        assert driver.live_boards == []
        assert driver.connect_count == 2

    def test_stale_board_does_not_release_replacement(self):
        driver = MockDriverLibrary(auto_ready=False)
        old = driver.connect(BoardConfig(id="A"))
        replacement = driver.connect(BoardConfig(id="A"))

        old.signal_exit()

        assert driver.latest("A") is replacement
        assert driver.live_boards == [replacement]

    @pytest.mark.asyncio
    async def test_disconnect_while_connecting_releases_board(self):
        driver = MockDriverLibrary(connect_delay=0.01)
        board = driver.connect(BoardConfig(id="A"))

        await board.disconnect()

        assert driver.latest("A") is None
