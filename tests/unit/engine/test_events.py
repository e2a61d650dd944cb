"""Tests for the event bus."""

from __future__ import annotations

from typing import Any

import pytest

from dungeon_combat.engine.events import EventBus
from dungeon_combat.models.events import EncounterInfo, WaveStartedEvent


@pytest.fixture
def started() -> WaveStartedEvent:
    return WaveStartedEvent(encounter=EncounterInfo(name="Goblin Camp", current_wave=2, total_waves=2))


class TestEventBus:
    """Tests for EventBus delivery."""

    def test_tagged_then_catch_all(self, started: WaveStartedEvent) -> None:
        """Test tag subscribers run before catch-all subscribers."""
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe(lambda event: calls.append("all"))
        bus.subscribe(lambda event: calls.append("tagged"), "wave-started")
        bus.subscribe(lambda event: calls.append("other"), "combat-ended")

        bus.emit(started)

        assert calls == ["tagged", "all"]
        assert bus.emitted == 1

    def test_failing_handler_does_not_stop_delivery(self, started: WaveStartedEvent) -> None:
        """Test a raising handler is skipped."""
        bus = EventBus()
        received: list[Any] = []

        def broken(event: Any) -> None:
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.emit(started)

        assert received == [started]

    def test_unsubscribe(self, started: WaveStartedEvent) -> None:
        """Test unsubscribed handlers are no longer called."""
        bus = EventBus()
        received: list[Any] = []
        bus.subscribe(received.append, "wave-started")

        assert bus.unsubscribe(received.append, "wave-started") is True
        assert bus.unsubscribe(received.append, "wave-started") is False

        bus.emit(started)

        assert received == []
