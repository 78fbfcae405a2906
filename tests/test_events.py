"""
Tests for the Event Bus
========================
"""

import logging

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.events import EventBus, Events
from core.types import BoundingBox, ClickEvent, CursorPoint, DetectionFrame, Facing, Gesture, TrackerState
from utils.logger import StatusLogger


@pytest.fixture
def bus():
    return EventBus()


class TestEventBus:
    """Test suite for publish/subscribe."""

    def test_emit_passes_kwargs(self, bus):
        received = []
        bus.subscribe(Events.STATE_CHANGED, lambda state, error: received.append((state, error)))

        bus.emit(Events.STATE_CHANGED, state=TrackerState.ACTIVE, error=None)

        assert received == [(TrackerState.ACTIVE, None)]

    def test_priority_order(self, bus):
        order = []
        bus.subscribe("ping", lambda: order.append("low"), priority=0)
        bus.subscribe("ping", lambda: order.append("high"), priority=10)

        bus.emit("ping")

        assert order == ["high", "low"]

    def test_failing_listener_skipped(self, bus, caplog):
        received = []

        def broken():
            raise RuntimeError("overlay closed")

        bus.subscribe("ping", broken, priority=1)
        bus.subscribe("ping", lambda: received.append(True))

        with caplog.at_level(logging.ERROR):
            bus.emit("ping")

        assert received == [True]
        assert "overlay closed" in caplog.text

    def test_unsubscribe_handle(self, bus):
        received = []
        unsubscribe = bus.subscribe("ping", lambda: received.append(True))

        unsubscribe()
        bus.emit("ping")

        assert received == []
        assert bus.topics == []

    def test_unsubscribe_by_callback(self, bus):
        received = []

        def callback():
            received.append(True)

        bus.subscribe("ping", callback)
        bus.unsubscribe("ping", callback)
        bus.emit("ping")

        assert received == []

    def test_replay_brings_late_surface_up_to_date(self, bus):
        bus.emit(Events.STATE_CHANGED, state=TrackerState.ACTIVE, error=None)
        received = []

        bus.subscribe(Events.STATE_CHANGED, lambda state, error: received.append(state), replay=True)

        assert received == [TrackerState.ACTIVE]

    def test_no_replay_by_default(self, bus):
        bus.emit("ping", n=1)
        received = []

        bus.subscribe("ping", lambda n: received.append(n))

        assert received == []

    def test_latest_and_counts(self, bus):
        bus.subscribe("a", lambda **kw: None)
        bus.subscribe("b", lambda **kw: None)
        bus.emit("a", x=1)
        bus.emit("a", x=2)

        assert bus.listener_count == 2
        assert bus.latest("a") == {"x": 2}
        assert bus.latest("b") is None
        assert bus.emit_count("a") == 2

        bus.clear("a")
        assert bus.topics == ["b"]
        assert bus.latest("a") is None

    def test_buses_are_independent(self):
        received = []
        first, second = EventBus(), EventBus()
        first.subscribe("ping", lambda: received.append(True))

        second.emit("ping")

        assert received == []


class TestStatusLogger:
    """Test suite for the console status surface."""

    def test_logs_state_and_clicks(self, bus, caplog):
        status = StatusLogger().attach(bus)

        with caplog.at_level(logging.INFO, logger="tracker_status"):
            bus.emit(Events.STATE_CHANGED, state=TrackerState.ACTIVE, error=None)
            bus.emit(Events.CLICK, event=ClickEvent(facing=Facing.BACK, cursor=CursorPoint(1, 2)))

        assert "Tracker ACTIVE" in caplog.text
        assert "Click: BACK" in caplog.text
        assert status.total_clicks == 1
        assert status.get_history(1)[0]["facing"] == "BACK"

    def test_click_history_is_bounded(self, bus):
        status = StatusLogger(history_size=3).attach(bus)

        for facing in (Facing.FRONT, Facing.BACK, Facing.FRONT, Facing.BACK, Facing.BACK):
            bus.emit(Events.CLICK, event=ClickEvent(facing=facing, cursor=CursorPoint(1, 2)))

        assert status.total_clicks == 5
        assert [c["facing"] for c in status.get_history()] == ["FRONT", "BACK", "BACK"]

    def test_detection_logged_on_change_only(self, bus, caplog):
        StatusLogger().attach(bus)
        frame = DetectionFrame(
            box=BoundingBox(0, 0, 10, 10, 0.9),
            gesture=Gesture.OPEN,
            facing=Facing.FRONT,
            cursor=CursorPoint(5, 5),
        )

        with caplog.at_level(logging.DEBUG, logger="tracker_status"):
            for _ in range(3):
                bus.emit(Events.DETECTION, frame=frame, state=TrackerState.ACTIVE)

        assert caplog.text.count("Hand: OPEN") == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
