"""
Tests for the Temporal Stabilizer
==================================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.types import BoundingBox, CursorPoint, DetectionFrame, Facing, Gesture
from recognition.stabilizer import ClickEdgeDetector, StabilizerConfig, TemporalStabilizer


def detection(gesture: Gesture, facing: Facing = Facing.FRONT, x: float = 50.0) -> DetectionFrame:
    """Create a DetectionFrame with a hand present."""
    return DetectionFrame(
        box=BoundingBox(xmin=10, ymin=10, xmax=40, ymax=60, confidence=0.9),
        gesture=gesture,
        facing=facing,
        cursor=CursorPoint(x=x, y=40.0),
    )


EMPTY = DetectionFrame.empty()


class TestGracePeriod:
    """Test suite for dropout handling."""

    @pytest.fixture
    def stabilizer(self):
        return TemporalStabilizer(StabilizerConfig(grace_frames=5))

    def test_holds_previous_detection_for_grace_frames(self, stabilizer):
        first = detection(Gesture.OPEN)
        stabilizer.update(first)

        for i in range(1, 6):
            output, _ = stabilizer.update(EMPTY)
            assert output == first, f"missing frame {i} should still report the hand"

        output, _ = stabilizer.update(EMPTY)
        assert output.box is None
        assert output.gesture == Gesture.UNKNOWN

    def test_detection_resets_missing_counter(self, stabilizer):
        stabilizer.update(detection(Gesture.OPEN))
        for _ in range(4):
            stabilizer.update(EMPTY)
        assert stabilizer.missing_frames == 4

        latest = detection(Gesture.OPEN, x=70.0)
        output, _ = stabilizer.update(latest)
        assert output == latest
        assert stabilizer.missing_frames == 0

        # Full grace period is available again
        for _ in range(5):
            output, _ = stabilizer.update(EMPTY)
        assert output == latest

    def test_no_previous_detection(self, stabilizer):
        output, click = stabilizer.update(EMPTY)
        assert output.box is None
        assert click is False

    def test_zero_grace(self):
        stabilizer = TemporalStabilizer(StabilizerConfig(grace_frames=0))
        stabilizer.update(detection(Gesture.OPEN))
        output, _ = stabilizer.update(EMPTY)
        assert output.box is None

    def test_config_from_dict(self):
        assert StabilizerConfig.from_dict({}).grace_frames == 5
        assert StabilizerConfig.from_dict({"grace_frames": 2}).grace_frames == 2


class TestClickEdges:
    """Test suite for click edge detection."""

    @pytest.fixture
    def stabilizer(self):
        return TemporalStabilizer()

    def test_open_closed_sequence(self, stabilizer):
        """O, C, C, C, O, C clicks exactly at indices 1 and 5."""
        sequence = [Gesture.OPEN, Gesture.CLOSED, Gesture.CLOSED,
                    Gesture.CLOSED, Gesture.OPEN, Gesture.CLOSED]

        clicks = [i for i, g in enumerate(sequence) if stabilizer.update(detection(g))[1]]

        assert clicks == [1, 5]
        assert stabilizer.click_count == 2

    def test_first_frame_closed_clicks(self, stabilizer):
        _, click = stabilizer.update(detection(Gesture.CLOSED))
        assert click is True

    def test_dropout_within_grace_does_not_reclick(self, stabilizer):
        stabilizer.update(detection(Gesture.CLOSED))
        for _ in range(3):
            _, click = stabilizer.update(EMPTY)
            assert click is False

        _, click = stabilizer.update(detection(Gesture.CLOSED))
        assert click is False
        assert stabilizer.click_count == 1

    def test_lost_hand_rearms_click(self, stabilizer):
        stabilizer.update(detection(Gesture.CLOSED))
        for _ in range(6):
            stabilizer.update(EMPTY)
        assert stabilizer.last_gesture == Gesture.UNKNOWN

        _, click = stabilizer.update(detection(Gesture.CLOSED))
        assert click is True

    def test_click_carries_facing(self, stabilizer):
        output, click = stabilizer.update(detection(Gesture.CLOSED, facing=Facing.BACK))
        assert click
        assert output.facing == Facing.BACK

    def test_reset(self, stabilizer):
        stabilizer.update(detection(Gesture.CLOSED))
        stabilizer.reset()

        assert stabilizer.missing_frames == 0
        _, click = stabilizer.update(detection(Gesture.CLOSED))
        assert click is True


class TestClickEdgeDetector:
    """Test suite for the standalone edge detector."""

    def test_fires_once_per_transition(self):
        edges = ClickEdgeDetector()
        results = [edges.update(g) for g in
                   (Gesture.UNKNOWN, Gesture.CLOSED, Gesture.CLOSED, Gesture.UNKNOWN, Gesture.CLOSED)]
        assert results == [False, True, False, False, True]

    def test_reset(self):
        edges = ClickEdgeDetector()
        edges.update(Gesture.CLOSED)
        edges.reset()
        assert edges.last_gesture == Gesture.UNKNOWN
        assert edges.update(Gesture.CLOSED) is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
