"""
Tests for the Wire Protocol
============================
"""

import json

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.types import BoundingBox, CursorPoint, DetectionFrame, Facing, Gesture, ProtocolError
from transport.protocol import decode_message, encode_frame, frame_to_dict


def hand_frame(gesture=Gesture.CLOSED, facing=Facing.BACK):
    return DetectionFrame(
        box=BoundingBox(xmin=20, ymin=30, xmax=45, ymax=70, confidence=0.8),
        gesture=gesture,
        facing=facing,
        cursor=CursorPoint(x=32.5, y=11.0),
    )


class TestEncode:
    """Test suite for message encoding."""

    def test_hand_frame(self):
        data = json.loads(encode_frame(hand_frame()))

        assert data == {
            "cursor": {"x": 32.5, "y": 11.0},
            "gesture": "CLOSED",
            "facing": "BACK",
        }

    def test_empty_frame(self):
        assert frame_to_dict(DetectionFrame.empty()) == {
            "cursor": None,
            "gesture": "UNKNOWN",
            "facing": "UNKNOWN",
        }

    def test_box_not_sent(self):
        assert "box" not in json.loads(encode_frame(hand_frame()))

    def test_decodes_what_it_encodes(self):
        command = decode_message(encode_frame(hand_frame(Gesture.OPEN, Facing.FRONT)))

        assert command.cursor == CursorPoint(32.5, 11.0)
        assert command.gesture == Gesture.OPEN
        assert command.facing == Facing.FRONT


class TestDecode:
    """Test suite for message decoding."""

    def test_null_cursor(self):
        command = decode_message('{"cursor": null, "gesture": "UNKNOWN", "facing": "UNKNOWN"}')
        assert command.cursor is None
        assert command.gesture == Gesture.UNKNOWN

    def test_missing_cursor_means_no_move(self):
        assert decode_message('{"gesture": "OPEN", "facing": "FRONT"}').cursor is None

    def test_missing_facing_is_unknown(self):
        command = decode_message('{"cursor": {"x": 1, "y": 2}, "gesture": "CLOSED"}')
        assert command.facing == Facing.UNKNOWN
        assert command.cursor == CursorPoint(1.0, 2.0)

    def test_bytes_payload(self):
        command = decode_message(b'{"cursor": null, "gesture": "OPEN", "facing": "BACK"}')
        assert command.facing == Facing.BACK

    def test_out_of_range_cursor_kept(self):
        command = decode_message('{"cursor": {"x": -5, "y": 120.5}, "gesture": "OPEN"}')
        assert command.cursor == CursorPoint(-5.0, 120.5)

    @pytest.mark.parametrize("raw", [
        "not json",
        "",
        "[]",
        "42",
        "{}",
        '{"cursor": null}',
        '{"cursor": null, "gesture": "WAVE"}',
        '{"cursor": null, "gesture": "OPEN", "facing": "SIDE"}',
        '{"cursor": 5, "gesture": "OPEN"}',
        '{"cursor": {"x": "1", "y": 2}, "gesture": "OPEN"}',
        '{"cursor": {"x": true, "y": 2}, "gesture": "OPEN"}',
        '{"cursor": {"x": 1}, "gesture": "OPEN"}',
        '{"cursor": {"x": NaN, "y": 50}, "gesture": "CLOSED"}',
        '{"cursor": {"x": 50, "y": Infinity}, "gesture": "OPEN"}',
        '{"cursor": {"x": -Infinity, "y": 0}, "gesture": "OPEN"}',
    ])
    def test_malformed(self, raw):
        with pytest.raises(ProtocolError):
            decode_message(raw)

    def test_protocol_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_message("{")

    def test_non_finite_cursor_rejected(self):
        with pytest.raises(ProtocolError, match="finite"):
            decode_message('{"cursor": {"x": NaN, "y": 50}, "gesture": "CLOSED", "facing": "FRONT"}')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
