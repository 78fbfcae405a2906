"""
Wire protocol between the tracker and the cursor relay.

One JSON object per WebSocket text message:

    {"cursor": {"x": 50.0, "y": 42.5} | null,
     "gesture": "OPEN" | "CLOSED" | "UNKNOWN",
     "facing": "FRONT" | "BACK" | "UNKNOWN"}
"""

import json
import math
from dataclasses import dataclass
from numbers import Real
from typing import Optional, Union

from core.types import CursorPoint, DetectionFrame, Facing, Gesture, ProtocolError


@dataclass(frozen=True)
class ActuatorCommand:
    """A decoded wire message."""
    cursor: Optional[CursorPoint]
    gesture: Gesture
    facing: Facing


def frame_to_dict(frame: DetectionFrame) -> dict:
    cursor = None
    if frame.cursor is not None:
        cursor = {"x": frame.cursor.x, "y": frame.cursor.y}
    return {
        "cursor": cursor,
        "gesture": frame.gesture.value,
        "facing": frame.facing.value,
    }


def encode_frame(frame: DetectionFrame) -> str:
    """Serialize a stabilized frame for the relay."""
    return json.dumps(frame_to_dict(frame))


def _is_number(value) -> bool:
    # bool is an int subclass; reject it as a coordinate. json.loads also
    # accepts NaN and Infinity, which have no pixel position
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _decode_cursor(value) -> Optional[CursorPoint]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ProtocolError(f"cursor must be an object, got {type(value).__name__}")
    x, y = value.get("x"), value.get("y")
    if not (_is_number(x) and _is_number(y)):
        raise ProtocolError(f"cursor coordinates must be finite numbers, got x={x!r} y={y!r}")
    return CursorPoint(x=float(x), y=float(y))


def decode_message(raw: Union[str, bytes]) -> ActuatorCommand:
    """
    Parse one wire message.

    A missing cursor means "do not move"; a missing facing decodes as
    UNKNOWN. Anything else malformed raises ProtocolError.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"message must be a JSON object, got {type(data).__name__}")

    cursor = _decode_cursor(data.get("cursor"))

    try:
        gesture = Gesture(data["gesture"])
    except KeyError:
        raise ProtocolError("missing gesture") from None
    except (TypeError, ValueError):
        raise ProtocolError(f"unknown gesture {data['gesture']!r}") from None

    try:
        facing = Facing(data.get("facing", Facing.UNKNOWN.value))
    except (TypeError, ValueError):
        raise ProtocolError(f"unknown facing {data.get('facing')!r}") from None

    return ActuatorCommand(cursor=cursor, gesture=gesture, facing=facing)
