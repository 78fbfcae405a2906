"""
Shared domain types for the Touchless Cursor system.

Centralizes enums, data classes, and exceptions used across the pipeline
(classifier, stabilizer, transport, actuator) so every stage agrees on the
same vocabulary and wire values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Enumerations
# =============================================================================

class Handedness(Enum):
    """Which hand the landmark model believes it is looking at."""
    LEFT = "Left"
    RIGHT = "Right"
    UNKNOWN = "Unknown"

    @classmethod
    def from_string(cls, name: str) -> 'Handedness':
        """Convert a model category name ("Left"/"Right") to Handedness, safely."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


class Gesture(Enum):
    """Hand gesture. Values are the wire representation."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"


class Facing(Enum):
    """Which side of the hand faces the camera. Values are the wire representation."""
    FRONT = "FRONT"
    BACK = "BACK"
    UNKNOWN = "UNKNOWN"


class TrackerState(Enum):
    """Lifecycle of a tracking session."""
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    ERROR = "ERROR"


# =============================================================================
# Exceptions
# =============================================================================

class InitializationError(RuntimeError):
    """Landmark source or camera could not be brought up."""


class SessionError(RuntimeError):
    """Tracker session was asked to do something its state does not allow."""


class ProtocolError(ValueError):
    """A transport message could not be decoded."""


# =============================================================================
# Data Containers
# =============================================================================

@dataclass(frozen=True)
class BoundingBox:
    """Hand bounding box in percentage units (0-100)."""
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    confidence: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin


@dataclass(frozen=True)
class CursorPoint:
    """Cursor target in percentage units. May fall outside 0-100."""
    x: float
    y: float


@dataclass(frozen=True)
class DetectionFrame:
    """Result of processing one admitted video frame.

    A frame without a box carries no gesture, facing, or cursor.
    """
    box: Optional[BoundingBox] = None
    gesture: Gesture = Gesture.UNKNOWN
    facing: Facing = Facing.UNKNOWN
    cursor: Optional[CursorPoint] = None
    is_new_frame: bool = True

    def __post_init__(self):
        if self.box is None and (
            self.gesture is not Gesture.UNKNOWN
            or self.facing is not Facing.UNKNOWN
            or self.cursor is not None
        ):
            raise ValueError("DetectionFrame without a box must not carry gesture, facing or cursor")

    @classmethod
    def empty(cls) -> 'DetectionFrame':
        """Frame processed, but no hand found."""
        return cls()

    @property
    def has_hand(self) -> bool:
        return self.box is not None


@dataclass(frozen=True)
class ClickEvent:
    """A click edge recorded by the stabilizer."""
    facing: Facing
    cursor: Optional[CursorPoint]
