"""Shared types and the status event bus."""
from .types import (
    BoundingBox,
    ClickEvent,
    CursorPoint,
    DetectionFrame,
    Facing,
    Gesture,
    Handedness,
    InitializationError,
    ProtocolError,
    SessionError,
    TrackerState,
)
from .events import EventBus, Events

__all__ = [
    "BoundingBox",
    "ClickEvent",
    "CursorPoint",
    "DetectionFrame",
    "Facing",
    "Gesture",
    "Handedness",
    "InitializationError",
    "ProtocolError",
    "SessionError",
    "TrackerState",
    "EventBus",
    "Events",
]
