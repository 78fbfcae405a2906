"""
Geometry Classifier
====================

Pure, stateless mapping from one hand's landmarks to a DetectionFrame:
bounding box, open/closed gesture, front/back facing and cursor point.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from core.types import (
    BoundingBox,
    CursorPoint,
    DetectionFrame,
    Facing,
    Gesture,
    Handedness,
)
from detection.landmarks import HandLandmarks, LandmarkIndex
from utils.logger import log_timing

logger = logging.getLogger(__name__)

# (tip, pip) per non-thumb finger
FINGER_JOINTS: Dict[str, tuple] = {
    "index": (LandmarkIndex.INDEX_TIP, LandmarkIndex.INDEX_PIP),
    "middle": (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.MIDDLE_PIP),
    "ring": (LandmarkIndex.RING_TIP, LandmarkIndex.RING_PIP),
    "pinky": (LandmarkIndex.PINKY_TIP, LandmarkIndex.PINKY_PIP),
}


@dataclass
class GeometryConfig:
    """Geometry classifier configuration."""
    # Box padding in unit-square terms
    padding: float = 0.05
    # Vertical cursor offset from the wrist, about one hand length upward
    cursor_offset_y: float = -0.25
    # Curled fingers needed to call the hand closed
    closed_min_curled: int = 3

    @classmethod
    def from_dict(cls, config: dict) -> "GeometryConfig":
        """Create config from dictionary."""
        return cls(
            padding=config.get("padding", 0.05),
            cursor_offset_y=config.get("cursor_offset_y", -0.25),
            closed_min_curled=config.get("closed_min_curled", 3),
        )


def bounding_box(hand: HandLandmarks, padding: float = 0.05) -> BoundingBox:
    """Padded, clamped landmark extent in percentage units."""
    points = hand.to_numpy()
    xmin, ymin = points[:, :2].min(axis=0) - padding
    xmax, ymax = points[:, :2].max(axis=0) + padding

    # Clamp both edges so the box stays ordered even for off-frame hands
    xmin, xmax, ymin, ymax = np.clip([xmin, xmax, ymin, ymax], 0.0, 1.0)

    return BoundingBox(
        xmin=float(xmin * 100),
        ymin=float(ymin * 100),
        xmax=float(xmax * 100),
        ymax=float(ymax * 100),
        confidence=float(np.clip(hand.confidence, 0.0, 1.0)),
    )


def finger_curls(hand: HandLandmarks) -> Dict[str, bool]:
    """Per-finger curl state.

    A finger is curled when its tip is nearer the wrist than its own PIP
    joint. Comparing against the PIP rather than the MCP keeps this valid
    for a fist seen from the back, where the tips are hidden behind the
    knuckles.
    """
    curls = {}
    for finger, (tip_idx, pip_idx) in FINGER_JOINTS.items():
        tip_dist = hand.distance(tip_idx, LandmarkIndex.WRIST)
        pip_dist = hand.distance(pip_idx, LandmarkIndex.WRIST)
        curls[finger] = tip_dist < pip_dist
    return curls


def count_curled_fingers(hand: HandLandmarks) -> int:
    return sum(1 for curled in finger_curls(hand).values() if curled)


def classify_gesture(hand: HandLandmarks, closed_min_curled: int = 3) -> Gesture:
    if count_curled_fingers(hand) >= closed_min_curled:
        return Gesture.CLOSED
    return Gesture.OPEN


def cross_z(hand: HandLandmarks) -> float:
    """Z component of (indexMCP - wrist) x (pinkyMCP - wrist) in the image plane."""
    wrist = hand.get(LandmarkIndex.WRIST)
    index_mcp = hand.get(LandmarkIndex.INDEX_MCP)
    pinky_mcp = hand.get(LandmarkIndex.PINKY_MCP)

    v1 = np.array([index_mcp.x - wrist.x, index_mcp.y - wrist.y])
    v2 = np.array([pinky_mcp.x - wrist.x, pinky_mcp.y - wrist.y])
    return float(v1[0] * v2[1] - v1[1] * v2[0])


def classify_facing(hand: HandLandmarks) -> Facing:
    """Palm (front) or back of the hand toward the camera.

    Depends only on the winding order of wrist, index MCP and pinky MCP,
    so it holds under any in-plane rotation of the hand.
    """
    z = cross_z(hand)
    if hand.handedness is Handedness.RIGHT:
        return Facing.FRONT if z < 0 else Facing.BACK
    if hand.handedness is Handedness.LEFT:
        return Facing.FRONT if z > 0 else Facing.BACK
    return Facing.UNKNOWN


def cursor_point(hand: HandLandmarks, offset_y: float = -0.25) -> CursorPoint:
    """Cursor target from the wrist, the steadiest point on the hand.

    The offset lifts the cursor to where the hand appears to point; without
    it the cursor trails below the fingers. Not clamped.
    """
    wrist = hand.get(LandmarkIndex.WRIST)
    return CursorPoint(x=wrist.x * 100, y=(wrist.y + offset_y) * 100)


class GeometryClassifier:
    """
    Stateless landmark classifier.

    Example:
        >>> classifier = GeometryClassifier()
        >>> frame = classifier.classify(hand)
        >>> if frame.has_hand:
        ...     print(frame.gesture, frame.facing, frame.cursor)
    """

    def __init__(self, config: Optional[GeometryConfig] = None):
        self.config = config or GeometryConfig()

    @log_timing
    def classify(self, hand: Optional[HandLandmarks]) -> DetectionFrame:
        """
        Classify one hand.

        Args:
            hand: Landmarks of the detected hand, or None when no hand was found

        Returns:
            DetectionFrame; box is None when there is no hand
        """
        if hand is None:
            return DetectionFrame.empty()

        return DetectionFrame(
            box=bounding_box(hand, self.config.padding),
            gesture=classify_gesture(hand, self.config.closed_min_curled),
            facing=classify_facing(hand),
            cursor=cursor_point(hand, self.config.cursor_offset_y),
            is_new_frame=True,
        )
