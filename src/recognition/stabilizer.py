"""
Temporal Stabilizer
====================

Holds the last detection across short "no hand" dropouts and edge-detects
the open -> closed transition that triggers a click.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from core.types import DetectionFrame, Gesture

logger = logging.getLogger(__name__)


@dataclass
class StabilizerConfig:
    """Temporal stabilizer configuration."""
    # Consecutive no-hand frames that still report the previous detection
    # (about 150ms at 30 fps)
    grace_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "StabilizerConfig":
        """Create config from dictionary."""
        return cls(grace_frames=config.get("grace_frames", 5))


class ClickEdgeDetector:
    """Fires once on the transition into CLOSED.

    Holding a fist fires once; the gesture has to leave CLOSED (OPEN or
    UNKNOWN) and close again to fire another click.
    """

    def __init__(self):
        self._last_gesture = Gesture.UNKNOWN

    def update(self, gesture: Gesture) -> bool:
        fired = gesture is Gesture.CLOSED and self._last_gesture is not Gesture.CLOSED
        self._last_gesture = gesture
        return fired

    def reset(self) -> None:
        self._last_gesture = Gesture.UNKNOWN

    @property
    def last_gesture(self) -> Gesture:
        return self._last_gesture


class TemporalStabilizer:
    """
    Grace-period hold plus click edge detection.

    A detection with a box is passed through immediately (no smoothing on
    acquisition). Missing frames keep reporting the previous detection for
    up to grace_frames frames, then a cleared frame is reported.

    Example:
        >>> stabilizer = TemporalStabilizer()
        >>> frame, click = stabilizer.update(classifier.classify(hand))
        >>> if click:
        ...     print("click", frame.facing)
    """

    def __init__(self, config: Optional[StabilizerConfig] = None):
        self.config = config or StabilizerConfig()
        self._missing_frames = 0
        self._last_detection: Optional[DetectionFrame] = None
        self._edges = ClickEdgeDetector()
        self._click_count = 0

    def update(self, frame: DetectionFrame) -> Tuple[DetectionFrame, bool]:
        """
        Stabilize one processed frame.

        Args:
            frame: Raw classifier output for an admitted frame

        Returns:
            Tuple of (stabilized_frame, click)
            - stabilized_frame: what downstream consumers should see
            - click: True if the gesture just became CLOSED
        """
        if frame.has_hand:
            self._missing_frames = 0
            self._last_detection = frame
            output = frame
        else:
            self._missing_frames += 1
            if self._last_detection is not None and self._missing_frames <= self.config.grace_frames:
                output = self._last_detection
            else:
                if self._last_detection is not None:
                    logger.debug("Hand lost after %d missing frames", self._missing_frames)
                self._last_detection = None
                output = DetectionFrame.empty()

        click = self._edges.update(output.gesture)
        if click:
            self._click_count += 1
            logger.debug("Click edge (%s)", output.facing.value)

        return output, click

    def reset(self) -> None:
        """Clear all state."""
        self._missing_frames = 0
        self._last_detection = None
        self._edges.reset()

    @property
    def missing_frames(self) -> int:
        return self._missing_frames

    @property
    def last_gesture(self) -> Gesture:
        return self._edges.last_gesture

    @property
    def click_count(self) -> int:
        return self._click_count
