"""
Hand landmark containers.

Plain data types for one detected hand, kept separate from the MediaPipe
wrapper so the classifier and its tests do not need the model runtime.
"""

import numpy as np
from dataclasses import dataclass
from enum import IntEnum
from typing import List, NamedTuple

from core.types import Handedness

NUM_LANDMARKS = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float  # Depth relative to wrist


@dataclass
class HandLandmarks:
    """Container for one detected hand."""
    landmarks: List[Landmark]
    handedness: Handedness
    confidence: float

    def __post_init__(self):
        if len(self.landmarks) != NUM_LANDMARKS:
            raise ValueError(f"Expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}")

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    def distance(self, idx1: LandmarkIndex, idx2: LandmarkIndex) -> float:
        """Calculate Euclidean distance between two landmarks."""
        lm1 = self.get(idx1)
        lm2 = self.get(idx2)
        return float(np.sqrt((lm1.x - lm2.x)**2 + (lm1.y - lm2.y)**2 + (lm1.z - lm2.z)**2))

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)
