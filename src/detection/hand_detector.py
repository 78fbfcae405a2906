"""
Landmark source backed by the MediaPipe Tasks HandLandmarker.

Runs the landmarker in VIDEO mode for a single hand and turns its result
into HandLandmarks. Anything that stops the model from loading surfaces
as InitializationError so the tracker session can move to ERROR.
"""

import logging
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from core.types import Handedness, InitializationError
from .landmarks import HandLandmarks, Landmark

logger = logging.getLogger(__name__)

HAND_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)
DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"


@dataclass
class HandDetectorConfig:
    """Landmarker model location and confidence floors."""
    model_path: str = ""  # empty: DEFAULT_MODEL_PATH, fetched on first use
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path") or "",
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
        )

    @property
    def resolved_model_path(self) -> Path:
        return Path(self.model_path) if self.model_path else DEFAULT_MODEL_PATH


def ensure_model(path: Path, url: str = HAND_LANDMARKER_MODEL_URL) -> Path:
    """Fetch the landmarker bundle to path unless it is already there.

    Raises:
        InitializationError: if the download fails
    """
    if path.exists():
        return path

    logger.info("Hand landmarker model not found, downloading to %s", path)
    # path only ever holds a complete download
    partial = path.with_name(path.name + ".part")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        urllib.request.urlretrieve(url, str(partial))
        partial.replace(path)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise InitializationError(f"Failed to download hand landmarker model: {e}") from e
    return path


def first_hand(result) -> Optional[HandLandmarks]:
    """The first hand of a HandLandmarkerResult, or None."""
    if not result.hand_landmarks:
        return None

    handedness, score = Handedness.UNKNOWN, 0.0
    if result.handedness and result.handedness[0]:
        top = result.handedness[0][0]
        handedness, score = Handedness.from_string(top.category_name), top.score

    return HandLandmarks(
        landmarks=[Landmark(p.x, p.y, p.z) for p in result.hand_landmarks[0]],
        handedness=handedness,
        confidence=score,
    )


class HandDetector:
    """
    Single-hand landmark source.

    VIDEO mode rejects a timestamp that is not larger than the previous
    one, so detect() nudges repeated or backward timestamps forward by
    one millisecond.

    Example:
        >>> with HandDetector(HandDetectorConfig()) as detector:
        ...     hand = detector.detect(frame.rgb, frame.timestamp_ms)
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker = None
        self._last_timestamp_ms = -1

    def initialize(self) -> None:
        """Load the model.

        Raises:
            InitializationError: if the model cannot be fetched or loaded
        """
        model_path = ensure_model(self.config.resolved_model_path)

        options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=1,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        try:
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise InitializationError(f"Failed to load hand landmarker from {model_path}: {e}") from e

        self._last_timestamp_ms = -1
        logger.info("Hand landmarker loaded from %s", model_path)

    def close(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
            logger.info("Hand landmarker closed")

    @property
    def is_initialized(self) -> bool:
        return self._landmarker is not None

    def detect(self, image: np.ndarray, timestamp_ms: int) -> Optional[HandLandmarks]:
        """
        Run the landmarker on one RGB frame.

        Args:
            image: RGB image, shape (H, W, 3)
            timestamp_ms: Capture time of the frame in milliseconds

        Returns:
            The first detected hand, or None
        """
        if self._landmarker is None:
            logger.warning("detect() called before initialize()")
            return None

        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)
        return first_hand(self._landmarker.detect_for_video(mp_image, timestamp_ms))

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
