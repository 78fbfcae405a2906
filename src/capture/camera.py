"""
Video source.

A webcam read on a background thread. The tracker tick only ever sees
the newest frame; each frame is stamped with time.monotonic() when it
leaves the device, and that stamp is what the frame gate compares to
decide whether a tick has anything new to process.
"""

import cv2
import time
import threading
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from core.types import InitializationError

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30
    buffer_size: int = 1
    # Mirror the image so the hand moves the way the user expects and
    # MediaPipe's Left/Right labels match the user's real hand
    flip_horizontal: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        defaults = cls()
        return cls(**{
            name: config.get(name, getattr(defaults, name))
            for name in ("device_id", "width", "height", "fps",
                         "buffer_size", "flip_horizontal", "warmup_frames")
        })


@dataclass
class Frame:
    """One captured BGR image and when it was taken."""
    image: np.ndarray
    timestamp: float  # seconds, monotonic clock
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """The image as RGB, the layout MediaPipe expects."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)


class Camera:
    """
    Latest-frame webcam reader.

    Example:
        >>> with Camera(CameraConfig(device_id=0)) as camera:
        ...     frame = camera.read()   # None until the first frame lands
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap = None
        self._reader: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._lock = threading.Lock()
        self._latest: Optional[Frame] = None
        self._frames_read = 0
        self._failed_reads = 0

    def start(self) -> None:
        """
        Open the device, let exposure settle and start the reader thread.

        Raises:
            InitializationError: if the device cannot be opened or yields no image
        """
        cfg = self.config
        logger.info("Opening camera %d (%dx%d@%dfps requested)", cfg.device_id, cfg.width, cfg.height, cfg.fps)

        cap = cv2.VideoCapture(cfg.device_id)
        if not cap.isOpened():
            cap.release()
            raise InitializationError(f"Failed to open camera device {cfg.device_id}")

        for prop, value in ((cv2.CAP_PROP_FRAME_WIDTH, cfg.width),
                            (cv2.CAP_PROP_FRAME_HEIGHT, cfg.height),
                            (cv2.CAP_PROP_FPS, cfg.fps),
                            (cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)):
            cap.set(prop, value)

        ok, _ = cap.read()
        if not ok:
            cap.release()
            raise InitializationError(f"Camera device {cfg.device_id} opened but returns no frames")

        for _ in range(cfg.warmup_frames):
            cap.read()

        logger.info("Camera ready: %dx%d@%.0ffps",
                    int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                    cap.get(cv2.CAP_PROP_FPS))

        self._cap = cap
        self._frames_read = 0
        self._failed_reads = 0
        with self._lock:
            self._latest = None
        self._running.set()
        self._reader = threading.Thread(target=self._read_loop, name="camera-reader", daemon=True)
        self._reader.start()

    def stop(self) -> None:
        """Stop the reader and release the device. Safe to call repeatedly."""
        if self._cap is None and self._reader is None:
            return
        self._running.clear()
        if self._reader is not None:
            self._reader.join(timeout=1.0)
            self._reader = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        with self._lock:
            self._latest = None
        logger.info("Camera stopped after %d frames (%d failed reads)", self._frames_read, self._failed_reads)

    def read(self) -> Optional[Frame]:
        """Newest frame, or None when stopped or before the first frame."""
        if not self._running.is_set():
            return None
        with self._lock:
            return self._latest

    def _grab(self) -> Optional[Frame]:
        ok, image = self._cap.read()
        if not ok or image is None:
            self._failed_reads += 1
            return None
        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)
        self._frames_read += 1
        return Frame(image=image, timestamp=time.monotonic(), frame_number=self._frames_read)

    def _read_loop(self) -> None:
        while self._running.is_set():
            frame = self._grab()
            if frame is None:
                time.sleep(0.01)
                continue
            with self._lock:
                self._latest = frame

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.config.width, self.config.height)

    @property
    def frames_read(self) -> int:
        return self._frames_read

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
