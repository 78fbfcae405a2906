"""
Frame admission gate.

The tick loop polls faster than the camera delivers frames. Running the
landmark model twice on the same frame makes the box and gesture flicker
(the model is not perfectly deterministic on repeated calls), so each
frame timestamp is admitted at most once.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class FrameGate:
    """Admits each video frame timestamp once."""

    def __init__(self):
        self._last_timestamp: Optional[float] = None
        self._admitted = 0
        self._rejected = 0

    def admit(self, timestamp: Optional[float]) -> bool:
        """Return True if this timestamp has not been seen last; record it.

        A missing timestamp (video source not ready) is simply not admitted.
        """
        if timestamp is None:
            return False
        if timestamp == self._last_timestamp:
            self._rejected += 1
            return False
        self._last_timestamp = timestamp
        self._admitted += 1
        return True

    def reset(self) -> None:
        self._last_timestamp = None
        self._admitted = 0
        self._rejected = 0

    @property
    def last_timestamp(self) -> Optional[float]:
        return self._last_timestamp

    @property
    def admitted_count(self) -> int:
        return self._admitted

    @property
    def rejected_count(self) -> int:
        return self._rejected
