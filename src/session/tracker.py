"""
Tracker session: the detect -> classify -> stabilize -> publish cycle.

Runs on the asyncio event loop as a self re-arming timer (call_later)
rather than being driven by a display refresh, so tracking continues
while no window is visible. A tick is scheduled only after the previous
one has finished, so ticks never overlap, and each tick first checks the
session state so nothing runs after stop().

Lifecycle:
    IDLE -> CONNECTING -> ACTIVE
    any step -> ERROR (resources released)
    stop() -> IDLE
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from core.events import EventBus, Events
from core.types import (
    ClickEvent,
    DetectionFrame,
    InitializationError,
    SessionError,
    TrackerState,
)
from detection.frame_gate import FrameGate
from recognition.geometry import GeometryClassifier
from recognition.stabilizer import TemporalStabilizer

logger = logging.getLogger(__name__)


@dataclass
class TrackingConfig:
    """Tick scheduling configuration."""
    tick_interval: float = 0.033  # ~30 Hz

    @classmethod
    def from_dict(cls, config: dict) -> "TrackingConfig":
        """Create config from dictionary."""
        return cls(tick_interval=config.get("tick_interval", 0.033))


class TrackerSession:
    """
    The single tracking session of this process.

    Owns the video source, landmark source and publisher for as long as it
    is running, and mirrors its state and every stabilized frame onto the
    event bus for display surfaces.

    Example:
        >>> session = TrackerSession(camera, detector, publisher, bus=bus)
        >>> await session.start()
        >>> ...
        >>> await session.stop()
    """

    _active: Optional["TrackerSession"] = None

    def __init__(
        self,
        camera,
        detector,
        publisher=None,
        bus: Optional[EventBus] = None,
        config: Optional[TrackingConfig] = None,
        classifier: Optional[GeometryClassifier] = None,
        stabilizer: Optional[TemporalStabilizer] = None,
    ):
        self._camera = camera
        self._detector = detector
        self._publisher = publisher
        self._bus = bus or EventBus()
        self.config = config or TrackingConfig()
        self._classifier = classifier or GeometryClassifier()
        self._stabilizer = stabilizer or TemporalStabilizer()
        self._gate = FrameGate()

        self._state = TrackerState.IDLE
        self._error: Optional[str] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._close_task: Optional[asyncio.Task] = None
        self._last_frame: Optional[DetectionFrame] = None
        self._tick_count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Bring up the landmark source and camera, open the transport and
        start ticking.

        Returns:
            True if the session is ACTIVE, False if initialization failed
            (state is then ERROR)

        Raises:
            SessionError: if this or another session is already running
        """
        if self._state in (TrackerState.CONNECTING, TrackerState.ACTIVE):
            raise SessionError(f"Tracker session already {self._state.value.lower()}")
        active = TrackerSession._active
        if active is not None and active is not self:
            raise SessionError("Another tracker session is active")

        TrackerSession._active = self
        self._loop = asyncio.get_running_loop()
        self._error = None
        self._last_frame = None
        self._gate.reset()
        self._stabilizer.reset()
        self._set_state(TrackerState.CONNECTING)

        try:
            self._detector.initialize()
            self._camera.start()
        except InitializationError as e:
            message = f"Failed to load landmark model or access camera: {e}"
        except Exception as e:
            logger.exception("Unexpected error while starting tracker")
            message = f"Tracker start failed: {e}"
        else:
            message = None

        if message is not None:
            self._fail(message)
            if self._close_task is not None:
                await self._close_task
            return False

        if self._publisher is not None:
            await self._publisher.open()

        # stop() may have run while the publisher was opening
        if self._state is not TrackerState.CONNECTING:
            return False

        self._set_state(TrackerState.ACTIVE)
        self._schedule()
        return True

    async def stop(self) -> None:
        """Cancel the tick, release the video and landmark sources, close the transport."""
        self._release()
        self._set_state(TrackerState.IDLE)

        if self._publisher is not None:
            await self._publisher.close()
        if self._close_task is not None:
            await self._close_task
            self._close_task = None

        if TrackerSession._active is self:
            TrackerSession._active = None

    def _fail(self, message: str) -> None:
        logger.error("Tracker session error: %s", message)
        self._error = message
        self._release()
        self._set_state(TrackerState.ERROR, message)
        if self._publisher is not None:
            self._close_task = asyncio.ensure_future(self._publisher.close())
        if TrackerSession._active is self:
            TrackerSession._active = None

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._camera.stop()
        self._detector.close()

    def _set_state(self, state: TrackerState, error: Optional[str] = None) -> None:
        if state is self._state and error is None:
            return
        logger.info("Tracker state: %s -> %s", self._state.value, state.value)
        self._state = state
        self._bus.emit(Events.STATE_CHANGED, state=state, error=error)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.config.tick_interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if self._state is not TrackerState.ACTIVE:
            return

        try:
            self.process_frame()
        except Exception as e:
            logger.exception("Landmark detection failed")
            self._fail(f"Landmark detection failed: {e}")
            return

        if self._state is TrackerState.ACTIVE:
            self._schedule()

    def process_frame(self) -> Optional[DetectionFrame]:
        """
        Run one admission/classification/stabilization pass.

        Returns:
            The stabilized frame, or None if no new video frame was available
        """
        self._tick_count += 1

        frame = self._camera.read()
        if frame is None or not self._gate.admit(frame.timestamp):
            return None

        hand = self._detector.detect(frame.rgb, int(frame.timestamp * 1000))
        detection, click = self._stabilizer.update(self._classifier.classify(hand))
        self._last_frame = detection

        if self._publisher is not None:
            self._publisher.publish(detection)

        self._bus.emit(Events.DETECTION, frame=detection, state=self._state)
        if click:
            self._bus.emit(Events.CLICK, event=ClickEvent(facing=detection.facing, cursor=detection.cursor))

        return detection

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def last_frame(self) -> Optional[DetectionFrame]:
        return self._last_frame

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @classmethod
    def active_session(cls) -> Optional["TrackerSession"]:
        return cls._active
