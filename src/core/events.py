"""
Status bus for the tracker session.

The session publishes its state, every stabilized detection and every
click here. Display surfaces (the console status logger, overlays, a
secondary window) subscribe and all receive the same payloads, so no
surface ever reads tracker internals directly.

Usage:
    bus = EventBus()
    unsubscribe = bus.subscribe(Events.DETECTION, on_detection)
    bus.emit(Events.DETECTION, frame=frame, state=TrackerState.ACTIVE)
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[..., None]


def _callback_name(callback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventBus:
    """Synchronous publish/subscribe bus.

    Listeners run on the emitting thread in descending priority order. A
    listener that raises is logged and skipped; the remaining listeners
    and the emitter carry on. The last payload of each topic is retained
    so a surface attached mid-session can be brought up to date with
    ``subscribe(..., replay=True)``.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Tuple[int, Listener]]] = defaultdict(list)
        self._latest: Dict[str, dict] = {}
        self._emit_counts: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Listener, priority: int = 0,
                  replay: bool = False) -> Callable[[], None]:
        """Register a listener.

        Args:
            topic: One of the ``Events`` names
            callback: Called with the keyword payload of each emit()
            priority: Higher runs first (default 0)
            replay: Immediately deliver the topic's last payload, if any

        Returns:
            A zero-argument function that removes this subscription
        """
        with self._lock:
            entries = self._listeners[topic]
            entries.append((priority, callback))
            entries.sort(key=lambda entry: -entry[0])
            latest = self._latest.get(topic)

        logger.debug("Subscribed %s to '%s' (priority=%d)", _callback_name(callback), topic, priority)

        if replay and latest is not None:
            self._dispatch(topic, [(priority, callback)], latest)

        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: str, callback: Listener) -> None:
        with self._lock:
            remaining = [(p, cb) for p, cb in self._listeners.get(topic, []) if cb is not callback]
            if remaining:
                self._listeners[topic] = remaining
            else:
                self._listeners.pop(topic, None)

    def emit(self, topic: str, **payload) -> None:
        """Deliver a payload to every listener of topic."""
        with self._lock:
            listeners = list(self._listeners.get(topic, ()))
            self._latest[topic] = payload
            self._emit_counts[topic] += 1

        self._dispatch(topic, listeners, payload)

    def _dispatch(self, topic: str, listeners, payload: dict) -> None:
        for _, callback in listeners:
            try:
                callback(**payload)
            except Exception as e:
                logger.error("Listener %s failed on '%s': %s", _callback_name(callback), topic, e)

    def latest(self, topic: str) -> Optional[dict]:
        """Last payload emitted on topic, or None."""
        with self._lock:
            payload = self._latest.get(topic)
        return dict(payload) if payload is not None else None

    def emit_count(self, topic: str) -> int:
        with self._lock:
            return self._emit_counts.get(topic, 0)

    def clear(self, topic: Optional[str] = None) -> None:
        """Drop listeners and retained payloads, for one topic or all."""
        with self._lock:
            if topic is None:
                self._listeners.clear()
                self._latest.clear()
            else:
                self._listeners.pop(topic, None)
                self._latest.pop(topic, None)

    @property
    def topics(self) -> List[str]:
        """Topics that currently have listeners."""
        with self._lock:
            return sorted(self._listeners)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._listeners.values())


class Events:
    """Topic names carried on the status bus, with their payload keys."""

    STATE_CHANGED = "state_changed"        # state: TrackerState, error: Optional[str]
    DETECTION = "detection"                # frame: DetectionFrame, state: TrackerState
    CLICK = "click"                        # event: ClickEvent
    TRANSPORT_OPENED = "transport_opened"  # url: str
    TRANSPORT_CLOSED = "transport_closed"  # url: str
