"""
Logging setup and timing helpers.
"""

import os
import logging
import logging.handlers
import time
from collections import deque
from functools import wraps

from core.events import Events


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging for the application."""
    # Clean console format, compact and readable
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    # Verbose format for log file
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_level = getattr(logging, str(level).upper(), logging.INFO)
    root_logger.setLevel(root_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    # websockets logs every handshake at INFO
    logging.getLogger("websockets").setLevel(max(root_level, logging.WARNING))

    return root_logger


class StatusLogger:
    """Console surface for the tracker status topic.

    Subscribes to the event bus like any other display surface and logs
    state changes and clicks; detections are logged at DEBUG only when the
    gesture or facing changes.
    """

    def __init__(self, history_size=100):
        self.logger = logging.getLogger("tracker_status")
        self._click_history = deque(maxlen=history_size)
        self._total_clicks = 0
        self._last_label = None

    def attach(self, bus):
        bus.subscribe(Events.STATE_CHANGED, self.on_state_changed)
        bus.subscribe(Events.DETECTION, self.on_detection)
        bus.subscribe(Events.CLICK, self.on_click)
        return self

    def on_state_changed(self, state, error=None):
        if error:
            self.logger.error("Tracker %s: %s", state.value, error)
        else:
            self.logger.info("Tracker %s", state.value)

    def on_detection(self, frame, state):
        label = (frame.gesture.value, frame.facing.value) if frame.has_hand else None
        if label == self._last_label:
            return
        self._last_label = label
        if label is None:
            self.logger.debug("Hand: none")
        else:
            self.logger.debug("Hand: %-7s | Facing: %-7s | Cursor: (%.1f, %.1f)",
                              label[0], label[1], frame.cursor.x, frame.cursor.y)

    def on_click(self, event):
        self._click_history.append({"timestamp": time.time(), "facing": event.facing.value})
        self._total_clicks += 1
        self.logger.info("Click: %s", event.facing.value)

    def get_history(self, last_n=None):
        """Get recent click history."""
        history = list(self._click_history)
        if last_n:
            return history[-last_n:]
        return history

    @property
    def total_clicks(self):
        return self._total_clicks


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
