"""
Cursor Actuator Module
=======================

Moves the OS pointer and issues click pulses.
Supports pyautogui and xdotool (X11) backends; if neither is usable,
actions are simulated (logged only).
"""

import logging
import math
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from core.types import CursorPoint, Facing

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"

# Palm toward the camera is a left click, back of the hand a right click
FACING_BUTTONS = {
    Facing.FRONT: LEFT,
    Facing.BACK: RIGHT,
    Facing.UNKNOWN: LEFT,
}


@dataclass
class ActuatorConfig:
    """Cursor actuator configuration."""
    control_method: str = "pyautogui"  # pyautogui, xdotool or simulated
    # Press-to-release hold; shorter pulses can register as a drag start
    click_hold_ms: int = 50

    @classmethod
    def from_dict(cls, config: dict) -> "ActuatorConfig":
        """Create config from dictionary."""
        return cls(
            control_method=config.get("control_method", "pyautogui"),
            click_hold_ms=config.get("click_hold_ms", 50),
        )


class SimulatedBackend:
    """Logs pointer actions instead of performing them."""

    name = "simulated"

    def __init__(self, screen_size: Tuple[int, int] = (1920, 1080)):
        self._screen_size = screen_size

    def screen_size(self) -> Tuple[int, int]:
        return self._screen_size

    def move_to(self, x: int, y: int) -> None:
        logger.debug("[SIMULATED] Move to (%d, %d)", x, y)

    def press(self, button: str) -> None:
        logger.info("[SIMULATED] Press %s", button)

    def release(self, button: str) -> None:
        logger.info("[SIMULATED] Release %s", button)


class PyAutoGuiBackend:
    """Pointer control through pyautogui."""

    name = "pyautogui"

    def __init__(self):
        import pyautogui
        self._gui = pyautogui
        # Corner moves are expected; do not raise FailSafeException
        pyautogui.FAILSAFE = False
        pyautogui.PAUSE = 0

    def screen_size(self) -> Tuple[int, int]:
        width, height = self._gui.size()
        return int(width), int(height)

    def move_to(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y, _pause=False)

    def press(self, button: str) -> None:
        self._gui.mouseDown(button=button, _pause=False)

    def release(self, button: str) -> None:
        self._gui.mouseUp(button=button, _pause=False)


class XdotoolBackend:
    """Pointer control through the xdotool command (X11)."""

    name = "xdotool"
    BUTTONS = {LEFT: "1", RIGHT: "3"}

    def __init__(self, timeout: float = 1.0):
        self._timeout = timeout

    def _run(self, *args: str) -> str:
        result = subprocess.run(
            ["xdotool", *args],
            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=True, timeout=self._timeout,
        )
        if result.returncode != 0:
            raise RuntimeError(f"xdotool {' '.join(args)} failed: {result.stderr.strip()}")
        return result.stdout

    def screen_size(self) -> Tuple[int, int]:
        width, height = self._run("getdisplaygeometry").split()
        return int(width), int(height)

    def move_to(self, x: int, y: int) -> None:
        self._run("mousemove", str(x), str(y))

    def press(self, button: str) -> None:
        self._run("mousedown", self.BUTTONS[button])

    def release(self, button: str) -> None:
        self._run("mouseup", self.BUTTONS[button])


def _check_xdotool() -> bool:
    """Check if xdotool is available."""
    try:
        result = subprocess.run(
            ["which", "xdotool"],
            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            timeout=2,
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


def create_backend(method: str):
    """Build the requested backend, falling back to what the host supports."""
    if method == "pyautogui":
        try:
            return PyAutoGuiBackend()
        except Exception as e:
            # pyautogui raises on import without a display
            logger.warning("pyautogui unavailable (%s), falling back to xdotool", e)
            method = "xdotool"

    if method == "xdotool":
        if _check_xdotool():
            return XdotoolBackend()
        logger.warning("xdotool not found - pointer actions will be simulated (logged only)")
    elif method != "simulated":
        logger.warning("Unknown control method '%s' - pointer actions will be simulated", method)

    return SimulatedBackend()


def to_screen_pixels(cursor: CursorPoint, screen_size: Tuple[int, int]) -> Tuple[int, int]:
    """Map a percentage cursor to absolute pixels, rounding half up.

    Values outside 0-100 extrapolate off-screen; the backend clamps.
    """
    width, height = screen_size
    x = math.floor(cursor.x / 100 * width + 0.5)
    y = math.floor(cursor.y / 100 * height + 0.5)
    return int(x), int(y)


class CursorActuator:
    """
    OS pointer actuator.

    Example:
        >>> actuator = CursorActuator()
        >>> actuator.move(CursorPoint(50, 50))   # centre of the primary screen
        >>> actuator.click(Facing.BACK)          # right click
    """

    def __init__(self, config: Optional[ActuatorConfig] = None, backend=None):
        self.config = config or ActuatorConfig()
        self._backend = backend or create_backend(self.config.control_method)
        self._move_count = 0
        self._click_count = 0
        self._last_click: Optional[Tuple[str, float]] = None
        self._screen_size: Optional[Tuple[int, int]] = None

        logger.info("CursorActuator initialized (method=%s, hold=%dms)",
                    self.backend_name, self.config.click_hold_ms)

    def move(self, cursor: CursorPoint) -> Tuple[int, int]:
        """Move the pointer; returns the pixel target."""
        target = to_screen_pixels(cursor, self.screen_size)
        self._backend.move_to(*target)
        self._move_count += 1
        return target

    def click(self, facing: Facing) -> str:
        """Press, hold, release the button matching the hand facing; returns the button."""
        button = FACING_BUTTONS.get(facing, LEFT)
        self._backend.press(button)
        try:
            time.sleep(self.config.click_hold_ms / 1000.0)
        finally:
            self._backend.release(button)

        self._click_count += 1
        self._last_click = (button, time.time())
        logger.debug("Clicked %s button", button)
        return button

    @property
    def screen_size(self) -> Tuple[int, int]:
        """Screen size in pixels, queried once and then cached."""
        if self._screen_size is None:
            self.refresh_screen_size()
        return self._screen_size

    def refresh_screen_size(self) -> Tuple[int, int]:
        """Re-query the backend, e.g. after a display change."""
        self._screen_size = tuple(self._backend.screen_size())
        logger.debug("Screen size: %dx%d", *self._screen_size)
        return self._screen_size

    @property
    def backend_name(self) -> str:
        return getattr(self._backend, "name", type(self._backend).__name__)

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def click_count(self) -> int:
        return self._click_count

    @property
    def last_click(self) -> Optional[Tuple[str, float]]:
        return self._last_click
