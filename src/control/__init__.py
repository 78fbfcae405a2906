"""OS pointer control."""
from .cursor_actuator import ActuatorConfig, CursorActuator, create_backend, to_screen_pixels

__all__ = ["ActuatorConfig", "CursorActuator", "create_backend", "to_screen_pixels"]
