"""
Configuration manager.

Reads config/config.yaml once per process. Components never depend on the
file being complete: each one has a dataclass config whose from_dict()
falls back to its own defaults, so this module only has to find the file,
merge command-line overrides and warn about values that look wrong.
"""

import os
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")
DEFAULT_CONFIG_PATH = os.path.join(_CONFIG_DIR, "config.yaml")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_CONTROL_METHODS = ("pyautogui", "xdotool", "simulated")


def _positive(value):
    return value > 0


def _non_negative(value):
    return value >= 0


def _unit_interval(value):
    return 0.0 <= value <= 1.0


def _port(value):
    return 0 <= value <= 65535


def _one_of(choices):
    def check(value):
        return value in choices
    return check


# section -> field -> (expected type, optional range check)
_FIELD_RULES = {
    "camera": {
        "device_id": (int, _non_negative),
        "width": (int, _positive),
        "height": (int, _positive),
        "fps": (int, _positive),
        "buffer_size": (int, _positive),
        "flip_horizontal": (bool, None),
        "warmup_frames": (int, _non_negative),
    },
    "mediapipe": {
        "model_path": (str, None),
        "min_detection_confidence": (float, _unit_interval),
        "min_presence_confidence": (float, _unit_interval),
        "min_tracking_confidence": (float, _unit_interval),
    },
    "tracking": {
        "tick_interval": (float, _positive),
        "grace_frames": (int, _non_negative),
        "padding": (float, _non_negative),
        "cursor_offset_y": (float, None),
        "closed_min_curled": (int, _one_of((1, 2, 3, 4))),
    },
    "transport": {
        "host": (str, None),
        "port": (int, _port),
        "reconnect_delay": (float, _non_negative),
    },
    "actuator": {
        "control_method": (str, _one_of(_CONTROL_METHODS)),
        "click_hold_ms": (int, _non_negative),
    },
    "logging": {
        "level": (str, lambda value: value.upper() in _LOG_LEVELS),
        "file": (str, None),
    },
}


def _type_matches(value, expected) -> bool:
    # bool is an int subclass; never accept it for a numeric field
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _check_section(name: str, section, rules: dict) -> list:
    if not isinstance(section, dict):
        return [f"Section '{name}' should be a dict, got {type(section).__name__}"]

    problems = []
    for field, (expected, in_range) in rules.items():
        if field not in section or section[field] is None:
            continue
        value = section[field]
        if not _type_matches(value, expected):
            problems.append(f"{name}.{field}: expected {expected.__name__}, "
                            f"got {type(value).__name__} ({value!r})")
        elif in_range is not None and not in_range(value):
            problems.append(f"{name}.{field}: value {value!r} out of range")

    unknown = sorted(set(section) - set(rules))
    if unknown:
        problems.append(f"{name}: unknown keys {', '.join(unknown)}")
    return problems


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Process-wide configuration (singleton)."""

    _instance = None
    _data = {}
    _path = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path=None, overrides: dict = None):
        """Read the YAML file and apply overrides.

        Args:
            config_path: YAML file; defaults to config/config.yaml
            overrides: Nested values applied on top of the file
        """
        path = config_path or DEFAULT_CONFIG_PATH

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
            logger.info("Loaded config from %s", path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", path)
            data = None

        if data is None:
            data = {}
        elif not isinstance(data, dict):
            logger.warning("Config file %s is not a mapping (%s); using defaults", path, type(data).__name__)
            data = {}

        if overrides:
            data = _deep_merge(data, overrides)

        self._data = data
        self._path = path
        self.validate()
        return self

    def validate(self) -> list:
        """Check known sections against their rules; log and return the problems."""
        problems = []
        for name, rules in _FIELD_RULES.items():
            if name in self._data:
                problems.extend(_check_section(name, self._data[name], rules))

        for problem in problems:
            logger.warning("Config validation: %s", problem)
        if not problems:
            logger.debug("Config validation passed")
        return problems

    def get(self, key_path: str, default=None):
        """Nested lookup by dot path, e.g. 'transport.port'."""
        node = self._data
        for key in key_path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_section(self, section: str) -> dict:
        """A whole section; {} when it is missing or not a mapping."""
        value = self._data.get(section)
        return value if isinstance(value, dict) else {}

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def mediapipe(self) -> dict:
        return self.get_section("mediapipe")

    @property
    def tracking(self) -> dict:
        return self.get_section("tracking")

    @property
    def transport(self) -> dict:
        return self.get_section("transport")

    @property
    def actuator(self) -> dict:
        return self.get_section("actuator")

    @property
    def logging(self) -> dict:
        return self.get_section("logging")

    @property
    def path(self):
        """File the current values were loaded from."""
        return self._path

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Forget the loaded values (for testing)."""
        cls._instance = None
        cls._data = {}
        cls._path = None
