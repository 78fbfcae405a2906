"""Configuration and logging utilities."""
from .config import Config
from .logger import setup_logging, log_timing, StatusLogger

__all__ = ["Config", "setup_logging", "log_timing", "StatusLogger"]
