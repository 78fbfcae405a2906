"""Tracker session lifecycle."""
from .tracker import TrackerSession, TrackingConfig

__all__ = ["TrackerSession", "TrackingConfig"]
