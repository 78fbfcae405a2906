"""
Touchless Cursor
=================

Webcam hand tracking turned into OS cursor control.

Modules:
    - capture: Webcam frame acquisition
    - detection: MediaPipe hand landmarks and frame admission
    - recognition: Geometry classification and temporal stabilization
    - transport: WebSocket wire protocol, publisher and cursor relay
    - control: OS pointer actuator
    - session: Tracker session lifecycle and tick loop
    - core: Shared types and the status event bus
    - utils: Configuration and logging
"""

__version__ = "1.0.0"
