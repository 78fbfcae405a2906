"""Local WebSocket channel between the tracker and the cursor relay."""
from .protocol import ActuatorCommand, decode_message, encode_frame
from .publisher import DetectionPublisher, TransportConfig

__all__ = [
    "ActuatorCommand",
    "decode_message",
    "encode_frame",
    "DetectionPublisher",
    "TransportConfig",
]
