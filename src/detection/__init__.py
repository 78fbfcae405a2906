"""Hand landmark types and frame admission.

The MediaPipe wrapper lives in detection.hand_detector and is imported
explicitly where the model is needed.
"""
from .landmarks import HandLandmarks, Landmark, LandmarkIndex, NUM_LANDMARKS
from .frame_gate import FrameGate

__all__ = ["HandLandmarks", "Landmark", "LandmarkIndex", "NUM_LANDMARKS", "FrameGate"]
